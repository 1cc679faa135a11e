# main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mood_journal.config import Settings, get_settings
from mood_journal.database import Database
from mood_journal.errors import MoodJournalError
from mood_journal.logging_config import RequestLoggingMiddleware, init_logging
from mood_journal.routes import router
from mood_journal.services.chat_service import ChatRelay

logger = logging.getLogger("main")


# ---------------------------------------------------------------------------
# Exception handlers: every error body is {"error": "..."}
# ---------------------------------------------------------------------------
async def _app_error_handler(request: Request, exc: MoodJournalError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.__cause__ or exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    fields = [str(e["loc"][-1]) for e in errors if e.get("loc") and e["loc"][0] == "body" and len(e["loc"]) > 1]
    message = f"Invalid value for {', '.join(fields)}" if fields else "Invalid request body"
    logger.info("%s %s rejected: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"error": message})


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


async def _unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("%s %s error: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "Server error"})


# ---------------------------------------------------------------------------
# FastAPI Application
# ---------------------------------------------------------------------------
def create_app(
    settings: Optional[Settings] = None,
    *,
    database: Optional[Database] = None,
    chat_relay: Optional[ChatRelay] = None,
) -> FastAPI:
    settings = settings or get_settings()
    database = database or Database.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the database handle for the life of the process."""
        logger.info("Startup: initializing database...")
        try:
            await database.open()
            logger.info("Connected to database: %s", database.dsn())
        except Exception as e:
            logger.critical("Database initialization failed: %s", e)
            raise  # app must not start without a database

        yield  # app runs during this block

        logger.info("Shutdown: closing database connection pool...")
        try:
            await database.close()
            logger.info("Cleanup complete.")
        except Exception as e:
            logger.error("Error during shutdown cleanup: %s", e)

    app = FastAPI(
        title="Mood Journal API",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.chat_relay = chat_relay or ChatRelay(settings=settings)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(MoodJournalError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    @app.get("/", tags=["Health"])
    async def root():
        """Basic health check to verify the service is running."""
        return {"status": "ok", "message": "Mood Journal API is running."}

    app.include_router(router)
    return app


init_logging()
logger.info("Application starting...")
app = create_app()


def run() -> None:
    """Serve the API with uvicorn (``mood-journal`` console script)."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
