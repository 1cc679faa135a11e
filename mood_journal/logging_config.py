import importlib.util
import logging
import time
from logging.config import dictConfig
from typing import Any, Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from mood_journal.config import Settings, get_settings

# ---------------------------------------------------
# Colorlog Availability Check
# ---------------------------------------------------
COLORLOG_AVAILABLE = importlib.util.find_spec("colorlog") is not None


# ---------------------------------------------------
# Logging Configuration
# ---------------------------------------------------
def build_logging_config(settings: Settings) -> Dict[str, Any]:
    log_level = settings.log_level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
            },
            "color": (
                {
                    "()": "colorlog.ColoredFormatter",
                    "format": "%(log_color)s%(asctime)s %(levelname)s [%(name)s] %(message)s",
                    "log_colors": {
                        "DEBUG": "cyan",
                        "INFO": "green",
                        "WARNING": "yellow",
                        "ERROR": "red",
                        "CRITICAL": "bold_red",
                    },
                }
                if COLORLOG_AVAILABLE
                else {}
            ),
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "color" if COLORLOG_AVAILABLE else "default",
                "level": settings.console_log_level.upper(),
            },
        },
        "loggers": {
            # Silence uvicorn noise in console; requests are logged by the middleware
            "uvicorn": {"level": "WARNING"},
            "uvicorn.error": {"level": "WARNING"},
            "uvicorn.access": {"level": "WARNING"},
            "sqlalchemy.engine": {"level": "WARNING"},
            # APScheduler logs every poll at INFO
            "apscheduler": {"level": "WARNING"},
            "httpx": {"level": "WARNING"},
            "request": {"level": "INFO"},
        },
        "root": {
            "level": log_level,
            "handlers": ["console"],
        },
    }


# ---------------------------------------------------
# Initialize Logging
# ---------------------------------------------------
def init_logging(settings: Optional[Settings] = None) -> None:
    dictConfig(build_logging_config(settings or get_settings()))


# ---------------------------------------------------
# Request Logging Middleware
# ---------------------------------------------------
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        logger = logging.getLogger("request")
        start_time = time.perf_counter()

        response = await call_next(request)

        duration = (time.perf_counter() - start_time) * 1000
        logger.info(
            "%s %s → %s (%.2f ms)", request.method, request.url.path, response.status_code, duration
        )
        return response
