import logging
from typing import Any, Dict, Optional, cast

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from mood_journal.config import Settings, get_settings

logger = logging.getLogger("database")


def _detect_driver(url: str) -> str:
    try:
        return make_url(url).drivername
    except Exception:
        return url.split(":", 1)[0]


class Database:
    """Owns the async engine and session factory for one process.

    Constructed from settings, opened at startup and closed at shutdown.
    Stores receive the handle explicitly instead of reaching for a global pool.
    """

    def __init__(self, url: str, *, echo: bool = False):
        self.url = str(url or "").strip()
        if not self.url:
            raise RuntimeError("DATABASE_URL is required")
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "Database":
        settings = settings or get_settings()
        return cls(settings.database_url, echo=settings.debug)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _make_engine(self) -> AsyncEngine:
        driver = _detect_driver(self.url)
        engine_kwargs: Dict[str, Any] = {
            "echo": self.echo,
            "future": True,
            "pool_pre_ping": True,
        }
        if driver.startswith("postgresql+") or driver.startswith("mysql+"):
            engine_kwargs["pool_size"] = 10
            engine_kwargs["max_overflow"] = 5
        elif driver.startswith("sqlite"):
            # aiosqlite connections are cheap; avoid sharing them across event loops
            engine_kwargs["poolclass"] = NullPool
            engine_kwargs["pool_pre_ping"] = False
        return create_async_engine(self.url, **engine_kwargs)

    async def open(self, *, create_tables: bool = True) -> None:
        """Create the engine and, optionally, the schema."""
        from mood_journal.models import models

        if self._engine is not None:
            return
        try:
            self._engine = self._make_engine()
            self._sessionmaker = async_sessionmaker(bind=self._engine, expire_on_commit=False)
            if create_tables:
                async with self._engine.begin() as conn:
                    await conn.run_sync(models.Base.metadata.create_all)
            logger.info("Database initialized successfully: %s", self.dsn())
        except Exception as e:
            logger.critical("Database initialization failed: %s", e)
            if self._engine is not None:
                await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None
            raise RuntimeError("Failed to initialize database") from e

    async def close(self) -> None:
        """Dispose the async engine cleanly."""
        if self._engine is None:
            return
        try:
            await self._engine.dispose()
            logger.info("Database connection pool closed.")
        except Exception as e:
            logger.error("Error shutting down database engine: %s", e)
            raise
        finally:
            self._engine = None
            self._sessionmaker = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def session(self) -> AsyncSession:
        if self._sessionmaker is None:
            raise RuntimeError("Database is not open")
        return self._sessionmaker()

    def dsn(self, hide_password: bool = True) -> str:
        """Return the configured DSN string with the password masked."""
        try:
            url = make_url(cast(str, self.url))
            return url.render_as_string(hide_password=hide_password)
        except Exception:
            return self.url


def get_database(request: Request) -> Database:
    """FastAPI dependency: the handle opened in the application lifespan."""
    return request.app.state.database
