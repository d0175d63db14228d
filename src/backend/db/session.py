"""
Async database engine and session management.

PostgreSQL (asyncpg) in production, SQLite (aiosqlite) for tests and local
runs. Every connection gets a bounded statement timeout so a stuck vote
transaction surfaces as a retryable failure instead of hanging a worker.
"""

from collections.abc import AsyncGenerator
from typing import Any, Optional

import structlog
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import settings
from db.base import Base

logger = structlog.get_logger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def _engine_options(url: str) -> dict[str, Any]:
    """Build dialect specific engine options."""
    options: dict[str, Any] = {"echo": settings.DB_ECHO, "pool_pre_ping": True}
    timeout_ms = settings.DB_STATEMENT_TIMEOUT_MS

    if url.startswith("postgresql"):
        options["pool_size"] = settings.DB_POOL_SIZE
        options["connect_args"] = {
            "server_settings": {"statement_timeout": str(timeout_ms)},
        }
    elif url.startswith("sqlite"):
        # sqlite busy timeout, in seconds
        options["connect_args"] = {"timeout": timeout_ms / 1000}

    return options


def _enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def configure_engine(url: Optional[str] = None) -> AsyncEngine:
    """(Re)create the engine and session factory for the given URL."""
    global _engine, _session_factory

    database_url = url or settings.DATABASE_URL
    engine = create_async_engine(database_url, **_engine_options(database_url))
    if database_url.startswith("sqlite"):
        _enable_sqlite_foreign_keys(engine)

    _engine = engine
    _session_factory = async_sessionmaker(engine, expire_on_commit=False)
    logger.info("database_engine_configured", dialect=engine.dialect.name)
    return engine


def get_engine() -> AsyncEngine:
    if _engine is None:
        configure_engine()
    assert _engine is not None
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        configure_engine()
    assert _session_factory is not None
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a database session per request."""
    async with get_session_factory()() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db() -> None:
    """Create tables if they do not exist."""
    import models  # noqa: F401  (register mappers)

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_initialized")


async def close_db() -> None:
    """Dispose of the engine and its connection pool."""
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        logger.info("database_closed")
    _engine = None
    _session_factory = None
