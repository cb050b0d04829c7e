"""
Database session management for the tufhub API server.

Sessions are not wrapped in a request-wide transaction. The services commit
at the points where the relational store must be durable before a blob or
key store is touched, so a session scope never commits on its own: on exit
anything still uncommitted is rolled back, on error included.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tufhub.config import settings
from tufhub.logging_config import get_logger

logger = get_logger(__name__)

_engine = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


async def init_db() -> None:
    """Create the engine and session factory, then check connectivity."""
    global _engine, _async_session_factory  # noqa: PLW0603
    logger.info(
        "Initializing database connection",
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )

    _engine = create_async_engine(
        str(settings.database_url),
        echo=settings.debug,
        pool_pre_ping=True,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    # Rows returned by a service stay readable after its commits
    _async_session_factory = async_sessionmaker(_engine, expire_on_commit=False, autoflush=False)

    await _ping()
    logger.info("Database connection established")


async def close_db() -> None:
    global _engine, _async_session_factory  # noqa: PLW0603
    if _engine is not None:
        logger.info("Closing database connection pool")
        await _engine.dispose()
        _engine = None
        _async_session_factory = None


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession]:
    """Session scope for the CLI and for get_db.

    The caller commits. Work left uncommitted when the scope ends is
    discarded, and logged when it ends without an error.
    """
    if _async_session_factory is None:
        raise RuntimeError("Database not initialized (call init_db() first)")

    async with _async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        if session.new or session.dirty or session.deleted:
            logger.warning(
                "Discarding uncommitted changes at end of session",
                new=len(session.new),
                dirty=len(session.dirty),
                deleted=len(session.deleted),
            )
        await session.rollback()


async def get_db() -> AsyncGenerator[AsyncSession]:
    """FastAPI dependency wrapping get_db_session."""
    async with get_db_session() as session:
        yield session


async def _ping() -> None:
    async with _engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def get_db_health() -> bool:
    """Check database health for the readiness endpoint."""
    if _engine is None:
        return False
    try:
        await _ping()
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        return False
    return True
