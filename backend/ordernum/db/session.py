"""Database engine and session configuration."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

# Register all models with SQLModel metadata
import ordernum.models  # noqa: F401
from ordernum.config import settings


def build_engine(database_url: str, **pool_options: Any) -> AsyncEngine:
    """Create an async engine; pool options are skipped for SQLite."""
    if database_url.startswith("sqlite"):
        pool_options = {}
    return create_async_engine(
        database_url,
        echo=False,  # SQL logging controlled via structlog configuration
        future=True,
        **pool_options,
    )


engine = build_engine(
    settings.database_url,
    pool_size=5,
    max_overflow=10,
    pool_pre_ping=True,  # Verify connections before use
    pool_recycle=300,  # Recycle connections after 5 minutes
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession]:
    """Dependency that provides an async database session."""
    async with async_session_maker() as session:
        yield session


async def dispose_engine() -> None:
    """Dispose of the engine and release all connections.

    Should be called during application shutdown.
    """
    await engine.dispose()


@asynccontextmanager
async def script_db_session(database_url: str | None = None) -> AsyncGenerator[AsyncSession]:
    """Context manager that provides a database session for one-shot scripts.

    Creates a fresh engine bound to the current event loop, yields a session,
    and ensures proper cleanup of both the session and engine connection pool.

    This is necessary because each asyncio.run() call creates a new event loop,
    and the database connections must be bound to the current event loop.

    The session is not committed on exit; callers commit their own units of work.

    Usage:
        async with script_db_session() as session:
            reconciler = BackfillReconciler(session)
            report = await reconciler.run()
    """
    script_engine = build_engine(
        database_url or settings.database_url,
        pool_size=2,
        max_overflow=3,
        pool_pre_ping=True,
    )
    session_maker = async_sessionmaker(
        script_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    try:
        async with session_maker() as session:
            try:
                yield session
            except BaseException:
                await session.rollback()
                raise
    finally:
        # Dispose engine to release all connections
        await script_engine.dispose()
