"""
Database configuration and session management
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


def _engine_kwargs(url: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"echo": settings.DB_ECHO}
    if not url.startswith("sqlite"):
        kwargs.update(pool_pre_ping=True, pool_recycle=3600)
    return kwargs


# Create async engine
engine = create_async_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting async database sessions.

    Usage in FastAPI:
        @router.get("/items")
        async def read_items(db: AsyncSession = Depends(get_db)):
            result = await db.execute(select(Item))
            return result.scalars().all()
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(db_engine: AsyncEngine | None = None) -> bool:
    """
    Verify connectivity and create missing tables.

    A failed connection is logged and the process keeps running without a
    database unless DB_FAIL_FAST is set, in which case the error propagates.

    Returns:
        True if the database is ready, False if running degraded
    """
    # Register table models with SQLModel.metadata
    from app import models  # noqa: F401

    db_engine = db_engine or engine
    try:
        async with db_engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            await conn.run_sync(SQLModel.metadata.create_all)
    except Exception as e:
        if settings.DB_FAIL_FAST:
            raise
        logger.error("database_connection_failed", error=str(e))
        return False

    logger.info("database_connected", dialect=db_engine.dialect.name)
    return True


async def close_db() -> None:
    """Dispose of pooled connections on shutdown."""
    await engine.dispose()
