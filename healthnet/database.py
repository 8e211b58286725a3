"""PostgreSQL engines: async sessions for the API, a sync engine for Alembic and scripts."""

from collections.abc import AsyncGenerator

import structlog
from sqlalchemy import create_engine, pool, text
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from healthnet.config import settings

logger = structlog.get_logger(__name__)


def sync_database_url(url: str) -> str:
    """Normalize the ``postgres://`` scheme some hosts hand out."""
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://") :]
    return url


def async_database_url(url: str) -> str:
    """Point a PostgreSQL URL at the asyncpg driver."""
    url = sync_database_url(url)
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://") :]
    return url


engine: AsyncEngine = create_async_engine(
    async_database_url(settings.database_url),
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_recycle=settings.db_pool_recycle,
    connect_args={
        "server_settings": {
            "application_name": settings.app_name,
        },
    },
)

SessionFactory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

sync_engine: Engine = create_engine(
    sync_database_url(settings.database_url),
    poolclass=pool.NullPool,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session.

    Services commit their own writes; whatever is still pending when the
    request fails is rolled back before the session closes.
    """
    async with SessionFactory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def check_database_connection() -> bool:
    """Run ``SELECT 1`` against the database."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("database_unreachable", error=str(e))
        return False
    return True


async def dispose_engines() -> None:
    """Close every pooled connection of both engines."""
    await engine.dispose()
    sync_engine.dispose()
