"""SQLAlchemy database session and engine configuration.

The engine owns the bounded connection pool for PostgreSQL: at most
``pg_pool_size + pg_max_overflow`` connections; a request that cannot get
one within ``pg_pool_timeout`` seconds fails with ``sqlalchemy.exc.TimeoutError``.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from dualstore.config import Settings, get_settings


def _get_async_url(url: str) -> str:
    """Convert a sync SQLAlchemy URL to an async one."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    return url


def _engine_options(async_url: str, settings: Settings) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.sql_echo, "future": True}
    if async_url.startswith("sqlite"):
        # SQLite picks its own pool class; sizing arguments do not apply.
        return options
    options.update(
        pool_size=settings.pg_pool_size,
        max_overflow=settings.pg_max_overflow,
        pool_timeout=settings.pg_pool_timeout,
        pool_recycle=settings.pg_pool_recycle,
        pool_pre_ping=True,
    )
    return options


def build_engine(settings: Settings) -> AsyncEngine:
    async_url = _get_async_url(settings.database_url)
    return create_async_engine(async_url, **_engine_options(async_url, settings))


settings = get_settings()
engine = build_engine(settings)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency — yields an async DB session per request."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
