"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from dualstore.config import get_settings
from dualstore.infrastructure.database import Base, engine
from dualstore.infrastructure.logging.log_config import setup_logging
from dualstore.infrastructure.logging.request_logger import RequestLoggingMiddleware
from dualstore.infrastructure.mongo import (
    close_mongo_client,
    ensure_indexes,
    get_mongo_database,
)
from dualstore.presentation.api.endpoints.health import router as health_router
from dualstore.presentation.api.error_handlers import register_exception_handlers
from dualstore.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


async def _ensure_database_exists() -> None:
    """Create the PostgreSQL database if it does not yet exist.

    Connects to the default ``postgres`` maintenance database, checks for the
    target database name, and issues ``CREATE DATABASE`` when missing.
    """
    import asyncpg

    settings = get_settings()
    if not settings.database_url.startswith(("postgresql://", "postgres://")):
        return
    parsed = urlparse(settings.database_url)
    db_name = parsed.path.lstrip("/")
    if not db_name:
        return

    maintenance_url = settings.database_url.rsplit("/", 1)[0] + "/postgres"

    try:
        conn = await asyncpg.connect(maintenance_url)
        try:
            exists = await conn.fetchval(
                "SELECT 1 FROM pg_database WHERE datname = $1", db_name
            )
            if not exists:
                # CREATE DATABASE cannot run inside a transaction block
                await conn.execute(f'CREATE DATABASE "{db_name}"')
                logger.info("Created database '%s'", db_name)
            else:
                logger.debug("Database '%s' already exists", db_name)
        finally:
            await conn.close()
    except (OSError, asyncpg.PostgresError) as exc:
        logger.warning("Could not auto-create database '%s': %s", db_name, exc)


async def _prepare_postgres() -> None:
    await _ensure_database_exists()
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("PostgreSQL schema ready")
    except Exception:
        logger.exception("PostgreSQL unavailable at startup; product routes will fail")


async def _prepare_mongo() -> None:
    try:
        await ensure_indexes(get_mongo_database())
        logger.info("MongoDB indexes ready")
    except Exception:
        logger.exception("MongoDB unavailable at startup; user routes will fail")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — prepare both datastores, release their pools on exit."""
    setup_logging()
    settings = get_settings()
    logger.info("Starting %s (%s)", settings.app_title, settings.app_env)

    await _prepare_postgres()
    await _prepare_mongo()

    yield

    # Shutdown
    await close_mongo_client()
    await engine.dispose()
    logger.info("Connection pools closed")


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # Middleware: the last one added runs first.
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    app.include_router(api_router)
    app.include_router(health_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "dualstore.main:app",
        host="0.0.0.0",
        port=get_settings().port,
    )
