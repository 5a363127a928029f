"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import make_url

from handbook.config import get_settings
from handbook.infrastructure.database import Base, engine
from handbook.infrastructure.logging.log_config import setup_logging
from handbook.presentation.api.errors import register_exception_handlers
from handbook.presentation.api.v1.router import router as v1_router

logger = logging.getLogger(__name__)


async def _ensure_database_exists() -> None:
    """Create the configured PostgreSQL database when it is missing.

    SQLite files are created on first connect, so only PostgreSQL URLs are
    handled. Failures are logged; ``create_all`` reports the real error.
    """
    import asyncpg

    url = make_url(get_settings().database_url)
    if url.get_backend_name() != "postgresql" or not url.database:
        return

    # asyncpg takes a plain DSN; CREATE DATABASE must run outside a transaction
    dsn = url.set(drivername="postgresql", database="postgres").render_as_string(
        hide_password=False
    )
    try:
        conn = await asyncpg.connect(dsn)
        try:
            found = await conn.fetchval(
                "SELECT 1 FROM pg_database WHERE datname = $1", url.database
            )
            if found:
                logger.debug("Database '%s' already exists", url.database)
            else:
                await conn.execute(f'CREATE DATABASE "{url.database}"')
                logger.info("Created database '%s'", url.database)
        finally:
            await conn.close()
    except (OSError, asyncpg.PostgresError) as exc:
        logger.warning("Could not auto-create database '%s': %s", url.database, exc)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging and make sure the article table exists."""
    setup_logging()
    await _ensure_database_exists()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Article store ready (%s)", engine.dialect.name)

    yield

    await engine.dispose()


def create_app() -> FastAPI:
    """Build the article workflow API."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(v1_router, prefix="/api")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("handbook.main:app", host="0.0.0.0", port=8020, reload=True)
