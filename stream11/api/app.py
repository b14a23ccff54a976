"""FastAPI application factory and lifespan."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stream11.api.errors import register_error_handlers
from stream11.api.routers import ALL_ROUTERS
from stream11.config.logging import configure_logging
from stream11.config.settings import Settings, get_settings
from stream11.db.connection import DatabaseConnection
from stream11.db.indexes import ensure_indexes

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Open the shared resources on startup and release them on shutdown.

    The database connection and the outbound HTTP client are stored on
    ``app.state`` where the request dependencies pick them up.
    """
    settings: Settings = app.state.settings

    if settings.session.uses_fallback_key:
        logger.warning(
            "SECRET_KEY is not set; using a random key, sessions end on restart"
        )

    connection = DatabaseConnection(settings.mongo)
    await connection.connect()
    await ensure_indexes(connection.database)

    http_client = httpx.AsyncClient(timeout=settings.app.http_timeout_seconds)

    app.state.db = connection
    app.state.http_client = http_client
    logger.info("Application started", environment=settings.app.environment)

    try:
        yield
    finally:
        await http_client.aclose()
        await connection.disconnect()
        logger.info("Application stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration to use (defaults to the cached environment settings)

    Returns:
        Configured FastAPI app with routes mounted under the API prefix
    """
    settings = settings or get_settings()
    configure_logging(
        settings.app.log_level,
        json_output=settings.app.environment == "production",
    )

    app = FastAPI(
        title=settings.app.name,
        version=settings.app.version,
        debug=settings.app.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    for router in ALL_ROUTERS:
        app.include_router(router, prefix=settings.app.api_prefix)

    return app
