"""FastAPI application entry point.

Run locally with ``uvicorn salesboard.main:app --port 8123``.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from salesboard.core.config import Settings, get_settings
from salesboard.core.database import dispose_engine
from salesboard.core.exceptions import register_exception_handlers
from salesboard.core.health import router as health_router
from salesboard.core.logging import configure_logging, get_logger
from salesboard.core.middleware import REQUEST_ID_HEADER, RequestIdMiddleware
from salesboard.features.analytics.routes import router as analytics_router
from salesboard.features.promo.routes import router as promo_router

logger = get_logger(__name__)

# Dashboard bodies with a full ranking and price ladder run to tens of KB.
GZIP_MINIMUM_BYTES = 1024


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging on startup; release pooled connections on shutdown."""
    settings = get_settings()
    configure_logging()
    logger.info(
        "app.startup_completed",
        app_name=settings.app_name,
        app_env=settings.app_env,
        query_timeout_seconds=settings.query_timeout_seconds,
        cache_ttl_seconds=settings.cache_default_ttl_seconds,
    )

    yield

    await dispose_engine()
    logger.info("app.shutdown_completed")


def add_middleware(app: FastAPI, settings: Settings) -> None:
    """Install middleware; the last one added runs outermost."""
    app.add_middleware(GZipMiddleware, minimum_size=GZIP_MINIMUM_BYTES)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )


def create_app() -> FastAPI:
    """Create the read-only analytics API."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Filtered sales aggregates for the retail dashboard",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url=None,
    )

    add_middleware(app, settings)
    register_exception_handlers(app)

    for router in (health_router, analytics_router, promo_router):
        app.include_router(router)

    return app


app = create_app()
