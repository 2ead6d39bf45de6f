"""FastAPI application configuration module."""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Internal imports
from ..config.environment import IS_PRODUCTION_ENVIRONMENT  # Environment must be imported first
from ..config.cors import CORS_CONFIG
from ..clients import FeedUnavailable
from ..utils.logging_config import setup_logging
from .dependencies import get_database
from .routes import (
    events,
    facebook_sync,
    webflow_sync,
    maintenance,
    photos,
    health
)

# Set up logging
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    try:
        database = app.dependency_overrides.get(get_database, get_database)()
        database.ensure_tables_exist()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise
    yield


async def feed_unavailable_handler(request: Request, exc: FeedUnavailable) -> JSONResponse:
    logger.error(f"Feed unavailable while handling {request.url.path}: {exc}")
    return JSONResponse(
        status_code=502,
        content={"status": "error", "error": str(exc), "upstream_status": exc.status_code}
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error while handling {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"status": "error", "error": str(exc)})


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Timeline Sync API",
        description="Facebook page feed to timeline events sync, with Webflow push",
        version="1.0.0",
        docs_url=None if IS_PRODUCTION_ENVIRONMENT else '/api/docs',
        redoc_url=None if IS_PRODUCTION_ENVIRONMENT else '/api/redoc',
        lifespan=lifespan
    )

    # Configure CORS
    app.add_middleware(CORSMiddleware, **CORS_CONFIG)

    app.add_exception_handler(FeedUnavailable, feed_unavailable_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include routers without prefix
    app.include_router(health.router)
    app.include_router(photos.router)

    # Include routers with prefix
    app.include_router(events.router, prefix="/api")
    app.include_router(facebook_sync.router, prefix="/api")
    app.include_router(webflow_sync.router, prefix="/api")
    app.include_router(maintenance.router, prefix="/api")

    return app


# Create the application instance
app = create_application()
