"""
Review widgets FastAPI application.

Entry point for the API server: dashboard widget CRUD plus the public
embed routes.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend import db
from backend.config import settings
from backend.middleware.rate_limit import rate_limiter
from backend.routes import embed as embed_routes
from backend.routes import widgets as widget_routes
from engine.widget.errors import ConfigValidationError

logging.basicConfig(
    level=logging.DEBUG if settings.ENVIRONMENT == "development" else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# Background task for cleanup
async def cleanup_task():
    """
    Drop idle rate limit entries.

    Runs every 60 seconds.
    """
    while True:
        removed = rate_limiter.cleanup_old_entries(max_age_minutes=10)
        if removed:
            logger.debug("Cleaned up %d idle rate limit keys", removed)
        await asyncio.sleep(60)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Handles startup and shutdown logic:
    - Initialize database pool
    - Start background cleanup task
    - Close database pool on shutdown
    """
    await db.init_pool()
    logger.info("Database pool initialized")

    cleanup_task_handle = asyncio.create_task(cleanup_task())

    yield

    cleanup_task_handle.cancel()
    try:
        await cleanup_task_handle
    except asyncio.CancelledError:
        logger.info("Background cleanup task stopped")

    await db.close_pool()
    logger.info("Database pool closed")


app = FastAPI(
    title="Review Widgets",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)


@app.exception_handler(ConfigValidationError)
async def config_validation_error(request: Request, exc: ConfigValidationError) -> JSONResponse:
    """Invalid widget configs name the offending field."""
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "path": exc.path},
    )


# Register routes
app.include_router(widget_routes.router)
app.include_router(embed_routes.router)


@app.get("/health")
async def health():
    """Health check endpoint for uptime monitoring."""
    return {"status": "ok"}
