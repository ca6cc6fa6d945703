"""
Tweak FastAPI application.

Entry point for the API server.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from backend.config import settings
from backend.routes import editor as editor_routes
from backend.services import sandbox_service

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Handles startup and shutdown logic:
    - Start loading the JSX compiler (when SANDBOX_PRELOAD is on)
    - Stop the compiler process on shutdown
    """
    # Startup
    if settings.SANDBOX_PRELOAD:
        sandbox_service.preload()

    yield

    # Shutdown
    sandbox_service.shutdown()
    logger.info("sandbox: compiler closed")


app = FastAPI(
    title="Tweak",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)

# Register routes
app.include_router(editor_routes.router)


@app.get("/health")
async def health():
    """Health check endpoint for uptime monitoring."""
    return {"status": "ok"}
