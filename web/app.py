"""
FastAPI application for the comparables service.

Production deployment configuration via environment variables.
"""

import logging
import os
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from market import PhotoInsightClient, PhotoInsightCoordinator, __version__
from utils.config import Config
from web.routes import router as api_router


logger = logging.getLogger(__name__)


# =============================================================================
# Environment Configuration
# =============================================================================

# Production mode detection
IS_PRODUCTION = os.getenv("PRODUCTION", "").lower() == "true"

# CORS configuration
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "").split(",") if os.getenv("ALLOWED_ORIGINS") else []
if not ALLOWED_ORIGINS and not IS_PRODUCTION:
    # Development fallback only
    ALLOWED_ORIGINS = ["http://localhost:8000", "http://127.0.0.1:8000"]


def build_coordinator(config: Config) -> PhotoInsightCoordinator:
    """Insight client and coordinator wired from configuration."""
    client = PhotoInsightClient(
        base_url=config.insights_api_base,
        api_key=config.insights_api_key,
        timeout=config.request_timeout,
    )
    return PhotoInsightCoordinator(
        client,
        photos_per_property=config.photos_per_property,
        request_delay=config.insight_request_delay,
        cdn_base=config.photo_cdn_base,
    )


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or Config.load()

    app = FastAPI(
        title="Market Comparables",
        description="Comparable normalisation, market statistics and photo selection",
        version=__version__,
        docs_url=None if IS_PRODUCTION else "/docs",
        redoc_url=None if IS_PRODUCTION else "/redoc",
        openapi_url=None if IS_PRODUCTION else "/openapi.json",
        debug=config.debug and not IS_PRODUCTION,
    )
    app.state.config = config
    app.state.photo_coordinator = build_coordinator(config)

    # Health endpoints: no dependencies, no IO
    @app.get("/", include_in_schema=False)
    def root():
        return {"status": "ok"}

    @app.get("/health", include_in_schema=False)
    def health():
        return {"status": "healthy", "version": __version__}

    if ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=ALLOWED_ORIGINS,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    app.include_router(api_router)

    @app.on_event("shutdown")
    def on_shutdown():
        """Cancel in-flight insight runs and release the HTTP session."""
        coordinator = app.state.photo_coordinator
        coordinator.cancel()
        coordinator.client.close()
        logger.info("Market Comparables stopped")

    return app


# Create app instance for uvicorn
app = create_app()
