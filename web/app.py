"""
FastAPI application for the listing integrity service.

Production deployment configuration via environment variables.
"""

import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.errors import ListingIntegrityError
from core.integrity import ListingIntegrityService, build_service
from utils.config import Config
from web.listing_routes import router as listing_router

logger = logging.getLogger(__name__)

# =============================================================================
# Environment Configuration
# =============================================================================

IS_PRODUCTION = os.getenv("PRODUCTION", "").lower() == "true"

# CORS configuration - locked down for production
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "").split(",") if os.getenv("ALLOWED_ORIGINS") else []
if not ALLOWED_ORIGINS and not IS_PRODUCTION:
    # Development fallback only
    ALLOWED_ORIGINS = ["http://localhost:8000", "http://127.0.0.1:8000"]

VERSION = "0.1.0"


def create_app(
    service: Optional[ListingIntegrityService] = None,
    config: Optional[Config] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        service: Pre-built service (tests inject one); built from config otherwise
        config: Configuration; loaded from the environment if omitted
    """
    config = config or Config.load()

    app = FastAPI(
        title="Listing Integrity Engine",
        description="Asset verification, fraud checks and lifecycle for property listings",
        version=VERSION,
        docs_url=None if IS_PRODUCTION else "/docs",
        redoc_url=None if IS_PRODUCTION else "/redoc",
        openapi_url=None if IS_PRODUCTION else "/openapi.json",
        debug=config.debug and not IS_PRODUCTION,
    )
    app.state.service = service or build_service(config)

    # Healthchecks: no dependencies, no IO
    @app.get("/", include_in_schema=False)
    def root():
        return {"status": "ok"}

    @app.get("/health")
    def health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": VERSION,
            "environment": "production" if IS_PRODUCTION else "development",
        }

    if ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=ALLOWED_ORIGINS,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE"],
            allow_headers=["*"],
        )

    @app.exception_handler(ListingIntegrityError)
    async def integrity_error_handler(request: Request, exc: ListingIntegrityError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, **exc.to_dict()},
        )

    app.include_router(listing_router)

    return app
