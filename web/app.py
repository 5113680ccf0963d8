"""
FastAPI application for the property engine.

Exposes the Incentive & Audit Engine as a JSON API. Production deployment
is configured through environment variables (see utils.config).
"""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core import (
    IncompleteObservationError,
    InactivePropertyError,
    InvalidInputError,
    OutOfOrderEventError,
    PropertyNotFoundError,
)
from utils.config import Config
from web.property_routes import router as property_router


logger = logging.getLogger(__name__)

# =============================================================================
# Environment Configuration
# =============================================================================

# Production mode detection
IS_PRODUCTION = os.getenv("PRODUCTION", "").lower() == "true"

VERSION = "0.1.0"


# =============================================================================
# Error Mapping
# =============================================================================


def _register_error_handlers(app: FastAPI) -> None:
    """Map core errors to HTTP responses. Messages are returned verbatim."""

    @app.exception_handler(InvalidInputError)
    async def invalid_input(request: Request, exc: InvalidInputError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(IncompleteObservationError)
    async def incomplete_observation(request: Request, exc: IncompleteObservationError):
        return JSONResponse(
            status_code=422,
            content={"detail": exc.message, "missing": exc.missing},
        )

    @app.exception_handler(OutOfOrderEventError)
    async def out_of_order(request: Request, exc: OutOfOrderEventError):
        return JSONResponse(status_code=409, content={"detail": exc.message})

    @app.exception_handler(InactivePropertyError)
    async def inactive_property(request: Request, exc: InactivePropertyError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(PropertyNotFoundError)
    async def not_found(request: Request, exc: PropertyNotFoundError):
        return JSONResponse(
            status_code=404,
            content={"detail": f"Property not found: {exc.args[0] if exc.args else ''}"},
        )


def create_app(config: Config = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or Config.load()
    debug = config.debug and not IS_PRODUCTION

    app = FastAPI(
        title="Penguin Property Engine",
        description="Charter incentive and audit engine for Moroccan real estate",
        version=VERSION,
        docs_url=None if IS_PRODUCTION else "/docs",
        redoc_url=None if IS_PRODUCTION else "/redoc",
        openapi_url=None if IS_PRODUCTION else "/openapi.json",
        debug=debug,
    )

    # Health endpoints first: no dependencies, no IO
    @app.get("/", include_in_schema=False)
    def root():
        return {"status": "ok"}

    @app.get("/health", include_in_schema=False)
    def health():
        return {
            "status": "healthy",
            "version": VERSION,
            "environment": "production" if IS_PRODUCTION else "development",
        }

    if config.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.allowed_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    _register_error_handlers(app)
    app.include_router(property_router)

    logger.info("Penguin Property Engine app created (debug=%s)", debug)
    return app


# Create app instance for uvicorn
app = create_app()
