"""FastAPI application factory."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import api_router
from .api.auth import API_KEY_HEADER
from .errors import register_exception_handlers
from .web import web_router
from .middleware.logging import LoggingMiddleware
from .middleware.security import SecurityHeadersMiddleware


def create_app(
    service_instance,
    config,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        service_instance: QRCodeService instance (may be set later by the lifespan)
        config: Configuration instance

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Dynamic QR Code Manager",
        description="Short, stable QR codes pointing at editable links and contact cards",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # Store instances in app state for access in routes
    app.state.service = service_instance
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", API_KEY_HEADER],
    )

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(LoggingMiddleware)

    register_exception_handlers(app)

    # API first: the public router ends in a catch-all /{short_id}
    app.include_router(api_router, prefix="/api", tags=["API"])
    app.include_router(web_router, tags=["Resolve"])

    return app
