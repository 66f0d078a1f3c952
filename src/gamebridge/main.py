"""FastAPI application factory and main entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gamebridge import __version__
from gamebridge.api.v1 import api_router
from gamebridge.core.config import Settings, get_settings
from gamebridge.core.exceptions import (
    ConfirmationTimeoutError,
    GameBridgeError,
    RevertError,
)
from gamebridge.core.logging import configure_logging
from gamebridge.services.dependencies import ServiceContainer, build_services

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    services: ServiceContainer | None = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        settings: Settings to use (cached environment settings if None)
        services: Prebuilt services (built in the lifespan if None)
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build services and run the event subscriber for the app lifetime."""
        configure_logging(settings)
        container = services or build_services(settings)
        app.state.settings = settings
        app.state.services = container

        if container.subscriber is not None:
            await container.subscriber.start()

        yield

        if container.subscriber is not None:
            await container.subscriber.stop()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="PlayGame match, purchase and leaderboard API",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    register_routes(app, settings)

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Translate service errors into distinct HTTP statuses."""

    @app.exception_handler(GameBridgeError)
    async def handle_service_error(request: Request, exc: GameBridgeError) -> JSONResponse:
        body: dict = {"error": exc.__class__.__name__, "detail": exc.message}
        if isinstance(exc, (RevertError, ConfirmationTimeoutError)) and exc.tx_hash:
            body["txHash"] = exc.tx_hash

        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")

        return JSONResponse(status_code=exc.status_code, content=body)


def register_routes(app: FastAPI, settings: Settings) -> None:
    """Register all application routes."""
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    @app.get("/health", tags=["System"])
    async def health_check():
        """Liveness endpoint for load balancers and monitoring."""
        return {
            "status": "healthy",
            "version": __version__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get(f"{settings.api_v1_prefix}/", tags=["API"])
    async def api_root():
        """API root endpoint with application info."""
        return {
            "name": settings.app_name,
            "version": __version__,
            "environment": settings.environment,
            "docs_url": "/docs" if settings.debug else "Disabled in production",
        }


def run() -> None:
    """Serve the application with uvicorn."""
    settings = get_settings()
    uvicorn.run("gamebridge.main:app", host=settings.host, port=settings.port)


# Create application instance
app = create_app()
