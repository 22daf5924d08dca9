"""
SlideTiming - Main Application Entry Point

Suggests slide durations from the timing of an author's similar slides.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from slidetiming import __version__
from slidetiming.api.routes import suggestions
from slidetiming.core import StoreUnavailableError, get_settings, setup_logging
from slidetiming.services import get_duration_suggestion_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.log_level)

    # Startup
    logger.info(f"🚀 Starting {settings.app_name}...")
    settings.ensure_directories()

    logger.info(f"📁 Data directory: \033[93m{settings.data_dir}\033[0m")
    logger.info(f"🗄️  Store backend: \033[96m{settings.store_backend}\033[0m")
    logger.info(
        f"🎯 Thresholds: title > {settings.title_threshold}, "
        f"content > {settings.content_threshold}"
    )

    # Touch the store on startup so a broken database shows up in the logs
    service = get_duration_suggestion_service()
    if service.is_available:
        logger.info("✅ Fingerprint store ready")
    else:
        logger.warning("⚠️  Fingerprint store unavailable - suggestions will be empty")

    yield

    # Shutdown
    logger.info(f"👋 Shutting down {settings.app_name}...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Slide duration suggestions from similar, already-timed slides",
        version=__version__,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        """Malformed bodies are client errors (400), like service-level validation."""
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())},
        )

    # Include API routers
    app.include_router(suggestions.router, tags=["suggestions"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        service = get_duration_suggestion_service()
        try:
            service.store.ping()
            store_available = True
        except StoreUnavailableError:
            store_available = False

        return {
            "status": "healthy" if store_available else "degraded",
            "app_name": settings.app_name,
            "version": __version__,
            "store_backend": service.store.backend_name,
            "store_available": store_available,
        }

    @app.get("/api/config")
    async def get_public_config():
        """Get public configuration."""
        return {
            "app_name": settings.app_name,
            "store_backend": settings.store_backend,
            "title_threshold": settings.title_threshold,
            "content_threshold": settings.content_threshold,
            "iqr_multiplier": settings.iqr_multiplier,
        }

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "slidetiming.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
