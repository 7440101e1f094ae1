# main.py

"""
FastAPI Video Generation Relay - Main Entry Point
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from video_relay.core.config import settings
from video_relay.core.errors import (
    ConfigError,
    ProviderError,
    ValidationError,
    VideoRelayException
)
from video_relay.core.logging_config import setup_logging
from video_relay.routers import settings_router, video_router
from video_relay.services.video_service import VideoService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    setup_logging(settings.log_level)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Provider: {settings.provider_base_url}, poll interval: {settings.poll_interval_ms}ms")

    # Tests may install their own service before startup
    if getattr(app.state, "video_service", None) is None:
        app.state.video_service = VideoService(config=settings)

    if not app.state.video_service.has_credential():
        logger.warning("OPENAI_API_KEY is not configured; video creation is disabled")

    yield

    logger.info(f"Shutting down {settings.app_name}")
    await app.state.video_service.shutdown()
    app.state.video_service = None


def relay_error_payload(exc: VideoRelayException) -> dict:
    payload = {"message": exc.message}
    if isinstance(exc, ValidationError):
        payload["errors"] = exc.errors
    elif isinstance(exc, ConfigError):
        payload["setupRequired"] = True
    return payload


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(VideoRelayException)
    async def relay_exception_handler(request: Request, exc: VideoRelayException):
        if isinstance(exc, ProviderError):
            logger.error(f"{request.method} {request.url.path} - {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} - {exc.status_code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=relay_error_payload(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [str(error.get("msg", error)) for error in exc.errors()]
        return JSONResponse(status_code=400, content={"message": "Validation error", "errors": errors})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error in {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"message": str(exc)})


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Length", "Content-Range", "Accept-Ranges"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(video_router.router)
    app.include_router(settings_router.router)

    @app.get("/")
    async def root():
        """API root endpoint"""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "endpoints": {
                "videos": "/api/videos",
                "video_status": "/api/videos/{video_id}/status",
                "video_content": "/api/videos/{video_id}/content",
                "settings": "/api/settings",
                "health": "/health",
                "docs": "/docs"
            }
        }

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint"""
        service = getattr(request.app.state, "video_service", None)
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": settings.app_version,
            "has_api_key": bool(service and service.has_credential()),
            "tracked_jobs": len(service.store) if service else 0,
            "polling_jobs": service.scheduler.pending_count if service else 0
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "video_relay.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
