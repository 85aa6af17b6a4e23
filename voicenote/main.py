from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from voicenote import config
from voicenote.controllers import api_router
from voicenote.persistence import (
    AudioStore,
    Repository,
    build_audio_store,
    build_repository,
)
from voicenote.services.retention import RetentionMonitor
from voicenote.util.errors import AppError
from voicenote.util.logger import get_logger

logger = get_logger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Every failure leaves the API as ``{"error": <message>}``."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info(f"Rejected {request.method} {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": "Invalid request data"})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(
    repository: Optional[Repository] = None,
    audio_store: Optional[AudioStore] = None,
    retention_interval: Optional[int] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        repository: Note repository backing; from configuration when omitted
        audio_store: Durable audio storage; from configuration when omitted
        retention_interval: Seconds between retention sweeps, 0 disables
    """
    repository = repository or build_repository()
    audio_store = audio_store or build_audio_store()
    if retention_interval is None:
        retention_interval = config.RETENTION_SWEEP_INTERVAL

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        monitor = RetentionMonitor(repository, audio_store, retention_interval)
        monitor.start()
        yield
        await monitor.stop()

    app = FastAPI(
        title="VoiceNote API",
        description="""
        Voice memo to structured note service.

        This API provides endpoints for:
        * Creating accounts and logging in
        * Uploading recordings that are transcribed and organized into notes
        * Browsing, editing and deleting notes
        * Reading and updating per-user settings
        * Streaming retained recordings
        """,
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.repository = repository
    app.state.audio_store = audio_store

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API responses are per-user and must not be cached
    @app.middleware("http")
    async def add_cache_control_headers(request, call_next):
        response = await call_next(request)
        if request.url.path.startswith("/api/") and not request.url.path.startswith("/api/audio/"):
            response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
            response.headers["Pragma"] = "no-cache"
            response.headers["Expires"] = "0"
        return response

    register_exception_handlers(app)
    app.include_router(api_router)
    logger.info(
        f"VoiceNote API ready (repository={type(repository).__name__}, audio_store={type(audio_store).__name__})"
    )
    return app


app = create_app()


def run() -> None:
    uvicorn.run("voicenote.main:app", host=config.HOST, port=config.PORT, reload=config.DEBUG)


# Run the server if executed directly
if __name__ == "__main__":
    run()
