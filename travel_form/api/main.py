"""
FastAPI application for the travel form service.

This module initializes and configures the FastAPI application that accepts
travel form submissions.
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from travel_form.api.endpoints import submissions
from travel_form.config.settings import Settings, get_settings
from travel_form.core.upload_policy import UploadPolicy
from travel_form.storage.blob_storage import BlobStorage, build_blob_storage
from travel_form.storage.submission_store import SubmissionStore
from travel_form.utils.db_health import check_store_connection
from travel_form.utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("travel_form.access")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager for startup and shutdown events.

    Builds the shared submission store and blob storage strategy unless they
    were injected, and releases the store connection on shutdown.
    """
    settings: Settings = app.state.settings

    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENVIRONMENT})")
    if getattr(app.state, "store", None) is None:
        app.state.store = SubmissionStore.from_settings(settings)
    if getattr(app.state, "blob_storage", None) is None:
        app.state.blob_storage = build_blob_storage(settings)
    if not settings.DATABASE_URL:
        logger.warning("DATABASE_URL is not set - submissions will fail until it is configured")

    yield

    # Shutdown
    logger.info("Shutting down application")
    await app.state.store.close()


def _error_response(status_code: int, error: str, details: Optional[str], expose_details: bool) -> JSONResponse:
    content = {"error": error}
    if expose_details and details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[SubmissionStore] = None,
    blob_storage: Optional[BlobStorage] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to run with; the cached environment settings by default.
        store: Pre-built submission store, built at startup when omitted.
        blob_storage: Pre-built attachment storage, built at startup when omitted.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""Travel Form API for collecting travel claim submissions.

        Each submission carries contact details, the date of travel and two
        attachments (a review screenshot and a travel ticket) which are
        validated and stored in the document store.""",
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,  # Disable docs in production
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_tags=[
            {
                "name": "submissions",
                "description": "Travel form submissions"
            },
            {
                "name": "health",
                "description": "Health check and monitoring"
            }
        ]
    )
    app.state.settings = settings
    app.state.store = store
    app.state.blob_storage = blob_storage
    app.state.upload_policy = UploadPolicy(max_file_size=settings.MAX_FILE_SIZE_BYTES)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
        expose_headers=settings.CORS_EXPOSE_HEADERS,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log one line per request: method, path, status and latency."""
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            access_logger.info(f"{request.method} {request.url.path} {status_code} {elapsed_ms:.3f} ms")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content={"error": "Route not found"})
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Global error handler: {request.method} {request.url.path}: {exc}", exc_info=exc)
        return _error_response(500, "Something went wrong!", str(exc), settings.expose_error_details)

    # Include API routers
    app.include_router(submissions.router, prefix="/api", tags=["submissions"])

    @app.get("/", tags=["health"], summary="Welcome")
    async def root():
        return {"message": "Welcome to Travel Form API"}

    @app.get("/api/health", tags=["health"], summary="Health Check")
    async def health_check(request: Request):
        """
        Health check endpoint.

        Returns:
            dict: ``status`` and ``timestamp``; with ``HEALTH_CHECK_STORE``
            enabled the store is pinged and a failure returns 500.
        """
        timestamp = datetime.now(timezone.utc).isoformat()
        if settings.HEALTH_CHECK_STORE and not await check_store_connection(request.app.state.store):
            return JSONResponse(status_code=500, content={"status": "error", "timestamp": timestamp})
        return {"status": "ok", "timestamp": timestamp}

    return app


# Configure logging, then create the application instance
setup_logging()
app = create_app()
