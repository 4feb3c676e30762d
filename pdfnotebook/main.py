"""
PDF Notebook Service - Main Application
FastAPI application for notebooks of PDFs with grounded chat and quizzes,
with error handling, logging, metrics and rate limiting.
"""
import os
import time
import traceback
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from pdfnotebook.api import admin, chat, documents, notebooks, progress, quiz, seed, upload, youtube
from pdfnotebook.core.config import Settings
from pdfnotebook.core.errors import NotebookServiceError
from pdfnotebook.dependencies import ServiceContainer, build_services
from pdfnotebook.limiter import limiter
from pdfnotebook.logger import logger
from pdfnotebook.metrics import MetricsMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle"""
    # Startup
    logger.info("Starting PDF Notebook Service...")
    services: Optional[ServiceContainer] = getattr(app.state, "services", None)
    if services is None:
        services = build_services(Settings())
        app.state.services = services

    settings = services.settings
    logger.info(f"Generation model: {settings.GROQ_MODEL}")
    if not settings.GROQ_API_KEY:
        logger.error("GROQ_API_KEY not found in environment!")
    if not settings.AUTH_URL:
        logger.error("AUTH_URL not found in environment; every request will be rejected")

    await services.database.init_models()
    logger.info("Database initialized")

    # Ensure directories exist
    os.makedirs(settings.STORAGE_PATH, exist_ok=True)

    yield

    # Shutdown
    logger.info("Shutting down PDF Notebook Service...")
    await services.database.close()


def _error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def create_app(services: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Build the application

    Args:
        services: Prebuilt services (tests); built from the environment at
            startup when omitted
    """
    app = FastAPI(
        title=Settings.PROJECT_NAME,
        description="Upload PDFs into notebooks, chat with them and generate quizzes",
        version=admin.VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    if services is not None:
        app.state.services = services

    allowed_origins = (services.settings if services else Settings()).ALLOWED_ORIGINS

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins.split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add metrics middleware
    app.add_middleware(MetricsMiddleware)

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.exception_handler(NotebookServiceError)
    async def service_error_handler(request: Request, exc: NotebookServiceError):
        """Map domain errors to their HTTP status"""
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        else:
            logger.warning(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle validation errors with detailed messages"""
        errors = exc.errors()
        logger.warning(f"Validation error on {request.url.path}: {errors}")
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            f"{location}: {message}" if location else message,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors"""
        logger.error(f"Unexpected error on {request.url.path}: {str(exc)}", exc_info=True)
        extra = {}
        services = getattr(request.app.state, "services", None)
        if services is not None and services.settings.is_development:
            extra["traceback"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error occurred", **extra)

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests with timing"""
        start_time = time.time()
        logger.info(f"Request: {request.method} {request.url.path}")

        response = await call_next(request)

        duration = time.time() - start_time
        logger.info(
            f"Response: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s"
        )
        response.headers["X-Process-Time"] = str(duration)
        return response

    # Include routers
    app.include_router(notebooks.router, prefix="/notebooks", tags=["Notebooks"])
    app.include_router(upload.router, prefix="/upload", tags=["Upload"])
    app.include_router(documents.router, prefix="/documents", tags=["Documents"])
    app.include_router(chat.router, prefix="/chat", tags=["Chat"])
    app.include_router(quiz.router, prefix="/quiz", tags=["Quiz"])
    app.include_router(progress.router, prefix="/progress", tags=["Progress"])
    app.include_router(seed.router, prefix="/seed", tags=["Seed"])
    app.include_router(youtube.router, prefix="/youtube", tags=["Videos"])
    app.include_router(admin.router, prefix="", tags=["Admin"])

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint with API info"""
        return {
            "name": "PDF Notebook Service",
            "version": admin.VERSION,
            "status": "operational",
            "endpoints": {
                "docs": "/docs",
                "health": "/healthz",
                "metrics": "/metrics",
            },
        }

    return app


app = create_app()
