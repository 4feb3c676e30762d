"""
Admin and monitoring endpoints
"""
import sys
from datetime import datetime, timezone

import psutil
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from pdfnotebook.db.crud import get_db_stats
from pdfnotebook.dependencies import ServiceContainer, get_services
from pdfnotebook.limiter import CHAT_RATE_LIMIT, UPLOAD_RATE_LIMIT, limiter
from pdfnotebook.logger import logger
from pdfnotebook.metrics import (
    ACTIVE_REQUESTS,
    CHAT_COUNT,
    CHUNK_COUNT,
    UPLOAD_COUNT,
    UPLOAD_PAGES,
    get_metrics_text,
)

router = APIRouter()

VERSION = "1.0.0"


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    timestamp: str
    version: str
    environment: str


class SystemInfo(BaseModel):
    """System information"""
    cpu_percent: float
    memory_percent: float
    disk_usage_percent: float
    python_version: str


# Track startup time
startup_time = datetime.now(timezone.utc)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@router.get("/healthz", response_model=HealthResponse)
async def health_check(services: ServiceContainer = Depends(get_services)):
    """
    Health check endpoint
    Returns 200 if the process is up
    """
    return HealthResponse(
        status="healthy",
        timestamp=_now().isoformat(),
        version=VERSION,
        environment=services.settings.ENVIRONMENT,
    )


@router.get("/readyz")
async def readiness_check(services: ServiceContainer = Depends(get_services)):
    """
    Readiness check for container orchestration
    Returns 200 once the database answers
    """
    try:
        await services.database.ping()
    except Exception as e:
        logger.error(f"Readiness check failed: {str(e)}")
        return JSONResponse(
            status_code=503,
            content={"status": "not ready", "error": str(e)},
        )
    return {
        "status": "ready",
        "checks": {
            "database": True,
            "generation_configured": bool(services.settings.GROQ_API_KEY),
        },
    }


@router.get("/metrics")
async def metrics_endpoint(services: ServiceContainer = Depends(get_services)):
    """
    Metrics endpoint - returns JSON format
    For Prometheus text format, use /metrics/prometheus
    """
    async with services.database.session_factory() as session:
        stats = await get_db_stats(session)

    return {
        "notebooks": stats.get("notebooks", 0),
        "documents": stats.get("documents", 0),
        "chunks": stats.get("chunks", 0),
        "uptime_seconds": (_now() - startup_time).total_seconds(),
        "upload_count": UPLOAD_COUNT._value.get(),
        "upload_pages": UPLOAD_PAGES._value.get(),
        "chunk_count": CHUNK_COUNT._value.get(),
        "chat_count": CHAT_COUNT._value.get(),
        "active_requests": ACTIVE_REQUESTS._value.get(),
        "timestamp": _now().isoformat(),
    }


@router.get("/metrics/prometheus", response_class=PlainTextResponse)
async def prometheus_metrics():
    """
    Prometheus metrics endpoint
    Returns metrics in Prometheus exposition format
    """
    return get_metrics_text()


@router.get("/system", response_model=SystemInfo)
async def system_info():
    """
    System resource information
    Useful for monitoring and debugging
    """
    memory = psutil.virtual_memory()
    disk = psutil.disk_usage('/')

    return SystemInfo(
        cpu_percent=psutil.cpu_percent(interval=0.1),
        memory_percent=memory.percent,
        disk_usage_percent=disk.percent,
        python_version=sys.version,
    )


@router.get("/config")
async def get_config(services: ServiceContainer = Depends(get_services)):
    """
    Get current configuration (non-sensitive values only)
    """
    settings = services.settings
    return {
        "embedding_model": settings.EMBEDDING_MODEL,
        "generation_model": settings.GROQ_MODEL,
        "storage_path": settings.STORAGE_PATH,
        "environment": settings.ENVIRONMENT,
        "chunk_size": settings.CHUNK_SIZE,
        "chunk_overlap": settings.CHUNK_OVERLAP,
        "context_document_limit": settings.CONTEXT_DOCUMENT_LIMIT,
        "ocr_fallback": settings.OCR_FALLBACK,
        "rate_limit_enabled": limiter.enabled,
        "upload_rate_limit": UPLOAD_RATE_LIMIT,
        "chat_rate_limit": CHAT_RATE_LIMIT,
        "max_file_size_mb": settings.MAX_FILE_SIZE_MB,
    }
