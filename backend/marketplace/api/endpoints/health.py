"""
Health check endpoints for the Course Marketplace API.

Liveness with a database connectivity probe, plus the Prometheus scrape
endpoint.
"""

from datetime import datetime, timezone
from typing import Any, Dict
import time

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
import structlog

from ...core.config import Settings, get_settings
from ...core.database import DatabaseManager, get_database_manager
from ...services.cache.cache_manager import CacheManager, get_cache_manager

# Track process start time for uptime calculation
PROCESS_START_TIME = time.time()

logger = structlog.get_logger()
router = APIRouter()


@router.get("/health")
async def health_check(
    settings: Settings = Depends(get_settings),
    cache: CacheManager = Depends(get_cache_manager),
    database_manager: DatabaseManager = Depends(get_database_manager),
) -> JSONResponse:
    """
    Basic health check endpoint.

    Returns 200 when the database answers, 503 otherwise.
    """
    database = await database_manager.health_check()
    healthy = database["status"] == "healthy"
    if not healthy:
        logger.warning("Health check failed", database=database)

    body: Dict[str, Any] = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "environment": settings.ENVIRONMENT,
        "uptime_seconds": round(time.time() - PROCESS_START_TIME, 2),
        "dependencies": {"database": database, "cache": cache.get_stats()},
    }
    return JSONResponse(status_code=200 if healthy else 503, content=body)


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
