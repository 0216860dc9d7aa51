"""
Health Check Endpoints

The database is required. Redis only backs the report cache, so losing it
degrades the service instead of failing it, and an unconfigured cache is
reported as disabled.
"""

from datetime import datetime, timezone
from typing import Dict, Any

from fastapi import APIRouter, Response
from pydantic import BaseModel

from store_analytics.config import get_settings
from store_analytics.database.connection import check_database_health
from store_analytics.serving.cache import get_redis, is_redis_available

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    timestamp: datetime
    checks: Dict[str, Any]


async def _report_cache_check() -> Dict[str, Any]:
    if not is_redis_available():
        return {"status": "disabled"}
    try:
        await get_redis().ping()
        return {"status": "healthy"}
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    checks = {
        "database": await check_database_health(),
        "report_cache": await _report_cache_check(),
    }

    if checks["database"]["status"] != "healthy":
        status = "unhealthy"
    elif checks["report_cache"]["status"] == "unhealthy":
        status = "degraded"
    else:
        status = "healthy"

    return HealthResponse(
        status=status,
        version=get_settings().version,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """Returns 200 if the application is running."""
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(response: Response) -> Dict[str, str]:
    """Ready once the database answers; the report cache is optional."""
    database = await check_database_health()
    if database["status"] != "healthy":
        response.status_code = 503
        return {"status": "not_ready", "reason": database.get("error", "database_unavailable")}
    return {"status": "ready"}
