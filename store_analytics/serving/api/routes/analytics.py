"""
Analytics API Endpoints

REST API behind the store dashboard: the full analytics report and the live
KPI reading polled by the realtime widget.
"""

from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
import structlog

from store_analytics.analytics import (
    AnalyticsFilters,
    AnalyticsReport,
    RealtimeSnapshot,
    StoreAnalyticsService,
)
from store_analytics.config import get_settings
from store_analytics.serving.cache import report_cache
from store_analytics.sources import SqlStoreDataSource

router = APIRouter()
logger = structlog.get_logger(__name__)


@lru_cache()
def get_analytics_service() -> StoreAnalyticsService:
    """Process-wide service backed by the configured database."""
    return StoreAnalyticsService(SqlStoreDataSource(), cache=report_cache)


@router.get("/stores/{store_id}/analytics", response_model=AnalyticsReport)
async def get_store_analytics(
    store_id: str,
    response: Response,
    date_range: Optional[str] = Query(None, description="7d, 30d, 90d or 1y"),
    category: Optional[str] = Query(None, description="Restrict products to one category"),
    customer_segment: Optional[str] = Query(None, description="Keep only this customer segment"),
    top_n: Optional[int] = Query(None, ge=1, le=100),
    service: StoreAnalyticsService = Depends(get_analytics_service),
) -> AnalyticsReport:
    """
    Analytics report for one store.

    Always answers 200; when the store's data could not be read the body is a
    placeholder report with ``degraded=true`` and the response carries
    ``X-Analytics-Degraded: true``.
    """
    analytics_settings = get_settings().analytics
    filters = AnalyticsFilters(
        date_range=date_range or analytics_settings.default_date_range,
        category=category,
        customer_segment=customer_segment,
        top_n=top_n or analytics_settings.top_n,
    )

    report = await service.get_store_analytics(store_id, filters)
    response.headers["X-Analytics-Degraded"] = "true" if report.degraded else "false"
    return report


@router.get("/stores/{store_id}/realtime", response_model=RealtimeSnapshot)
async def get_realtime_snapshot(
    store_id: str,
    service: StoreAnalyticsService = Depends(get_analytics_service),
) -> RealtimeSnapshot:
    """Live KPI reading for today. Answers 503 when it cannot be read."""
    try:
        return await service.get_realtime_snapshot(store_id)
    except Exception as e:
        logger.warning("Live snapshot unavailable", store_id=store_id, error=str(e))
        raise HTTPException(status_code=503, detail="Live metrics unavailable")
