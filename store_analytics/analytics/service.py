"""
Store Analytics Service

Fetches a store's records from a data source, runs the aggregation engine and
returns the report. This is the only place where a failing data source is
turned into a degraded placeholder report: every fetch is bounded by a
timeout and retried, and whatever still fails yields ``degraded=True``
instead of an exception.
"""

import asyncio
import hashlib
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

import structlog
from prometheus_client import Counter

from store_analytics.config import get_settings
from store_analytics.exceptions import DataSourceTimeout
from store_analytics.sources.resilience import retry_with_backoff
from .customers import CustomerHistorySegmentation
from .engine import AnalyticsEngine
from .fallback import build_degraded_report
from .schemas import (
    AnalyticsFilters,
    AnalyticsReport,
    CustomerHistory,
    OrderRecord,
    ProductRecord,
    RealtimeSnapshot,
)

logger = structlog.get_logger(__name__)

REPORTS_GENERATED = Counter(
    "store_analytics_reports_total",
    "Analytics reports returned, by outcome",
    ["outcome"],
)


def data_version(
    orders: Sequence[OrderRecord],
    products: Sequence[ProductRecord],
    history: Optional[Mapping[str, CustomerHistory]] = None,
) -> str:
    """Digest of the fetched records, used to key the report cache."""
    digest = hashlib.sha256()
    for order in orders:
        digest.update(order.model_dump_json().encode())
    digest.update(b"|")
    for product in products:
        digest.update(product.model_dump_json().encode())
    digest.update(b"|")
    for customer_id in sorted(history or {}):
        digest.update(history[customer_id].model_dump_json().encode())
    return digest.hexdigest()


def _validate_all(model, rows: Sequence[Any]) -> List[Any]:
    """Accept model instances or raw mappings from the source."""
    return [row if isinstance(row, model) else model.model_validate(row) for row in rows]


class StoreAnalyticsService:
    """
    Analytics entry point used by the API and dashboards.

    Example:
        service = StoreAnalyticsService(SqlStoreDataSource())
        report = await service.get_store_analytics("store-1", AnalyticsFilters(date_range="7d"))
        if report.degraded:
            ...
    """

    def __init__(
        self,
        source,
        engine: Optional[AnalyticsEngine] = None,
        cache=None,
        fetch_timeout: Optional[float] = None,
        live_timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_backoff: Optional[float] = None,
        fallback_seed: Optional[int] = None,
    ):
        settings = get_settings()
        self.source = source
        self.engine = engine or AnalyticsEngine.from_settings(settings)
        self.cache = cache
        self.fetch_timeout = (
            fetch_timeout if fetch_timeout is not None else settings.analytics.fetch_timeout_seconds
        )
        self.live_timeout = (
            live_timeout if live_timeout is not None else settings.realtime.fetch_timeout_seconds
        )
        self.max_retries = max_retries if max_retries is not None else settings.analytics.fetch_retries
        self.retry_backoff = (
            retry_backoff if retry_backoff is not None else settings.analytics.retry_backoff_seconds
        )
        if self.fetch_timeout <= 0 or self.live_timeout <= 0:
            raise ValueError("timeouts must be positive")
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.retry_backoff < 0:
            raise ValueError("retry_backoff must not be negative")
        self.fallback_seed = fallback_seed
        self.cache_ttl = settings.analytics.cache_ttl_seconds
        self.value_tiers = (
            ("High Value", settings.analytics.high_value_threshold),
            ("Medium Value", settings.analytics.medium_value_threshold),
            ("Low Value", 0.0),
        )

    async def _fetch(self, operation: str, store_id: str, call: Callable[[], Awaitable[Any]]) -> Any:
        """Run one collaborator query under the timeout and retry policy."""

        async def attempt():
            try:
                return await asyncio.wait_for(call(), timeout=self.fetch_timeout)
            except asyncio.TimeoutError as e:
                raise DataSourceTimeout(
                    f"{operation} timed out after {self.fetch_timeout}s",
                    store_id=store_id,
                    operation=operation,
                ) from e

        return await retry_with_backoff(attempt, max_retries=self.max_retries, backoff=self.retry_backoff)

    async def _fetch_records(self, store_id: str):
        results = await asyncio.gather(
            self._fetch("fetch_orders", store_id, lambda: self.source.fetch_orders(store_id)),
            self._fetch("fetch_products", store_id, lambda: self.source.fetch_products(store_id)),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

        orders = _validate_all(OrderRecord, results[0])
        products = _validate_all(ProductRecord, results[1])
        return orders, products

    async def _fetch_history(self, store_id: str) -> Optional[Dict[str, CustomerHistory]]:
        """Customer history when the source has it; a failure here is not fatal."""
        try:
            history = await self._fetch(
                "fetch_customer_history",
                store_id,
                lambda: self.source.fetch_customer_history(store_id),
            )
        except Exception as e:
            logger.warning(
                "Customer history unavailable, segmentation disabled",
                store_id=store_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None
        return history or None

    def _engine_for(self, history: Optional[Mapping[str, CustomerHistory]]) -> AnalyticsEngine:
        if not history:
            return self.engine
        return self.engine.with_segmentation(CustomerHistorySegmentation(history, tiers=self.value_tiers))

    def _cache_instant(self, now: datetime, pinned: bool) -> str:
        """
        Reference instant for the cache key.

        A caller-supplied ``now`` is keyed exactly. The default clock is
        bucketed to the cache TTL so live requests within one TTL share a report.
        """
        if pinned or self.cache_ttl <= 0:
            return now.isoformat()
        bucket = int(now.timestamp()) // self.cache_ttl * self.cache_ttl
        return f"t{bucket}"

    async def get_store_analytics(
        self,
        store_id: str,
        filters: Optional[AnalyticsFilters] = None,
        now: Optional[datetime] = None,
    ) -> AnalyticsReport:
        """
        Compute the store's report, or a degraded placeholder if its records
        cannot be read.

        Args:
            store_id: Store to report on
            filters: Dashboard filters
            now: Reference instant (defaults to the current UTC time)

        Returns:
            AnalyticsReport; check ``degraded`` before trusting the figures
        """
        filters = filters or AnalyticsFilters()
        pinned = now is not None
        now = now or datetime.now(timezone.utc)
        log = logger.bind(store_id=store_id, date_range=filters.date_range)

        try:
            orders, products = await self._fetch_records(store_id)
        except Exception as e:
            log.warning(
                "Data source failed, returning degraded report",
                error=str(e),
                error_type=type(e).__name__,
            )
            REPORTS_GENERATED.labels(outcome="degraded").inc()
            return build_degraded_report(
                store_id,
                filters,
                reason=f"{type(e).__name__}: {e}",
                now=now,
                seed=self.fallback_seed,
            )

        history = await self._fetch_history(store_id)

        cache_key = None
        if self.cache is not None and self.cache.available:
            cache_key = ":".join([
                store_id,
                filters.cache_key(),
                self._cache_instant(now, pinned),
                data_version(orders, products, history),
            ])
            cached = await self.cache.get(cache_key)
            if cached:
                log.debug("Returning cached report")
                REPORTS_GENERATED.labels(outcome="cached").inc()
                return AnalyticsReport.model_validate(cached)

        engine = self._engine_for(history)
        report = engine.compute(orders, products, filters, store_id=store_id, now=now)
        REPORTS_GENERATED.labels(outcome="live").inc()

        if cache_key is not None:
            await self.cache.set(cache_key, report.model_dump(mode="json"))
        return report

    async def get_realtime_snapshot(self, store_id: str) -> RealtimeSnapshot:
        """
        One live KPI reading.

        Raises on failure or timeout; the poller keeps its last good snapshot.
        """
        try:
            return await asyncio.wait_for(
                self.source.fetch_live_snapshot(store_id, tz=self.engine.tz),
                timeout=self.live_timeout,
            )
        except asyncio.TimeoutError as e:
            raise DataSourceTimeout(
                f"fetch_live_snapshot timed out after {self.live_timeout}s",
                store_id=store_id,
                operation="fetch_live_snapshot",
            ) from e
