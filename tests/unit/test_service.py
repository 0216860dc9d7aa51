"""
Unit Tests - Store Analytics Service
"""
import asyncio
from datetime import timedelta

import pytest

from store_analytics.analytics import AnalyticsFilters, StoreAnalyticsService
from store_analytics.exceptions import DataSourceError, DataSourceTimeout
from store_analytics.sources import InMemoryDataSource


class FailingSource(InMemoryDataSource):
    """Source whose order query always fails"""

    def __init__(self):
        super().__init__()
        self.order_calls = 0

    async def fetch_orders(self, store_id):
        self.order_calls += 1
        raise DataSourceError("connection refused", store_id=store_id, operation="fetch_orders")


class SlowSource(InMemoryDataSource):
    """Source that never answers in time"""

    async def fetch_orders(self, store_id):
        await asyncio.sleep(5)
        return []

    async def fetch_live_snapshot(self, store_id, now=None, tz=None):
        await asyncio.sleep(5)


class FlakySource(InMemoryDataSource):
    """Fails the first order query, then recovers"""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.failures_left = 1

    async def fetch_orders(self, store_id):
        if self.failures_left:
            self.failures_left -= 1
            raise DataSourceError("transient", store_id=store_id)
        return await super().fetch_orders(store_id)


class HistoryFailingSource(InMemoryDataSource):
    async def fetch_customer_history(self, store_id):
        raise DataSourceError("customer service down", store_id=store_id)


class DictCache:
    """Stand-in for the Redis report cache"""

    def __init__(self, available=True):
        self.available = available
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ttl=None):
        self.store[key] = value
        return True


def make_service(source, **kwargs) -> StoreAnalyticsService:
    kwargs.setdefault("fetch_timeout", 0.5)
    kwargs.setdefault("max_retries", 2)
    kwargs.setdefault("retry_backoff", 0)
    return StoreAnalyticsService(source, **kwargs)


class TestGetStoreAnalytics:
    """Tests for report retrieval"""

    @pytest.mark.asyncio
    async def test_live_report(self, memory_source, now):
        report = await make_service(memory_source).get_store_analytics("store-1", now=now)

        assert report.degraded is False
        assert report.revenue.total == pytest.approx(300.0)

    @pytest.mark.asyncio
    async def test_failing_source_degrades(self, now):
        source = FailingSource()

        report = await make_service(source, fallback_seed=1).get_store_analytics("store-1", now=now)

        assert report.degraded is True
        assert "connection refused" in report.degraded_reason
        assert report.store_id == "store-1"
        assert source.order_calls == 2

    @pytest.mark.asyncio
    async def test_timeout_degrades(self, now):
        service = make_service(SlowSource(), fetch_timeout=0.05, max_retries=1)

        report = await service.get_store_analytics("store-1", now=now)

        assert report.degraded is True
        assert report.degraded_reason.startswith("DataSourceTimeout")

    @pytest.mark.asyncio
    async def test_retry_recovers(self, sample_orders, sample_products, now):
        source = FlakySource(orders={"store-1": sample_orders}, products={"store-1": sample_products})

        report = await make_service(source).get_store_analytics("store-1", now=now)

        assert report.degraded is False
        assert report.orders.total == 3

    @pytest.mark.asyncio
    async def test_uses_customer_history(self, memory_source, customer_history, now):
        memory_source.set_customer_history("store-1", customer_history)

        report = await make_service(memory_source).get_store_analytics("store-1", now=now)

        assert report.customers.new == 1
        assert report.customers.returning == 1

    @pytest.mark.asyncio
    async def test_history_failure_is_not_fatal(self, sample_orders, sample_products, now):
        source = HistoryFailingSource(orders={"store-1": sample_orders}, products={"store-1": sample_products})

        report = await make_service(source).get_store_analytics("store-1", now=now)

        assert report.degraded is False
        assert report.customers.new == 0
        assert report.customers.total == 2

    @pytest.mark.asyncio
    async def test_unknown_store_is_empty_not_degraded(self, memory_source, now):
        report = await make_service(memory_source).get_store_analytics("nope", now=now)

        assert report.degraded is False
        assert report.revenue.total == 0

    @pytest.mark.asyncio
    async def test_report_is_cached(self, memory_source, now):
        cache = DictCache()
        service = make_service(memory_source, cache=cache)

        first = await service.get_store_analytics("store-1", AnalyticsFilters(date_range="7d"), now=now)
        second = await service.get_store_analytics("store-1", AnalyticsFilters(date_range="7d"), now=now)

        assert len(cache.store) == 1
        assert next(iter(cache.store)).startswith("store-1:7d:")
        assert second == first

    @pytest.mark.asyncio
    async def test_new_data_misses_cache(self, memory_source, make_order, now):
        cache = DictCache()
        service = make_service(memory_source, cache=cache)

        await service.get_store_analytics("store-1", now=now)
        memory_source.add_orders("store-1", [make_order(1000.0, days_ago=2)])
        report = await service.get_store_analytics("store-1", now=now)

        assert len(cache.store) == 2
        assert report.revenue.total == pytest.approx(1300.0)

    @pytest.mark.asyncio
    async def test_different_now_misses_cache(self, memory_source, now):
        cache = DictCache()
        service = make_service(memory_source, cache=cache)
        later = now + timedelta(days=60)

        await service.get_store_analytics("store-1", AnalyticsFilters(date_range="7d"), now=now)
        report = await service.get_store_analytics("store-1", AnalyticsFilters(date_range="7d"), now=later)

        assert len(cache.store) == 2
        assert report.window.end == later
        assert report.generated_at == later
        assert report.revenue.total == 0

    @pytest.mark.asyncio
    async def test_new_history_misses_cache(self, memory_source, customer_history, now):
        cache = DictCache()
        service = make_service(memory_source, cache=cache)

        await service.get_store_analytics("store-1", now=now)
        memory_source.set_customer_history("store-1", customer_history)
        report = await service.get_store_analytics("store-1", now=now)

        assert len(cache.store) == 2
        assert report.customers.new == 1
        assert report.customers.returning == 1

    def test_cache_instant_buckets_default_clock(self, memory_source, now):
        service = make_service(memory_source)
        service.cache_ttl = 60
        early = now.replace(second=10)
        late = now.replace(second=50)

        assert service._cache_instant(early, pinned=False) == service._cache_instant(late, pinned=False)
        assert service._cache_instant(early, pinned=True) != service._cache_instant(late, pinned=True)
        assert service._cache_instant(late + timedelta(seconds=20), pinned=False) != service._cache_instant(
            late, pinned=False
        )

    @pytest.mark.parametrize("kwargs", [
        {"fetch_timeout": 0},
        {"live_timeout": 0},
        {"max_retries": 0},
        {"retry_backoff": -1},
    ])
    def test_explicit_invalid_overrides_are_rejected(self, memory_source, kwargs):
        with pytest.raises(ValueError):
            StoreAnalyticsService(memory_source, **kwargs)

    def test_explicit_overrides_win_over_settings(self, memory_source):
        service = StoreAnalyticsService(memory_source, fetch_timeout=0.25, max_retries=1, retry_backoff=0)

        assert service.fetch_timeout == 0.25
        assert service.max_retries == 1
        assert service.retry_backoff == 0

    @pytest.mark.asyncio
    async def test_unavailable_cache_is_skipped(self, memory_source, now):
        cache = DictCache(available=False)

        report = await make_service(memory_source, cache=cache).get_store_analytics("store-1", now=now)

        assert report.degraded is False
        assert cache.store == {}

    @pytest.mark.asyncio
    async def test_degraded_report_not_cached(self, now):
        cache = DictCache()

        await make_service(FailingSource(), cache=cache).get_store_analytics("store-1", now=now)

        assert cache.store == {}


class TestGetRealtimeSnapshot:
    """Tests for live KPI reads"""

    @pytest.mark.asyncio
    async def test_snapshot(self, memory_source):
        snapshot = await make_service(memory_source).get_realtime_snapshot("store-1")

        assert snapshot.active_users == 0
        assert snapshot.last_order_time is not None

    @pytest.mark.asyncio
    async def test_timeout_raises(self):
        service = make_service(SlowSource(), live_timeout=0.05)

        with pytest.raises(DataSourceTimeout):
            await service.get_realtime_snapshot("store-1")
