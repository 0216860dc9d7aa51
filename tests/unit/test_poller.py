"""
Unit Tests - Realtime Poller & Live Snapshot
"""
import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from store_analytics.analytics.schemas import RealtimeSnapshot
from store_analytics.realtime import PollerState, RealtimeMetricsPoller, compute_live_snapshot


class ScriptedFetch:
    """Returns queued snapshots or raises queued errors, in order"""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        result = self.results.pop(0) if self.results else RealtimeSnapshot()
        if isinstance(result, Exception):
            raise result
        return result


class TestRealtimeMetricsPoller:
    """Tests for the poller lifecycle"""

    @pytest.mark.asyncio
    async def test_fetches_immediately_on_start(self):
        fetch = ScriptedFetch(RealtimeSnapshot(todays_orders=4))
        poller = RealtimeMetricsPoller(fetch, interval=60)

        await poller.start()
        await asyncio.sleep(0.01)

        assert poller.state == PollerState.POLLING
        assert poller.snapshot.todays_orders == 4
        assert poller.is_connected is True
        assert poller.last_update is not None
        await poller.stop()

    @pytest.mark.asyncio
    async def test_polls_on_interval(self):
        fetch = ScriptedFetch()
        poller = RealtimeMetricsPoller(fetch, interval=0.02)

        await poller.start()
        await asyncio.sleep(0.09)
        await poller.stop()

        assert fetch.calls >= 3

    @pytest.mark.asyncio
    async def test_failure_keeps_last_snapshot(self):
        fetch = ScriptedFetch(RealtimeSnapshot(todays_orders=2), ConnectionError("down"))
        poller = RealtimeMetricsPoller(fetch, interval=60)
        poller.state = PollerState.POLLING

        assert await poller.poll_once() is True
        assert await poller.poll_once() is False

        assert poller.snapshot.todays_orders == 2
        assert poller.is_connected is False
        assert "down" in poller.last_error

    @pytest.mark.asyncio
    async def test_success_reconnects(self):
        fetch = ScriptedFetch(ConnectionError("down"), RealtimeSnapshot(todays_orders=1))
        poller = RealtimeMetricsPoller(fetch, interval=60)
        poller.state = PollerState.POLLING

        await poller.poll_once()
        assert poller.is_connected is False

        await poller.poll_once()
        assert poller.is_connected is True
        assert poller.last_error is None

    @pytest.mark.asyncio
    async def test_result_after_stop_is_discarded(self):
        release = asyncio.Event()

        async def slow_fetch():
            await release.wait()
            return RealtimeSnapshot(todays_orders=9)

        poller = RealtimeMetricsPoller(slow_fetch, interval=60)
        poller.state = PollerState.POLLING
        pending = asyncio.create_task(poller.poll_once())
        await asyncio.sleep(0)

        await poller.stop()
        release.set()

        assert await pending is False
        assert poller.snapshot is None
        assert poller.state == PollerState.STOPPED

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self):
        async def hanging_fetch():
            await asyncio.sleep(5)

        poller = RealtimeMetricsPoller(hanging_fetch, interval=60, timeout=0.02)
        poller.state = PollerState.POLLING

        assert await poller.poll_once() is False
        assert poller.is_connected is False

    @pytest.mark.asyncio
    async def test_on_update_callback(self):
        seen = []
        poller = RealtimeMetricsPoller(ScriptedFetch(RealtimeSnapshot(todays_orders=3)), on_update=seen.append)
        poller.state = PollerState.POLLING

        await poller.poll_once()

        assert [s.todays_orders for s in seen] == [3]

    @pytest.mark.asyncio
    async def test_failing_callback_keeps_polling(self):
        def broken_widget(snapshot):
            raise RuntimeError("widget render failed")

        fetch = ScriptedFetch()
        poller = RealtimeMetricsPoller(fetch, interval=0.01, on_update=broken_widget)

        await poller.start()
        await asyncio.sleep(0.1)

        assert poller.state == PollerState.POLLING
        assert fetch.calls >= 3
        assert poller.is_connected is True
        assert poller.snapshot is not None
        await poller.stop()
        assert poller.is_running is False

    @pytest.mark.asyncio
    async def test_failing_callback_still_applies_snapshot(self):
        def broken_widget(snapshot):
            raise RuntimeError("widget render failed")

        poller = RealtimeMetricsPoller(
            ScriptedFetch(RealtimeSnapshot(todays_orders=6)), interval=60, on_update=broken_widget
        )
        poller.state = PollerState.POLLING

        assert await poller.poll_once() is True
        assert poller.snapshot.todays_orders == 6

    @pytest.mark.asyncio
    async def test_start_and_stop_are_idempotent(self):
        poller = RealtimeMetricsPoller(ScriptedFetch(), interval=60)

        await poller.start()
        await poller.start()
        await poller.stop()
        await poller.stop()

        assert poller.is_running is False

    def test_is_stale(self):
        poller = RealtimeMetricsPoller(ScriptedFetch(), interval=30)
        now = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)

        assert poller.is_stale(now) is True
        poller.last_update = now - timedelta(seconds=59)
        assert poller.is_stale(now) is False
        poller.last_update = now - timedelta(seconds=61)
        assert poller.is_stale(now) is True

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            RealtimeMetricsPoller(ScriptedFetch(), interval=0)


class TestComputeLiveSnapshot:
    """Tests for today's KPIs"""

    def test_todays_orders_only(self, make_order, now):
        orders = [
            make_order(40.0, days_ago=0.1),
            make_order(60.0, days_ago=0.2),
            make_order(500.0, days_ago=1),
        ]

        snapshot = compute_live_snapshot(orders, now=now)

        assert snapshot.todays_orders == 2
        assert snapshot.todays_revenue == pytest.approx(100.0)
        assert snapshot.last_order_time == now - timedelta(days=0.1)
        assert snapshot.active_users == 0
        assert snapshot.conversion_rate == 0

    def test_no_orders(self, now):
        snapshot = compute_live_snapshot([], now=now)

        assert snapshot.todays_orders == 0
        assert snapshot.last_order_time is None
