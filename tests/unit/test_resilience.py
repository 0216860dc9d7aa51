"""
Unit Tests - Data Source Resilience
"""
import pytest

from store_analytics.sources.resilience import ConnectivityMonitor, _redact, retry_with_backoff


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class RecordingProbe:
    """Probe answering from a fixed set of healthy endpoints"""

    def __init__(self, healthy):
        self.healthy = set(healthy)
        self.calls = []

    async def __call__(self, endpoint: str) -> bool:
        self.calls.append(endpoint)
        return endpoint in self.healthy


class TestRetryWithBackoff:
    """Tests for the retry helper"""

    @pytest.mark.asyncio
    async def test_linear_backoff_then_success(self):
        sleeps = []
        attempts = {"n": 0}

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        async def operation():
            attempts["n"] += 1
            if attempts["n"] < 3:
                raise ConnectionError("down")
            return "ok"

        result = await retry_with_backoff(operation, max_retries=3, backoff=1.0, sleep=fake_sleep)

        assert result == "ok"
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_raises_last_error(self):
        async def fake_sleep(seconds):
            pass

        async def operation():
            raise ConnectionError("still down")

        with pytest.raises(ConnectionError, match="still down"):
            await retry_with_backoff(operation, max_retries=2, sleep=fake_sleep)

    @pytest.mark.asyncio
    async def test_rejects_zero_retries(self):
        async def operation():
            return 1

        with pytest.raises(ValueError):
            await retry_with_backoff(operation, max_retries=0)


class TestConnectivityMonitor:
    """Tests for working-endpoint caching"""

    @pytest.mark.asyncio
    async def test_first_healthy_endpoint_wins(self):
        probe = RecordingProbe(healthy={"replica"})
        monitor = ConnectivityMonitor(["primary", "replica"], probe=probe)

        assert await monitor.working_endpoint() == "replica"
        assert probe.calls == ["primary", "replica"]

    @pytest.mark.asyncio
    async def test_cached_until_retest_interval(self):
        clock = FakeClock()
        probe = RecordingProbe(healthy={"primary"})
        monitor = ConnectivityMonitor(["primary"], probe=probe, retest_interval=300, clock=clock)

        await monitor.working_endpoint()
        clock.now = 299
        await monitor.working_endpoint()
        assert len(probe.calls) == 1

        clock.now = 301
        await monitor.working_endpoint()
        assert len(probe.calls) == 2

    @pytest.mark.asyncio
    async def test_falls_back_to_primary_when_none_answer(self):
        monitor = ConnectivityMonitor(["primary", "replica"], probe=RecordingProbe(healthy=()))

        assert await monitor.working_endpoint() == "primary"
        assert monitor.cached_endpoint == "primary"

    @pytest.mark.asyncio
    async def test_invalidate_forces_retest(self):
        probe = RecordingProbe(healthy={"primary"})
        monitor = ConnectivityMonitor(["primary"], probe=probe)

        await monitor.working_endpoint()
        monitor.invalidate()
        await monitor.working_endpoint()

        assert len(probe.calls) == 2

    @pytest.mark.asyncio
    async def test_call_with_retry_invalidates_on_failure(self):
        monitor = ConnectivityMonitor(["primary"], probe=RecordingProbe(healthy={"primary"}))
        await monitor.working_endpoint()
        attempts = {"n": 0}

        async def operation():
            attempts["n"] += 1
            if attempts["n"] == 1:
                raise ConnectionError("reset")
            return "rows"

        assert await monitor.call_with_retry(operation, backoff=0) == "rows"
        assert monitor.cached_endpoint is None

    def test_requires_endpoint(self):
        with pytest.raises(ValueError):
            ConnectivityMonitor([], probe=RecordingProbe(healthy=()))

    def test_redact_credentials(self):
        assert _redact("postgresql+asyncpg://user:secret@db:5432/shop") == "postgresql+asyncpg://***@db:5432/shop"
        assert _redact("sqlite+aiosqlite:///tmp/x.db") == "sqlite+aiosqlite:///tmp/x.db"
