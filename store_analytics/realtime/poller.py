"""
Realtime Metrics Poller

Polls a live KPI query on a fixed interval for a dashboard widget.

States:
- POLLING: fetches immediately on start, then every ``interval`` seconds
- STOPPED: no timer; results of fetches still in flight are discarded

A successful fetch replaces the snapshot wholesale and marks the poller
connected. A failed fetch marks it disconnected and keeps the last good
snapshot on display. A failing update callback is logged and
never stops the poll loop.
"""

import asyncio
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional

import structlog
from prometheus_client import Counter

from store_analytics.analytics.schemas import RealtimeSnapshot

logger = structlog.get_logger(__name__)

POLL_FETCHES = Counter(
    "store_analytics_realtime_fetches_total",
    "Live metric fetches by outcome",
    ["outcome"],
)

DEFAULT_POLL_INTERVAL = 30.0


class PollerState(str, Enum):
    """Poller lifecycle states"""
    POLLING = "polling"
    STOPPED = "stopped"


class RealtimeMetricsPoller:
    """
    Fixed-interval poller for a store's live snapshot.

    Example:
        poller = RealtimeMetricsPoller(lambda: service.get_realtime_snapshot("store-1"))
        await poller.start()
        ...
        await poller.stop()
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[RealtimeSnapshot]],
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: Optional[float] = None,
        on_update: Optional[Callable[[RealtimeSnapshot], None]] = None,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.fetch = fetch
        self.interval = interval
        self.timeout = timeout
        self.on_update = on_update

        self.state = PollerState.STOPPED
        self.snapshot: Optional[RealtimeSnapshot] = None
        self.is_connected = True
        self.last_update: Optional[datetime] = None
        self.last_error: Optional[str] = None

        self._task: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def is_running(self) -> bool:
        return self.state == PollerState.POLLING

    def is_stale(self, now: Optional[datetime] = None) -> bool:
        """True when no fetch has succeeded within two intervals."""
        if self.last_update is None:
            return True
        now = now or datetime.now(timezone.utc)
        return (now - self.last_update).total_seconds() > 2 * self.interval

    async def start(self) -> None:
        """Enter POLLING and schedule the first fetch right away."""
        if self.state == PollerState.POLLING:
            return
        self.state = PollerState.POLLING
        self._generation += 1
        self._task = asyncio.create_task(self._run(self._generation))
        logger.info("Realtime poller started", interval=self.interval)

    async def stop(self) -> None:
        """Enter STOPPED, cancel the timer and ignore any in-flight result."""
        if self.state == PollerState.STOPPED:
            return
        self.state = PollerState.STOPPED
        self._generation += 1

        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info("Realtime poller stopped")

    async def _run(self, generation: int) -> None:
        while self.state == PollerState.POLLING and generation == self._generation:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Realtime poll tick failed", error=str(e), error_type=type(e).__name__)
            await asyncio.sleep(self.interval)

    async def poll_once(self) -> bool:
        """
        Fetch one snapshot and apply it if the poller is still running.

        Returns:
            True when a fresh snapshot was applied
        """
        generation = self._generation
        try:
            if self.timeout is not None:
                snapshot = await asyncio.wait_for(self.fetch(), timeout=self.timeout)
            else:
                snapshot = await self.fetch()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not self._accepts(generation):
                return False
            POLL_FETCHES.labels(outcome="failure").inc()
            self.is_connected = False
            self.last_error = f"{type(e).__name__}: {e}"
            logger.warning("Realtime fetch failed", error=str(e), error_type=type(e).__name__)
            return False

        if not self._accepts(generation):
            logger.debug("Discarding snapshot fetched before stop")
            return False

        POLL_FETCHES.labels(outcome="success").inc()
        self.snapshot = snapshot
        self.is_connected = True
        self.last_error = None
        self.last_update = datetime.now(timezone.utc)
        if self.on_update is not None:
            try:
                self.on_update(snapshot)
            except Exception as e:
                logger.warning("Realtime update callback failed", error=str(e), error_type=type(e).__name__)
        return True

    def _accepts(self, generation: int) -> bool:
        return self.state == PollerState.POLLING and generation == self._generation
