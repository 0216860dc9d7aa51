"""
Data Source Resilience

Endpoint selection and retry helpers for the storefront backend.

``ConnectivityMonitor`` remembers which endpoint last answered and re-tests
the candidates once the cached choice is older than ``retest_interval``. It is
an ordinary object: build one per process or session and pass it to the
components that need it.
"""

import asyncio
import time
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Probe = Callable[[str], Awaitable[bool]]


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 2,
    backoff: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run ``operation`` up to ``max_retries`` times.

    Waits ``backoff * attempt`` seconds between attempts and re-raises the
    last error when every attempt fails.
    """
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    last_error: Optional[Exception] = None

    for attempt in range(1, max_retries + 1):
        try:
            return await operation()
        except Exception as e:
            last_error = e
            logger.warning(
                "Attempt failed",
                attempt=attempt,
                max_retries=max_retries,
                error=str(e),
                error_type=type(e).__name__,
            )
            if attempt < max_retries:
                await sleep(backoff * attempt)

    raise last_error


class ConnectivityMonitor:
    """
    Caches the working backend endpoint with a time-to-live.

    Example:
        monitor = ConnectivityMonitor([primary_url, replica_url], probe=probe_endpoint)
        url = await monitor.working_endpoint()
    """

    def __init__(
        self,
        endpoints: Sequence[str],
        probe: Probe,
        retest_interval: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if not endpoints:
            raise ValueError("ConnectivityMonitor needs at least one endpoint")
        self.endpoints: List[str] = list(endpoints)
        self.probe = probe
        self.retest_interval = retest_interval
        self._clock = clock
        self._working: Optional[str] = None
        self._tested_at: float = 0.0
        self._lock = asyncio.Lock()

    @property
    def cached_endpoint(self) -> Optional[str]:
        return self._working

    def _is_fresh(self) -> bool:
        return self._working is not None and (self._clock() - self._tested_at) < self.retest_interval

    async def working_endpoint(self) -> str:
        """
        Endpoint to use for the next query.

        Probes candidates in order when the cached choice has expired. When
        none answers, the first candidate is cached so callers still get a
        definite endpoint until the next retest.
        """
        if self._is_fresh():
            return self._working

        async with self._lock:
            if self._is_fresh():
                return self._working

            for endpoint in self.endpoints:
                if await self.probe(endpoint):
                    logger.info("Working endpoint found", endpoint=_redact(endpoint))
                    self._remember(endpoint)
                    return endpoint
                logger.warning("Endpoint probe failed", endpoint=_redact(endpoint))

            logger.warning("No endpoint answered, using primary", endpoint=_redact(self.endpoints[0]))
            self._remember(self.endpoints[0])
            return self.endpoints[0]

    def invalidate(self) -> None:
        """Force a retest on the next ``working_endpoint`` call."""
        self._working = None
        self._tested_at = 0.0

    def _remember(self, endpoint: str) -> None:
        self._working = endpoint
        self._tested_at = self._clock()

    async def call_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        max_retries: int = 2,
        backoff: float = 1.0,
    ) -> T:
        """Retry ``operation``, dropping the cached endpoint after a failure."""

        async def attempt() -> T:
            try:
                return await operation()
            except Exception:
                self.invalidate()
                raise

        return await retry_with_backoff(attempt, max_retries=max_retries, backoff=backoff)


def _redact(endpoint: str) -> str:
    """Strip credentials from a URL before logging it."""
    if "@" not in endpoint or "://" not in endpoint:
        return endpoint
    scheme, rest = endpoint.split("://", 1)
    return f"{scheme}://***@{rest.split('@', 1)[1]}"
