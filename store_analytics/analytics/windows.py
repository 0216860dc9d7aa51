"""
Time Window Resolution

Turns a window token into the current window (everything from ``now - N days``
on, including orders stamped slightly after ``now`` by a skewed clock) and the
comparison window ``[now - 2N days, now - N days)`` used for growth rates.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Tuple

import structlog

from .schemas import OrderRecord, ReportWindow

logger = structlog.get_logger(__name__)

WINDOW_DAYS: Dict[str, int] = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
    "1y": 365,
}
DEFAULT_WINDOW_DAYS = 30


def window_days(token: Optional[str]) -> int:
    """Days covered by a window token; unknown tokens fall back to 30."""
    days = WINDOW_DAYS.get(token or "")
    if days is None:
        logger.debug("Unrecognized window token, using default", token=token)
        return DEFAULT_WINDOW_DAYS
    return days


@dataclass(frozen=True)
class TimeWindow:
    """Current and comparison spans for one report"""
    token: str
    days: int
    start: datetime
    end: datetime
    comparison_start: datetime

    @property
    def comparison_end(self) -> datetime:
        return self.start

    def contains(self, ts: datetime) -> bool:
        return ts >= self.start

    def in_comparison(self, ts: datetime) -> bool:
        return self.comparison_start <= ts < self.start

    def as_report_window(self) -> ReportWindow:
        return ReportWindow(date_range=self.token, days=self.days, start=self.start, end=self.end)


def resolve_window(token: Optional[str], now: Optional[datetime] = None) -> TimeWindow:
    """
    Resolve a window token against ``now``.

    Args:
        token: One of ``7d``, ``30d``, ``90d``, ``1y``; anything else means 30 days
        now: Reference instant (defaults to the current UTC time)

    Returns:
        TimeWindow with the cutoff and the comparison span
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    days = window_days(token)
    span = timedelta(days=days)
    resolved = token if token in WINDOW_DAYS else f"{days}d"

    return TimeWindow(
        token=resolved,
        days=days,
        start=now - span,
        end=now,
        comparison_start=now - 2 * span,
    )


def partition_orders(
    orders: Iterable[OrderRecord],
    window: TimeWindow,
) -> Tuple[List[OrderRecord], List[OrderRecord]]:
    """
    Split orders into current-window and comparison-window lists.

    Orders stamped after ``now`` count towards the current window; anything
    older than the comparison span is dropped.
    """
    current: List[OrderRecord] = []
    comparison: List[OrderRecord] = []

    for order in orders:
        if window.contains(order.created_at):
            current.append(order)
        elif window.in_comparison(order.created_at):
            comparison.append(order)

    return current, comparison
