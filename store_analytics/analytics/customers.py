"""
Customer Segmentation

Distinct-customer counts come straight from the window's orders. Anything that
needs first-seen or lifetime data (new vs returning, retention, value tiers)
is delegated to a segmentation strategy, so a richer customer store can be
plugged in without touching the rest of the engine.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import structlog

from .schemas import CustomerHistory, CustomerSegment, CustomersReport, OrderRecord
from .windows import TimeWindow

logger = structlog.get_logger(__name__)

DEFAULT_VALUE_TIERS: Tuple[Tuple[str, float], ...] = (
    ("High Value", 1000.0),
    ("Medium Value", 250.0),
    ("Low Value", 0.0),
)


@dataclass
class SegmentationResult:
    """Output of a segmentation strategy"""
    new: int = 0
    returning: int = 0
    retention: float = 0.0
    segments: List[CustomerSegment] = field(default_factory=list)


class CustomerSegmentationStrategy(ABC):
    """Computes history-dependent customer figures for one window"""

    @abstractmethod
    def segment(self, customer_ids: Sequence[str], window: TimeWindow) -> SegmentationResult:
        """
        Segment the distinct customers active in the window.

        Args:
            customer_ids: Distinct non-null customer ids, sorted
            window: Resolved report window
        """


class NoCustomerHistory(CustomerSegmentationStrategy):
    """Used when no customer store is wired in: reports zeros, never guesses."""

    def segment(self, customer_ids: Sequence[str], window: TimeWindow) -> SegmentationResult:
        return SegmentationResult()


class CustomerHistorySegmentation(CustomerSegmentationStrategy):
    """
    Segmentation backed by first-seen and lifetime-value history.

    A customer first seen inside the window is new; one seen earlier is
    returning. Customers missing from the history are counted as new.
    Value tiers are ``(name, min_lifetime_value)`` pairs checked in order.

    Example:
        strategy = CustomerHistorySegmentation({"c1": CustomerHistory(...)})
        engine = AnalyticsEngine(segmentation=strategy)
    """

    def __init__(
        self,
        history: Mapping[str, CustomerHistory],
        tiers: Sequence[Tuple[str, float]] = DEFAULT_VALUE_TIERS,
    ):
        self.history = dict(history)
        self.tiers = sorted(tiers, key=lambda t: t[1], reverse=True)

    def _tier(self, lifetime_value: float) -> str:
        for name, minimum in self.tiers:
            if lifetime_value >= minimum:
                return name
        return self.tiers[-1][0]

    def segment(self, customer_ids: Sequence[str], window: TimeWindow) -> SegmentationResult:
        new = 0
        returning = 0
        tier_values: Dict[str, List[float]] = {name: [] for name, _ in self.tiers}

        for customer_id in customer_ids:
            record = self.history.get(customer_id)
            if record is None or record.first_seen >= window.start:
                new += 1
            else:
                returning += 1
            ltv = record.lifetime_value if record is not None else 0.0
            tier_values[self._tier(ltv)].append(ltv)

        total = len(customer_ids)
        segments = [
            CustomerSegment(
                segment=name,
                count=len(values),
                value=sum(values) / len(values) if values else 0.0,
            )
            for name, values in tier_values.items()
        ]

        return SegmentationResult(
            new=new,
            returning=returning,
            retention=returning / total * 100 if total > 0 else 0.0,
            segments=segments,
        )


def distinct_customers(orders: Sequence[OrderRecord]) -> List[str]:
    """Sorted distinct customer ids; guest orders (no id) are excluded."""
    return sorted({o.customer_id for o in orders if o.customer_id is not None})


def segment_customers(
    orders: Sequence[OrderRecord],
    window_revenue: float,
    window: TimeWindow,
    strategy: CustomerSegmentationStrategy,
    segment_filter: Optional[str] = None,
) -> CustomersReport:
    """
    Build the customer sub-report.

    Average lifetime value is window revenue over distinct customers; guest
    orders still count toward that revenue.
    """
    customer_ids = distinct_customers(orders)
    total = len(customer_ids)
    result = strategy.segment(customer_ids, window)

    segments = result.segments
    if segment_filter is not None:
        segments = [s for s in segments if s.segment.lower() == segment_filter.lower()]

    return CustomersReport(
        total=total,
        new=result.new,
        returning=result.returning,
        avg_lifetime_value=window_revenue / total if total > 0 else 0.0,
        retention=result.retention,
        segments=segments,
    )
