"""
Revenue & Order Aggregation

Totals, period-over-period growth, per-status funnel counts, and sparse
daily/monthly trend buckets over the current-window orders.
"""

from datetime import tzinfo
from typing import Dict, List, Sequence, Tuple

import polars as pl
import structlog

from .schemas import (
    DailyRevenue,
    MonthlyRevenue,
    OrderRecord,
    OrdersReport,
    OrderStatus,
    RevenueReport,
)

logger = structlog.get_logger(__name__)

MAX_DAILY_BUCKETS = 30
MAX_MONTHLY_BUCKETS = 6

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

ORDERS_SCHEMA = {
    "order_id": pl.Utf8,
    "status": pl.Utf8,
    "total": pl.Float64,
    "day": pl.Date,
    "year": pl.Int32,
    "month": pl.Int32,
}


def growth_rate(current: float, previous: float) -> float:
    """Percentage change; 0 when there is no prior-period baseline."""
    if previous > 0:
        return (current - previous) / previous * 100
    return 0.0


def orders_frame(orders: Sequence[OrderRecord], tz: tzinfo) -> pl.DataFrame:
    """Flatten orders into a frame keyed by their calendar day in ``tz``."""
    local = [o.created_at.astimezone(tz) for o in orders]
    return pl.DataFrame(
        {
            "order_id": [o.id for o in orders],
            "status": [o.status for o in orders],
            "total": [float(o.total) for o in orders],
            "day": [ts.date() for ts in local],
            "year": [ts.year for ts in local],
            "month": [ts.month for ts in local],
        },
        schema=ORDERS_SCHEMA,
    )


def daily_buckets(df: pl.DataFrame, limit: int = MAX_DAILY_BUCKETS) -> List[DailyRevenue]:
    """Most recent ``limit`` days that have orders, oldest first."""
    rows = (
        df.group_by("day")
        .agg(
            pl.col("total").sum().alias("revenue"),
            pl.len().alias("orders"),
        )
        .sort("day", descending=True)
        .head(limit)
        .sort("day")
        .to_dicts()
    )
    return [DailyRevenue(date=r["day"], revenue=r["revenue"], orders=r["orders"]) for r in rows]


def monthly_buckets(df: pl.DataFrame, limit: int = MAX_MONTHLY_BUCKETS) -> List[MonthlyRevenue]:
    """Most recent ``limit`` calendar months that have orders, oldest first."""
    rows = (
        df.group_by(["year", "month"])
        .agg(
            pl.col("total").sum().alias("revenue"),
            pl.len().alias("orders"),
        )
        .sort(["year", "month"], descending=True)
        .head(limit)
        .sort(["year", "month"])
        .to_dicts()
    )
    return [
        MonthlyRevenue(
            month=MONTH_NAMES[r["month"] - 1],
            year=r["year"],
            revenue=r["revenue"],
            orders=r["orders"],
        )
        for r in rows
    ]


def status_counts(df: pl.DataFrame) -> Dict[str, int]:
    """Order counts for the known statuses; anything else is left out."""
    known = [s.value for s in OrderStatus]
    counts = {status: 0 for status in known}

    rows = (
        df.filter(pl.col("status").is_in(known))
        .group_by("status")
        .agg(pl.len().alias("orders"))
        .to_dicts()
    )
    for row in rows:
        counts[row["status"]] = row["orders"]
    return counts


def aggregate_revenue(
    current: Sequence[OrderRecord],
    comparison: Sequence[OrderRecord],
    tz: tzinfo,
) -> Tuple[RevenueReport, OrdersReport]:
    """
    Build the revenue and order sub-reports.

    Args:
        current: Orders inside the report window
        comparison: Orders inside the comparison window
        tz: Time zone used to assign orders to calendar days

    Returns:
        Tuple of (RevenueReport, OrdersReport)
    """
    total = sum(float(o.total) for o in current)
    previous_total = sum(float(o.total) for o in comparison)
    count = len(current)

    df = orders_frame(current, tz)
    counts = status_counts(df)

    revenue = RevenueReport(
        total=total,
        growth=growth_rate(total, previous_total),
        monthly=monthly_buckets(df),
        daily=daily_buckets(df),
    )

    orders = OrdersReport(
        total=count,
        pending=counts[OrderStatus.PENDING.value],
        processing=counts[OrderStatus.PROCESSING.value],
        shipped=counts[OrderStatus.SHIPPED.value],
        delivered=counts[OrderStatus.DELIVERED.value],
        cancelled=counts[OrderStatus.CANCELLED.value],
        avg_order_value=total / count if count > 0 else 0.0,
        growth=growth_rate(count, len(comparison)),
    )

    logger.debug(
        "Revenue aggregated",
        orders=count,
        revenue=total,
        previous_revenue=previous_total,
        daily_buckets=len(revenue.daily),
    )
    return revenue, orders
