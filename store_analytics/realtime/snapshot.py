"""
Live KPI snapshot derived from a store's orders.
"""

from datetime import datetime, timezone, tzinfo
from typing import Optional, Sequence

from store_analytics.analytics.schemas import OrderRecord, RealtimeSnapshot


def compute_live_snapshot(
    orders: Sequence[OrderRecord],
    now: Optional[datetime] = None,
    tz: tzinfo = timezone.utc,
) -> RealtimeSnapshot:
    """
    Today's revenue and order count plus the time of the newest order.

    "Today" is the calendar day of ``now`` in ``tz``. Active users and
    conversion rate need a traffic feed and stay at 0 here.
    """
    now = now or datetime.now(timezone.utc)
    today = now.astimezone(tz).date()

    todays = [o for o in orders if o.created_at.astimezone(tz).date() == today]
    last_order = max((o.created_at for o in orders if o.created_at <= now), default=None)

    return RealtimeSnapshot(
        active_users=0,
        todays_revenue=sum(float(o.total) for o in todays),
        todays_orders=len(todays),
        conversion_rate=0.0,
        last_order_time=last_order,
    )
