"""
Degraded Report Builder

Placeholder AnalyticsReport returned when the store's records cannot be read.
Headline figures are fixed; the daily trend series and product names are
randomized. Every report built here carries ``degraded=True`` so a dashboard
can render it as filler rather than as store data.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import numpy as np
from faker import Faker

from .financial import RatioFinancialModel
from .revenue import MONTH_NAMES
from .schemas import (
    AnalyticsFilters,
    AnalyticsReport,
    CategoryBreakdown,
    CustomerSegment,
    CustomersReport,
    DailyRevenue,
    DeviceShare,
    FastMover,
    InventoryReport,
    MonthlyRevenue,
    OrdersReport,
    ProductsReport,
    RevenueReport,
    SlowMover,
    TopProduct,
    TrafficReport,
    TrafficSource,
)
from .windows import resolve_window

PLACEHOLDER_GROSS_REVENUE = 45678.90

PLACEHOLDER_CATEGORIES = [
    ("Fashion", 65, 28940.0),
    ("Accessories", 43, 18750.0),
    ("Jewelry", 28, 35600.0),
    ("Electronics", 20, 12450.0),
]

PLACEHOLDER_TOP_SELLERS = [
    # (category, sold, revenue)
    ("Accessories", 123, 9840.0),
    ("Fashion", 89, 17800.0),
    ("Accessories", 67, 13400.0),
    ("Jewelry", 45, 22500.0),
    ("Fashion", 34, 10200.0),
]

PLACEHOLDER_MONTHLY = [
    (28450.0, 145),
    (32100.0, 167),
    (35600.0, 189),
    (38900.0, 203),
    (42300.0, 221),
    (45678.0, 238),
]


def placeholder_traffic() -> TrafficReport:
    """Illustrative traffic mix shown with degraded reports."""
    return TrafficReport(
        total_views=15678,
        unique_visitors=8934,
        conversion_rate=3.2,
        bounce_rate=42.1,
        avg_session_duration=245,
        sources=[
            TrafficSource(source="Direct", visitors=3456, percentage=38.7),
            TrafficSource(source="Search Engines", visitors=2891, percentage=32.4),
            TrafficSource(source="Social Media", visitors=1678, percentage=18.8),
            TrafficSource(source="Referrals", visitors=909, percentage=10.1),
        ],
        devices=[
            DeviceShare(device="Desktop", visits=5234, percentage=58.6),
            DeviceShare(device="Mobile", visits=3156, percentage=35.3),
            DeviceShare(device="Tablet", visits=544, percentage=6.1),
        ],
    )


def build_degraded_report(
    store_id: str,
    filters: Optional[AnalyticsFilters] = None,
    reason: str = "data source unavailable",
    now: Optional[datetime] = None,
    seed: Optional[int] = None,
) -> AnalyticsReport:
    """
    Build a schema-complete placeholder report.

    Args:
        store_id: Store the dashboard asked for
        filters: Requested filters; only the window and top-N are honored
        reason: Short description of the failure, exposed as ``degraded_reason``
        now: Reference instant for the window and daily series
        seed: Seed for the randomized series (None for a fresh draw)

    Returns:
        AnalyticsReport with ``degraded=True``
    """
    filters = filters or AnalyticsFilters()
    now = now or datetime.now(timezone.utc)
    window = resolve_window(filters.date_range, now)

    rng = np.random.default_rng(seed)
    fake = Faker()
    fake.seed_instance(seed)

    daily_revenue = rng.integers(500, 2500, size=30)
    daily_orders = rng.integers(5, 25, size=30)
    daily = [
        DailyRevenue(
            date=(now - timedelta(days=29 - i)).date(),
            revenue=float(daily_revenue[i]),
            orders=int(daily_orders[i]),
        )
        for i in range(30)
    ]

    monthly = []
    last = len(PLACEHOLDER_MONTHLY) - 1
    for offset, (revenue, orders) in enumerate(PLACEHOLDER_MONTHLY):
        year, month_index = divmod(now.year * 12 + now.month - 1 - (last - offset), 12)
        monthly.append(
            MonthlyRevenue(
                month=MONTH_NAMES[month_index],
                year=year,
                revenue=revenue,
                orders=orders,
            )
        )

    top_selling = [
        TopProduct(
            id=str(i + 1),
            name=f"{fake.word().title()} {category}",
            category=category,
            sold=sold,
            revenue=revenue,
            profit=round(revenue * 0.3, 2),
        )
        for i, (category, sold, revenue) in enumerate(PLACEHOLDER_TOP_SELLERS)
    ][: filters.top_n]

    return AnalyticsReport(
        store_id=store_id,
        generated_at=now,
        window=window.as_report_window(),
        degraded=True,
        degraded_reason=reason,
        revenue=RevenueReport(
            total=PLACEHOLDER_GROSS_REVENUE,
            growth=12.5,
            monthly=monthly,
            daily=daily,
        ),
        orders=OrdersReport(
            total=1163,
            pending=23,
            processing=45,
            shipped=67,
            delivered=1020,
            cancelled=8,
            avg_order_value=192.35,
            growth=8.7,
        ),
        products=ProductsReport(
            total=156,
            active=148,
            out_of_stock=8,
            low_stock=23,
            views=45678,
            top_selling=top_selling,
            category_breakdown=[
                CategoryBreakdown(category=c, count=n, revenue=r) for c, n, r in PLACEHOLDER_CATEGORIES
            ],
        ),
        customers=CustomersReport(
            total=2847,
            new=234,
            returning=567,
            avg_lifetime_value=456.78,
            retention=67.8,
            segments=[
                CustomerSegment(segment="High Value", count=234, value=1200),
                CustomerSegment(segment="Medium Value", count=1456, value=350),
                CustomerSegment(segment="Low Value", count=1157, value=125),
            ],
        ),
        traffic=placeholder_traffic(),
        financial=RatioFinancialModel().derive(PLACEHOLDER_GROSS_REVENUE),
        inventory=InventoryReport(
            total_value=245670,
            low_stock_alerts=23,
            out_of_stock_alerts=8,
            fast_moving=[
                FastMover(product_id="1", name=top_selling[0].name if top_selling else "Placeholder", velocity=12.3),
            ],
            slow_moving=[
                SlowMover(product_id="15", name=f"{fake.word().title()} Hat", days_in_stock=245),
            ],
        ),
    )
