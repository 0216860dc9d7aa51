"""
Analytics Aggregation Engine

Pure computation of an AnalyticsReport from orders, the product catalog and
the dashboard filters. The engine holds configuration only; every call builds
its own accumulators and returns a new frozen report, so concurrent calls
never interact.
"""

import time
from datetime import datetime, timezone
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

import structlog
from prometheus_client import Counter, Histogram

from store_analytics.config import get_settings
from .customers import CustomerSegmentationStrategy, NoCustomerHistory, segment_customers
from .financial import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    FinancialAssumptions,
    FinancialModel,
    RatioFinancialModel,
    derive_inventory,
)
from .products import DEFAULT_PRODUCT_COST_RATIO, rank_products, summarize_products
from .revenue import aggregate_revenue
from .schemas import (
    AnalyticsFilters,
    AnalyticsReport,
    OrderRecord,
    ProductRecord,
    TrafficReport,
)
from .windows import partition_orders, resolve_window

logger = structlog.get_logger(__name__)


# =============================================================================
# METRICS
# =============================================================================

ENGINE_COMPUTE_TIME = Histogram(
    "store_analytics_compute_seconds",
    "Time spent computing an analytics report",
    ["date_range"],
)

SKIPPED_LINE_ITEMS = Counter(
    "store_analytics_skipped_line_items_total",
    "Line items skipped because their product is missing from the catalog",
)


class AnalyticsEngine:
    """
    Store analytics aggregation engine.

    Pipeline:
    1. Resolve the window and split orders into current/comparison
    2. Aggregate revenue, growth, funnel counts and trend buckets
    3. Rank products and roll the catalog up by category
    4. Segment customers through the configured strategy
    5. Derive the modeled financials and inventory health

    Example:
        engine = AnalyticsEngine.from_settings()
        report = engine.compute(orders, products, AnalyticsFilters(date_range="7d"))
    """

    def __init__(
        self,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
        product_cost_ratio: float = DEFAULT_PRODUCT_COST_RATIO,
        timezone_name: str = "UTC",
        segmentation: Optional[CustomerSegmentationStrategy] = None,
        financial_model: Optional[FinancialModel] = None,
    ):
        self.low_stock_threshold = low_stock_threshold
        self.product_cost_ratio = product_cost_ratio
        self.timezone_name = timezone_name
        self.tz = ZoneInfo(timezone_name)
        self.segmentation = segmentation or NoCustomerHistory()
        self.financial_model = financial_model or RatioFinancialModel()

    @classmethod
    def from_settings(
        cls,
        settings=None,
        segmentation: Optional[CustomerSegmentationStrategy] = None,
    ) -> "AnalyticsEngine":
        """Build an engine from the ``analytics`` settings section."""
        cfg = (settings or get_settings()).analytics
        return cls(
            low_stock_threshold=cfg.low_stock_threshold,
            product_cost_ratio=cfg.product_cost_ratio,
            timezone_name=cfg.timezone,
            segmentation=segmentation,
            financial_model=RatioFinancialModel(FinancialAssumptions.from_settings(cfg)),
        )

    def with_segmentation(self, segmentation: CustomerSegmentationStrategy) -> "AnalyticsEngine":
        """Copy of this engine using a different segmentation strategy."""
        return AnalyticsEngine(
            low_stock_threshold=self.low_stock_threshold,
            product_cost_ratio=self.product_cost_ratio,
            timezone_name=self.timezone_name,
            segmentation=segmentation,
            financial_model=self.financial_model,
        )

    def compute(
        self,
        orders: Sequence[OrderRecord],
        products: Sequence[ProductRecord],
        filters: Optional[AnalyticsFilters] = None,
        store_id: str = "",
        now: Optional[datetime] = None,
    ) -> AnalyticsReport:
        """
        Compute the full report.

        Args:
            orders: Store orders with nested line items
            products: Store catalog
            filters: Dashboard filters (defaults to a 30 day window)
            store_id: Store the records belong to
            now: Reference instant; pass a fixed value for reproducible output

        Returns:
            AnalyticsReport with ``degraded=False``
        """
        filters = filters or AnalyticsFilters()
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        start = time.perf_counter()

        window = resolve_window(filters.date_range, now)
        current, comparison = partition_orders(orders, window)

        revenue, order_counts = aggregate_revenue(current, comparison, self.tz)

        ranking = rank_products(
            current,
            products,
            top_n=filters.top_n,
            cost_ratio=self.product_cost_ratio,
            category=filters.category,
        )
        if ranking.skipped_items:
            SKIPPED_LINE_ITEMS.inc(ranking.skipped_items)
        catalog = ranking.catalog

        report = AnalyticsReport(
            store_id=store_id,
            generated_at=now,
            window=window.as_report_window(),
            degraded=False,
            revenue=revenue,
            orders=order_counts,
            products=summarize_products(catalog, ranking, self.low_stock_threshold),
            customers=segment_customers(
                current,
                revenue.total,
                window,
                self.segmentation,
                segment_filter=filters.customer_segment,
            ),
            traffic=TrafficReport(),
            financial=self.financial_model.derive(revenue.total),
            inventory=derive_inventory(catalog, self.low_stock_threshold),
        )

        duration = time.perf_counter() - start
        ENGINE_COMPUTE_TIME.labels(date_range=window.token).observe(duration)
        logger.info(
            "Analytics report computed",
            store_id=store_id,
            date_range=window.token,
            orders_in_window=len(current),
            orders_in_comparison=len(comparison),
            products=len(products),
            skipped_items=ranking.skipped_items,
            duration_ms=round(duration * 1000, 2),
        )
        return report
