"""
Analytics Schemas

Input records supplied by the storefront collaborators and the report
returned to dashboards. Every model is frozen: inputs are read-only here and
a report is a snapshot that callers must not patch.
"""

import datetime as dt
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OrderStatus(str, Enum):
    """Order statuses tallied by the funnel counts"""
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class DateRange(str, Enum):
    """Window tokens accepted by the dashboard"""
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"
    LAST_YEAR = "1y"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# =============================================================================
# INPUT RECORDS
# =============================================================================

class OrderLineItem(_Frozen):
    """Line item with the unit price captured at time of sale"""
    product_id: str
    price: float = Field(ge=0)
    quantity: int = Field(gt=0)


class OrderRecord(_Frozen):
    """Order as stored by the order-management collaborator"""
    id: str
    created_at: datetime
    status: str
    total: float = Field(ge=0)
    customer_id: Optional[str] = None
    items: List[OrderLineItem] = Field(default_factory=list)

    @field_validator("created_at")
    @classmethod
    def ensure_aware(cls, v: datetime) -> datetime:
        """Naive timestamps are read as UTC"""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class ProductRecord(_Frozen):
    """Catalog row owned by the catalog collaborator"""
    id: str
    name: str
    category: str = "Uncategorized"
    price: float = Field(ge=0)
    stock_quantity: int = Field(ge=0)
    is_visible: bool = True
    store_id: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("category", mode="before")
    @classmethod
    def default_category(cls, v: Optional[str]) -> str:
        if v is None or not str(v).strip():
            return "Uncategorized"
        return v


class CustomerHistory(_Frozen):
    """First-seen and lifetime data from a customer store"""
    customer_id: str
    first_seen: datetime
    lifetime_value: float = Field(default=0.0, ge=0)

    @field_validator("first_seen")
    @classmethod
    def ensure_aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class AnalyticsFilters(_Frozen):
    """Dashboard filter selection"""
    date_range: str = DateRange.LAST_30_DAYS.value
    category: Optional[str] = None
    customer_segment: Optional[str] = None
    top_n: int = Field(default=10, ge=1, le=100)

    def cache_key(self) -> str:
        return ":".join([
            self.date_range,
            self.category or "*",
            self.customer_segment or "*",
            str(self.top_n),
        ])


# =============================================================================
# REPORT
# =============================================================================

class ReportWindow(_Frozen):
    """Resolved window the report covers"""
    date_range: str
    days: int
    start: datetime
    end: datetime


class DailyRevenue(_Frozen):
    date: dt.date
    revenue: float
    orders: int


class MonthlyRevenue(_Frozen):
    month: str
    year: int
    revenue: float
    orders: int


class RevenueReport(_Frozen):
    total: float
    growth: float
    monthly: List[MonthlyRevenue]
    daily: List[DailyRevenue]


class OrdersReport(_Frozen):
    total: int
    pending: int
    processing: int
    shipped: int
    delivered: int
    cancelled: int
    avg_order_value: float
    growth: float


class TopProduct(_Frozen):
    id: str
    name: str
    category: str
    sold: int
    revenue: float
    profit: float
    image: Optional[str] = None


class CategoryBreakdown(_Frozen):
    category: str
    count: int
    revenue: float


class ProductsReport(_Frozen):
    total: int
    active: int
    out_of_stock: int
    low_stock: int
    views: int
    top_selling: List[TopProduct]
    category_breakdown: List[CategoryBreakdown]


class CustomerSegment(_Frozen):
    segment: str
    count: int
    value: float


class CustomersReport(_Frozen):
    total: int
    new: int
    returning: int
    avg_lifetime_value: float
    retention: float
    segments: List[CustomerSegment]


class TrafficSource(_Frozen):
    source: str
    visitors: int
    percentage: float


class DeviceShare(_Frozen):
    device: str
    visits: int
    percentage: float


class TrafficReport(_Frozen):
    total_views: int = 0
    unique_visitors: int = 0
    conversion_rate: float = 0.0
    bounce_rate: float = 0.0
    avg_session_duration: float = 0.0
    sources: List[TrafficSource] = Field(default_factory=list)
    devices: List[DeviceShare] = Field(default_factory=list)


class FinancialReport(_Frozen):
    """Modeled profit and loss, derived from gross revenue by fixed ratios"""
    gross_revenue: float
    net_revenue: float
    total_costs: float
    profit: float
    profit_margin: float
    tax: float
    refunds: float


class FastMover(_Frozen):
    product_id: str
    name: str
    velocity: float


class SlowMover(_Frozen):
    product_id: str
    name: str
    days_in_stock: int


class InventoryReport(_Frozen):
    total_value: float
    low_stock_alerts: int
    out_of_stock_alerts: int
    fast_moving: List[FastMover] = Field(default_factory=list)
    slow_moving: List[SlowMover] = Field(default_factory=list)


class AnalyticsReport(_Frozen):
    """
    Complete store performance snapshot.

    ``degraded`` is True when the data source could not be read and the
    figures are placeholders; dashboards should render such a report as
    filler rather than as store data.
    """
    store_id: str
    generated_at: datetime
    window: ReportWindow
    degraded: bool = False
    degraded_reason: Optional[str] = None
    revenue: RevenueReport
    orders: OrdersReport
    products: ProductsReport
    customers: CustomersReport
    traffic: TrafficReport
    financial: FinancialReport
    inventory: InventoryReport


class RealtimeSnapshot(_Frozen):
    """Live KPI reading shown by the dashboard widget"""
    active_users: int = 0
    todays_revenue: float = 0.0
    todays_orders: int = 0
    conversion_rate: float = 0.0
    last_order_time: Optional[datetime] = None
