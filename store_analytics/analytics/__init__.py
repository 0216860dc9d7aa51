"""
Store Analytics Aggregation Engine
"""
from .customers import CustomerHistorySegmentation, CustomerSegmentationStrategy, NoCustomerHistory
from .engine import AnalyticsEngine
from .fallback import build_degraded_report
from .financial import FinancialAssumptions, FinancialModel, RatioFinancialModel
from .schemas import AnalyticsFilters, AnalyticsReport, RealtimeSnapshot
from .service import StoreAnalyticsService

__all__ = [
    "AnalyticsEngine",
    "AnalyticsFilters",
    "AnalyticsReport",
    "CustomerHistorySegmentation",
    "CustomerSegmentationStrategy",
    "FinancialAssumptions",
    "FinancialModel",
    "NoCustomerHistory",
    "RatioFinancialModel",
    "RealtimeSnapshot",
    "StoreAnalyticsService",
    "build_degraded_report",
]
