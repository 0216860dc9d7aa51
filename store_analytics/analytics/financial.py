"""
Financial & Inventory Derivation

IMPORTANT: the financial figures are modeled estimates, not ledger facts.
Net revenue, costs, tax and refunds are fixed ratios of gross revenue (or of
profit, for tax). Each ratio is a named value in ``FinancialAssumptions`` and
can be overridden on its own; a ledger-backed ``FinancialModel`` can replace
``RatioFinancialModel`` entirely.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from .schemas import FinancialReport, InventoryReport, ProductRecord

DEFAULT_LOW_STOCK_THRESHOLD = 10


@dataclass(frozen=True)
class FinancialAssumptions:
    """Ratios used by the modeled profit and loss"""
    net_revenue_ratio: float = 0.95  # after payment processing fees
    cost_ratio: float = 0.70
    tax_rate: float = 0.20  # applied to profit
    refund_ratio: float = 0.02

    @classmethod
    def from_settings(cls, analytics_settings) -> "FinancialAssumptions":
        return cls(
            net_revenue_ratio=analytics_settings.net_revenue_ratio,
            cost_ratio=analytics_settings.cost_ratio,
            tax_rate=analytics_settings.tax_rate,
            refund_ratio=analytics_settings.refund_ratio,
        )


class FinancialModel(ABC):
    """Derives a profit and loss breakdown from gross revenue"""

    @abstractmethod
    def derive(self, gross_revenue: float) -> FinancialReport:
        ...


class RatioFinancialModel(FinancialModel):
    """Fixed-ratio estimate of net revenue, costs, profit, tax and refunds"""

    def __init__(self, assumptions: Optional[FinancialAssumptions] = None):
        self.assumptions = assumptions or FinancialAssumptions()

    def derive(self, gross_revenue: float) -> FinancialReport:
        a = self.assumptions
        costs = gross_revenue * a.cost_ratio
        profit = gross_revenue - costs

        return FinancialReport(
            gross_revenue=gross_revenue,
            net_revenue=gross_revenue * a.net_revenue_ratio,
            total_costs=costs,
            profit=profit,
            profit_margin=profit / gross_revenue * 100 if gross_revenue > 0 else 0.0,
            tax=profit * a.tax_rate,
            refunds=gross_revenue * a.refund_ratio,
        )


def derive_inventory(
    products: Sequence[ProductRecord],
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
) -> InventoryReport:
    """
    Stock value and alert counts.

    Fast and slow mover lists need sales-velocity and stock-age history that
    the catalog does not carry, so they are always empty here.
    """
    return InventoryReport(
        total_value=sum(float(p.price) * p.stock_quantity for p in products),
        low_stock_alerts=sum(1 for p in products if 0 < p.stock_quantity < low_stock_threshold),
        out_of_stock_alerts=sum(1 for p in products if p.stock_quantity == 0),
        fast_moving=[],
        slow_moving=[],
    )
