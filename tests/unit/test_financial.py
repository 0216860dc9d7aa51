"""
Unit Tests - Financial & Inventory Derivation
"""
import pytest

from store_analytics.analytics.financial import (
    FinancialAssumptions,
    RatioFinancialModel,
    derive_inventory,
)
from store_analytics.config.settings import AnalyticsSettings


class TestRatioFinancialModel:
    """Tests for the modeled profit and loss"""

    def test_default_ratios(self):
        report = RatioFinancialModel().derive(1000.0)

        assert report.gross_revenue == pytest.approx(1000.0)
        assert report.net_revenue == pytest.approx(950.0)
        assert report.total_costs == pytest.approx(700.0)
        assert report.profit == pytest.approx(300.0)
        assert report.profit_margin == pytest.approx(30.0)
        assert report.tax == pytest.approx(60.0)
        assert report.refunds == pytest.approx(20.0)

    def test_zero_revenue(self):
        report = RatioFinancialModel().derive(0.0)

        assert report.profit_margin == 0
        assert report.profit == 0

    def test_overridden_assumption(self):
        model = RatioFinancialModel(FinancialAssumptions(cost_ratio=0.5))

        report = model.derive(1000.0)

        assert report.profit == pytest.approx(500.0)
        assert report.tax == pytest.approx(100.0)
        assert report.net_revenue == pytest.approx(950.0)

    def test_assumptions_from_settings(self):
        assumptions = FinancialAssumptions.from_settings(AnalyticsSettings(tax_rate=0.1))

        assert assumptions.tax_rate == 0.1
        assert assumptions.cost_ratio == 0.7

    def test_ratio_outside_unit_interval_rejected(self):
        with pytest.raises(ValueError):
            AnalyticsSettings(cost_ratio=1.5)


class TestDeriveInventory:
    """Tests for inventory health"""

    def test_alerts_and_value(self, sample_products):
        report = derive_inventory(sample_products, low_stock_threshold=10)

        assert report.total_value == pytest.approx(1675.0)
        assert report.out_of_stock_alerts == 1
        assert report.low_stock_alerts == 1
        assert report.fast_moving == []
        assert report.slow_moving == []

    def test_empty_catalog(self):
        report = derive_inventory([])

        assert report.total_value == 0
        assert report.low_stock_alerts == 0
