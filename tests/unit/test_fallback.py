"""
Unit Tests - Degraded Reports
"""
from datetime import datetime, timezone

import pytest

from store_analytics.analytics import AnalyticsFilters, build_degraded_report


class TestDegradedReport:
    """Tests for the placeholder report"""

    def test_flagged(self, now):
        report = build_degraded_report("store-1", reason="DataSourceError: boom", now=now)

        assert report.degraded is True
        assert report.degraded_reason == "DataSourceError: boom"
        assert report.store_id == "store-1"

    def test_schema_complete(self, now):
        report = build_degraded_report("store-1", now=now, seed=1)

        assert len(report.revenue.daily) == 30
        assert len(report.revenue.monthly) == 6
        assert report.revenue.monthly[-1].month == "Jun"
        assert report.revenue.monthly[0].month == "Jan"
        assert report.traffic.total_views > 0
        assert report.products.top_selling
        assert report.financial.total_costs == pytest.approx(report.financial.gross_revenue * 0.7)

    def test_seed_reproducible(self, now):
        first = build_degraded_report("store-1", now=now, seed=7)
        second = build_degraded_report("store-1", now=now, seed=7)

        assert first == second

    def test_honors_window_and_top_n(self, now):
        report = build_degraded_report("store-1", AnalyticsFilters(date_range="7d", top_n=2), now=now)

        assert report.window.days == 7
        assert len(report.products.top_selling) == 2

    def test_monthly_series_crosses_year(self):
        report = build_degraded_report("store-1", now=datetime(2025, 2, 10, tzinfo=timezone.utc), seed=1)

        assert [(m.month, m.year) for m in report.revenue.monthly] == [
            ("Sep", 2024), ("Oct", 2024), ("Nov", 2024), ("Dec", 2024), ("Jan", 2025), ("Feb", 2025),
        ]
