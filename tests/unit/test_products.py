"""
Unit Tests - Product Ranking
"""
import pytest

from store_analytics.analytics.products import rank_products, summarize_products


class TestRankProducts:
    """Tests for top sellers and category breakdown"""

    def test_ranked_by_units_sold(self, make_order, make_product):
        products = [make_product("A", price=10.0), make_product("B", price=5.0)]
        orders = [make_order(100.0, items=[("A", 10.0, 5), ("B", 5.0, 10)])]

        result = rank_products(orders, products)

        assert [p.id for p in result.top_selling] == ["B", "A"]
        assert [p.sold for p in result.top_selling] == [10, 5]
        assert result.top_selling[0].revenue == pytest.approx(50.0)
        assert result.top_selling[0].profit == pytest.approx(15.0)

    def test_ties_break_on_revenue_then_id(self, make_order, make_product):
        products = [make_product(pid) for pid in ("x", "y", "z")]
        orders = [make_order(0.0, items=[("z", 2.0, 3), ("y", 1.0, 3), ("x", 1.0, 3)])]

        result = rank_products(orders, products)

        assert [p.id for p in result.top_selling] == ["z", "x", "y"]

    def test_sold_aggregates_across_orders(self, make_order, make_product):
        products = [make_product("A")]
        orders = [make_order(10.0, items=[("A", 10.0, 1)]), make_order(20.0, items=[("A", 10.0, 2)])]

        result = rank_products(orders, products)

        assert result.top_selling[0].sold == 3
        assert result.top_selling[0].revenue == pytest.approx(30.0)

    def test_uses_price_at_sale(self, make_order, make_product):
        products = [make_product("A", price=99.0)]
        orders = [make_order(10.0, items=[("A", 10.0, 1)])]

        result = rank_products(orders, products)

        assert result.top_selling[0].revenue == pytest.approx(10.0)

    def test_missing_product_is_skipped(self, make_order, make_product):
        products = [make_product("A")]
        orders = [make_order(30.0, items=[("A", 10.0, 1), ("deleted", 20.0, 1)])]

        result = rank_products(orders, products)

        assert [p.id for p in result.top_selling] == ["A"]
        assert result.skipped_items == 1
        assert result.matched_revenue == pytest.approx(10.0)

    def test_top_n_limit(self, make_order, make_product):
        products = [make_product(f"p{i}") for i in range(15)]
        orders = [make_order(0.0, items=[(f"p{i}", 1.0, i + 1) for i in range(15)])]

        result = rank_products(orders, products, top_n=5)

        assert len(result.top_selling) == 5
        assert result.top_selling[0].id == "p14"

    def test_custom_cost_ratio(self, make_order, make_product):
        orders = [make_order(100.0, items=[("A", 100.0, 1)])]

        result = rank_products(orders, [make_product("A")], cost_ratio=0.4)

        assert result.top_selling[0].profit == pytest.approx(60.0)

    def test_category_breakdown(self, sample_orders, sample_products):
        result = rank_products(sample_orders[:3], sample_products)

        assert [(c.category, c.count, c.revenue) for c in result.category_breakdown] == [
            ("Fashion", 1, pytest.approx(120.0)),
            ("Accessories", 2, pytest.approx(100.0)),
            ("Uncategorized", 1, pytest.approx(0.0)),
        ]

    def test_category_filter(self, sample_orders, sample_products):
        result = rank_products(sample_orders[:3], sample_products, category="Fashion")

        assert [p.id for p in result.top_selling] == ["prod-c"]
        assert [c.category for c in result.category_breakdown] == ["Fashion"]
        assert {p.category for p in result.catalog} == {"Fashion"}
        assert result.skipped_items == 0

    def test_empty_input(self):
        result = rank_products([], [])

        assert result.top_selling == []
        assert result.category_breakdown == []
        assert result.matched_revenue == 0


class TestSummarizeProducts:
    """Tests for catalog counts"""

    def test_stock_thresholds(self, make_product):
        products = [
            make_product("out", stock=0),
            make_product("low", stock=5),
            make_product("ok", stock=10),
        ]

        summary = summarize_products(products, rank_products([], products), low_stock_threshold=10)

        assert summary.total == 3
        assert summary.out_of_stock == 1
        assert summary.low_stock == 1
        assert summary.views == 0

    def test_active_counts_visible_only(self, sample_products):
        summary = summarize_products(sample_products, rank_products([], sample_products), low_stock_threshold=10)

        assert summary.active == 3
