"""
Product Performance Ranking

Ranks products by units sold over the current-window line items and rolls the
catalog up by category. Line items whose product is no longer in the catalog
are skipped.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

import polars as pl
import structlog

from .schemas import (
    CategoryBreakdown,
    OrderRecord,
    ProductRecord,
    ProductsReport,
    TopProduct,
)

logger = structlog.get_logger(__name__)

DEFAULT_PRODUCT_COST_RATIO = 0.7
DEFAULT_TOP_N = 10

LINE_ITEMS_SCHEMA = {
    "product_id": pl.Utf8,
    "price": pl.Float64,
    "quantity": pl.Int64,
}

CATALOG_SCHEMA = {
    "id": pl.Utf8,
    "name": pl.Utf8,
    "category": pl.Utf8,
    "image": pl.Utf8,
}


@dataclass
class RankingResult:
    """Ranked products plus bookkeeping for the caller"""
    top_selling: List[TopProduct]
    category_breakdown: List[CategoryBreakdown]
    matched_revenue: float
    skipped_items: int
    catalog: List[ProductRecord]


def line_items_frame(orders: Sequence[OrderRecord]) -> pl.DataFrame:
    items = [item for order in orders for item in order.items]
    return pl.DataFrame(
        {
            "product_id": [i.product_id for i in items],
            "price": [float(i.price) for i in items],
            "quantity": [i.quantity for i in items],
        },
        schema=LINE_ITEMS_SCHEMA,
    )


def catalog_frame(products: Sequence[ProductRecord]) -> pl.DataFrame:
    df = pl.DataFrame(
        {
            "id": [p.id for p in products],
            "name": [p.name for p in products],
            "category": [p.category for p in products],
            "image": [p.image_url for p in products],
        },
        schema=CATALOG_SCHEMA,
    )
    return df.unique(subset="id", keep="first", maintain_order=True)


def rank_products(
    orders: Sequence[OrderRecord],
    products: Sequence[ProductRecord],
    top_n: int = DEFAULT_TOP_N,
    cost_ratio: float = DEFAULT_PRODUCT_COST_RATIO,
    category: Optional[str] = None,
) -> RankingResult:
    """
    Rank products sold in ``orders`` and build the category breakdown.

    Args:
        orders: Current-window orders
        products: Full store catalog
        top_n: Maximum number of ranked products returned
        cost_ratio: Assumed unit cost as a share of the sale price
        category: Restrict ranking and breakdown to this category

    Returns:
        RankingResult sorted by sold desc, then revenue desc, then id asc
        and carrying the catalog rows left after the category filter
    """
    selected = list(products)
    if category is not None:
        selected = [p for p in products if p.category == category]

    items = line_items_frame(orders)
    matched = items.join(catalog_frame(products), left_on="product_id", right_on="id", how="inner")
    skipped = items.height - matched.height
    if skipped:
        logger.debug("Skipped line items with unknown products", skipped=skipped)

    if category is not None:
        matched = matched.filter(pl.col("category") == category)
    catalog = catalog_frame(selected)

    matched = matched.with_columns(
        (pl.col("price") * pl.col("quantity")).alias("revenue"),
        ((pl.col("price") - pl.col("price") * cost_ratio) * pl.col("quantity")).alias("profit"),
    )

    ranked = (
        matched.group_by("product_id")
        .agg(
            pl.col("quantity").sum().alias("sold"),
            pl.col("revenue").sum(),
            pl.col("profit").sum(),
            pl.col("name").first(),
            pl.col("category").first(),
            pl.col("image").first(),
        )
        .sort(["sold", "revenue", "product_id"], descending=[True, True, False])
        .head(top_n)
        .to_dicts()
    )

    top_selling = [
        TopProduct(
            id=row["product_id"],
            name=row["name"],
            category=row["category"],
            sold=row["sold"],
            revenue=row["revenue"],
            profit=row["profit"],
            image=row["image"],
        )
        for row in ranked
    ]

    category_revenue = matched.group_by("category").agg(pl.col("revenue").sum())
    breakdown_rows = (
        catalog.group_by("category")
        .agg(pl.len().alias("count"))
        .join(category_revenue, on="category", how="left")
        .with_columns(pl.col("revenue").fill_null(0.0))
        .sort(["revenue", "count", "category"], descending=[True, True, False])
        .to_dicts()
    )

    breakdown = [
        CategoryBreakdown(category=row["category"], count=row["count"], revenue=row["revenue"])
        for row in breakdown_rows
    ]

    return RankingResult(
        top_selling=top_selling,
        category_breakdown=breakdown,
        matched_revenue=float(matched["revenue"].sum()),
        skipped_items=skipped,
        catalog=selected,
    )


def summarize_products(
    products: Sequence[ProductRecord],
    ranking: RankingResult,
    low_stock_threshold: int,
) -> ProductsReport:
    """Catalog counts plus the ranked lists."""
    return ProductsReport(
        total=len(products),
        active=sum(1 for p in products if p.is_visible),
        out_of_stock=sum(1 for p in products if p.stock_quantity == 0),
        low_stock=sum(1 for p in products if 0 < p.stock_quantity < low_stock_threshold),
        views=0,
        top_selling=ranking.top_selling,
        category_breakdown=ranking.category_breakdown,
    )
