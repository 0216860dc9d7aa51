"""
Test Suite Configuration
"""
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

import pytest

from store_analytics.analytics.schemas import (
    CustomerHistory,
    OrderLineItem,
    OrderRecord,
    ProductRecord,
)
from store_analytics.sources import InMemoryDataSource

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """Fixed reference instant for reproducible windows"""
    return NOW


@pytest.fixture
def make_order() -> Callable[..., OrderRecord]:
    """Factory for orders placed ``days_ago`` days before NOW"""
    counter = {"n": 0}

    def _make(
        total: float,
        days_ago: float = 1,
        status: str = "delivered",
        customer_id: Optional[str] = "cust-1",
        items: Optional[List[tuple]] = None,
        order_id: Optional[str] = None,
    ) -> OrderRecord:
        counter["n"] += 1
        return OrderRecord(
            id=order_id or f"ord-{counter['n']}",
            created_at=NOW - timedelta(days=days_ago),
            status=status,
            total=total,
            customer_id=customer_id,
            items=[
                OrderLineItem(product_id=pid, price=price, quantity=qty)
                for pid, price, qty in (items or [])
            ],
        )

    return _make


@pytest.fixture
def make_product() -> Callable[..., ProductRecord]:
    """Factory for catalog rows"""

    def _make(
        product_id: str,
        price: float = 10.0,
        stock: int = 100,
        category: Optional[str] = "Accessories",
        name: Optional[str] = None,
        visible: bool = True,
    ) -> ProductRecord:
        return ProductRecord(
            id=product_id,
            name=name or f"Product {product_id}",
            category=category,
            price=price,
            stock_quantity=stock,
            is_visible=visible,
            store_id="store-1",
        )

    return _make


@pytest.fixture
def sample_products(make_product) -> List[ProductRecord]:
    """Small catalog across two categories"""
    return [
        make_product("prod-a", price=10.0, stock=0, category="Accessories"),
        make_product("prod-b", price=5.0, stock=5, category="Accessories"),
        make_product("prod-c", price=40.0, stock=10, category="Fashion"),
        make_product("prod-d", price=25.0, stock=50, category=None, visible=False),
    ]


@pytest.fixture
def sample_orders(make_order) -> List[OrderRecord]:
    """Three orders in the last 30 days and two in the 30 days before"""
    return [
        make_order(100.0, days_ago=1, customer_id="cust-1", items=[("prod-a", 10.0, 5), ("prod-b", 5.0, 10)]),
        make_order(120.0, days_ago=3, status="pending", customer_id="cust-2", items=[("prod-c", 40.0, 3)]),
        make_order(80.0, days_ago=10, status="shipped", customer_id=None, items=[("prod-gone", 80.0, 1)]),
        make_order(150.0, days_ago=40, customer_id="cust-1"),
        make_order(50.0, days_ago=55, customer_id="cust-3"),
    ]


@pytest.fixture
def customer_history() -> dict:
    """cust-1 predates the window, cust-2 joined inside it"""
    return {
        "cust-1": CustomerHistory(customer_id="cust-1", first_seen=NOW - timedelta(days=400), lifetime_value=1500.0),
        "cust-2": CustomerHistory(customer_id="cust-2", first_seen=NOW - timedelta(days=3), lifetime_value=120.0),
    }


@pytest.fixture
def memory_source(sample_orders, sample_products) -> InMemoryDataSource:
    """In-memory source holding the sample store under ``store-1``"""
    return InMemoryDataSource(
        orders={"store-1": sample_orders},
        products={"store-1": sample_products},
    )
