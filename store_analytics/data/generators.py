"""
Synthetic Store Data Generator

Generates a realistic storefront for demos and development:
- Product catalog across categories, with a few out-of-stock and low-stock rows
- Orders with 1-3 line items, a status mix and a one-year timestamp spread
- Customer history (first-seen date and lifetime value) for the order customers

Everything is driven by a seeded Faker instance and numpy Generator, so a
given seed always yields the same store.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import numpy as np
from faker import Faker

from store_analytics.analytics.schemas import (
    CustomerHistory,
    OrderLineItem,
    OrderRecord,
    ProductRecord,
)


# =============================================================================
# CONFIGURATION
# =============================================================================

CATEGORIES = {
    "Electronics": (50, 2000),
    "Clothing": (20, 500),
    "Home & Garden": (30, 1000),
    "Sports": (25, 800),
    "Beauty": (10, 200),
    "Books": (10, 50),
}

ORDER_STATUSES = [
    ("pending", 0.08),
    ("processing", 0.10),
    ("shipped", 0.12),
    ("delivered", 0.65),
    ("cancelled", 0.05),
]

ITEMS_PER_ORDER = ([1, 2, 3], [0.55, 0.30, 0.15])
QUANTITIES = ([1, 2, 3, 4], [0.65, 0.22, 0.09, 0.04])


@dataclass
class GeneratedStore:
    """Records for one synthetic store"""
    store_id: str
    products: List[ProductRecord] = field(default_factory=list)
    orders: List[OrderRecord] = field(default_factory=list)
    customer_history: Dict[str, CustomerHistory] = field(default_factory=dict)


# =============================================================================
# GENERATOR
# =============================================================================

class StoreDataGenerator:
    """
    Generate a synthetic storefront.

    Example:
        store = StoreDataGenerator(seed=42).generate("demo-store")
        source = InMemoryDataSource()
        source.add_orders(store.store_id, store.orders)
    """

    def __init__(self, seed: Optional[int] = None):
        self.rng = np.random.default_rng(seed)
        self.fake = Faker()
        if seed is not None:
            self.fake.seed_instance(seed)

    def _id(self) -> str:
        return str(uuid.UUID(bytes=self.rng.bytes(16), version=4))

    def generate_products(self, store_id: str, n: int = 60) -> List[ProductRecord]:
        """Generate n catalog rows"""
        names = list(CATEGORIES)
        products = []

        for _ in range(n):
            category = names[int(self.rng.integers(len(names)))]
            low, high = CATEGORIES[category]

            # Roughly 8% sold out and 10% running low
            roll = self.rng.random()
            if roll < 0.08:
                stock = 0
            elif roll < 0.18:
                stock = int(self.rng.integers(1, 10))
            else:
                stock = int(self.rng.integers(10, 500))

            products.append(ProductRecord(
                id=self._id(),
                name=f"{self.fake.word().title()} {category.split()[0]}",
                category=category,
                price=round(float(self.rng.uniform(low, high)), 2),
                stock_quantity=stock,
                is_visible=bool(self.rng.random() > 0.05),
                store_id=store_id,
                image_url=self.fake.image_url(),
            ))

        return products

    def generate_orders(
        self,
        products: List[ProductRecord],
        n: int = 800,
        n_customers: int = 150,
        now: Optional[datetime] = None,
        days: int = 365,
    ) -> List[OrderRecord]:
        """Generate n orders spread over the ``days`` before ``now``"""
        if not products:
            return []
        now = now or datetime.now(timezone.utc)
        customer_ids = [self._id() for _ in range(n_customers)]
        statuses = [s[0] for s in ORDER_STATUSES]
        weights = [s[1] for s in ORDER_STATUSES]

        orders = []
        for _ in range(n):
            # Skew towards recent activity so growth is visible
            age = float(self.rng.beta(1.3, 2.2)) * days
            created_at = now - timedelta(days=age)

            n_items = int(self.rng.choice(ITEMS_PER_ORDER[0], p=ITEMS_PER_ORDER[1]))
            items = []
            for _ in range(n_items):
                product = products[int(self.rng.integers(len(products)))]
                quantity = int(self.rng.choice(QUANTITIES[0], p=QUANTITIES[1]))
                items.append(OrderLineItem(product_id=product.id, price=product.price, quantity=quantity))

            total = round(sum(item.price * item.quantity for item in items), 2)
            # Recent orders have not shipped yet
            if age < 3:
                status = statuses[int(self.rng.integers(0, 3))]
            else:
                status = str(self.rng.choice(statuses, p=weights))

            orders.append(OrderRecord(
                id=self._id(),
                created_at=created_at,
                status=status,
                total=total,
                customer_id=customer_ids[int(self.rng.integers(n_customers))],
                items=items,
            ))

        orders.sort(key=lambda o: o.created_at, reverse=True)
        return orders

    def generate_customer_history(
        self,
        orders: List[OrderRecord],
        now: Optional[datetime] = None,
    ) -> Dict[str, CustomerHistory]:
        """First-seen and lifetime value for every customer with an order"""
        now = now or datetime.now(timezone.utc)
        first_order: Dict[str, datetime] = {}
        spend: Dict[str, float] = {}
        for order in orders:
            if order.customer_id is None:
                continue
            cid = order.customer_id
            if cid not in first_order or order.created_at < first_order[cid]:
                first_order[cid] = order.created_at
            spend[cid] = spend.get(cid, 0.0) + order.total

        history = {}
        for cid, first in first_order.items():
            # Some customers predate the generated order history
            if self.rng.random() < 0.3:
                first = first - timedelta(days=float(self.rng.uniform(30, 720)))
            history[cid] = CustomerHistory(
                customer_id=cid,
                first_seen=min(first, now),
                lifetime_value=round(spend[cid], 2),
            )
        return history

    def generate(
        self,
        store_id: str,
        n_products: int = 60,
        n_orders: int = 800,
        n_customers: int = 150,
        now: Optional[datetime] = None,
    ) -> GeneratedStore:
        """Generate a complete store"""
        now = now or datetime.now(timezone.utc)
        products = self.generate_products(store_id, n_products)
        orders = self.generate_orders(products, n_orders, n_customers, now=now)
        return GeneratedStore(
            store_id=store_id,
            products=products,
            orders=orders,
            customer_history=self.generate_customer_history(orders, now=now),
        )
