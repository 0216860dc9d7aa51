"""
In-memory data source for demos and tests.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from store_analytics.analytics.schemas import CustomerHistory, OrderRecord, ProductRecord
from .base import StoreDataSource


class InMemoryDataSource(StoreDataSource):
    """
    Store records held in dictionaries keyed by store id.

    Example:
        source = InMemoryDataSource()
        source.add_products("store-1", products)
        source.add_orders("store-1", orders)
    """

    def __init__(
        self,
        orders: Optional[Mapping[str, Sequence[OrderRecord]]] = None,
        products: Optional[Mapping[str, Sequence[ProductRecord]]] = None,
        customer_history: Optional[Mapping[str, Mapping[str, CustomerHistory]]] = None,
    ):
        self._orders: Dict[str, List[OrderRecord]] = defaultdict(list)
        self._products: Dict[str, List[ProductRecord]] = defaultdict(list)
        self._history: Dict[str, Dict[str, CustomerHistory]] = {}

        for store_id, items in (orders or {}).items():
            self.add_orders(store_id, items)
        for store_id, items in (products or {}).items():
            self.add_products(store_id, items)
        for store_id, history in (customer_history or {}).items():
            self._history[store_id] = dict(history)

    def add_orders(self, store_id: str, orders: Iterable[OrderRecord]) -> None:
        self._orders[store_id].extend(orders)

    def add_products(self, store_id: str, products: Iterable[ProductRecord]) -> None:
        self._products[store_id].extend(products)

    def set_customer_history(self, store_id: str, history: Mapping[str, CustomerHistory]) -> None:
        self._history[store_id] = dict(history)

    async def fetch_orders(self, store_id: str) -> List[OrderRecord]:
        return sorted(self._orders.get(store_id, []), key=lambda o: o.created_at, reverse=True)

    async def fetch_products(self, store_id: str) -> List[ProductRecord]:
        return list(self._products.get(store_id, []))

    async def fetch_customer_history(self, store_id: str) -> Optional[Dict[str, CustomerHistory]]:
        history = self._history.get(store_id)
        return dict(history) if history is not None else None
