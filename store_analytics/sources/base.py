"""
Store Data Source Interface

Contract for the storefront collaborators that supply orders, products and
live metrics to the analytics engine. Implementations raise
``DataSourceError`` (or let a driver error escape) on failure; deciding what
to show the dashboard instead is the analytics service's job.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone, tzinfo
from typing import Dict, List, Optional

from store_analytics.analytics.schemas import (
    CustomerHistory,
    OrderRecord,
    ProductRecord,
    RealtimeSnapshot,
)
from store_analytics.realtime.snapshot import compute_live_snapshot


class StoreDataSource(ABC):
    """Read-only access to one backend's store records"""

    @abstractmethod
    async def fetch_orders(self, store_id: str) -> List[OrderRecord]:
        """All orders of the store, with nested line items."""

    @abstractmethod
    async def fetch_products(self, store_id: str) -> List[ProductRecord]:
        """The store's product catalog."""

    async def fetch_live_snapshot(
        self,
        store_id: str,
        now: Optional[datetime] = None,
        tz: tzinfo = timezone.utc,
    ) -> RealtimeSnapshot:
        """
        Live KPI reading.

        The default derives it from the full order list; backends with a
        cheaper query should override this.
        """
        orders = await self.fetch_orders(store_id)
        return compute_live_snapshot(orders, now=now, tz=tz)

    async def fetch_customer_history(self, store_id: str) -> Optional[Dict[str, CustomerHistory]]:
        """First-seen and lifetime data per customer, or None when not available."""
        return None

    async def close(self) -> None:
        """Release connections held by the source."""
