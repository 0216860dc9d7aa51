"""
SQL Data Source

Reads orders, line items, products and customer history from the storefront
tables with SQLAlchemy. The endpoint (primary or a read replica) is chosen per
query through a ConnectivityMonitor; a failed query drops the cached endpoint
so the next one retests.
"""

from datetime import datetime, time as dt_time, timezone, tzinfo
from typing import Dict, List, Optional, Sequence

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from store_analytics.analytics.schemas import (
    CustomerHistory,
    OrderLineItem,
    OrderRecord,
    ProductRecord,
    RealtimeSnapshot,
)
from store_analytics.config import get_settings
from store_analytics.database.connection import get_db, probe_endpoint
from store_analytics.database.models import StoreCustomer, StoreOrder, StoreProduct
from store_analytics.exceptions import DataSourceError
from store_analytics.realtime.snapshot import compute_live_snapshot
from .base import StoreDataSource
from .resilience import ConnectivityMonitor

logger = structlog.get_logger(__name__)


def _aware(ts: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive timestamps; they were written as UTC."""
    if ts is not None and ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def order_to_record(row: StoreOrder) -> OrderRecord:
    return OrderRecord(
        id=row.id,
        created_at=_aware(row.created_at),
        status=row.status,
        total=float(row.total),
        customer_id=row.customer_id,
        items=[
            OrderLineItem(product_id=item.product_id, price=float(item.price), quantity=item.quantity)
            for item in row.items
        ],
    )


def product_to_record(row: StoreProduct) -> ProductRecord:
    return ProductRecord(
        id=row.id,
        name=row.name,
        category=row.category,
        price=float(row.price),
        stock_quantity=row.stock_quantity,
        is_visible=row.is_visible,
        store_id=row.store_id,
        image_url=row.image_url,
    )


class SqlStoreDataSource(StoreDataSource):
    """
    Storefront tables accessed through SQLAlchemy async sessions.

    Example:
        source = SqlStoreDataSource()
        orders = await source.fetch_orders("store-1")
    """

    def __init__(
        self,
        endpoints: Optional[Sequence[str]] = None,
        monitor: Optional[ConnectivityMonitor] = None,
    ):
        settings = get_settings()
        if monitor is None:
            monitor = ConnectivityMonitor(
                endpoints or settings.database.endpoints,
                probe=probe_endpoint,
                retest_interval=settings.analytics.connectivity_retest_seconds,
            )
        self.monitor = monitor

    async def _run(self, operation: str, store_id: str, query):
        url = await self.monitor.working_endpoint()
        try:
            async with get_db(url) as db:
                return await query(db)
        except SQLAlchemyError as e:
            self.monitor.invalidate()
            logger.error(
                "Storefront query failed",
                operation=operation,
                store_id=store_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DataSourceError(str(e), store_id=store_id, operation=operation) from e

    async def fetch_orders(self, store_id: str) -> List[OrderRecord]:
        async def query(db):
            result = await db.execute(
                select(StoreOrder)
                .where(StoreOrder.store_id == store_id)
                .options(selectinload(StoreOrder.items))
                .order_by(StoreOrder.created_at.desc())
            )
            return [order_to_record(row) for row in result.scalars().all()]

        return await self._run("fetch_orders", store_id, query)

    async def fetch_products(self, store_id: str) -> List[ProductRecord]:
        async def query(db):
            result = await db.execute(
                select(StoreProduct)
                .where(StoreProduct.store_id == store_id)
                .order_by(StoreProduct.name)
            )
            return [product_to_record(row) for row in result.scalars().all()]

        return await self._run("fetch_products", store_id, query)

    async def fetch_live_snapshot(
        self,
        store_id: str,
        now: Optional[datetime] = None,
        tz: tzinfo = timezone.utc,
    ) -> RealtimeSnapshot:
        """Reads only today's orders plus the newest order timestamp."""
        now = now or datetime.now(timezone.utc)
        day_start = datetime.combine(now.astimezone(tz).date(), dt_time.min, tzinfo=tz)
        day_start_utc = day_start.astimezone(timezone.utc)

        async def query(db):
            result = await db.execute(
                select(StoreOrder)
                .where(StoreOrder.store_id == store_id, StoreOrder.created_at >= day_start_utc)
                .options(selectinload(StoreOrder.items))
            )
            todays = [order_to_record(row) for row in result.scalars().all()]
            last = (
                await db.execute(
                    select(func.max(StoreOrder.created_at)).where(StoreOrder.store_id == store_id)
                )
            ).scalar()
            return todays, _aware(last)

        todays, last_order_time = await self._run("fetch_live_snapshot", store_id, query)
        snapshot = compute_live_snapshot(todays, now=now, tz=tz)
        return snapshot.model_copy(update={"last_order_time": last_order_time})

    async def fetch_customer_history(self, store_id: str) -> Optional[Dict[str, CustomerHistory]]:
        async def query(db):
            result = await db.execute(select(StoreCustomer).where(StoreCustomer.store_id == store_id))
            return result.scalars().all()

        rows = await self._run("fetch_customer_history", store_id, query)
        if not rows:
            return None
        return {
            row.customer_id: CustomerHistory(
                customer_id=row.customer_id,
                first_seen=_aware(row.first_seen),
                lifetime_value=float(row.lifetime_value),
            )
            for row in rows
        }
