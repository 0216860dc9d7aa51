"""
Demo Store Seeder
Writes a synthetic storefront (products, orders, customer history) into the
configured database so the analytics API has something to report on.

Usage:
    python scripts/seed_demo_store.py --store-id demo-store --orders 2000
    python scripts/seed_demo_store.py --url sqlite+aiosqlite:///./demo.db
"""

import argparse
import asyncio
from typing import Optional

from store_analytics.config.logging import configure_logging
from store_analytics.data import GeneratedStore, StoreDataGenerator
from store_analytics.database import (
    StoreCustomer,
    StoreOrder,
    StoreOrderItem,
    StoreProduct,
    close_database,
    get_db,
    init_database,
)


async def write_store(store: GeneratedStore, url: Optional[str] = None) -> None:
    """Insert every generated record for one store."""
    async with get_db(url) as db:
        db.add_all([
            StoreProduct(
                id=p.id,
                store_id=store.store_id,
                name=p.name,
                category=p.category,
                price=p.price,
                stock_quantity=p.stock_quantity,
                is_visible=p.is_visible,
                image_url=p.image_url,
            )
            for p in store.products
        ])
        db.add_all([
            StoreOrder(
                id=o.id,
                store_id=store.store_id,
                customer_id=o.customer_id,
                status=o.status,
                total=o.total,
                created_at=o.created_at,
                items=[
                    StoreOrderItem(product_id=i.product_id, price=i.price, quantity=i.quantity)
                    for i in o.items
                ],
            )
            for o in store.orders
        ])
        db.add_all([
            StoreCustomer(
                store_id=store.store_id,
                customer_id=h.customer_id,
                first_seen=h.first_seen,
                lifetime_value=h.lifetime_value,
            )
            for h in store.customer_history.values()
        ])


async def main(args: argparse.Namespace) -> None:
    configure_logging()
    print("=" * 60)
    print("Demo Store Seeder")
    print("=" * 60 + "\n")

    await init_database(args.url, create_tables=True)
    try:
        store = StoreDataGenerator(seed=args.seed).generate(
            args.store_id,
            n_products=args.products,
            n_orders=args.orders,
            n_customers=args.customers,
        )
        await write_store(store, args.url)
    finally:
        await close_database()

    print(f"   products:  {len(store.products):,}")
    print(f"   orders:    {len(store.orders):,}")
    print(f"   customers: {len(store.customer_history):,}")
    print(f"\nSeeded store '{store.store_id}'\n")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed a synthetic store")
    parser.add_argument("--store-id", default="demo-store")
    parser.add_argument("--products", type=int, default=60)
    parser.add_argument("--orders", type=int, default=800)
    parser.add_argument("--customers", type=int, default=150)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--url", default=None, help="Async database URL (defaults to the configured primary)")
    return parser.parse_args()


if __name__ == "__main__":
    asyncio.run(main(parse_args()))
