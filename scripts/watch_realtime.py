"""
Realtime Metrics Watcher
Polls a store's live KPIs the way the dashboard widget does and prints each
fresh snapshot until interrupted.

Usage:
    python scripts/watch_realtime.py demo-store
    python scripts/watch_realtime.py demo-store --interval 5 --url sqlite+aiosqlite:///./demo.db
"""

import argparse
import asyncio

from store_analytics.analytics import RealtimeSnapshot, StoreAnalyticsService
from store_analytics.config import get_settings
from store_analytics.config.logging import configure_logging
from store_analytics.database import close_database
from store_analytics.realtime import RealtimeMetricsPoller
from store_analytics.sources import SqlStoreDataSource


def print_snapshot(snapshot: RealtimeSnapshot) -> None:
    last = snapshot.last_order_time.isoformat() if snapshot.last_order_time else "-"
    print(
        f"revenue today: {snapshot.todays_revenue:>12,.2f}  "
        f"orders: {snapshot.todays_orders:>5}  "
        f"last order: {last}"
    )


async def main(args: argparse.Namespace) -> None:
    configure_logging()
    source = SqlStoreDataSource(endpoints=[args.url] if args.url else None)
    service = StoreAnalyticsService(source)
    poller = RealtimeMetricsPoller(
        lambda: service.get_realtime_snapshot(args.store_id),
        interval=args.interval,
        on_update=print_snapshot,
    )

    await poller.start()
    try:
        while True:
            await asyncio.sleep(args.interval)
            if not poller.is_connected:
                print(f"disconnected: {poller.last_error}")
    finally:
        await poller.stop()
        await source.close()
        await close_database()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Watch a store's live metrics")
    parser.add_argument("store_id")
    parser.add_argument(
        "--interval",
        type=float,
        default=get_settings().realtime.poll_interval_seconds,
        help="Seconds between polls",
    )
    parser.add_argument("--url", default=None, help="Async database URL (defaults to the configured endpoints)")
    return parser.parse_args()


if __name__ == "__main__":
    try:
        asyncio.run(main(parse_args()))
    except KeyboardInterrupt:
        pass
