"""
Store Data Sources
"""
from .base import StoreDataSource
from .memory import InMemoryDataSource
from .resilience import ConnectivityMonitor, retry_with_backoff
from .sql import SqlStoreDataSource

__all__ = [
    "StoreDataSource",
    "InMemoryDataSource",
    "ConnectivityMonitor",
    "retry_with_backoff",
    "SqlStoreDataSource",
]
