"""
Database Module
"""
from .connection import init_database, close_database, get_db, get_engine, probe_endpoint
from .models import Base, StoreCustomer, StoreOrder, StoreOrderItem, StoreProduct

__all__ = [
    "init_database",
    "close_database",
    "get_db",
    "get_engine",
    "probe_endpoint",
    "Base",
    "StoreCustomer",
    "StoreOrder",
    "StoreOrderItem",
    "StoreProduct",
]
