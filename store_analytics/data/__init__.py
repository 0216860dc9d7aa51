"""
Data Generation Module
"""
from .generators import GeneratedStore, StoreDataGenerator

__all__ = [
    "GeneratedStore",
    "StoreDataGenerator",
]
