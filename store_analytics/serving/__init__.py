"""
Serving Module
"""
from .cache import CacheManager, close_redis, init_redis, is_redis_available, report_cache

__all__ = [
    "CacheManager",
    "close_redis",
    "init_redis",
    "is_redis_available",
    "report_cache",
]
