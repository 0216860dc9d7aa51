"""
API Module
"""
from .middleware import RequestLoggingMiddleware
from .routes import analytics_router, health_router

__all__ = [
    "RequestLoggingMiddleware",
    "analytics_router",
    "health_router",
]
