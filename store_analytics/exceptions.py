"""
Exception hierarchy for the Store Analytics Engine.

Raised by the data-source layer and the fetch timeouts around it; the analytics
service converts them into degraded reports so nothing reaches the dashboard
caller.
"""

from typing import Optional


class StoreAnalyticsError(Exception):
    """Base class for all store analytics errors"""


class DataSourceError(StoreAnalyticsError):
    """A collaborator query failed or returned unusable records"""

    def __init__(self, message: str, store_id: Optional[str] = None, operation: Optional[str] = None):
        super().__init__(message)
        self.store_id = store_id
        self.operation = operation


class DataSourceTimeout(DataSourceError):
    """A collaborator query did not finish within its time budget"""
