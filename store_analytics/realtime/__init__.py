"""
Realtime Metrics Module
"""
from .poller import PollerState, RealtimeMetricsPoller
from .snapshot import compute_live_snapshot

__all__ = [
    "PollerState",
    "RealtimeMetricsPoller",
    "compute_live_snapshot",
]
