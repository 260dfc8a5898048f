"""
Refresh loop and snapshot cache.
"""

from .cache import SnapshotCache
from .scheduler import RefreshScheduler, SchedulerState

__all__ = [
    "RefreshScheduler",
    "SchedulerState",
    "SnapshotCache",
]
