# services/__init__.py

"""
DailyHabit Tracker services

Sync gateway, document stores, export and the tracker service that ties
them to the in-memory stores.
"""

from .sync_service import SyncGateway, SyncError, SyncReadFailure, SyncWriteFailure
from .tracker_service import HabitTracker, build_tracker

__all__ = [
    'SyncGateway',
    'SyncError',
    'SyncReadFailure',
    'SyncWriteFailure',
    'HabitTracker',
    'build_tracker'
]
