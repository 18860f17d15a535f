"""
Delta synchronization.
"""

from .manager import SyncManager, SyncState, extract_sync_token
from .query import SyncQuery, SyncType

__all__ = ["SyncManager", "SyncState", "SyncQuery", "SyncType", "extract_sync_token"]
