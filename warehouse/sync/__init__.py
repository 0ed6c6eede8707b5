"""Sync state tracking for the local changeset mirror.

This package provides:
- Backend handles: lazily opened, time-expiring backend connections
- Sync tracking: synced/latest revisions, pending range, and progress
- Ingestion: recording pending backend revisions as changesets
"""

from warehouse.sync.backend import BackendHandle
from warehouse.sync.tracker import SyncReport, SyncStateTracker, SyncStatus

__all__ = [
    "BackendHandle",
    "SyncReport",
    "SyncStateTracker",
    "SyncStatus",
]
