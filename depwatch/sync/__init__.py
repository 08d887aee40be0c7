"""Repository sync status tracking."""

from __future__ import annotations

from .status import SyncStatusTracker, SyncTaskStatus, sync_task_key

__all__ = ["SyncStatusTracker", "SyncTaskStatus", "sync_task_key"]
