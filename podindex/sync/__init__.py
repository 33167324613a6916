"""Cursor-based incremental sync of the episode stream."""

from .engine import IncrementalSyncEngine, SyncBatch

__all__ = ["IncrementalSyncEngine", "SyncBatch"]
