"""pubsync -- Incremental sync of new journal articles into a review sheet."""

from pubsync.core import SyncEngine
from pubsync.models import (
    ApprovalRecord,
    ApprovalStatus,
    Author,
    JournalSyncResult,
    Resolution,
    SyncReport,
    SyncWindow,
    Work,
)

__all__ = [
    "ApprovalRecord",
    "ApprovalStatus",
    "Author",
    "JournalSyncResult",
    "Resolution",
    "SyncEngine",
    "SyncReport",
    "SyncWindow",
    "Work",
]
