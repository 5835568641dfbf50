"""
Image insights

Fetches image classifications from the listings API and turns them into
per-property photo recommendations, one request at a time.
"""

from .client import InsightLookup, PhotoInsightClient
from .coordinator import (
    FetchToken,
    PhotoInsightCoordinator,
    PropertyPhotoRequest,
)
from .sync_state import SyncGuard, SyncPhase, SyncState, SyncStateError

__all__ = [
    # Client
    "InsightLookup",
    "PhotoInsightClient",
    # Coordinator
    "FetchToken",
    "PhotoInsightCoordinator",
    "PropertyPhotoRequest",
    # Sync state
    "SyncGuard",
    "SyncPhase",
    "SyncState",
    "SyncStateError",
]
