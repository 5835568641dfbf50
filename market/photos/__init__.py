"""
Photo selection

Scores a property's photos using image-classification insights and assigns
them to the main (exterior), kitchen and living-room report slots.
"""

from .urls import CDN_BASE, photo_reference, resolve_photo_url, resolve_photo_urls
from .models import (
    SLOT_CATEGORY_LABELS,
    PhotoCandidate,
    PhotoSelectionResult,
    PhotoSlot,
    PropertyPhotos,
    SlotSelection,
)
from .candidates import (
    build_candidate,
    build_candidates,
    normalize_confidence,
    normalize_label,
    normalize_quality,
)
from .scoring import GENERAL_PRIORITY, rank_candidates, score_candidate
from .selector import (
    EXTERIOR_KEYWORDS,
    KITCHEN_KEYWORDS,
    ROOM_KEYWORDS,
    PhotoSlotSelector,
    default_photos,
    select_slots,
    select_top_photos,
)

__all__ = [
    # URLs
    "CDN_BASE",
    "photo_reference",
    "resolve_photo_url",
    "resolve_photo_urls",
    # Models
    "SLOT_CATEGORY_LABELS",
    "PhotoCandidate",
    "PhotoSelectionResult",
    "PhotoSlot",
    "PropertyPhotos",
    "SlotSelection",
    # Candidates
    "build_candidate",
    "build_candidates",
    "normalize_confidence",
    "normalize_label",
    "normalize_quality",
    # Scoring
    "GENERAL_PRIORITY",
    "rank_candidates",
    "score_candidate",
    # Selection
    "EXTERIOR_KEYWORDS",
    "KITCHEN_KEYWORDS",
    "ROOM_KEYWORDS",
    "PhotoSlotSelector",
    "default_photos",
    "select_slots",
    "select_top_photos",
]
