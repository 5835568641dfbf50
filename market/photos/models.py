"""
Data models for photo scoring and slot selection.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class PhotoSlot(Enum):
    """Semantic photo roles in a generated report or flyer."""
    MAIN = "main"
    KITCHEN = "kitchen"
    ROOM = "room"


# Category reported as missing when a slot cannot be confidently filled
SLOT_CATEGORY_LABELS = {
    PhotoSlot.MAIN: "Exterior",
    PhotoSlot.KITCHEN: "Kitchen",
    PhotoSlot.ROOM: "Living Room",
}


@dataclass(frozen=True)
class PhotoCandidate:
    """
    One photo of a property, optionally annotated by image classification.

    confidence and quality are on a 0-100 scale. index is the photo's
    position in the provider's list and breaks scoring ties.
    """
    url: str
    index: int
    classification: Optional[str] = None
    confidence: Optional[float] = None
    quality: Optional[float] = None
    quality_label: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("url is required")
        if self.confidence is not None and not 0 <= self.confidence <= 100:
            raise ValueError(f"confidence must be within 0-100: {self.confidence}")
        if self.quality is not None and not 0 <= self.quality <= 100:
            raise ValueError(f"quality must be within 0-100: {self.quality}")

    @property
    def has_insights(self) -> bool:
        return any(
            value is not None
            for value in (self.classification, self.confidence, self.quality, self.quality_label)
        )

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "index": self.index,
            "classification": self.classification,
            "confidence": self.confidence,
            "quality": self.quality,
            "quality_label": self.quality_label,
        }


@dataclass(frozen=True)
class SlotSelection:
    """The photo chosen for one slot, and why."""
    slot: PhotoSlot
    url: Optional[str] = None
    is_ai_selected: bool = False
    category_mismatch: bool = False
    reason: str = ""
    classification: Optional[str] = None
    confidence: Optional[float] = None

    @property
    def is_filled(self) -> bool:
        return self.url is not None

    def to_dict(self) -> dict:
        return {
            "slot": self.slot.value,
            "url": self.url,
            "is_ai_selected": self.is_ai_selected,
            "category_mismatch": self.category_mismatch,
            "reason": self.reason,
            "classification": self.classification,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class PhotoSelectionResult:
    """
    Slot assignments for one property.

    Invariant: no URL appears in more than one slot.
    """
    main: SlotSelection
    kitchen: SlotSelection
    room: SlotSelection
    missing_categories: Tuple[str, ...] = field(default_factory=tuple)
    insights_available: bool = True

    @property
    def slots(self) -> Tuple[SlotSelection, SlotSelection, SlotSelection]:
        return (self.main, self.kitchen, self.room)

    @property
    def selected_urls(self) -> List[str]:
        return [s.url for s in self.slots if s.url is not None]

    def to_dict(self) -> dict:
        return {
            "main": self.main.to_dict(),
            "kitchen": self.kitchen.to_dict(),
            "room": self.room.to_dict(),
            "missing_categories": list(self.missing_categories),
            "insights_available": self.insights_available,
        }


@dataclass(frozen=True)
class PropertyPhotos:
    """Recommended report photos for one property."""
    listing_id: str
    photos: Tuple[PhotoCandidate, ...]
    insights_available: bool

    @property
    def urls(self) -> List[str]:
        return [p.url for p in self.photos]

    def to_dict(self) -> dict:
        return {
            "listing_id": self.listing_id,
            "photos": [p.to_dict() for p in self.photos],
            "insights_available": self.insights_available,
        }
