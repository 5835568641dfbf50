"""
Slot Selector - assigns a property's photos to report slots.

Slots are filled in order main -> kitchen -> room, and a photo claimed by
one slot is never offered to a later slot. Only the main slot falls back to
an arbitrary photo; kitchen and room stay empty (and are reported missing)
when no photo is classified for them.
"""

import logging
from typing import Any, Iterable, List, Optional, Sequence, Set, Tuple

from .models import (
    SLOT_CATEGORY_LABELS,
    PhotoCandidate,
    PhotoSelectionResult,
    PhotoSlot,
    SlotSelection,
)
from .scoring import GENERAL_PRIORITY, keyword_rank, matches_any, rank_candidates
from .urls import CDN_BASE, photo_reference, resolve_photo_urls


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Constants
# =============================================================================

# Keyword lists in priority order
EXTERIOR_KEYWORDS = (
    "front of structure",
    "exterior front",
    "front",
    "facade",
    "exterior",
    "aerial",
    "drone",
)
KITCHEN_KEYWORDS = ("kitchen", "breakfast")
ROOM_KEYWORDS = ("living", "family", "great room", "dining", "master", "bedroom")

SLOT_KEYWORDS = {
    PhotoSlot.MAIN: EXTERIOR_KEYWORDS,
    PhotoSlot.KITCHEN: KITCHEN_KEYWORDS,
    PhotoSlot.ROOM: ROOM_KEYWORDS,
}

# Minimum confidence (0-100) for the main slot to count as AI-selected
AI_SELECTION_CONFIDENCE = 70

# Below this confidence a filled slot is flagged as a possible mismatch
MISMATCH_CONFIDENCE = 50

MAX_SLOTS = len(PhotoSlot)


def _confidence_text(candidate: PhotoCandidate) -> str:
    if candidate.confidence is None:
        return "unscored"
    return f"{candidate.confidence:.0f}% confidence"


class PhotoSlotSelector:
    """
    Fills the main, kitchen and room slots for one property.

    Pipeline order:
    1. MAIN - Confident exterior, else any exterior, else best photo overall
    2. KITCHEN - Most confident kitchen/breakfast photo not yet claimed
    3. ROOM - Best-ranked living-area photo not yet claimed
    4. FLAG - Mark mismatches and collect missing categories
    """

    def __init__(
        self,
        ai_confidence: float = AI_SELECTION_CONFIDENCE,
        mismatch_confidence: float = MISMATCH_CONFIDENCE,
    ):
        """
        Initialize selector.

        Args:
            ai_confidence: Main-slot confidence needed to count as AI-selected
            mismatch_confidence: Confidence below which a slot is flagged
        """
        self.ai_confidence = ai_confidence
        self.mismatch_confidence = mismatch_confidence

    def is_mismatch(self, slot: PhotoSlot, candidate: PhotoCandidate) -> bool:
        """True when a photo is outside the slot's category or weakly classified."""
        if not matches_any(candidate.classification, SLOT_KEYWORDS[slot]):
            return True
        return (candidate.confidence or 0) < self.mismatch_confidence

    def _filled(
        self,
        slot: PhotoSlot,
        candidate: PhotoCandidate,
        is_ai_selected: bool,
        reason: str,
    ) -> SlotSelection:
        return SlotSelection(
            slot=slot,
            url=candidate.url,
            is_ai_selected=is_ai_selected,
            category_mismatch=self.is_mismatch(slot, candidate),
            reason=reason,
            classification=candidate.classification,
            confidence=candidate.confidence,
        )

    def select_main(self, candidates: Sequence[PhotoCandidate]) -> Tuple[Optional[SlotSelection], bool]:
        """
        Choose the main (exterior) photo.

        Returns:
            (selection or None when there are no candidates, exterior_missing)
        """
        if not candidates:
            return None, True

        exterior = [c for c in candidates if matches_any(c.classification, EXTERIOR_KEYWORDS)]
        confident = [c for c in exterior if (c.confidence or 0) >= self.ai_confidence]

        if confident:
            best = rank_candidates(confident, EXTERIOR_KEYWORDS)[0]
            reason = f"Exterior photo ({best.classification}, {_confidence_text(best)})"
            return self._filled(PhotoSlot.MAIN, best, True, reason), False

        if exterior:
            best = rank_candidates(exterior, EXTERIOR_KEYWORDS)[0]
            reason = (
                f"Exterior photo below {self.ai_confidence:.0f}% confidence "
                f"({best.classification}, {_confidence_text(best)})"
            )
            return self._filled(PhotoSlot.MAIN, best, False, reason), True

        best = rank_candidates(candidates, GENERAL_PRIORITY)[0]
        reason = "Highest scoring photo (no exterior detected)"
        return self._filled(PhotoSlot.MAIN, best, False, reason), True

    def select_kitchen(self, candidates: Sequence[PhotoCandidate]) -> Optional[SlotSelection]:
        kitchens = [c for c in candidates if matches_any(c.classification, KITCHEN_KEYWORDS)]
        if not kitchens:
            return None

        # max() keeps the first of equal confidences
        best = max(kitchens, key=lambda c: c.confidence or 0)
        reason = f"Kitchen photo ({best.classification}, {_confidence_text(best)})"
        return self._filled(PhotoSlot.KITCHEN, best, True, reason)

    def select_room(self, candidates: Sequence[PhotoCandidate]) -> Optional[SlotSelection]:
        rooms = [c for c in candidates if matches_any(c.classification, ROOM_KEYWORDS)]
        if not rooms:
            return None

        rooms.sort(key=lambda c: (keyword_rank(c.classification, ROOM_KEYWORDS), -(c.confidence or 0)))
        best = rooms[0]
        reason = f"Living area photo ({best.classification}, {_confidence_text(best)})"
        return self._filled(PhotoSlot.ROOM, best, True, reason)

    def select(
        self,
        candidates: Iterable[PhotoCandidate],
        slot_count: int = MAX_SLOTS,
        insights_available: bool = True,
    ) -> PhotoSelectionResult:
        """
        Assign candidates to slots.

        Args:
            candidates: Photos of one property, in provider order
            slot_count: How many slots to fill (1-3, in main/kitchen/room order)
            insights_available: Recorded on the result for the caller

        Returns:
            PhotoSelectionResult with no URL used twice

        Raises:
            ValueError: If slot_count is outside 1-3
        """
        if not 1 <= slot_count <= MAX_SLOTS:
            raise ValueError(f"slot_count must be between 1 and {MAX_SLOTS}: {slot_count}")

        candidates = list(candidates)
        claimed: Set[str] = set()
        missing: List[str] = []

        def unclaimed() -> List[PhotoCandidate]:
            return [c for c in candidates if c.url not in claimed]

        main, exterior_missing = self.select_main(candidates)
        if exterior_missing:
            missing.append(SLOT_CATEGORY_LABELS[PhotoSlot.MAIN])
        if main is not None:
            claimed.add(main.url)

        kitchen = None
        if slot_count >= 2:
            kitchen = self.select_kitchen(unclaimed())
            if kitchen is None:
                missing.append(SLOT_CATEGORY_LABELS[PhotoSlot.KITCHEN])
            else:
                claimed.add(kitchen.url)

        room = None
        if slot_count >= 3:
            room = self.select_room(unclaimed())
            if room is None:
                missing.append(SLOT_CATEGORY_LABELS[PhotoSlot.ROOM])
            else:
                claimed.add(room.url)

        if missing:
            logger.debug("Photo slots missing categories: %s", ", ".join(missing))

        return PhotoSelectionResult(
            main=main or SlotSelection(slot=PhotoSlot.MAIN, reason="No photos available"),
            kitchen=kitchen or SlotSelection(slot=PhotoSlot.KITCHEN, reason=_empty_reason(PhotoSlot.KITCHEN, slot_count)),
            room=room or SlotSelection(slot=PhotoSlot.ROOM, reason=_empty_reason(PhotoSlot.ROOM, slot_count)),
            missing_categories=tuple(missing),
            insights_available=insights_available,
        )


def _empty_reason(slot: PhotoSlot, slot_count: int) -> str:
    position = list(PhotoSlot).index(slot) + 1
    if position > slot_count:
        return "Slot not requested"
    return f"No {SLOT_CATEGORY_LABELS[slot].lower()} photo detected"


def select_slots(
    candidates: Iterable[PhotoCandidate],
    slot_count: int = MAX_SLOTS,
    insights_available: bool = True,
) -> PhotoSelectionResult:
    """
    Convenience function: fill report slots with the default thresholds.
    """
    return PhotoSlotSelector().select(
        candidates, slot_count=slot_count, insights_available=insights_available
    )


def select_top_photos(candidates: Iterable[PhotoCandidate], count: int) -> List[PhotoCandidate]:
    """The count best-scoring photos under the general priority list."""
    if count <= 0:
        return []
    return rank_candidates(candidates, GENERAL_PRIORITY)[:count]


def default_photos(photos: Iterable[Any], count: int, cdn_base: str = CDN_BASE) -> List[PhotoCandidate]:
    """Positional fallback: the first count photos, unscored."""
    if count <= 0:
        return []
    resolved = resolve_photo_urls((photo_reference(p) for p in photos), cdn_base)[:count]
    return [PhotoCandidate(url=url, index=index) for index, url in enumerate(resolved)]
