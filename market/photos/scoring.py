"""
Photo scoring.

A candidate's score is the sum of:
- Qualitative quality bucket (excellent 100 ... poor 0)
- Quantitative quality (0-100) x 0.5
- Keyword bonus: (len(priority) - rank) x 15 for the first matching keyword
- Confidence (0-100) x 0.2

Ties keep input order.
"""

from typing import Iterable, List, Optional, Sequence

from .models import PhotoCandidate


# =============================================================================
# Configuration Constants
# =============================================================================

QUALITY_LABEL_BONUS = {
    "excellent": 100,
    "above average": 75,
    "average": 50,
    "below average": 25,
    "poor": 0,
}

QUANTITATIVE_QUALITY_WEIGHT = 0.5
CONFIDENCE_WEIGHT = 0.2
KEYWORD_RANK_STEP = 15

# Used when a photo carries no quality metadata at all
DEFAULT_QUALITY = 50

# Priority order for general "best photos" ranking
GENERAL_PRIORITY = (
    "front of structure",
    "exterior front",
    "front",
    "exterior",
    "kitchen",
    "living",
    "pool",
    "patio",
    "backyard",
    "bedroom",
    "bathroom",
)


def keyword_rank(label: Optional[str], keywords: Sequence[str]) -> Optional[int]:
    """Position of the first keyword contained in label, or None."""
    if not label:
        return None
    for rank, keyword in enumerate(keywords):
        if keyword in label:
            return rank
    return None


def matches_any(label: Optional[str], keywords: Sequence[str]) -> bool:
    return keyword_rank(label, keywords) is not None


def quality_points(candidate: PhotoCandidate) -> float:
    """Qualitative bucket plus weighted quantitative quality."""
    if candidate.quality is None and candidate.quality_label is None:
        return DEFAULT_QUALITY * QUANTITATIVE_QUALITY_WEIGHT

    points = 0.0
    if candidate.quality_label is not None:
        points += QUALITY_LABEL_BONUS.get(candidate.quality_label, 0)
    if candidate.quality is not None:
        points += candidate.quality * QUANTITATIVE_QUALITY_WEIGHT
    return points


def score_candidate(
    candidate: PhotoCandidate,
    priority: Sequence[str] = GENERAL_PRIORITY,
) -> float:
    """
    Score a candidate for ranking within a category.

    Args:
        candidate: Photo to score
        priority: Keywords in priority order; earlier matches earn more

    Returns:
        Non-negative score (higher is better)
    """
    score = quality_points(candidate)

    rank = keyword_rank(candidate.classification, priority)
    if rank is not None:
        score += (len(priority) - rank) * KEYWORD_RANK_STEP

    if candidate.confidence is not None:
        score += candidate.confidence * CONFIDENCE_WEIGHT

    return score


def rank_candidates(
    candidates: Iterable[PhotoCandidate],
    priority: Sequence[str] = GENERAL_PRIORITY,
) -> List[PhotoCandidate]:
    """Candidates best-first; sorted() is stable so ties keep input order."""
    return sorted(candidates, key=lambda c: score_candidate(c, priority), reverse=True)
