"""
Builds PhotoCandidates from a property's photo list and image insights.

Insight payloads come in two shapes depending on the endpoint:

    {"classification": {"imageOf": "Kitchen", "prediction": 0.93},
     "quality": {"qualitative": "excellent", "quantitative": 4.2}}

    {"ImageInsights": {"Classification": {"ImageOf": "Kitchen", "Confidence": 93},
                       "Quality": {"Score": 80}}}

Both are read into the same 0-100 confidence/quality scale.
"""

import re
from collections.abc import Mapping
from typing import Any, List, Optional, Sequence

from market.parsing import clean_text, get_path, parse_number

from .models import PhotoCandidate
from .urls import CDN_BASE, photo_reference, resolve_photo_url


CLASSIFICATION_PATHS = (
    "classification.imageOf",
    "imageInsights.classification.imageOf",
    "ImageInsights.Classification.ImageOf",
    "imageInsights.room",
    "imageOf",
    "room",
)
CONFIDENCE_PATHS = (
    "classification.prediction",
    "classification.confidence",
    "imageInsights.classification.confidence",
    "imageInsights.classification.prediction",
    "ImageInsights.Classification.Confidence",
    "confidence",
    "prediction",
)
QUALITY_PATHS = (
    "quality.quantitative",
    "quality.score",
    "imageInsights.quality.score",
    "ImageInsights.Quality.Score",
    "qualityScore",
)
QUALITY_LABEL_PATHS = (
    "quality.qualitative",
    "imageInsights.quality.qualitative",
    "ImageInsights.Quality.Qualitative",
)

_LABEL_SEPARATOR_RE = re.compile(r"[\s_\-]+")


def normalize_label(value: Any) -> Optional[str]:
    """Lower-case a classification or quality label with "_"/"-" read as spaces."""
    text = clean_text(value)
    if text is None:
        return None
    return _LABEL_SEPARATOR_RE.sub(" ", text.lower()).strip() or None


def normalize_confidence(value: Any) -> Optional[float]:
    """Read a confidence given as 0-1 or 0-100 onto the 0-100 scale."""
    number = parse_number(value)
    if number is None or number < 0:
        return None
    if number <= 1:
        return number * 100
    if number <= 100:
        return number
    return None


def normalize_quality(value: Any) -> Optional[float]:
    """Read a quality score given as 0-1, 0-10 or 0-100 onto the 0-100 scale."""
    number = parse_number(value)
    if number is None or number < 0:
        return None
    if number <= 1:
        return number * 100
    if number <= 10:
        return number * 10
    if number <= 100:
        return number
    return None


def _first(sources: Sequence[Mapping], paths, reader) -> Optional[Any]:
    for source in sources:
        for path in paths:
            value = reader(get_path(source, path))
            if value is not None:
                return value
    return None


def _classification(sources: Sequence[Mapping]) -> Optional[str]:
    for source in sources:
        # Flat payloads carry the label directly
        if isinstance(source.get("classification"), str):
            label = normalize_label(source["classification"])
            if label:
                return label
    return _first(sources, CLASSIFICATION_PATHS, normalize_label)


def _quality(sources: Sequence[Mapping]) -> Optional[float]:
    for source in sources:
        raw = source.get("quality")
        if raw is not None and not isinstance(raw, (Mapping, str)):
            quality = normalize_quality(raw)
            if quality is not None:
                return quality
    return _first(sources, QUALITY_PATHS, normalize_quality)


def _quality_label(sources: Sequence[Mapping]) -> Optional[str]:
    for source in sources:
        if isinstance(source.get("quality"), str):
            label = normalize_label(source["quality"])
            if label:
                return label
    return _first(sources, QUALITY_LABEL_PATHS, normalize_label)


def build_candidate(
    photo: Any,
    index: int,
    insight: Optional[Mapping] = None,
    cdn_base: str = CDN_BASE,
) -> Optional[PhotoCandidate]:
    """
    Build one candidate from a photo entry and its (optional) insight entry.

    Returns None when neither carries a usable URL.
    """
    sources = [s for s in (insight, photo) if isinstance(s, Mapping)]

    url = resolve_photo_url(photo_reference(photo), cdn_base)
    if url is None and insight is not None:
        url = resolve_photo_url(photo_reference(insight), cdn_base)
    if url is None:
        return None

    return PhotoCandidate(
        url=url,
        index=index,
        classification=_classification(sources),
        confidence=_first(sources, CONFIDENCE_PATHS, normalize_confidence),
        quality=_quality(sources),
        quality_label=_quality_label(sources),
    )


def build_candidates(
    photos: Optional[Sequence[Any]],
    insights: Optional[Sequence[Any]] = None,
    cdn_base: str = CDN_BASE,
) -> List[PhotoCandidate]:
    """
    Pair photos with insight entries by position and build candidates.

    Args:
        photos: Photo URLs or photo objects (may embed their own insights)
        insights: Insight entries in the same order as photos; an entry may
            carry its own URL when the photo list is shorter
        cdn_base: Base URL for provider-relative photo paths

    Returns:
        Candidates in input order, without empty or duplicate URLs.
    """
    photos = list(photos or [])
    insights = list(insights or [])

    candidates = []
    seen = set()
    for index in range(max(len(photos), len(insights))):
        photo = photos[index] if index < len(photos) else None
        insight = insights[index] if index < len(insights) else None
        if not isinstance(insight, Mapping):
            insight = None

        candidate = build_candidate(photo, index, insight, cdn_base)
        if candidate is None or candidate.url in seen:
            continue
        seen.add(candidate.url)
        candidates.append(candidate)

    return candidates
