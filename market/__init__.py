"""
Market Comparables - Core Business Logic

This package provides the comparable-market pipeline used to build CMA
reports:
1. Eligibility (rental/lease exclusion)
2. Field Extraction (heterogeneous provider records -> Comparable)
3. Status Classification (raw status codes -> CanonicalStatus)
4. Statistics (range, average, median, price per sqft / acre)
5. Photo Selection (image-insight scoring, main/kitchen/room slots)
6. Insight Fetching (sequential, latest invocation wins)
"""

from .parsing import clean_text, get_path, parse_number

# Comparable pipeline
from .comparables import (
    ADDRESS_UNAVAILABLE,
    CanonicalStatus,
    Comparable,
    ComparablePipeline,
    ComparableSet,
    Coordinates,
    MarketReport,
    MarketStatistic,
    MarketStatisticsEngine,
    MarketSummary,
    Metric,
    RentalExclusionFilter,
    StatisticMetric,
    calculate_statistic,
    extract_comparable,
    extract_metric,
    extract_status,
    is_excluded,
    normalize_comparables,
    normalize_status,
)

# Photo selection
from .photos import (
    CDN_BASE,
    PhotoCandidate,
    PhotoSelectionResult,
    PhotoSlot,
    PhotoSlotSelector,
    SlotSelection,
    build_candidates,
    default_photos,
    score_candidate,
    select_slots,
    select_top_photos,
)

# Image insights
from .insights import (
    FetchToken,
    InsightLookup,
    PhotoInsightClient,
    PhotoInsightCoordinator,
    PropertyPhotoRequest,
    SyncGuard,
    SyncState,
    SyncStateError,
)

__all__ = [
    # Parsing
    "clean_text",
    "get_path",
    "parse_number",
    # Comparables
    "ADDRESS_UNAVAILABLE",
    "CanonicalStatus",
    "Comparable",
    "ComparablePipeline",
    "ComparableSet",
    "Coordinates",
    "MarketReport",
    "MarketStatistic",
    "MarketStatisticsEngine",
    "MarketSummary",
    "Metric",
    "RentalExclusionFilter",
    "StatisticMetric",
    "calculate_statistic",
    "extract_comparable",
    "extract_metric",
    "extract_status",
    "is_excluded",
    "normalize_comparables",
    "normalize_status",
    # Photos
    "CDN_BASE",
    "PhotoCandidate",
    "PhotoSelectionResult",
    "PhotoSlot",
    "PhotoSlotSelector",
    "SlotSelection",
    "build_candidates",
    "default_photos",
    "score_candidate",
    "select_slots",
    "select_top_photos",
    # Insights
    "FetchToken",
    "InsightLookup",
    "PhotoInsightClient",
    "PhotoInsightCoordinator",
    "PropertyPhotoRequest",
    "SyncGuard",
    "SyncState",
    "SyncStateError",
]

__version__ = "1.0"
