"""
Comparable pipeline

Normalises heterogeneous listing records from the MLS data provider into
canonical comparables, excludes rentals/leases, classifies listing status
and computes market statistics.
"""

from .models import (
    ADDRESS_UNAVAILABLE,
    CanonicalStatus,
    Comparable,
    Coordinates,
    MarketStatistic,
    MarketSummary,
)
from .eligibility import RentalExclusionFilter, is_excluded
from .status import extract_status, normalize_status
from .extractors import (
    FIELD_SPECS,
    FieldSpec,
    Metric,
    extract_address,
    extract_comparable,
    extract_coordinates,
    extract_lot_acres,
    extract_metric,
    extract_photos,
)
from .statistics import (
    MarketStatisticsEngine,
    StatisticMetric,
    calculate_median,
    calculate_statistic,
)
from .pipeline import (
    ComparablePipeline,
    ComparableSet,
    MarketReport,
    normalize_comparables,
    statistics_from_records,
)

__all__ = [
    # Models
    "ADDRESS_UNAVAILABLE",
    "CanonicalStatus",
    "Comparable",
    "Coordinates",
    "MarketStatistic",
    "MarketSummary",
    # Eligibility
    "RentalExclusionFilter",
    "is_excluded",
    # Status
    "extract_status",
    "normalize_status",
    # Extraction
    "FIELD_SPECS",
    "FieldSpec",
    "Metric",
    "extract_address",
    "extract_comparable",
    "extract_coordinates",
    "extract_lot_acres",
    "extract_metric",
    "extract_photos",
    # Statistics
    "MarketStatisticsEngine",
    "StatisticMetric",
    "calculate_median",
    "calculate_statistic",
    # Pipeline
    "ComparablePipeline",
    "ComparableSet",
    "MarketReport",
    "normalize_comparables",
    "statistics_from_records",
]

__version__ = "1.0"
