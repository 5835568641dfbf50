"""
Comparable pipeline: raw provider records to canonical comparables.

raw records -> Eligibility Filter -> Field Extractor (+ Status Classifier)
            -> Statistics Aggregator
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from market.photos.urls import CDN_BASE

from .eligibility import RentalExclusionFilter
from .extractors import extract_comparable
from .models import CanonicalStatus, Comparable, MarketStatistic, MarketSummary
from .statistics import MarketStatisticsEngine, StatisticMetric


logger = logging.getLogger(__name__)


@dataclass
class ComparableSet:
    """
    Result of running raw records through the pipeline.

    Only eligible, well-formed records become comparables.
    """
    comparables: List[Comparable]

    # Selection metadata
    input_count: int = 0
    excluded_count: int = 0  # Rentals/leases
    rejected_count: int = 0  # Not a record at all (non-mapping input)

    @property
    def comparable_count(self) -> int:
        return len(self.comparables)

    def with_status(self, *statuses: CanonicalStatus) -> List[Comparable]:
        wanted = set(statuses)
        return [c for c in self.comparables if c.status in wanted]

    def to_dict(self) -> dict:
        return {
            "comparables": [c.to_dict() for c in self.comparables],
            "input_count": self.input_count,
            "excluded_count": self.excluded_count,
            "rejected_count": self.rejected_count,
        }


@dataclass
class MarketReport:
    """Comparables plus their headline statistics and any requested extras."""
    comparable_set: ComparableSet
    summary: MarketSummary
    statistics: Dict[StatisticMetric, MarketStatistic] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            **self.comparable_set.to_dict(),
            "summary": self.summary.to_dict(),
            "statistics": {
                metric.value: stat.to_dict() for metric, stat in self.statistics.items()
            },
        }


class ComparablePipeline:
    """
    Normalises a batch of raw listing records.

    Pipeline order:
    1. GATE - Drop rental/lease records
    2. EXTRACT - Reduce each remaining record to a Comparable
    """

    def __init__(self, cdn_base: str = CDN_BASE):
        """
        Initialize pipeline.

        Args:
            cdn_base: Base URL for provider-relative photo paths
        """
        self._cdn_base = cdn_base
        self._filter = RentalExclusionFilter()

    def process(
        self,
        records: Iterable[Any],
        transaction: Optional[Mapping] = None,
    ) -> ComparableSet:
        """
        Run records through the eligibility gate and the field extractor.

        Args:
            records: Raw provider records
            transaction: Enclosing transaction, used only as an address fallback

        Returns:
            ComparableSet in input order
        """
        records = list(records or [])
        well_formed = [r for r in records if isinstance(r, Mapping)]
        rejected = len(records) - len(well_formed)
        if rejected:
            logger.warning("Skipped %d comparable records that are not objects", rejected)

        eligible, excluded = self._filter.filter_records(well_formed)

        comparables = [
            extract_comparable(record, transaction=transaction, cdn_base=self._cdn_base)
            for record in eligible
        ]

        return ComparableSet(
            comparables=comparables,
            input_count=len(records),
            excluded_count=excluded,
            rejected_count=rejected,
        )

    def build_report(
        self,
        records: Iterable[Any],
        metrics: Iterable[StatisticMetric] = (),
        statuses: Optional[Iterable[CanonicalStatus]] = None,
    ) -> MarketReport:
        """
        Normalise records and compute market statistics in one step.

        Args:
            records: Raw provider records
            metrics: Extra metrics to compute beyond the headline summary
            statuses: Restrict statistics to these statuses (e.g. closed sales)

        Returns:
            MarketReport
        """
        comparable_set = self.process(records)
        engine = MarketStatisticsEngine(statuses=statuses)
        return MarketReport(
            comparable_set=comparable_set,
            summary=engine.summarize(comparable_set.comparables),
            statistics=engine.calculate_many(comparable_set.comparables, metrics),
        )


def normalize_comparables(records: Iterable[Any], cdn_base: str = CDN_BASE) -> List[Comparable]:
    """
    Convenience function: eligible raw records as canonical comparables.
    """
    return ComparablePipeline(cdn_base=cdn_base).process(records).comparables


def statistics_from_records(
    records: Iterable[Any],
    metric: StatisticMetric,
    statuses: Optional[Iterable[CanonicalStatus]] = None,
) -> MarketStatistic:
    """Compute one metric straight from raw records (rentals excluded)."""
    comparables = ComparablePipeline().process(records).comparables
    return MarketStatisticsEngine(statuses=statuses).calculate(comparables, metric)
