"""
Statistics Aggregator for the comparable pipeline.

Implements:
- Per-metric range, average and median over a comparable set
- Derived metrics (price per sqft, price per acre) computed per comparable
  first, then aggregated
- Sanity bounds on price per acre to reject bad lot-size data
- A headline market summary for CMA reports
"""

from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .models import (
    CanonicalStatus,
    Comparable,
    MarketStatistic,
    MarketSummary,
    is_finite_number,
)


# =============================================================================
# Configuration Constants
# =============================================================================

# Lots smaller than this make price per acre meaningless
MIN_LOT_ACRES_FOR_PRICE_PER_ACRE = 0.05

# Plausible price-per-acre range (USD)
MIN_PRICE_PER_ACRE = 1_000
MAX_PRICE_PER_ACRE = 50_000_000


class StatisticMetric(Enum):
    """Metrics the aggregator can summarise."""
    PRICE = "price"
    LIST_PRICE = "list_price"
    SOLD_PRICE = "sold_price"
    SQFT = "sqft"
    LOT_ACRES = "lot_acres"
    DAYS_ON_MARKET = "days_on_market"
    BEDS = "beds"
    BATHS = "baths"
    PRICE_PER_SQFT = "price_per_sqft"
    PRICE_PER_ACRE = "price_per_acre"

    @classmethod
    def from_string(cls, value: str) -> Optional["StatisticMetric"]:
        """Convert string to StatisticMetric, case-insensitive."""
        if not isinstance(value, str):
            return None
        normalised = value.lower().strip().replace("-", "_")
        for member in cls:
            if member.value == normalised:
                return member
        return None


def bounded_price_per_acre(comp: Comparable) -> Optional[float]:
    """
    Price per acre for one comparable, or None if it fails the sanity bounds.

    Rejects tiny lots (< 0.05 acres) and ratios outside the plausible range.
    """
    if comp.lot_acres is None or comp.lot_acres < MIN_LOT_ACRES_FOR_PRICE_PER_ACRE:
        return None
    value = comp.price_per_acre
    if value is None:
        return None
    if not MIN_PRICE_PER_ACRE <= value <= MAX_PRICE_PER_ACRE:
        return None
    return value


_METRIC_READERS: Dict[StatisticMetric, Callable[[Comparable], Optional[float]]] = {
    StatisticMetric.PRICE: lambda c: c.price,
    StatisticMetric.LIST_PRICE: lambda c: c.list_price,
    StatisticMetric.SOLD_PRICE: lambda c: c.sold_price,
    StatisticMetric.SQFT: lambda c: c.sqft,
    StatisticMetric.LOT_ACRES: lambda c: c.lot_acres,
    StatisticMetric.DAYS_ON_MARKET: lambda c: c.days_on_market,
    StatisticMetric.BEDS: lambda c: c.beds,
    StatisticMetric.BATHS: lambda c: c.baths,
    StatisticMetric.PRICE_PER_SQFT: lambda c: c.price_per_sqft,
    StatisticMetric.PRICE_PER_ACRE: bounded_price_per_acre,
}


def metric_values(
    comparables: Iterable[Comparable],
    metric: StatisticMetric,
) -> List[float]:
    """Per-comparable values of a metric, with None and non-finite values dropped."""
    reader = _METRIC_READERS[metric]
    values = []
    for comp in comparables:
        value = reader(comp)
        if is_finite_number(value):
            values.append(float(value))
    return values


def calculate_median(values: Sequence[float]) -> float:
    """
    Median of a list of numbers.

    Odd count: middle element. Even count: mean of the two middle elements.
    Returns 0 for an empty list.
    """
    if not values:
        return 0.0

    ordered = sorted(values)
    n = len(ordered)

    if n % 2 == 1:
        return float(ordered[n // 2])

    mid = n // 2
    return float(ordered[mid - 1] + ordered[mid]) / 2


def summarize_values(values: Sequence[float]) -> MarketStatistic:
    """Build a MarketStatistic from raw values; empty input gives the zero statistic."""
    if not values:
        return MarketStatistic.empty()

    ordered = sorted(values)
    return MarketStatistic(
        min=ordered[0],
        max=ordered[-1],
        average=sum(ordered) / len(ordered),
        median=calculate_median(ordered),
        count=len(ordered),
    )


def calculate_statistic(
    comparables: Iterable[Comparable],
    metric: StatisticMetric,
) -> MarketStatistic:
    """
    Compute range, average and median of one metric.

    Args:
        comparables: Canonical comparables (already eligibility-filtered)
        metric: Metric to summarise

    Returns:
        MarketStatistic (zero-filled when no comparable has the metric)
    """
    return summarize_values(metric_values(comparables, metric))


class MarketStatisticsEngine:
    """
    Market statistics over a comparable set.

    Pipeline order:
    1. SELECT - Optionally restrict to given canonical statuses
    2. EXTRACT - Read each metric per comparable
    3. CLEAN - Drop missing values and out-of-bounds price per acre
    4. AGGREGATE - Range, mean, median
    """

    def __init__(self, statuses: Optional[Iterable[CanonicalStatus]] = None):
        """
        Initialize statistics engine.

        Args:
            statuses: Only comparables with these statuses are counted
                (default: all statuses)
        """
        self._statuses = frozenset(statuses) if statuses is not None else None

    def select(self, comparables: Iterable[Comparable]) -> List[Comparable]:
        """Comparables that pass the status restriction."""
        if self._statuses is None:
            return list(comparables)
        return [c for c in comparables if c.status in self._statuses]

    def calculate(
        self,
        comparables: Iterable[Comparable],
        metric: StatisticMetric,
    ) -> MarketStatistic:
        return calculate_statistic(self.select(comparables), metric)

    def calculate_many(
        self,
        comparables: Iterable[Comparable],
        metrics: Iterable[StatisticMetric],
    ) -> Dict[StatisticMetric, MarketStatistic]:
        selected = self.select(comparables)
        return {metric: calculate_statistic(selected, metric) for metric in metrics}

    def summarize(self, comparables: Iterable[Comparable]) -> MarketSummary:
        """
        Headline statistics: price, price/sqft, price/acre, days on market.

        Args:
            comparables: Canonical comparables

        Returns:
            MarketSummary with count of selected comparables
        """
        selected = self.select(comparables)
        return MarketSummary(
            count=len(selected),
            price=calculate_statistic(selected, StatisticMetric.PRICE),
            price_per_sqft=calculate_statistic(selected, StatisticMetric.PRICE_PER_SQFT),
            price_per_acre=calculate_statistic(selected, StatisticMetric.PRICE_PER_ACRE),
            days_on_market=calculate_statistic(selected, StatisticMetric.DAYS_ON_MARKET),
        )
