"""
Eligibility Filter for the comparable pipeline.

Excludes rental and lease listings before a record is ever extracted
into a Comparable. Applied once, as a gate, on raw records.

Checks, in order:
- type field exactly "lease", "rental" or "rent"
- transactionType / listingCategory containing a rental keyword
- any non-null leaseType
- property type / subtype (top level or under details) containing a
  rental keyword
- class containing "lease" or "rental"

Free-text fields (descriptions, remarks) are never consulted.
"""

import logging
from typing import Any, Iterable, List, Tuple

from market.parsing import get_path


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Constants
# =============================================================================

EXACT_RENTAL_TYPES = frozenset({"lease", "rental", "rent"})
RENTAL_KEYWORDS = ("lease", "rental", "rent")

# "rent" is left out for class values to keep "...Parent..." style names safe
CLASS_RENTAL_KEYWORDS = ("lease", "rental")

TYPE_PATH = "type"
TRANSACTION_PATHS = ("transactionType", "listingCategory")
LEASE_TYPE_PATH = "leaseType"
PROPERTY_TYPE_PATHS = (
    "propertyType",
    "propertySubType",
    "details.propertyType",
    "details.propertySubType",
)
CLASS_PATH = "class"


def _lower(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def _contains_keyword(value: Any, keywords: Tuple[str, ...]) -> bool:
    text = _lower(value)
    return bool(text) and any(keyword in text for keyword in keywords)


def is_excluded(record: Any) -> bool:
    """
    Return True if the raw record is a rental/lease listing.

    Total over arbitrary input: non-mapping records are not excluded.
    """
    if _lower(get_path(record, TYPE_PATH)) in EXACT_RENTAL_TYPES:
        return True

    for path in TRANSACTION_PATHS:
        if _contains_keyword(get_path(record, path), RENTAL_KEYWORDS):
            return True

    # A dedicated lease type is only populated on leases, whatever its value
    if get_path(record, LEASE_TYPE_PATH) is not None:
        return True

    for path in PROPERTY_TYPE_PATHS:
        if _contains_keyword(get_path(record, path), RENTAL_KEYWORDS):
            return True

    if _contains_keyword(get_path(record, CLASS_PATH), CLASS_RENTAL_KEYWORDS):
        return True

    return False


class RentalExclusionFilter:
    """
    Applies the rental/lease gate to a batch of raw records.

    Keeps input order. Never mutates the records.
    """

    def filter_records(self, records: Iterable[Any]) -> Tuple[List[Any], int]:
        """
        Split records into eligible ones and a count of excluded ones.

        Args:
            records: Raw provider records

        Returns:
            Tuple of:
            - List of eligible records
            - Number of records excluded as rentals/leases
        """
        eligible = []
        excluded = 0

        for record in records:
            if is_excluded(record):
                excluded += 1
                continue
            eligible.append(record)

        if excluded:
            logger.info("Excluded %d rental/lease records", excluded)

        return eligible, excluded

    def exclude_rentals(self, records: Iterable[Any]) -> List[Any]:
        """Return only the eligible records."""
        eligible, _ = self.filter_records(records)
        return eligible
