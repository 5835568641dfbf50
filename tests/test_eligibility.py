"""
Tests for the Eligibility Filter (rental/lease exclusion).

Verifies:
- Exact type match and structured-field keyword matches exclude
- Any non-null lease type excludes
- Free-text descriptions are never consulted
- The gate keeps input order and counts exclusions
"""

from pathlib import Path
import sys

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from market.comparables import RentalExclusionFilter, is_excluded


# =============================================================================
# Test: Single Record Predicate
# =============================================================================

class TestIsExcluded:
    """Tests for is_excluded."""

    @pytest.mark.parametrize("record", [
        {"type": "Lease"},
        {"type": " rental "},
        {"type": "RENT"},
        {"transactionType": "For Lease"},
        {"listingCategory": "Residential Rental"},
        {"leaseType": "Gross"},
        {"leaseType": ""},
        {"propertyType": "Residential Lease"},
        {"propertySubType": "Rental Apartment"},
        {"details": {"propertySubType": "Single Family Rental"}},
        {"details": {"propertyType": "Lease"}},
        {"class": "ResidentialLease"},
    ])
    def test_rental_records_excluded(self, record):
        assert is_excluded(record) is True

    @pytest.mark.parametrize("record", [
        {"type": "Sale", "description": "Great rent potential, currently leased"},
        {"type": "Sale", "remarks": "rental income"},
        {"propertyType": "Residential", "class": "ResidentialProperty"},
        {"leaseType": None},
        {"class": "Parent Company Owned"},
        {},
    ])
    def test_sale_records_kept(self, record):
        assert is_excluded(record) is False

    def test_non_mapping_not_excluded(self):
        """Total over arbitrary input."""
        assert is_excluded("Lease") is False
        assert is_excluded(None) is False

    def test_does_not_mutate(self):
        record = {"type": "Lease", "propertyType": "Condo"}
        snapshot = dict(record)
        is_excluded(record)
        assert record == snapshot


# =============================================================================
# Test: Batch Gate
# =============================================================================

class TestRentalExclusionFilter:
    """Tests for the batch filter."""

    def test_filter_records_counts_exclusions(self):
        records = [
            {"mlsNumber": "1", "type": "Sale"},
            {"mlsNumber": "2", "type": "Lease"},
            {"mlsNumber": "3"},
            {"mlsNumber": "4", "leaseType": "Net"},
        ]
        eligible, excluded = RentalExclusionFilter().filter_records(records)

        assert [r["mlsNumber"] for r in eligible] == ["1", "3"]
        assert excluded == 2

    def test_idempotent(self):
        records = [{"type": "Sale"}, {"type": "Rental"}]
        gate = RentalExclusionFilter()
        once = gate.exclude_rentals(records)
        assert gate.exclude_rentals(once) == once
