"""
Data models for the comparable pipeline.

Defines the canonical comparable record, its listing status and the
aggregate market statistics computed over a set of comparables.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


# Sentinel shown when no address can be recovered from a record.
ADDRESS_UNAVAILABLE = "Address unavailable"


class CanonicalStatus(Enum):
    """
    Normalised listing status.

    Exactly one value per comparable. Raw provider strings and short
    codes never leave the Status Classifier.
    """
    ACTIVE = "Active"
    PENDING = "Pending"
    CLOSED = "Closed"
    LEASING = "Leasing"
    WITHDRAWN = "Withdrawn"
    EXPIRED = "Expired"
    UNKNOWN = "Unknown"

    @classmethod
    def from_string(cls, value: str) -> Optional["CanonicalStatus"]:
        """Convert an enum value string back to CanonicalStatus, case-insensitive."""
        if not isinstance(value, str):
            return None
        normalised = value.strip().lower()
        for member in cls:
            if member.value.lower() == normalised:
                return member
        return None


@dataclass(frozen=True)
class Coordinates:
    """Latitude/longitude pair in decimal degrees."""
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")

    def to_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class Comparable:
    """
    A comparable listing reduced to the canonical schema.

    Any numeric field may be None when the raw record did not carry a
    valid value. None is never replaced with 0 or "".
    """
    address: str
    status: CanonicalStatus

    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    mls_number: Optional[str] = None

    # Pricing (USD)
    list_price: Optional[float] = None
    sold_price: Optional[float] = None

    # Size
    sqft: Optional[float] = None
    lot_acres: Optional[float] = None

    # Rooms
    beds: Optional[int] = None
    baths: Optional[float] = None

    days_on_market: Optional[int] = None
    coordinates: Optional[Coordinates] = None
    photos: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def price(self) -> Optional[float]:
        """Sold price when the listing closed, otherwise the list price."""
        if self.sold_price is not None:
            return self.sold_price
        return self.list_price

    @property
    def price_per_sqft(self) -> Optional[float]:
        """Price divided by living area, for this comparable alone."""
        price = self.price
        if price is None or not self.sqft:
            return None
        return price / self.sqft

    @property
    def price_per_acre(self) -> Optional[float]:
        """Price divided by lot size in acres, for this comparable alone."""
        price = self.price
        if price is None or not self.lot_acres:
            return None
        return price / self.lot_acres

    @property
    def primary_photo(self) -> Optional[str]:
        return self.photos[0] if self.photos else None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip": self.zip_code,
            "mls_number": self.mls_number,
            "list_price": self.list_price,
            "sold_price": self.sold_price,
            "sqft": self.sqft,
            "lot_acres": self.lot_acres,
            "beds": self.beds,
            "baths": self.baths,
            "days_on_market": self.days_on_market,
            "status": self.status.value,
            "coordinates": self.coordinates.to_dict() if self.coordinates else None,
            "photos": list(self.photos),
        }


@dataclass(frozen=True)
class MarketStatistic:
    """
    Range, mean and median of one metric across a set of comparables.

    An empty input set yields the zero-filled statistic (count == 0),
    never NaN.
    """
    min: float
    max: float
    average: float
    median: float
    count: int

    @classmethod
    def empty(cls) -> "MarketStatistic":
        return cls(min=0.0, max=0.0, average=0.0, median=0.0, count=0)

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    def to_dict(self) -> dict:
        return {
            "min": self.min,
            "max": self.max,
            "average": self.average,
            "median": self.median,
            "count": self.count,
        }


@dataclass(frozen=True)
class MarketSummary:
    """Headline statistics for a comparable set, as shown on a CMA."""
    count: int
    price: MarketStatistic
    price_per_sqft: MarketStatistic
    price_per_acre: MarketStatistic
    days_on_market: MarketStatistic

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "price": self.price.to_dict(),
            "price_per_sqft": self.price_per_sqft.to_dict(),
            "price_per_acre": self.price_per_acre.to_dict(),
            "days_on_market": self.days_on_market.to_dict(),
        }


def is_finite_number(value) -> bool:
    """True for int/float values that are not NaN or infinite (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)
