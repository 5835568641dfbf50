"""
Field Extractor for the comparable pipeline.

Converts one raw, untyped listing record into canonical typed fields.
Each metric is described by a FieldSpec row: an ordered list of candidate
field paths, a parser and a validator. The first candidate that is present,
parses and validates wins; otherwise the metric is None, never 0.

Lot size, address, coordinates and photos need more than a lookup table
and have their own extraction functions below.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from market.parsing import (
    clean_text,
    get_path,
    is_non_negative,
    is_positive,
    parse_number,
)
from market.photos.urls import CDN_BASE, photo_reference, resolve_photo_urls

from .models import ADDRESS_UNAVAILABLE, Comparable, Coordinates
from .status import extract_status


# =============================================================================
# Configuration Constants
# =============================================================================

SQFT_PER_ACRE = 43_560

# Unlabelled lot areas above this are assumed to be square feet
AMBIGUOUS_LOT_SQFT_THRESHOLD = 100


# =============================================================================
# Declarative Metric Table
# =============================================================================

class Metric(Enum):
    """Numeric fields the extractor can recover from a raw record."""
    LIST_PRICE = "list_price"
    SOLD_PRICE = "sold_price"
    PRICE = "price"
    SQFT = "sqft"
    DAYS_ON_MARKET = "days_on_market"
    BEDS = "beds"
    BATHS = "baths"
    LOT_ACRES = "lot_acres"


@dataclass(frozen=True)
class FieldSpec:
    """Candidate paths, parser, validator and optional final conversion for one metric."""
    paths: Tuple[str, ...]
    parse: Callable[[Any], Optional[float]]
    validate: Callable[[float], bool]
    convert: Optional[Callable[[float], Any]] = None

    def extract(self, record: Any) -> Optional[float]:
        for path in self.paths:
            value = get_path(record, path)
            if value is None:
                continue
            parsed = self.parse(value)
            if parsed is None or not self.validate(parsed):
                continue
            # Validation sees the unconverted value ("-0.5" is not a valid 0)
            return self.convert(parsed) if self.convert else parsed
        return None


SOLD_PRICE_PATHS = ("soldPrice", "closePrice", "ClosePrice", "rawData.soldPrice")
LIST_PRICE_PATHS = ("listPrice", "ListPrice", "price", "originalPrice", "rawData.listPrice")

FIELD_SPECS: Dict[Metric, FieldSpec] = {
    Metric.SOLD_PRICE: FieldSpec(SOLD_PRICE_PATHS, parse_number, is_positive),
    Metric.LIST_PRICE: FieldSpec(LIST_PRICE_PATHS, parse_number, is_positive),
    Metric.PRICE: FieldSpec(
        SOLD_PRICE_PATHS + ("price", "listPrice", "ListPrice"),
        parse_number,
        is_positive,
    ),
    Metric.SQFT: FieldSpec(
        (
            "sqft", "livingArea", "LivingArea", "squareFeet", "SquareFeet",
            "sqFt", "buildingAreaTotal", "BuildingAreaTotal", "size",
            "details.sqft", "rawData.details.sqft",
        ),
        parse_number,
        is_positive,
    ),
    Metric.DAYS_ON_MARKET: FieldSpec(
        (
            "simpleDaysOnMarket", "daysOnMarket", "dom", "DOM", "cumulativeDom",
            "rawData.simpleDaysOnMarket", "rawData.daysOnMarket",
        ),
        parse_number,
        is_non_negative,
        int,
    ),
    Metric.BEDS: FieldSpec(
        (
            "beds", "bedrooms", "bedroomsTotal", "BedroomsTotal", "numBedrooms",
            "details.numBedrooms", "rawData.details.numBedrooms",
        ),
        parse_number,
        is_non_negative,
        int,
    ),
    Metric.BATHS: FieldSpec(
        (
            "baths", "bathrooms", "bathroomsTotalInteger", "BathroomsTotalInteger",
            "bathroomsTotal", "numBathrooms", "details.numBathrooms",
            "rawData.details.numBathrooms",
        ),
        parse_number,
        is_non_negative,
    ),
}


def extract_metric(record: Any, metric: Metric) -> Optional[float]:
    """
    Extract one canonical metric from a raw record.

    Args:
        record: Raw provider record
        metric: Metric to extract

    Returns:
        The first valid value among the metric's candidate fields, or None.
    """
    if metric is Metric.LOT_ACRES:
        return extract_lot_acres(record)
    return FIELD_SPECS[metric].extract(record)


# =============================================================================
# Lot Size
# =============================================================================

LOT_ACRES_PATHS = ("lotSizeAcres", "lotAcres", "acres")
LOT_NESTED_ACRES_PATH = "lot.acres"
LOT_SQFT_PATHS = ("lotSizeSquareFeet", "lotSizeSqFt", "lotSquareFeet")
LOT_NESTED_SQFT_PATH = "lot.squareFeet"
LOT_AREA_PATH = "lotSizeArea"
LOT_UNIT_PATHS = ("lotSizeUnits", "lotSizeUnit")
LOT_TEXT_PATHS = ("lotSize", "details.lotSize", "lot.size")

_ACRE_UNIT_RE = re.compile(r"acre|\bac\b", re.IGNORECASE)
_SQFT_UNIT_RE = re.compile(
    r"sq\.?\s*f(?:ee)?t|square\s*f(?:ee|oo)t|\bsf\b|sqft", re.IGNORECASE
)

# First number in a lot description and the unit written directly after it
_LOT_QUANTITY_RE = re.compile(
    r"(\d[\d,]*\.?\d*|\.\d+)\s*"
    r"(acres?\b|ac\b|sq\.?\s*f(?:ee)?t|square\s*f(?:ee|oo)t|sf\b)?",
    re.IGNORECASE,
)


def _lot_unit(text: Optional[str]) -> Optional[str]:
    """Return "acres", "sqft" or None for a unit label or lot description."""
    if not text:
        return None
    if _ACRE_UNIT_RE.search(text):
        return "acres"
    if _SQFT_UNIT_RE.search(text):
        return "sqft"
    return None


def _acres_from_magnitude(value: float) -> float:
    if value > AMBIGUOUS_LOT_SQFT_THRESHOLD:
        return value / SQFT_PER_ACRE
    return value


def _to_acres(value: float, unit: Optional[str]) -> float:
    if unit == "acres":
        return value
    if unit == "sqft":
        return value / SQFT_PER_ACRE
    return _acres_from_magnitude(value)


def _first_positive(record: Any, paths: Tuple[str, ...]) -> Optional[float]:
    return FieldSpec(paths, parse_number, is_positive).extract(record)


def _parse_lot_text(value: Any) -> Optional[float]:
    """Parse a free-form lot size ("0.52 Acres", "12,197 sqft", 8500) to acres."""
    if isinstance(value, str):
        text = clean_text(value)
        if text is None:
            return None
        match = _LOT_QUANTITY_RE.search(text)
        if not match:
            return None
        number = parse_number(match.group(1))
        # Only the unit written next to the number applies
        unit = _lot_unit(match.group(2))
    else:
        number = parse_number(value)
        unit = None

    if number is None or number <= 0:
        return None
    return _to_acres(number, unit)


def extract_lot_acres(record: Any) -> Optional[float]:
    """
    Normalise lot size to acres.

    Priority:
    1. Direct acres field
    2. Nested lot.acres
    3. Direct square-feet field (/ 43,560)
    4. Nested lot.squareFeet (/ 43,560)
    5. Ambiguous lotSizeArea: explicit unit if given, else > 100 means sqft
    6. Free-form lot size string with optional unit keyword

    Returns:
        Lot size in acres, or None if no field yields a positive value.
    """
    acres = _first_positive(record, LOT_ACRES_PATHS)
    if acres is not None:
        return acres

    acres = _first_positive(record, (LOT_NESTED_ACRES_PATH,))
    if acres is not None:
        return acres

    square_feet = _first_positive(record, LOT_SQFT_PATHS)
    if square_feet is not None:
        return square_feet / SQFT_PER_ACRE

    square_feet = _first_positive(record, (LOT_NESTED_SQFT_PATH,))
    if square_feet is not None:
        return square_feet / SQFT_PER_ACRE

    area = _first_positive(record, (LOT_AREA_PATH,))
    if area is not None:
        unit = None
        for path in LOT_UNIT_PATHS:
            unit = _lot_unit(clean_text(get_path(record, path)))
            if unit:
                break
        return _to_acres(area, unit)

    for path in LOT_TEXT_PATHS:
        value = get_path(record, path)
        if value is None:
            continue
        acres = _parse_lot_text(value)
        if acres is not None:
            return acres

    return None


# =============================================================================
# Text Fields and Address
# =============================================================================

FULL_ADDRESS_PATHS = ("fullAddress", "unparsedAddress", "address.fullAddress", "address.full")
STREET_NUMBER_PATHS = ("streetNumber", "address.streetNumber")
STREET_DIRECTION_PATHS = ("streetDirection", "streetDir", "address.streetDirection", "address.streetDir")
STREET_NAME_PATHS = ("streetName", "address.streetName")
STREET_SUFFIX_PATHS = ("streetSuffix", "streetType", "address.streetSuffix", "address.streetType")
UNIT_PATHS = ("unitNumber", "unit", "address.unitNumber", "address.unit")
CITY_PATHS = ("city", "address.city")
STATE_PATHS = ("state", "stateOrProvince", "province", "address.state", "address.stateOrProvince")
ZIP_PATHS = (
    "postalCode", "zip", "zipCode", "postalCodeNumber",
    "address.postalCode", "address.zip", "address.zipCode",
)
MLS_NUMBER_PATHS = ("mlsNumber", "listingId", "ListingId", "listingKey", "mls_number")
TRANSACTION_ADDRESS_PATHS = ("propertyAddress", "address")


def _as_text(value: Any) -> Optional[str]:
    """Stringify text-like values; integral numbers (zip codes, street numbers) included."""
    if isinstance(value, str):
        return clean_text(value)
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return None


def extract_text(record: Any, paths: Tuple[str, ...]) -> Optional[str]:
    """Return the first non-empty text value among the candidate paths."""
    for path in paths:
        text = _as_text(get_path(record, path))
        if text:
            return text
    return None


def _normalise_direction(direction: Optional[str]) -> Optional[str]:
    if not direction:
        return None
    return direction.replace(".", "").upper() or None


def _assemble_street(record: Any) -> Optional[str]:
    parts = [
        extract_text(record, STREET_NUMBER_PATHS),
        _normalise_direction(extract_text(record, STREET_DIRECTION_PATHS)),
        extract_text(record, STREET_NAME_PATHS),
        extract_text(record, STREET_SUFFIX_PATHS),
    ]
    street = " ".join(part for part in parts if part)
    if not street:
        return None
    unit = extract_text(record, UNIT_PATHS)
    if unit:
        street = f"{street}, Unit {unit}"
    return street


def extract_address(record: Any, transaction: Optional[Mapping] = None) -> str:
    """
    Build a display address for a listing.

    Prefers a pre-formatted full address; otherwise assembles street parts
    and appends city, state and zip; otherwise falls back to the address
    on the enclosing transaction.

    Returns:
        The address, or ADDRESS_UNAVAILABLE. Never an empty string.
    """
    preformatted = extract_text(record, FULL_ADDRESS_PATHS)
    if preformatted:
        return preformatted

    # Some feeds put the whole address in a plain string field
    if isinstance(get_path(record, "address"), str):
        text = clean_text(get_path(record, "address"))
        if text:
            return text

    street = _assemble_street(record)
    if street:
        city = extract_text(record, CITY_PATHS) or extract_text(transaction, ("city",))
        state = extract_text(record, STATE_PATHS) or extract_text(transaction, ("state",))
        zip_code = extract_text(record, ZIP_PATHS) or extract_text(transaction, ("postalCode", "zip"))
        region = " ".join(part for part in (state, zip_code) if part)
        return ", ".join(part for part in (street, city, region) if part)

    fallback = extract_text(transaction, TRANSACTION_ADDRESS_PATHS)
    if fallback:
        return fallback

    return ADDRESS_UNAVAILABLE


# =============================================================================
# Coordinates
# =============================================================================

COORDINATE_PATHS = (
    ("map.latitude", "map.longitude"),
    ("coordinates.latitude", "coordinates.longitude"),
    ("geo.lat", "geo.lon"),
    ("geo.lat", "geo.lng"),
    ("latitude", "longitude"),
    ("rawData.map.latitude", "rawData.map.longitude"),
    ("address.latitude", "address.longitude"),
)
WKT_POINT_PATHS = ("map.point", "rawData.map.point")

_WKT_POINT_RE = re.compile(r"POINT\s*\(\s*(-?[\d.]+)\s+(-?[\d.]+)\s*\)", re.IGNORECASE)


def _coordinates(latitude: Any, longitude: Any) -> Optional[Coordinates]:
    lat = parse_number(latitude)
    lng = parse_number(longitude)
    if lat is None or lng is None:
        return None
    # (0, 0) is the provider's placeholder for an ungeocoded listing
    if lat == 0 and lng == 0:
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        return None
    return Coordinates(latitude=lat, longitude=lng)


def extract_coordinates(record: Any) -> Optional[Coordinates]:
    """Find the listing's coordinates among the provider's location shapes."""
    for lat_path, lng_path in COORDINATE_PATHS:
        coords = _coordinates(get_path(record, lat_path), get_path(record, lng_path))
        if coords is not None:
            return coords

    for path in WKT_POINT_PATHS:
        text = clean_text(get_path(record, path))
        if not text:
            continue
        match = _WKT_POINT_RE.search(text)
        if match:
            # WKT order is longitude latitude
            coords = _coordinates(match.group(2), match.group(1))
            if coords is not None:
                return coords

    return None


# =============================================================================
# Photos
# =============================================================================

PHOTO_LIST_PATHS = ("photos", "images", "Media", "rawData.images")


def extract_photos(record: Any, cdn_base: str = CDN_BASE) -> List[str]:
    """
    Collect a listing's photo URLs, resolved and de-duplicated in order.

    Returns an empty list when the record has no usable photos.
    """
    for path in PHOTO_LIST_PATHS:
        items = get_path(record, path)
        if not isinstance(items, (list, tuple)) or not items:
            continue
        urls = resolve_photo_urls((photo_reference(item) for item in items), cdn_base)
        if urls:
            return urls
    return []


# =============================================================================
# Comparable Assembly
# =============================================================================

def extract_comparable(
    record: Any,
    transaction: Optional[Mapping] = None,
    cdn_base: str = CDN_BASE,
) -> Comparable:
    """
    Reduce a raw record to a canonical Comparable.

    Never raises: any field that cannot be recovered is None (or the
    address sentinel / Unknown status).
    """
    beds = extract_metric(record, Metric.BEDS)
    days_on_market = extract_metric(record, Metric.DAYS_ON_MARKET)

    return Comparable(
        address=extract_address(record, transaction),
        status=extract_status(record),
        city=extract_text(record, CITY_PATHS),
        state=extract_text(record, STATE_PATHS),
        zip_code=extract_text(record, ZIP_PATHS),
        mls_number=extract_text(record, MLS_NUMBER_PATHS),
        list_price=extract_metric(record, Metric.LIST_PRICE),
        sold_price=extract_metric(record, Metric.SOLD_PRICE),
        sqft=extract_metric(record, Metric.SQFT),
        lot_acres=extract_metric(record, Metric.LOT_ACRES),
        beds=int(beds) if beds is not None else None,
        baths=extract_metric(record, Metric.BATHS),
        days_on_market=int(days_on_market) if days_on_market is not None else None,
        coordinates=extract_coordinates(record),
        photos=tuple(extract_photos(record, cdn_base)),
    )
