"""
Sanitize-then-parse primitives shared by every field extractor.

Provider values arrive as numbers, numeric strings ("$1,250,000"), or
strings that were JSON-encoded twice and still carry their quotes
('"450000"'). Every numeric metric goes through parse_number so the
cleaning rules live in one place.
"""

import math
import re
from collections.abc import Mapping
from typing import Any, Optional


# Characters left behind by double JSON-encoding
_QUOTE_CHARS = "\"'\\`"

# Currency symbols and thousands separators removed before parsing
_NOISE_RE = re.compile(r"[$£€,\s]")

# Area units a number may carry ("1850sqft", "0.5ac"). Any other suffix,
# magnitude letters such as "1.2M" or "450K" included, is unparseable.
_UNIT_SUFFIX = r"(?:sq\.?ft\.?|sf|ac\.?|acres?)"

_NUMBER_RE = re.compile(
    r"^([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)" + _UNIT_SUFFIX + r"?$",
    re.IGNORECASE,
)


def get_path(record: Any, path: str) -> Any:
    """
    Read a dotted path ("details.numBedrooms") from nested mappings.

    Returns None when any segment is missing or not a mapping.
    """
    current = record
    for key in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def clean_text(value: Any) -> Optional[str]:
    """
    Strip whitespace and stray quote characters from a string.

    Returns None for non-strings and for strings that are empty after
    cleaning.
    """
    if not isinstance(value, str):
        return None
    cleaned = value.strip().strip(_QUOTE_CHARS).strip()
    return cleaned or None


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a provider value into a finite float.

    Args:
        value: Raw value (number, numeric string, quoted string, ...)

    Returns:
        The parsed float, or None if the value is missing or unparseable.
        Booleans are never treated as numbers.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None

    text = clean_text(value)
    if text is None:
        return None

    text = _NOISE_RE.sub("", text)
    match = _NUMBER_RE.match(text)
    if not match:
        return None

    try:
        number = float(match.group(1))
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def is_positive(value: float) -> bool:
    return value > 0


def is_non_negative(value: float) -> bool:
    return value >= 0
