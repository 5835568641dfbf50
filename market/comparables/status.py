"""
Status Classifier for the comparable pipeline.

Maps provider status strings and short codes onto CanonicalStatus.
Checks run in a fixed precedence order and the first match wins:

1. Leasing (current or last status)
2. Closed / sold (current or last status - a current status can lag
   behind a just-closed sale)
3. Pending / under contract
4. Active
5. Back on market (Active), on hold or off market (Pending)
6. Withdrawn, expired
7. Unknown

The order matters: "Active Under Contract" must reach the contract
check before the active check, and "For Lease" must never be read as
an active sale listing.
"""

import logging
import re
from typing import Any, FrozenSet, Optional, Pattern

from market.parsing import clean_text, get_path, parse_number

from .models import CanonicalStatus


logger = logging.getLogger(__name__)


# =============================================================================
# Status Vocabulary
# =============================================================================

LEASING_CODES: FrozenSet[str] = frozenset({"lsd", "leased", "l", "lease", "lc"})
LEASING_PATTERN: Pattern = re.compile(r"\b(?:leas(?:e|ed|ing)|for rent|rental)\b")

CLOSED_CODES: FrozenSet[str] = frozenset({"s", "sld", "sold", "c", "cls", "closed"})
CLOSED_PATTERN: Pattern = re.compile(r"\b(?:sold|closed)\b")

PENDING_CODES: FrozenSet[str] = frozenset({"u", "uc", "sc", "p", "pnd", "k", "b"})
PENDING_PATTERN: Pattern = re.compile(
    r"\b(?:pending|under contract|contract|contingent|backup|option|"
    r"kick ?out|accepted offer)\b"
)

ACTIVE_CODES: FrozenSet[str] = frozenset({"a", "act", "new", "pc", "ext", "cs"})
ACTIVE_PATTERN: Pattern = re.compile(r"\b(?:active|coming soon|new listing|available)\b")

BACK_ON_MARKET_CODES: FrozenSet[str] = frozenset({"bom", "dft"})
BACK_ON_MARKET_PATTERN: Pattern = re.compile(r"\bback on market\b")

HOLD_CODES: FrozenSet[str] = frozenset({"h", "t", "hold", "temp"})
HOLD_PATTERN: Pattern = re.compile(r"\b(?:on hold|off market)\b")

WITHDRAWN_CODES: FrozenSet[str] = frozenset({"w", "x", "wd", "ter", "sus"})
WITHDRAWN_PATTERN: Pattern = re.compile(r"\b(?:withdrawn|cancell?ed|terminated|suspended)\b")

EXPIRED_CODES: FrozenSet[str] = frozenset({"e", "exp"})
EXPIRED_PATTERN: Pattern = re.compile(r"\bexpired\b")

# Checked in order after leasing and closed
_ORDERED_RULES = (
    (PENDING_CODES, PENDING_PATTERN, CanonicalStatus.PENDING),
    (ACTIVE_CODES, ACTIVE_PATTERN, CanonicalStatus.ACTIVE),
    (BACK_ON_MARKET_CODES, BACK_ON_MARKET_PATTERN, CanonicalStatus.ACTIVE),
    (HOLD_CODES, HOLD_PATTERN, CanonicalStatus.PENDING),
    (WITHDRAWN_CODES, WITHDRAWN_PATTERN, CanonicalStatus.WITHDRAWN),
    (EXPIRED_CODES, EXPIRED_PATTERN, CanonicalStatus.EXPIRED),
)

_SEPARATOR_RE = re.compile(r"[\s_\-/]+")


def _normalise(raw: Any) -> str:
    """Lower-case, unify separators and collapse whitespace. Non-strings become ""."""
    text = clean_text(raw)
    if text is None:
        return ""
    return _SEPARATOR_RE.sub(" ", text.lower()).strip()


def _matches(status: str, codes: FrozenSet[str], pattern: Pattern) -> bool:
    if not status:
        return False
    return status in codes or bool(pattern.search(status))


def _classify_single(status: str) -> CanonicalStatus:
    """Run rules 3-7 against one normalised status string."""
    for codes, pattern, result in _ORDERED_RULES:
        if _matches(status, codes, pattern):
            return result
    return CanonicalStatus.UNKNOWN


def normalize_status(raw_status: Any, raw_last_status: Any = None) -> CanonicalStatus:
    """
    Classify a provider status into CanonicalStatus.

    Args:
        raw_status: Current status string or short code (may be empty)
        raw_last_status: Optional last-status field from the provider

    Returns:
        Exactly one CanonicalStatus. Unrecognised input gives UNKNOWN.
    """
    status = _normalise(raw_status)
    last_status = _normalise(raw_last_status)

    if _matches(status, LEASING_CODES, LEASING_PATTERN) or _matches(
        last_status, LEASING_CODES, LEASING_PATTERN
    ):
        return CanonicalStatus.LEASING

    if _matches(status, CLOSED_CODES, CLOSED_PATTERN) or _matches(
        last_status, CLOSED_CODES, CLOSED_PATTERN
    ):
        return CanonicalStatus.CLOSED

    result = _classify_single(status)
    if result is CanonicalStatus.UNKNOWN and last_status:
        result = _classify_single(last_status)

    if result is CanonicalStatus.UNKNOWN and (status or last_status):
        logger.debug(
            "Unrecognised listing status %r (last status %r)",
            raw_status,
            raw_last_status,
        )

    return result


# =============================================================================
# Record-Level Extraction
# =============================================================================

STATUS_PATHS = ("standardStatus", "status", "mlsStatus", "rawData.standardStatus", "rawData.status")
LAST_STATUS_PATHS = ("lastStatus", "rawData.lastStatus")
CLOSED_PRICE_PATHS = ("soldPrice", "closePrice", "ClosePrice")
CLOSED_DATE_PATHS = ("soldDate", "closeDate", "closedDate")


def _first_text(record: Any, paths) -> Optional[str]:
    for path in paths:
        text = clean_text(get_path(record, path))
        if text:
            return text
    return None


def _has_closed_evidence(record: Any) -> bool:
    for path in CLOSED_PRICE_PATHS:
        price = parse_number(get_path(record, path))
        if price is not None and price > 0:
            return True
    return _first_text(record, CLOSED_DATE_PATHS) is not None


def extract_status(record: Any) -> CanonicalStatus:
    """
    Classify the status of a raw record.

    Reads the first non-empty current status and last status. A record
    with no status text at all is Closed if it carries a sold price or
    close date, otherwise Unknown.
    """
    status = _first_text(record, STATUS_PATHS)
    last_status = _first_text(record, LAST_STATUS_PATHS)

    if status is None and last_status is None:
        if _has_closed_evidence(record):
            return CanonicalStatus.CLOSED
        return CanonicalStatus.UNKNOWN

    return normalize_status(status, last_status)
