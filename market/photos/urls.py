"""
Photo URL resolution.

The listing provider returns photo paths either as absolute URLs or as
CDN-relative keys ("unlock-mls/IMG-ACT2572987_2.jpg"). Relative keys are
resolved against one fixed CDN base before they are scored or stored.
"""

import re
from collections.abc import Mapping
from typing import Any, Iterable, List, Optional

from market.parsing import clean_text


CDN_BASE = "https://cdn.repliers.io/"

# Keys under which photo objects carry their URL, most specific first
PHOTO_URL_KEYS = ("href", "highResUrl", "largeUrl", "url", "Uri", "MediaURL", "image")

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")


def photo_reference(item: Any) -> Optional[str]:
    """Return the URL string of a photo entry, which may be a string or an object."""
    if isinstance(item, str):
        return clean_text(item)
    if isinstance(item, Mapping):
        for key in PHOTO_URL_KEYS:
            reference = clean_text(item.get(key))
            if reference:
                return reference
    return None


def resolve_photo_url(url: Any, base: str = CDN_BASE) -> Optional[str]:
    """
    Resolve a provider photo reference to an absolute URL.

    Args:
        url: Raw photo reference (may carry stray quotes)
        base: CDN base for scheme-less references

    Returns:
        Absolute URL, or None for empty/non-string input.
    """
    cleaned = clean_text(url)
    if cleaned is None:
        return None
    if _SCHEME_RE.match(cleaned):
        return cleaned
    if cleaned.startswith("//"):
        return f"https:{cleaned}"
    return f"{base.rstrip('/')}/{cleaned.lstrip('/')}"


def resolve_photo_urls(urls: Iterable[Any], base: str = CDN_BASE) -> List[str]:
    """Resolve a list of references, dropping empties and duplicates, keeping order."""
    resolved: List[str] = []
    seen = set()
    for url in urls:
        absolute = resolve_photo_url(url, base)
        if absolute and absolute not in seen:
            seen.add(absolute)
            resolved.append(absolute)
    return resolved
