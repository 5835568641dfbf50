"""
Image insight client.

Fetches per-listing image classifications from the listings API:

    GET {base_url}/listings/{listing_id}/image-insights
    -> {"available": false}
    -> {"available": true, "images": [{"image": ..., "classification": ..., "quality": ...}]}

Lookups never raise. Network errors, non-2xx responses, malformed JSON and
"available": false all come back as InsightLookup.unavailable(reason) so
callers can fall back to positional photos.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple
from urllib.parse import quote

import requests


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

DEFAULT_API_BASE = "http://127.0.0.1:5000/api"
USER_AGENT = "MarketComparables/1.0 (photo-insights)"
REQUEST_TIMEOUT_SECONDS = 30
API_KEY_HEADER = "X-API-Key"


@dataclass(frozen=True)
class InsightLookup:
    """Outcome of one insight lookup."""
    available: bool
    images: Tuple[Mapping, ...] = field(default_factory=tuple)
    reason: Optional[str] = None

    @classmethod
    def unavailable(cls, reason: str) -> "InsightLookup":
        return cls(available=False, images=(), reason=reason)

    @classmethod
    def from_payload(cls, payload: Any) -> "InsightLookup":
        """Interpret a decoded response body."""
        if not isinstance(payload, Mapping):
            return cls.unavailable("response is not an object")
        if not payload.get("available"):
            return cls.unavailable("insights not available for listing")

        images = payload.get("images")
        if not isinstance(images, list):
            return cls.unavailable("response has no image list")

        return cls(available=True, images=tuple(img for img in images if isinstance(img, Mapping)))

    def to_dict(self) -> dict:
        return {
            "available": self.available,
            "images": [dict(img) for img in self.images],
            "reason": self.reason,
        }


class PhotoInsightClient:
    """
    HTTP client for the image-insights endpoint.

    One request per call; pacing between properties is the caller's job
    (see PhotoInsightCoordinator).
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE,
        api_key: Optional[str] = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize client.

        Args:
            base_url: API root, without trailing slash
            api_key: Sent as X-API-Key when set
            timeout: Per-request timeout in seconds
            session: Pre-configured session (tests pass a stub)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        })
        if api_key:
            self._session.headers[API_KEY_HEADER] = api_key

    def insights_url(self, listing_id: str) -> str:
        return f"{self.base_url}/listings/{quote(str(listing_id), safe='')}/image-insights"

    def fetch(self, listing_id: str) -> InsightLookup:
        """
        Look up image insights for one listing.

        Args:
            listing_id: MLS number / listing id

        Returns:
            InsightLookup (unavailable on any failure)
        """
        url = self.insights_url(listing_id)
        try:
            response = self._session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Image insight request for %s failed: %s", listing_id, e)
            return InsightLookup.unavailable(f"request failed: {e}")

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning("Image insight response for %s is not JSON: %s", listing_id, e)
            return InsightLookup.unavailable("invalid JSON response")

        lookup = InsightLookup.from_payload(payload)
        if not lookup.available:
            logger.info("No image insights for %s: %s", listing_id, lookup.reason)
        return lookup

    def close(self) -> None:
        """Close the HTTP session."""
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
