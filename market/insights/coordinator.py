"""
Photo Insight Coordinator.

Recommends report photos for a batch of properties, fetching image
insights one property at a time with a pause between requests.

Only the most recent invocation may publish results. Starting a new
invocation cancels the previous one's token; a cancelled run stops at its
next check (the inter-request pause is interruptible) and never writes.
"""

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from market.parsing import clean_text, get_path
from market.photos import (
    CDN_BASE,
    PropertyPhotos,
    build_candidates,
    default_photos,
    select_top_photos,
)

from .client import InsightLookup, PhotoInsightClient


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Constants
# =============================================================================

DEFAULT_PHOTOS_PER_PROPERTY = 3
REQUEST_DELAY_SECONDS = 1.0

LISTING_ID_PATHS = ("listingId", "mlsNumber", "id")
PHOTO_LIST_PATHS = ("photos", "images")
EMBEDDED_INSIGHT_PATHS = ("imageInsights.images", "imageInsights")


@dataclass(frozen=True)
class PropertyPhotoRequest:
    """One property's photos, plus insights if the record already carries them."""
    listing_id: str
    photos: Tuple[Any, ...] = field(default_factory=tuple)
    insights: Tuple[Mapping, ...] = field(default_factory=tuple)

    @property
    def has_embedded_insights(self) -> bool:
        return bool(self.insights)

    @classmethod
    def from_record(cls, record: Mapping) -> Optional["PropertyPhotoRequest"]:
        """Build a request from a property record; None when it has no id."""
        listing_id = None
        for path in LISTING_ID_PATHS:
            value = get_path(record, path)
            listing_id = clean_text(str(value)) if value is not None else None
            if listing_id:
                break
        if not listing_id:
            return None

        photos: List[Any] = []
        for path in PHOTO_LIST_PATHS:
            value = get_path(record, path)
            if isinstance(value, list) and value:
                photos = [p for p in value if p]
                break

        insights: List[Mapping] = []
        for path in EMBEDDED_INSIGHT_PATHS:
            value = get_path(record, path)
            if isinstance(value, list) and value:
                insights = [i for i in value if isinstance(i, Mapping)]
                break

        return cls(listing_id=listing_id, photos=tuple(photos), insights=tuple(insights))


class FetchToken:
    """Identifies one invocation; cancelled when a newer one starts."""

    def __init__(self, generation: int):
        self.generation = generation
        self.cancelled = threading.Event()

    def cancel(self) -> None:
        self.cancelled.set()

    @property
    def is_cancelled(self) -> bool:
        return self.cancelled.is_set()

    def __repr__(self) -> str:
        return f"FetchToken(generation={self.generation}, cancelled={self.is_cancelled})"


class PhotoInsightCoordinator:
    """
    Sequential insight fetching with latest-invocation-wins publishing.

    Pipeline order (per property):
    1. EMBEDDED - Use insights already on the record, no request
    2. FETCH - Ask the insight API (after the inter-request pause)
    3. RANK - Top N photos by score when insights are available
    4. FALLBACK - First N photos, insights_available=False
    """

    def __init__(
        self,
        client: PhotoInsightClient,
        photos_per_property: int = DEFAULT_PHOTOS_PER_PROPERTY,
        request_delay: float = REQUEST_DELAY_SECONDS,
        cdn_base: str = CDN_BASE,
    ):
        """
        Initialize coordinator.

        Args:
            client: Insight API client
            photos_per_property: Photos recommended per property
            request_delay: Seconds to wait between insight requests
            cdn_base: Base URL for provider-relative photo paths
        """
        self.client = client
        self.photos_per_property = photos_per_property
        self.request_delay = request_delay
        self.cdn_base = cdn_base

        self._lock = threading.Lock()
        self._generation = 0
        self._current: Optional[FetchToken] = None
        self._results: Dict[str, PropertyPhotos] = {}

    # ----- Token management -----

    def begin(self) -> FetchToken:
        """Start a new invocation, cancelling any invocation in flight."""
        with self._lock:
            if self._current is not None:
                self._current.cancel()
            self._generation += 1
            self._current = FetchToken(self._generation)
            return self._current

    def cancel(self) -> None:
        """Cancel the invocation in flight, if any."""
        with self._lock:
            if self._current is not None:
                self._current.cancel()
                self._current = None

    def is_current(self, token: FetchToken) -> bool:
        with self._lock:
            return self._current is token and not token.is_cancelled

    @property
    def results(self) -> Dict[str, PropertyPhotos]:
        """Results published by the latest completed invocation."""
        with self._lock:
            return dict(self._results)

    # ----- Per-property resolution -----

    def _ranked(self, request: PropertyPhotoRequest, insights: Iterable[Mapping]) -> PropertyPhotos:
        candidates = build_candidates(request.photos, list(insights), self.cdn_base)
        return PropertyPhotos(
            listing_id=request.listing_id,
            photos=tuple(select_top_photos(candidates, self.photos_per_property)),
            insights_available=True,
        )

    def _fallback(self, request: PropertyPhotoRequest) -> PropertyPhotos:
        return PropertyPhotos(
            listing_id=request.listing_id,
            photos=tuple(default_photos(request.photos, self.photos_per_property, self.cdn_base)),
            insights_available=False,
        )

    def resolve(self, request: PropertyPhotoRequest, lookup: Optional[InsightLookup] = None) -> PropertyPhotos:
        """Recommend photos for one property from embedded or fetched insights."""
        if request.has_embedded_insights:
            return self._ranked(request, request.insights)
        if lookup is not None and lookup.available and lookup.images:
            return self._ranked(request, lookup.images)
        return self._fallback(request)

    # ----- Invocation -----

    def run(
        self,
        properties: Iterable[Any],
        token: Optional[FetchToken] = None,
    ) -> Optional[Dict[str, PropertyPhotos]]:
        """
        Recommend photos for every property and publish the results.

        Args:
            properties: PropertyPhotoRequests or raw property records
            token: Token from begin(); a new one is taken when omitted

        Returns:
            Results keyed by listing id, or None if this invocation was
            superseded before it could publish.
        """
        token = token or self.begin()

        requests_: List[PropertyPhotoRequest] = []
        for prop in properties:
            request = prop if isinstance(prop, PropertyPhotoRequest) else None
            if request is None and isinstance(prop, Mapping):
                request = PropertyPhotoRequest.from_record(prop)
            if request is None:
                logger.warning("Skipped property without a listing id")
                continue
            requests_.append(request)

        results: Dict[str, PropertyPhotos] = {}
        fetched = 0
        for request in requests_:
            if token.is_cancelled:
                logger.info("Photo insight run %d superseded", token.generation)
                return None

            lookup = None
            if not request.has_embedded_insights:
                # Pause between requests; returns early if cancelled
                if fetched and token.cancelled.wait(self.request_delay):
                    logger.info("Photo insight run %d superseded", token.generation)
                    return None
                lookup = self.client.fetch(request.listing_id)
                fetched += 1

            results[request.listing_id] = self.resolve(request, lookup)

        with self._lock:
            if self._current is not token or token.is_cancelled:
                logger.info("Discarded results of superseded photo insight run %d", token.generation)
                return None
            self._results = results
            self._current = None

        logger.info(
            "Photo insight run %d: %d properties, %d insight requests",
            token.generation, len(results), fetched,
        )
        return results

    def run_in_background(self, properties: Iterable[Any]) -> Tuple[FetchToken, threading.Thread]:
        """Start run() on a daemon thread; the returned token identifies it."""
        token = self.begin()
        thread = threading.Thread(
            target=self.run,
            args=(list(properties), token),
            name=f"photo-insights-{token.generation}",
            daemon=True,
        )
        thread.start()
        return token, thread
