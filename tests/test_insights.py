"""
Tests for the image insight client and the photo insight coordinator.

Verifies:
- Lookups never raise: network errors, HTTP errors and bad JSON degrade
  to an unavailable lookup
- Embedded insights skip the request
- Unavailable insights fall back to the first photos
- Only the most recent invocation publishes results
- A cancelled run stops during its inter-request pause
"""

import threading
from pathlib import Path
import sys

import pytest
import requests

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from market.insights import (
    InsightLookup,
    PhotoInsightClient,
    PhotoInsightCoordinator,
    PropertyPhotoRequest,
)
from market.insights.client import API_KEY_HEADER, USER_AGENT


CDN = "https://cdn.example.com/"


# =============================================================================
# Test Doubles
# =============================================================================

class StubResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code=200, payload=None, invalid_json=False):
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class StubSession:
    """Returns canned responses (or raises canned errors) per listing id."""

    def __init__(self, responses):
        self.headers = {}
        self.responses = responses
        self.calls = []
        self.closed = False

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        for listing_id, outcome in self.responses.items():
            if f"/listings/{listing_id}/" in url:
                if isinstance(outcome, Exception):
                    raise outcome
                return outcome
        return StubResponse(404)

    def close(self):
        self.closed = True


class FakeClient:
    """Insight client returning preset lookups, recording each fetch."""

    def __init__(self, lookups=None):
        self.lookups = lookups or {}
        self.calls = []
        self.fetched = threading.Event()

    def fetch(self, listing_id):
        self.calls.append(listing_id)
        self.fetched.set()
        return self.lookups.get(listing_id, InsightLookup.unavailable("no insights"))

    def close(self):
        pass


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def insight_images():
    """Insights for a three-photo listing: bedroom, kitchen, front."""
    return [
        {"classification": {"imageOf": "Bedroom", "prediction": 0.9}},
        {"classification": {"imageOf": "Kitchen", "prediction": 0.9}},
        {"classification": {"imageOf": "Front of Structure", "prediction": 0.95},
         "quality": {"qualitative": "excellent"}},
    ]


@pytest.fixture
def create_property():
    """Factory fixture for raw property records."""
    def _create(listing_id, photos=("1.jpg", "2.jpg", "3.jpg"), embedded=None):
        record = {"listingId": listing_id, "photos": list(photos)}
        if embedded is not None:
            record["imageInsights"] = {"images": embedded}
        return record
    return _create


# =============================================================================
# Test: Insight Client
# =============================================================================

class TestPhotoInsightClient:
    """HTTP lookups degrade instead of raising."""

    def test_available_insights(self, insight_images):
        session = StubSession({"A1": StubResponse(payload={"available": True, "images": insight_images})})
        client = PhotoInsightClient("https://api.example.com/api/", session=session, timeout=5)

        lookup = client.fetch("A1")

        assert lookup.available is True
        assert len(lookup.images) == 3
        assert session.calls == [("https://api.example.com/api/listings/A1/image-insights", 5)]

    def test_not_available(self):
        session = StubSession({"A1": StubResponse(payload={"available": False})})
        lookup = PhotoInsightClient(session=session).fetch("A1")

        assert lookup.available is False
        assert lookup.reason

    def test_http_error(self):
        session = StubSession({"A1": StubResponse(status_code=500)})
        lookup = PhotoInsightClient(session=session).fetch("A1")

        assert lookup.available is False
        assert "500" in lookup.reason

    def test_network_error(self):
        session = StubSession({"A1": requests.ConnectionError("connection refused")})
        lookup = PhotoInsightClient(session=session).fetch("A1")

        assert lookup.available is False

    def test_invalid_json(self):
        session = StubSession({"A1": StubResponse(invalid_json=True)})
        lookup = PhotoInsightClient(session=session).fetch("A1")

        assert lookup == InsightLookup.unavailable("invalid JSON response")

    def test_payload_without_image_list(self):
        lookup = InsightLookup.from_payload({"available": True, "images": "nope"})
        assert lookup.available is False

    def test_headers(self):
        session = StubSession({})
        PhotoInsightClient(session=session, api_key="secret")

        assert session.headers["User-Agent"] == USER_AGENT
        assert session.headers[API_KEY_HEADER] == "secret"

    def test_listing_id_is_quoted(self):
        client = PhotoInsightClient("https://api.example.com", session=StubSession({}))
        assert client.insights_url("A/B") == "https://api.example.com/listings/A%2FB/image-insights"

    def test_context_manager_closes_session(self):
        session = StubSession({})
        with PhotoInsightClient(session=session):
            pass
        assert session.closed is True


# =============================================================================
# Test: Property Requests
# =============================================================================

class TestPropertyPhotoRequest:
    """Reading property records."""

    def test_from_record(self, create_property, insight_images):
        request = PropertyPhotoRequest.from_record(create_property("A1", embedded=insight_images))

        assert request.listing_id == "A1"
        assert request.photos == ("1.jpg", "2.jpg", "3.jpg")
        assert request.has_embedded_insights is True

    def test_numeric_id(self):
        request = PropertyPhotoRequest.from_record({"mlsNumber": 12345, "images": ["a.jpg"]})
        assert request.listing_id == "12345"

    def test_missing_id(self):
        assert PropertyPhotoRequest.from_record({"photos": ["a.jpg"]}) is None


# =============================================================================
# Test: Coordinator
# =============================================================================

class TestPhotoInsightCoordinator:
    """Sequential fetching and latest-wins publishing."""

    def test_embedded_insights_skip_fetch(self, create_property, insight_images):
        client = FakeClient()
        coordinator = PhotoInsightCoordinator(client, request_delay=0, cdn_base=CDN)

        results = coordinator.run([create_property("A1", embedded=insight_images)])

        assert client.calls == []
        assert results["A1"].insights_available is True
        assert results["A1"].urls[0] == f"{CDN}3.jpg"

    def test_fetched_insights_ranked(self, create_property, insight_images):
        client = FakeClient({"A1": InsightLookup(available=True, images=tuple(insight_images))})
        coordinator = PhotoInsightCoordinator(client, photos_per_property=2, request_delay=0, cdn_base=CDN)

        results = coordinator.run([create_property("A1")])

        assert client.calls == ["A1"]
        assert results["A1"].urls == [f"{CDN}3.jpg", f"{CDN}2.jpg"]

    def test_unavailable_falls_back_to_first_photos(self, create_property):
        coordinator = PhotoInsightCoordinator(FakeClient(), photos_per_property=2, request_delay=0, cdn_base=CDN)

        results = coordinator.run([create_property("A1")])

        assert results["A1"].insights_available is False
        assert results["A1"].urls == [f"{CDN}1.jpg", f"{CDN}2.jpg"]

    def test_property_without_id_skipped(self, create_property):
        client = FakeClient()
        coordinator = PhotoInsightCoordinator(client, request_delay=0)

        results = coordinator.run([{"photos": ["a.jpg"]}, create_property("A1")])

        assert list(results) == ["A1"]
        assert client.calls == ["A1"]

    def test_results_published(self, create_property):
        coordinator = PhotoInsightCoordinator(FakeClient(), request_delay=0)
        results = coordinator.run([create_property("A1")])
        assert coordinator.results == results

    def test_superseded_token_never_publishes(self, create_property):
        coordinator = PhotoInsightCoordinator(FakeClient(), request_delay=0)

        stale = coordinator.begin()
        coordinator.begin()

        assert stale.is_cancelled
        assert coordinator.run([create_property("A1")], token=stale) is None
        assert coordinator.results == {}

    def test_latest_invocation_wins(self, create_property):
        """A slow earlier run finishing last does not overwrite newer results."""
        entered = threading.Event()
        release = threading.Event()

        class SlowClient(FakeClient):
            def fetch(self, listing_id):
                if listing_id == "slow":
                    entered.set()
                    release.wait(5)
                return super().fetch(listing_id)

        coordinator = PhotoInsightCoordinator(SlowClient(), request_delay=0)

        token, thread = coordinator.run_in_background([create_property("slow")])
        assert entered.wait(5)

        latest = coordinator.run([create_property("fast")])
        release.set()
        thread.join(5)

        assert token.is_cancelled
        assert list(latest) == ["fast"]
        assert list(coordinator.results) == ["fast"]

    def test_cancel_interrupts_delay(self, create_property):
        client = FakeClient()
        coordinator = PhotoInsightCoordinator(client, request_delay=30)

        _, thread = coordinator.run_in_background([create_property("A1"), create_property("A2")])
        assert client.fetched.wait(5)

        coordinator.cancel()
        thread.join(5)

        assert not thread.is_alive()
        assert client.calls == ["A1"]
        assert coordinator.results == {}
