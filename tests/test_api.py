"""
Tests for the HTTP API.

Verifies:
- Health endpoints
- Normalise and statistics endpoints exclude rentals
- Photo endpoints resolve against the configured CDN base
- Malformed requests are rejected (400 / 422)
"""

from pathlib import Path
import sys

import pytest
from fastapi.testclient import TestClient

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from market.insights import InsightLookup, PhotoInsightCoordinator
from utils.config import Config
from web.app import create_app


CDN = "https://cdn.example.com/"


class FakeInsightClient:
    """Returns no insights for any listing."""

    def __init__(self):
        self.calls = []

    def fetch(self, listing_id):
        self.calls.append(listing_id)
        return InsightLookup.unavailable("no insights")

    def close(self):
        pass


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def app():
    return create_app(Config(photo_cdn_base=CDN, debug=False))


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def records():
    return [
        {"mlsNumber": "1", "status": "Sold", "soldPrice": 200000, "sqft": 1000, "photos": ["a.jpg"]},
        {"mlsNumber": "2", "status": "Sold", "soldPrice": 300000, "sqft": 1500},
        {"mlsNumber": "3", "type": "Lease", "listPrice": 2500},
        {"mlsNumber": "4", "status": "Active", "listPrice": 275000},
    ]


# =============================================================================
# Test: Health
# =============================================================================

class TestHealth:

    def test_root(self, client):
        assert client.get("/").json() == {"status": "ok"}

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


# =============================================================================
# Test: Comparables
# =============================================================================

class TestComparablesEndpoints:

    def test_normalize(self, client, records):
        response = client.post("/api/comparables/normalize", json={"records": records + ["junk"]})
        data = response.json()

        assert response.status_code == 200
        assert [c["mls_number"] for c in data["comparables"]] == ["1", "2", "4"]
        assert data["excluded_count"] == 1
        assert data["rejected_count"] == 1
        assert data["comparables"][0]["photos"] == [f"{CDN}a.jpg"]
        assert data["comparables"][0]["status"] == "Closed"

    def test_normalize_with_transaction_address(self, client):
        response = client.post(
            "/api/comparables/normalize",
            json={"records": [{"listPrice": 1}], "transaction": {"propertyAddress": "9 Oak Ave"}},
        )
        assert response.json()["comparables"][0]["address"] == "9 Oak Ave"

    def test_statistics(self, client, records):
        response = client.post(
            "/api/comparables/statistics",
            json={"records": records, "metrics": ["price_per_sqft"], "statuses": ["closed"]},
        )
        data = response.json()

        assert response.status_code == 200
        assert data["summary"]["count"] == 2
        assert data["summary"]["price"]["median"] == 250000
        assert data["statistics"]["price_per_sqft"]["median"] == 200

    def test_unknown_metric(self, client, records):
        response = client.post("/api/comparables/statistics", json={"records": records, "metrics": ["vibes"]})
        assert response.status_code == 400

    def test_unknown_status(self, client, records):
        response = client.post("/api/comparables/statistics", json={"records": records, "statuses": ["Sleeping"]})
        assert response.status_code == 400


# =============================================================================
# Test: Photos
# =============================================================================

class TestPhotoEndpoints:

    def test_select(self, client):
        response = client.post("/api/photos/select", json={
            "photos": ["k.jpg", "f.jpg"],
            "insights": [
                {"classification": {"imageOf": "Kitchen", "prediction": 0.9}},
                {"classification": {"imageOf": "Front of Structure", "prediction": 0.9}},
            ],
        })
        data = response.json()

        assert response.status_code == 200
        assert data["main"]["url"] == f"{CDN}f.jpg"
        assert data["kitchen"]["url"] == f"{CDN}k.jpg"
        assert data["room"]["url"] is None
        assert data["missing_categories"] == ["Living Room"]
        assert data["insights_available"] is True

    def test_select_invalid_slot_count(self, client):
        response = client.post("/api/photos/select", json={"photos": ["a.jpg"], "slot_count": 4})
        assert response.status_code == 422

    def test_top_without_insights(self, client):
        response = client.post("/api/photos/top", json={"photos": ["a.jpg", "b.jpg", "c.jpg"], "count": 2})
        data = response.json()

        assert data["insights_available"] is False
        assert [p["url"] for p in data["photos"]] == [f"{CDN}a.jpg", f"{CDN}b.jpg"]

    def test_recommend(self, app, client):
        fake = FakeInsightClient()
        app.state.photo_coordinator = PhotoInsightCoordinator(fake, request_delay=0, cdn_base=CDN)

        response = client.post("/api/photos/recommend", json={
            "properties": [{"listingId": "A1", "photos": ["1.jpg", "2.jpg"]}],
        })
        data = response.json()

        assert response.status_code == 200
        assert fake.calls == ["A1"]
        assert data["A1"]["insights_available"] is False
        assert [p["url"] for p in data["A1"]["photos"]] == [f"{CDN}1.jpg", f"{CDN}2.jpg"]


# =============================================================================
# Test: Configuration
# =============================================================================

class TestConfig:

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("PORT", "9000")
        monkeypatch.setenv("INSIGHT_REQUEST_DELAY", "0.25")
        monkeypatch.setenv("INSIGHTS_API_KEY", "secret")

        config = Config.load()

        assert config.port == 9000
        assert config.insight_request_delay == 0.25
        assert config.insights_api_key == "secret"

    def test_to_dict_omits_api_key(self, monkeypatch):
        monkeypatch.setenv("INSIGHTS_API_KEY", "secret")
        data = Config.load().to_dict()

        assert "secret" not in data.values()
        assert data["insights_api_key_set"] is True
