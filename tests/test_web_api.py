"""
Tests for the JSON API

Exercises the routes end to end through FastAPI's TestClient with a fresh
registry per test.
"""

import base64

import pytest
from fastapi.testclient import TestClient

from core.property import PropertyRegistry, get_property_registry
from utils.config import Config
from web.app import create_app


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def registry():
    return PropertyRegistry()


@pytest.fixture
def client(registry):
    app = create_app(Config(allowed_origins=[]))
    app.dependency_overrides[get_property_registry] = lambda: registry
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def observation_payload():
    return {
        "gps": {
            "latitude": 34.0331,
            "longitude": -5.0003,
            "accuracy_m": 1.2,
            "fix_timestamp": "2026-01-10T09:00:00",
        },
        "photos": [
            {
                "photo_id": "photo-1",
                "content_base64": base64.b64encode(b"\xff\xd8facade").decode(),
                "captured_at": "2026-01-10T09:01:00",
            }
        ],
        "proposed_legal_status": "Melkia",
        "legal_reference": "MLK-FES-3310",
        "notes": "Dar near Bab Boujloud",
        "device": {"device_id": "dev-42", "platform": "android"},
        "captured_by": "scout-01",
        "captured_at": "2026-01-10T09:05:00",
    }


@pytest.fixture
def property_id(client, observation_payload):
    response = client.post("/api/observations", json=observation_payload)
    assert response.status_code == 201
    return response.json()["property"]["property_id"]


# =============================================================================
# Health & Incentives
# =============================================================================


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestIncentives:
    """Tests for the stateless quote endpoint."""

    def test_category_a_quote(self, client):
        response = client.post(
            "/api/incentives",
            json={"acquisition_price_mad": 4_200_000, "charter_category": "A"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["charter_eligible"] is True
        assert data["total_cashback_pct"] == 10
        assert data["estimated_cashback_mad"] == 420_000

    def test_category_c_below_minimum(self, client):
        response = client.post(
            "/api/incentives",
            json={"acquisition_price_mad": 1_200_000, "charter_category": "C"},
        )

        data = response.json()
        assert data["charter_eligible"] is False
        assert data["estimated_cashback_mad"] == 0

    def test_negative_price_rejected(self, client):
        response = client.post(
            "/api/incentives",
            json={"acquisition_price_mad": -10, "charter_category": "A"},
        )

        assert response.status_code == 422
        assert "negative" in response.json()["detail"]

    def test_unknown_category_rejected(self, client):
        response = client.post(
            "/api/incentives",
            json={"acquisition_price_mad": 1_000_000, "charter_category": "D"},
        )
        assert response.status_code == 422


# =============================================================================
# Observations
# =============================================================================


class TestObservations:
    """Tests for committing field observations."""

    def test_commit_creates_property(self, client, observation_payload, registry):
        response = client.post("/api/observations", json=observation_payload)

        assert response.status_code == 201
        data = response.json()
        assert data["property"]["melkia_reference"] == "MLK-FES-3310"
        assert data["property"]["photo_count"] == 1
        assert data["property"]["created_by"] == "scout-01"
        assert [e["event_type"] for e in data["events"]] == ["gps_captured", "status_changed"]
        assert len(registry) == 1

    def test_commit_without_gps(self, client, observation_payload, registry):
        observation_payload["gps"] = None

        response = client.post("/api/observations", json=observation_payload)

        assert response.status_code == 422
        assert response.json()["missing"] == ["gps"]
        assert len(registry) == 0

    def test_invalid_photo_encoding(self, client, observation_payload):
        observation_payload["photos"][0]["content_base64"] = "not base64!"

        response = client.post("/api/observations", json=observation_payload)

        assert response.status_code == 422

    def test_invalid_coordinates(self, client, observation_payload):
        observation_payload["gps"]["latitude"] = 123.0

        response = client.post("/api/observations", json=observation_payload)

        assert response.status_code == 422

    def test_commit_to_unknown_property(self, client, observation_payload):
        observation_payload["property_id"] = "PROP-MISSING"

        response = client.post("/api/observations", json=observation_payload)

        assert response.status_code == 404

    def test_stale_observation_conflicts(self, client, observation_payload, property_id):
        observation_payload["property_id"] = property_id
        observation_payload["captured_at"] = "2026-01-09T09:00:00"
        observation_payload["proposed_legal_status"] = "Titled"

        response = client.post("/api/observations", json=observation_payload)

        assert response.status_code == 409


# =============================================================================
# Properties & Events
# =============================================================================


class TestProperties:
    """Tests for property reads and event recording."""

    def test_list_and_get(self, client, property_id):
        listed = client.get("/api/properties").json()
        fetched = client.get(f"/api/properties/{property_id}").json()

        assert [p["property_id"] for p in listed] == [property_id]
        assert fetched["legal_status"] == "Melkia"

    def test_unknown_property(self, client):
        response = client.get("/api/properties/PROP-MISSING")

        assert response.status_code == 404
        assert "PROP-MISSING" in response.json()["detail"]

    def test_record_price_and_category(self, client, property_id):
        client.post(
            f"/api/properties/{property_id}/events",
            json={
                "event_type": "category_assigned",
                "data": {"charter_category": "B"},
                "timestamp": "2026-01-11T10:00:00",
            },
        )
        response = client.post(
            f"/api/properties/{property_id}/events",
            json={
                "event_type": "price_updated",
                "data": {"acquisition_price_mad": 2_800_000},
                "timestamp": "2026-01-11T10:05:00",
                "actor": "analyst",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["event"]["actor"] == "analyst"
        assert data["property"]["estimated_cashback_mad"] == 420_000

    def test_invalid_event_payload(self, client, property_id):
        response = client.post(
            f"/api/properties/{property_id}/events",
            json={"event_type": "price_updated", "data": {"acquisition_price_mad": -1}},
        )
        assert response.status_code == 422

    def test_out_of_order_event(self, client, property_id):
        response = client.post(
            f"/api/properties/{property_id}/events",
            json={
                "event_type": "price_updated",
                "data": {"acquisition_price_mad": 1_000_000},
                "timestamp": "2026-01-01T00:00:00",
            },
        )

        assert response.status_code == 409
        assert len(client.get(f"/api/properties/{property_id}/events").json()) == 2

    def test_aware_timestamp_normalised(self, client, property_id):
        response = client.post(
            f"/api/properties/{property_id}/events",
            json={
                "event_type": "price_updated",
                "data": {"acquisition_price_mad": 1_000_000},
                "timestamp": "2026-01-11T10:00:00+01:00",
            },
        )

        assert response.status_code == 201
        assert response.json()["event"]["timestamp"] == "2026-01-11T09:00:00"

    def test_events_since(self, client, property_id):
        client.post(
            f"/api/properties/{property_id}/events",
            json={
                "event_type": "document_verified",
                "data": {"document_type": "certificat", "confidence_delta": 20},
                "timestamp": "2026-01-12T08:00:00",
            },
        )

        response = client.get(
            f"/api/properties/{property_id}/events", params={"since": "2026-01-12T08:00:00"}
        )

        assert [e["event_type"] for e in response.json()] == ["document_verified"]

    def test_history(self, client, property_id):
        client.post(
            f"/api/properties/{property_id}/events",
            json={
                "event_type": "status_changed",
                "data": {"legal_status": "In-Process", "identifier": "REQ-2024-4521"},
                "timestamp": "2026-02-01T09:00:00",
            },
        )

        past = client.get(
            f"/api/properties/{property_id}/history", params={"as_of": "2026-01-15T00:00:00"}
        ).json()
        current = client.get(f"/api/properties/{property_id}").json()

        assert past["legal_status"] == "Melkia"
        assert past["melkia_reference"] == "MLK-FES-3310"
        assert current["legal_status"] == "In-Process"
        assert current["melkia_reference"] is None

    def test_deactivated_property_rejects_events(self, client, property_id):
        client.post(
            f"/api/properties/{property_id}/events",
            json={
                "event_type": "property_deactivated",
                "data": {"reason": "duplicate"},
                "timestamp": "2026-01-20T00:00:00",
            },
        )

        response = client.post(
            f"/api/properties/{property_id}/events",
            json={
                "event_type": "renovation_declared",
                "data": {"is_renovation": True},
                "timestamp": "2026-01-21T00:00:00",
            },
        )

        assert response.status_code == 409
        assert client.get("/api/properties", params={"include_inactive": False}).json() == []


# =============================================================================
# Portfolio
# =============================================================================


class TestPortfolio:
    def test_summary(self, client, property_id):
        client.post(
            f"/api/properties/{property_id}/events",
            json={
                "event_type": "price_updated",
                "data": {"acquisition_price_mad": 2_000_000},
                "timestamp": "2026-01-11T00:00:00",
            },
        )

        data = client.get("/api/portfolio/summary").json()

        assert data["total_properties"] == 1
        assert data["total_value_mad"] == 2_000_000
        assert data["by_legal_status"]["Melkia"] == 1
