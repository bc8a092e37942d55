"""
Tests for the listing HTTP API.

Tests covering:
1. Identity headers and 401 without them
2. Error taxonomy mapped to status codes (400/403/404/409/429)
3. Create, update, transition, delete and read round trips
4. String numbers and explicit nulls from JSON clients
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from core.integrity import ListingIntegrityService
from web.app import create_app


OWNER = {"X-User-Id": "owner-1", "X-User-Role": "OWNER"}
OTHER = {"X-User-Id": "owner-2", "X-User-Role": "OWNER"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "ADMIN"}


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def client(service):
    return TestClient(create_app(service=service))


@pytest.fixture
def review_client(properties, records, dispatcher, config):
    """Client whose submit goes to PENDING."""
    config.auto_approve_on_submit = False
    service = ListingIntegrityService(properties, records, dispatcher=dispatcher, config=config)
    return TestClient(create_app(service=service))


@pytest.fixture
def payload():
    return {
        "title": "Spacious 3BHK Apartment in Indiranagar",
        "category": "RESIDENTIAL",
        "transaction_type": "SELL",
        "residential": {"bhk": 3, "bathrooms": 2},
        "location": {
            "city": "Bangalore",
            "state": "Karnataka",
            "area": "Indiranagar",
            "coordinates": [77.5946, 12.9716],
        },
        "pricing": {"expected_price": 15000000},
        "media": {"images": ["1.jpg", "2.jpg", "3.jpg"]},
        "legal": {"title_clear": True},
    }


@pytest.fixture
def created(client, payload):
    response = client.post("/api/properties", json=payload, headers=OWNER)
    assert response.status_code == 201
    return response.json()["data"]


# =============================================================================
# Health
# =============================================================================


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json() == {"status": "ok"}


# =============================================================================
# Create
# =============================================================================


class TestCreate:
    """POST /api/properties"""

    def test_create_returns_draft(self, created):
        assert created["status"] == "DRAFT"
        assert created["asset_id"].startswith("MG-")
        assert created["listed_by"] == "owner-1"
        assert created["asset_dna"]["geo_verified"] is True

    def test_requires_identity(self, client, payload):
        response = client.post("/api/properties", json=payload)
        assert response.status_code == 401

    def test_missing_title_is_422(self, client, payload):
        del payload["title"]
        response = client.post("/api/properties", json=payload, headers=OWNER)
        assert response.status_code == 422

    def test_bad_coordinates_is_400(self, client, payload):
        payload["location"]["coordinates"] = [77.5946]
        response = client.post("/api/properties", json=payload, headers=OWNER)
        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_INPUT"

    def test_duplicate_is_409_with_matches(self, client, payload, created):
        payload["title"] = "Spacious 3BHK Apartment Indiranagar"
        payload["location"]["coordinates"] = [77.5948, 12.9718]

        response = client.post("/api/properties", json=payload, headers=OTHER)

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert [m["id"] for m in body["similar_properties"]] == [created["property_id"]]

    def test_rate_limit_is_429(self, client, payload):
        del payload["location"]["coordinates"]
        for i in range(10):
            payload["title"] = f"Flat {i}"
            assert client.post("/api/properties", json=payload, headers=OWNER).status_code == 201

        response = client.post("/api/properties", json=payload, headers=OWNER)
        assert response.status_code == 429
        assert response.json()["remaining"] == 0


# =============================================================================
# Lifecycle
# =============================================================================


class TestLifecycleRoutes:
    """POST /api/properties/{id}/{action}"""

    def test_submit(self, client, created):
        response = client.post(f"/api/properties/{created['property_id']}/submit", headers=OWNER)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "APPROVED"

    def test_admin_cannot_pause_is_403(self, client, created):
        pid = created["property_id"]
        client.post(f"/api/properties/{pid}/submit", headers=OWNER)

        response = client.post(f"/api/properties/{pid}/pause", headers=ADMIN)
        assert response.status_code == 403

    def test_wrong_status_is_400(self, client, created):
        response = client.post(f"/api/properties/{created['property_id']}/resume", headers=OWNER)
        assert response.status_code == 400
        assert response.json()["current_status"] == "DRAFT"

    def test_unknown_action_is_422(self, client, created):
        response = client.post(f"/api/properties/{created['property_id']}/teleport", headers=OWNER)
        assert response.status_code == 422

    def test_missing_property_is_404(self, client):
        response = client.post("/api/properties/PROP-NOPE/submit", headers=OWNER)
        assert response.status_code == 404

    def test_reject_with_reason(self, payload, review_client):
        pid = review_client.post("/api/properties", json=payload, headers=OWNER).json()["data"]["property_id"]
        review_client.post(f"/api/properties/{pid}/submit", headers=OWNER)

        response = review_client.post(
            f"/api/properties/{pid}/reject",
            json={"reason": "Missing documents"},
            headers=ADMIN,
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "REJECTED"


# =============================================================================
# Update / Delete / Read
# =============================================================================


class TestUpdateDeleteRead:
    """PUT, DELETE and GET."""

    def test_update_title(self, client, created):
        response = client.put(
            f"/api/properties/{created['property_id']}",
            json={"title": "Renovated 3BHK"},
            headers=OWNER,
        )
        assert response.status_code == 200
        assert response.json()["data"]["title"] == "Renovated 3BHK"
        assert response.json()["data"]["asset_id"] == created["asset_id"]

    def test_mark_sold(self, client, created):
        pid = created["property_id"]
        client.post(f"/api/properties/{pid}/submit", headers=OWNER)

        response = client.put(f"/api/properties/{pid}", json={"status": "SOLD"}, headers=OWNER)
        assert response.json()["data"]["status"] == "SOLD"

    def test_stranger_update_is_403(self, client, created):
        response = client.put(
            f"/api/properties/{created['property_id']}",
            json={"title": "Mine"},
            headers=OTHER,
        )
        assert response.status_code == 403

    def test_delete(self, client, created):
        pid = created["property_id"]
        assert client.delete(f"/api/properties/{pid}", headers=OTHER).status_code == 403
        assert client.delete(f"/api/properties/{pid}", headers=OWNER).status_code == 200
        assert client.get(f"/api/properties/{pid}").status_code == 404

    def test_get_and_verification(self, client, created):
        pid = created["property_id"]
        assert client.get(f"/api/properties/{pid}").json()["data"]["title"] == created["title"]

        record = client.get(f"/api/properties/{pid}/verification").json()["data"]
        assert record["asset_id"] == created["asset_id"]
        assert record["geo_verification"]["verified"] is True

    def test_list_hides_paused(self, client, created):
        pid = created["property_id"]
        client.post(f"/api/properties/{pid}/submit", headers=OWNER)
        client.post(f"/api/properties/{pid}/pause", headers=OWNER)

        public = client.get("/api/properties").json()
        assert public["pagination"]["total"] == 0

        own = client.get("/api/properties", params={"listed_by": "owner-1"}).json()
        assert [p["property_id"] for p in own["data"]] == [pid]

    def test_list_filters(self, client, created):
        response = client.get("/api/properties", params={"city": "bangalore", "category": "residential"})
        assert response.json()["pagination"]["total"] == 1

    def test_list_bad_status_is_400(self, client):
        assert client.get("/api/properties", params={"status": "LOST"}).status_code == 400

    def test_detail_fetch_counts_views(self, client, created):
        pid = created["property_id"]
        assert created["views"] == 0
        assert client.get(f"/api/properties/{pid}").json()["data"]["views"] == 1
        assert client.get(f"/api/properties/{pid}").json()["data"]["views"] == 2


# =============================================================================
# JSON client value types
# =============================================================================


class TestJsonValueTypes:
    """Numbers sent as strings and explicit nulls, as real JSON clients send them."""

    def test_string_numbers_are_coerced(self, client, payload):
        payload["residential"]["bhk"] = "3"
        payload["pricing"]["expected_price"] = "15000000"

        response = client.post("/api/properties", json=payload, headers=OWNER)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["residential"]["bhk"] == 3
        assert data["pricing"]["expected_price"] == 15_000_000

    def test_price_check_survives_string_comparables(self, client, payload):
        del payload["location"]["coordinates"]
        payload["residential"]["bhk"] = "3"
        for i in range(3):
            payload["title"] = f"Indiranagar flat {i}"
            pid = client.post("/api/properties", json=payload, headers=OWNER).json()["data"]["property_id"]
            assert client.post(f"/api/properties/{pid}/submit", headers=OWNER).status_code == 200

        payload["title"] = "Another Indiranagar flat"
        payload["residential"]["bhk"] = 3
        payload["pricing"]["expected_price"] = 60_000_000
        response = client.post("/api/properties", json=payload, headers=OTHER)

        assert response.status_code == 201
        assert response.json()["warnings"]

    def test_non_numeric_bhk_is_422(self, client, payload):
        payload["residential"]["bhk"] = "three"
        response = client.post("/api/properties", json=payload, headers=OWNER)
        assert response.status_code == 422

    def test_price_filter_after_string_price(self, client, payload):
        payload["pricing"]["expected_price"] = "9000000"
        assert client.post("/api/properties", json=payload, headers=OWNER).status_code == 201

        response = client.get("/api/properties", params={"min_price": 1})

        assert response.status_code == 200
        assert response.json()["pagination"]["total"] == 1

    @pytest.mark.parametrize("key", ["title", "transaction_type"])
    def test_null_required_field_is_400(self, client, created, key):
        pid = created["property_id"]

        response = client.put(f"/api/properties/{pid}", json={key: None}, headers=OWNER)

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_INPUT"
        listing = client.get("/api/properties")
        assert listing.status_code == 200
        assert listing.json()["data"][0][key] == created[key]
