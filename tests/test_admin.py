"""Tests for the X-API-Key protected admin endpoints."""

from datetime import timedelta

import pytest

from alpinebridge.domain.models import RequestStatus

from .helpers import T0, TEST_HOTEL_CODE, make_guest_request

API_KEY = "admin-key-1"


@pytest.fixture
def admin_env(monkeypatch):
    monkeypatch.setenv("ADMIN_API_KEY", API_KEY)


@pytest.fixture
def seeded(store):
    store.insert_guest_request(make_guest_request(request_id="GR_a", created_at=T0))
    store.insert_guest_request(
        make_guest_request(
            request_id="GR_b", created_at=T0 + timedelta(hours=1), status=RequestStatus.SENT
        )
    )
    store.insert_guest_request(
        make_guest_request(request_id="GR_c", hotel_code="other", created_at=T0)
    )
    return store


class TestApiKey:
    def test_not_configured(self, client):
        response = client.get("/admin/hotels", headers={"X-API-Key": "x"})
        assert response.status_code == 500
        assert response.json()["error"] == "AUTH_NOT_CONFIGURED"

    def test_missing_key(self, client, admin_env):
        response = client.get("/admin/hotels")
        assert response.status_code == 401
        assert response.json()["error"] == "MISSING_API_KEY"

    def test_wrong_key(self, client, admin_env):
        response = client.get("/admin/hotels", headers={"X-API-Key": "wrong"})
        assert response.status_code == 403
        assert response.json()["error"] == "INVALID_API_KEY"


@pytest.mark.usefixtures("admin_env")
class TestAdminReads:
    def test_hotels(self, client):
        response = client.get("/admin/hotels", headers={"X-API-Key": API_KEY})
        assert response.status_code == 200
        assert response.json() == {
            "hotels": [{"hotelCode": TEST_HOTEL_CODE, "hotelName": "Hotel Alpenhof"}]
        }

    def test_requests_newest_first_without_contact_data(self, client, seeded):
        response = client.get(
            "/admin/requests",
            params={"hotel_code": TEST_HOTEL_CODE},
            headers={"X-API-Key": API_KEY},
        )
        body = response.json()
        assert body["count"] == 2
        assert [r["requestId"] for r in body["requests"]] == ["GR_b", "GR_a"]
        assert "guest@example.com" not in response.text
        assert body["requests"][0]["sentAt"] is None

    def test_requests_status_filter(self, client, seeded):
        response = client.get(
            "/admin/requests", params={"status": "sent"}, headers={"X-API-Key": API_KEY}
        )
        assert [r["requestId"] for r in response.json()["requests"]] == ["GR_b"]

    def test_requests_invalid_status(self, client):
        response = client.get(
            "/admin/requests", params={"status": "lost"}, headers={"X-API-Key": API_KEY}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    @pytest.mark.parametrize("limit", [0, 501])
    def test_requests_limit_bounds(self, client, limit):
        response = client.get(
            "/admin/requests", params={"limit": limit}, headers={"X-API-Key": API_KEY}
        )
        assert response.status_code == 400

    def test_requests_limit_applied(self, client, seeded):
        response = client.get(
            "/admin/requests", params={"limit": 1}, headers={"X-API-Key": API_KEY}
        )
        assert response.json()["count"] == 1

    def test_stats(self, client, seeded):
        response = client.get(
            "/admin/stats", params={"hotel_code": TEST_HOTEL_CODE}, headers={"X-API-Key": API_KEY}
        )
        assert response.json() == {
            "hotelCode": TEST_HOTEL_CODE,
            "counts": {"pending": 1, "sent": 1, "acknowledged": 0},
            "total": 2,
        }

    def test_storage_failure(self, client, store):
        store.fail_on.add("count_by_status")
        response = client.get("/admin/stats", headers={"X-API-Key": API_KEY})
        assert response.status_code == 500
        assert response.json()["error"] == "DATABASE_ERROR"
