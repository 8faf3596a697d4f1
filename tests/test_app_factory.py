"""Tests for the app factory and public routes."""

from fastapi.testclient import TestClient

from alpinebridge.api.app import app
from alpinebridge.api.factory import create_app


class TestPublicRoutes:
    def test_health(self):
        response = TestClient(app).get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_service_info(self):
        body = TestClient(create_app()).get("/").json()
        assert body["service"] == "AlpineBridge"
        assert body["status"] == "healthy"
        assert body["timestamp"].endswith("Z")

    def test_unknown_route_json_404(self):
        response = TestClient(create_app()).get("/nope")
        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": "NOT_FOUND",
            "message": "Endpoint not found",
        }

    def test_wrong_method_not_rewritten(self):
        response = TestClient(create_app()).get("/alpinebits")
        assert response.status_code == 405


class TestCorrelationId:
    def test_generated_when_absent(self):
        response = TestClient(create_app()).get("/health")
        assert response.headers["X-Correlation-ID"]

    def test_propagated(self):
        response = TestClient(create_app()).get(
            "/health", headers={"X-Correlation-ID": "abc-123"}
        )
        assert response.headers["X-Correlation-ID"] == "abc-123"


class TestCors:
    def test_disabled_by_default(self):
        response = TestClient(create_app()).options(
            "/submit/alpenhof",
            headers={"Origin": "https://www.example.com", "Access-Control-Request-Method": "POST"},
        )
        assert "access-control-allow-origin" not in response.headers

    def test_configured_origin_allowed(self, monkeypatch):
        monkeypatch.setenv("CORS_ALLOW_ORIGINS", "https://www.example.com, https://example.org")
        response = TestClient(create_app()).options(
            "/submit/alpenhof",
            headers={"Origin": "https://www.example.com", "Access-Control-Request-Method": "POST"},
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "https://www.example.com"
