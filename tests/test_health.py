"""Test health check and client config endpoints."""

from fastapi.testclient import TestClient

from trainingpulse.core.config import Settings
from trainingpulse.main import app, create_app

client = TestClient(app)


def _settings(**overrides) -> Settings:
    return Settings(SUPABASE_URL="https://test.supabase.co", SUPABASE_SERVICE_ROLE_KEY="test-key", **overrides)


def test_health_check():
    """Test that /health returns 200 with status ok."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"


def test_config_exposes_features_and_upload_limits():
    response = TestClient(create_app(_settings(ENABLE_BULK_OPERATIONS=False, ALLOWED_UPLOAD_TYPES="PDF, png"))).get(
        "/api/v1/config"
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["features"]["bulkOperations"] is False
    assert data["features"]["workflows"] is True
    assert data["uploads"]["allowedTypes"] == ["pdf", "png"]


def test_disabled_feature_routes_are_not_mounted():
    disabled = TestClient(create_app(_settings(ENABLE_ANALYTICS=False)))
    assert disabled.get("/api/v1/analytics/bottlenecks").status_code == 404


def test_protected_routes_require_auth():
    response = client.get("/api/v1/courses")
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"


def test_api_version_changes_prefix():
    versioned = TestClient(create_app(_settings(API_VERSION="v2")))
    assert versioned.get("/api/v2/config").json()["data"]["apiVersion"] == "v2"
