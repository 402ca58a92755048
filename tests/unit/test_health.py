from __future__ import annotations

from unittest.mock import AsyncMock, patch

from starlette.testclient import TestClient

from employee_vault.core import keyvault
from employee_vault.core.config import settings
from employee_vault.main import app
from employee_vault.services.employee_service import employee_service


def test_health_returns_status_and_services(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] in ("healthy", "degraded")
    assert "version" in data
    assert "cosmos_db" in data["services"]
    assert "key_vault" in data["services"]


def test_health_not_configured_is_healthy(client):
    response = client.get("/api/v1/health")
    data = response.json()
    assert data["status"] == "healthy"
    assert data["services"]["cosmos_db"] == "not_configured"
    assert data["services"]["key_vault"] == "not_configured"


def test_health_degraded_when_cosmos_check_fails(client):
    with (
        patch.object(employee_service, "initialized", True),
        patch.object(employee_service, "check_connection", AsyncMock(return_value=False)),
    ):
        response = client.get("/api/v1/health")

    data = response.json()
    assert data["status"] == "degraded"
    assert data["services"]["cosmos_db"] == "error"


def test_health_degraded_when_key_vault_failed(client):
    with patch.object(keyvault, "key_vault_status", "error"):
        response = client.get("/api/v1/health")

    data = response.json()
    assert data["status"] == "degraded"
    assert data["services"]["key_vault"] == "error"


def test_readiness_probe(client):
    response = client.get("/api/v1/health/ready")
    assert response.status_code == 200
    assert response.json()["ready"] is True


def test_health_protected_requires_auth(client):
    response = client.get("/api/v1/health/protected")
    assert response.status_code == 401


def test_health_protected_with_auth(authenticated_client):
    response = authenticated_client.get("/api/v1/health/protected")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["user"]["id"] == "admin-1"


def test_health_degraded_when_vault_client_cannot_be_built():
    with (
        patch.object(keyvault, "key_vault_status", "not_configured"),
        patch.object(settings, "KEY_VAULT_URL", "https://employee-vault.vault.azure.net/"),
        patch("employee_vault.core.keyvault.DefaultAzureCredential", side_effect=ValueError("bad credential config")),
        TestClient(app) as c,
    ):
        data = c.get("/api/v1/health").json()

    assert data["status"] == "degraded"
    assert data["services"]["key_vault"] == "error"
