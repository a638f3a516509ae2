"""
Tests for the health endpoints
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from linear_bridge.api.routes.health import health_check
from linear_bridge.core.config import settings
from linear_bridge.main import app


@pytest.fixture
def http_client():
    return TestClient(app)


def test_liveness(http_client):
    response = http_client.get("/api/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_readiness(http_client):
    response = http_client.get("/api/health/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready"}


@pytest.mark.asyncio
async def test_health_check_connected(respx_mock):
    route = respx_mock.post(settings.LINEAR_API_URL).mock(
        return_value=httpx.Response(200, json={"data": {"viewer": {"id": "u1"}}})
    )

    status = await health_check()

    assert status["status"] == "healthy"
    assert status["checks"]["linear"] == {"status": "healthy", "message": "Connected"}
    assert route.calls.last.request.headers["Authorization"] == settings.LINEAR_API_KEY


@pytest.mark.asyncio
async def test_health_check_degraded_on_auth_failure(respx_mock):
    respx_mock.post(settings.LINEAR_API_URL).mock(return_value=httpx.Response(401))

    status = await health_check()

    assert status["status"] == "degraded"
    assert status["checks"]["linear"]["message"] == "HTTP 401"


@pytest.mark.asyncio
async def test_health_check_unreachable(respx_mock):
    respx_mock.post(settings.LINEAR_API_URL).mock(side_effect=httpx.ConnectError("connection refused"))

    status = await health_check()

    assert status["status"] == "degraded"
    assert status["checks"]["linear"]["status"] == "unhealthy"
