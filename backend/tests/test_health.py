"""
Tests for the FastAPI application and health endpoint.
"""

import pytest
from unittest.mock import patch, AsyncMock
from httpx import AsyncClient, ASGITransport

from dashboard.database import Database
from dashboard.main import app

pytestmark = pytest.mark.anyio


async def _get_health():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get("/api/health")


async def test_health_endpoint_healthy(database):
    """Health endpoint should return healthy when DB is connected."""
    app.state.database = database
    response = await _get_health()
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "connected"
    assert data["service"] == "Campaign Dashboard"


async def test_health_endpoint_degraded():
    """Health endpoint should return degraded when DB is disconnected."""
    app.state.database = Database("")
    response = await _get_health()
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["database"] == "disconnected"


async def test_health_endpoint_degraded_when_probe_fails(database):
    app.state.database = database
    with patch.object(Database, "check_connection", new_callable=AsyncMock, return_value=False):
        response = await _get_health()
    assert response.json()["status"] == "degraded"
