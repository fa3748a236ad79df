"""
Tests for health, root and WebSocket endpoints.

Endpoints tested:
- GET /health
- GET /
- WS /api/v1/ws
"""
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport

from mower_manager.main import create_app


class TestHealthEndpoint:
    """Tests for GET /health."""

    async def test_health_returns_200(self, client: AsyncClient):
        """GET /health should return 200 with {"status": "healthy"}."""
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    async def test_health_method_not_allowed(self, client: AsyncClient):
        """POST /health should return 405 Method Not Allowed."""
        response = await client.post("/health")
        assert response.status_code == 405


class TestRootEndpoint:
    async def test_root_returns_api_info(self):
        """GET / should return API name, version and the main endpoints."""
        transport = ASGITransport(app=create_app())
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            response = await ac.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Mower Manager API"
        assert data["endpoints"]["backup"] == "/api/v1/backup"


def test_websocket_sends_welcome():
    client = TestClient(create_app())
    with client.websocket_connect("/api/v1/ws") as websocket:
        message = websocket.receive_json()
    assert message["type"] == "connection"
    assert message["message"] == "Connected to Mower Manager WebSocket"
