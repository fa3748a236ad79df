"""
Tests for fleet record API endpoints.

Endpoints tested:
- GET/POST /api/v1/mowers, GET /api/v1/mowers/{id}
- GET/POST /api/v1/components, /api/v1/parts
- GET/POST /api/v1/service-records, /api/v1/tasks, /api/v1/asset-parts
"""
from httpx import AsyncClient

from mower_manager.services.maintenance import maintenance
from mower_manager.services.websocket_service import manager
from tests.mocks.mock_websocket import MockWebSocket


class TestMowers:
    async def test_create_mower(self, client: AsyncClient):
        response = await client.post("/api/v1/mowers", json={
            "make": "Honda",
            "model": "HRX217",
            "serialNumber": "HRX-9",
            "purchasePrice": "649.00",
        })
        assert response.status_code == 201
        data = response.json()
        assert data["id"] > 0
        assert data["serialNumber"] == "HRX-9"
        assert data["status"] == "active"

    async def test_create_mower_validation_error(self, client: AsyncClient):
        response = await client.post("/api/v1/mowers", json={"make": "Honda"})
        assert response.status_code == 422

    async def test_create_broadcasts_event(self, client: AsyncClient):
        ws = MockWebSocket()
        await manager.connect(ws)
        response = await client.post("/api/v1/mowers", json={"make": "Honda", "model": "HRX217"})
        event = ws.sent[-1]
        assert event["type"] == "mower-created"
        assert event["data"]["id"] == response.json()["id"]

    async def test_list_and_get(self, client: AsyncClient, sample_mower):
        listed = await client.get("/api/v1/mowers")
        assert [m["id"] for m in listed.json()] == [sample_mower.id]

        response = await client.get(f"/api/v1/mowers/{sample_mower.id}")
        assert response.status_code == 200
        assert response.json()["make"] == "Toro"

    async def test_get_missing(self, client: AsyncClient):
        response = await client.get("/api/v1/mowers/999")
        assert response.status_code == 404

    async def test_duplicate_id_conflict(self, client: AsyncClient, sample_mower):
        response = await client.post("/api/v1/mowers", json={"id": sample_mower.id, "make": "A", "model": "B"})
        assert response.status_code == 409

    async def test_writes_rejected_during_maintenance(self, client: AsyncClient):
        async with maintenance.hold("restore"):
            response = await client.post("/api/v1/mowers", json={"make": "Honda", "model": "HRX217"})
            listed = await client.get("/api/v1/mowers")
        assert response.status_code == 503
        assert listed.status_code == 200


class TestComponentsAndParts:
    async def test_create_component(self, client: AsyncClient, sample_mower):
        response = await client.post("/api/v1/components", json={"mowerId": sample_mower.id, "name": "Briggs 500"})
        assert response.status_code == 201
        assert response.json()["mowerId"] == sample_mower.id

    async def test_get_component(self, client: AsyncClient, sample_component):
        response = await client.get(f"/api/v1/components/{sample_component.id}")
        assert response.status_code == 200
        assert response.json()["name"] == "Kohler 7000"

    async def test_create_part(self, client: AsyncClient):
        response = await client.post("/api/v1/parts", json={
            "name": "Air Filter",
            "partNumber": "AF-7",
            "category": "filter",
            "stockQuantity": 3,
        })
        assert response.status_code == 201
        assert response.json()["stockQuantity"] == 3

    async def test_list_parts(self, client: AsyncClient, sample_part):
        response = await client.get("/api/v1/parts")
        assert [p["partNumber"] for p in response.json()] == ["BLT-42"]


class TestServiceRecordsAndTasks:
    async def test_service_record_updates_mower(self, client: AsyncClient, sample_mower):
        response = await client.post("/api/v1/service-records", json={
            "mowerId": sample_mower.id,
            "serviceDate": "2024-05-01T09:30:00",
            "serviceType": "maintenance",
            "description": "Oil change",
        })
        assert response.status_code == 201

        mower = (await client.get(f"/api/v1/mowers/{sample_mower.id}")).json()
        assert mower["lastServiceDate"] == "2024-05-01"
        assert mower["nextServiceDate"] == "2025-05-01"

    async def test_service_record_for_missing_mower(self, client: AsyncClient):
        response = await client.post("/api/v1/service-records", json={
            "mowerId": 404,
            "serviceDate": "2024-05-01T09:30:00",
            "serviceType": "repair",
            "description": "Nothing",
        })
        assert response.status_code == 409

    async def test_create_and_list_tasks(self, client: AsyncClient, sample_mower):
        response = await client.post("/api/v1/tasks", json={"mowerId": sample_mower.id, "title": "Replace belt"})
        assert response.status_code == 201
        assert response.json()["priority"] == "medium"

        tasks = (await client.get("/api/v1/tasks")).json()
        assert [t["title"] for t in tasks] == ["Replace belt"]


class TestAssetParts:
    async def test_allocate_part_to_mower(self, client: AsyncClient, sample_mower, sample_part):
        response = await client.post("/api/v1/asset-parts", json={
            "partId": sample_part.id,
            "mowerId": sample_mower.id,
            "quantity": 2,
        })
        assert response.status_code == 201
        assert response.json()["quantity"] == 2

    async def test_allocation_requires_asset(self, client: AsyncClient, sample_part):
        response = await client.post("/api/v1/asset-parts", json={"partId": sample_part.id})
        assert response.status_code == 400
        assert "mower or a component" in response.json()["detail"]
