"""
Tests for attachment API endpoints.

Endpoints tested:
- POST /api/v1/attachments (multipart upload)
- GET /api/v1/attachments
- GET /api/v1/attachments/{id}
- GET /api/v1/attachments/{id}/download
"""
from httpx import AsyncClient

from mower_manager.api.v1.attachments import detect_file_type
from mower_manager.config import settings


class TestUpload:
    async def test_upload_to_mower(self, client: AsyncClient, sample_mower):
        response = await client.post(
            "/api/v1/attachments",
            files={"file": ("manual.pdf", b"%PDF-1.4 owner manual", "application/pdf")},
            data={"mowerId": str(sample_mower.id), "title": "Owner manual"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["mowerId"] == sample_mower.id
        assert data["fileType"] == "pdf"
        assert data["fileSize"] == len(b"%PDF-1.4 owner manual")
        assert data["title"] == "Owner manual"
        assert "fileData" not in data

    async def test_upload_requires_single_owner(self, client: AsyncClient, sample_component):
        response = await client.post(
            "/api/v1/attachments",
            files={"file": ("a.pdf", b"%PDF", "application/pdf")},
            data={"mowerId": str(sample_component.mower_id), "componentId": str(sample_component.id)},
        )
        assert response.status_code == 400

    async def test_upload_without_owner(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/attachments",
            files={"file": ("a.pdf", b"%PDF", "application/pdf")},
        )
        assert response.status_code == 400

    async def test_upload_empty_file(self, client: AsyncClient, sample_part):
        response = await client.post(
            "/api/v1/attachments",
            files={"file": ("empty.txt", b"", "text/plain")},
            data={"partId": str(sample_part.id)},
        )
        assert response.status_code == 400

    async def test_upload_too_large(self, client: AsyncClient, sample_part, monkeypatch):
        monkeypatch.setattr(settings, "max_attachment_size", 8)
        response = await client.post(
            "/api/v1/attachments",
            files={"file": ("big.bin", b"0123456789", "application/octet-stream")},
            data={"partId": str(sample_part.id)},
        )
        assert response.status_code == 413


class TestRead:
    async def test_list_omits_payload(self, client: AsyncClient, sample_attachment):
        response = await client.get("/api/v1/attachments")
        assert response.status_code == 200
        items = response.json()
        assert [a["id"] for a in items] == [sample_attachment.id]
        assert "fileData" not in items[0]

    async def test_get_metadata(self, client: AsyncClient, sample_attachment):
        response = await client.get(f"/api/v1/attachments/{sample_attachment.id}")
        assert response.status_code == 200
        assert response.json()["fileName"] == "manual.pdf"

    async def test_download(self, client: AsyncClient, sample_attachment):
        response = await client.get(f"/api/v1/attachments/{sample_attachment.id}/download")
        assert response.status_code == 200
        assert response.content == sample_attachment.file_data
        assert response.headers["content-type"] == "application/pdf"
        assert 'filename="manual.pdf"' in response.headers["content-disposition"]

    async def test_download_missing(self, client: AsyncClient):
        response = await client.get("/api/v1/attachments/nope/download")
        assert response.status_code == 404


def test_detect_file_type():
    assert detect_file_type("application/pdf", "a.pdf") == "pdf"
    assert detect_file_type("image/png", "a.png") == "image"
    assert detect_file_type(None, "photo.jpg") == "image"
    assert detect_file_type("application/zip", "a.zip") == "zip"
    assert detect_file_type("text/plain", "notes.txt") == "document"
