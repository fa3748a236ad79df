"""Attachment upload and download API endpoints"""
import logging
import mimetypes
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from mower_manager.config import settings
from mower_manager.models.entities import AttachmentResponse
from mower_manager.repositories.storage import Storage, get_storage
from mower_manager.services.maintenance import ensure_writable
from mower_manager.api.v1.fleet import create_and_announce

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/attachments", tags=["attachments"])


def detect_file_type(content_type: Optional[str], filename: str) -> str:
    """Coarse attachment category: pdf, image, zip or document."""
    content_type = content_type or mimetypes.guess_type(filename)[0] or ""
    if content_type == "application/pdf":
        return "pdf"
    if content_type.startswith("image/"):
        return "image"
    if content_type in ("application/zip", "application/x-zip-compressed"):
        return "zip"
    return "document"


@router.get("", response_model=List[AttachmentResponse])
async def list_attachments(storage: Storage = Depends(get_storage)):
    """List attachment metadata. Payloads are only served by /download."""
    return await storage.get_all_attachments(include_data=False)


@router.get("/{attachment_id}", response_model=AttachmentResponse)
async def get_attachment(attachment_id: str, storage: Storage = Depends(get_storage)):
    attachment = await storage.get_attachment(attachment_id, include_data=False)
    if attachment is None:
        raise HTTPException(status_code=404, detail=f"Attachment not found: {attachment_id}")
    return attachment


@router.get("/{attachment_id}/download")
async def download_attachment(attachment_id: str, storage: Storage = Depends(get_storage)):
    attachment = await storage.get_attachment(attachment_id)
    if attachment is None:
        raise HTTPException(status_code=404, detail=f"Attachment not found: {attachment_id}")

    media_type = mimetypes.guess_type(attachment.file_name)[0] or "application/octet-stream"
    return Response(
        content=attachment.file_data,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{attachment.file_name}"'},
    )


@router.post(
    "",
    response_model=AttachmentResponse,
    status_code=201,
    dependencies=[Depends(ensure_writable)],
)
async def upload_attachment(
    file: UploadFile = File(...),
    mower_id: Optional[int] = Form(None, alias="mowerId"),
    component_id: Optional[int] = Form(None, alias="componentId"),
    part_id: Optional[int] = Form(None, alias="partId"),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    storage: Storage = Depends(get_storage),
):
    """Upload a file and attach it to exactly one mower, component or part."""
    owners = [owner for owner in (mower_id, component_id, part_id) if owner is not None]
    if len(owners) != 1:
        raise HTTPException(
            status_code=400,
            detail="Exactly one of mowerId, componentId or partId is required",
        )

    filename = file.filename or "upload"
    content = await file.read(settings.max_attachment_size + 1)
    if len(content) > settings.max_attachment_size:
        limit_mb = settings.max_attachment_size // (1024 * 1024)
        raise HTTPException(status_code=413, detail=f"File too large. Maximum size is {limit_mb}MB.")
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    data = {
        "mower_id": mower_id,
        "component_id": component_id,
        "part_id": part_id,
        "file_name": filename,
        "title": title or filename,
        "file_type": detect_file_type(file.content_type, filename),
        "file_size": len(content),
        "description": description,
    }

    async def create(values):
        return await storage.create_attachment(values, content)

    return await create_and_announce("attachment", create, data)
