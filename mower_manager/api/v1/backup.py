"""
Backup & Restore API - Export the whole dataset to a ZIP archive and
restore it from one.

Backup ZIP layout:
    manifest.json      Format version, timestamp and per-table record counts
    database.json      All records as JSON (attachment payloads stripped)
    attachments/       One file per attachment payload, grouped by owner
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import StreamingResponse

from mower_manager.config import settings
from mower_manager.models.backup import BackupValidation, RestoreResponse
from mower_manager.repositories.storage import Storage, get_storage
from mower_manager.services.backup_service import (
    BackupService,
    BackupServiceError,
    backup_filename,
    validate_backup_file,
)
from mower_manager.services.maintenance import MaintenanceBusyError, maintenance
from mower_manager.services.websocket_service import manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["backup"])

ZIP_CONTENT_TYPES = {
    "application/zip",
    "application/x-zip-compressed",
    "multipart/x-zip",
}


def _is_zip_upload(upload: UploadFile) -> bool:
    if upload.content_type in ZIP_CONTENT_TYPES:
        return True
    return bool(upload.filename) and upload.filename.lower().endswith(".zip")


async def _read_upload(upload: UploadFile) -> bytes:
    """Read an uploaded backup, enforcing type and size limits."""
    if not _is_zip_upload(upload):
        raise HTTPException(status_code=400, detail="Invalid file type. Please upload a ZIP file.")

    # One byte past the limit is enough to know it is too large
    content = await upload.read(settings.max_backup_size + 1)
    if len(content) > settings.max_backup_size:
        limit_mb = settings.max_backup_size // (1024 * 1024)
        raise HTTPException(status_code=413, detail=f"File too large. Maximum size is {limit_mb}MB.")
    return content


# ============ Backup Endpoint ============

@router.post("/backup")
async def create_backup(storage: Storage = Depends(get_storage)):
    """Stream a ZIP backup of all records and attachment files.

    The snapshot is collected before the response starts, so a storage
    failure still returns a JSON error instead of a broken download.
    """
    service = BackupService(storage)
    try:
        async with maintenance.hold("backup"):
            snapshot = await service.collect_snapshot()
    except MaintenanceBusyError as e:
        raise HTTPException(status_code=409, detail=e.message)
    except Exception as e:
        logger.exception("Backup creation failed")
        raise HTTPException(status_code=500, detail=f"Failed to create backup: {e}")

    filename = backup_filename()
    logger.info(f"Streaming backup {filename}")
    return StreamingResponse(
        service.stream_archive(snapshot),
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ============ Validate Endpoint ============

@router.post("/backup/validate", response_model=BackupValidation)
async def validate_backup(
    backup: UploadFile = File(..., description="The backup ZIP file"),
):
    """Check an upload looks like a backup archive without restoring it."""
    content = await _read_upload(backup)
    return validate_backup_file(content)


# ============ Restore Endpoint ============

@router.post("/restore", response_model=RestoreResponse)
async def restore_backup(
    backup: UploadFile = File(..., description="The backup ZIP file"),
    storage: Storage = Depends(get_storage),
):
    """Restore records and attachments from a backup archive.

    Records are added to the existing data. Records that fail (missing
    references, duplicate ids, unpaired attachment files) are skipped and
    listed in stats.skipped.
    """
    content = await _read_upload(backup)

    validation = validate_backup_file(content)
    if not validation.valid:
        raise HTTPException(status_code=400, detail=validation.error)

    logger.info(f"Processing backup file: {backup.filename} ({len(content)} bytes)")

    try:
        async with maintenance.hold("restore"):
            stats = await BackupService(storage).restore(content)
    except MaintenanceBusyError as e:
        raise HTTPException(status_code=409, detail=e.message)
    except BackupServiceError as e:
        logger.warning(f"Restore rejected ({e.code}): {e.message}")
        raise HTTPException(status_code=400, detail=e.message)
    except Exception as e:
        logger.exception("Restore failed")
        raise HTTPException(status_code=500, detail=f"Failed to restore backup: {e}")

    await manager.broadcast_event("backup-restored", {
        "totalRecords": stats.total_records,
        "restored": stats.restored.model_dump(by_alias=True),
        "skipped": len(stats.skipped),
    })

    message = f"Backup restored successfully. Restored {stats.total_records} records"
    if stats.skipped:
        message += f", skipped {len(stats.skipped)}"
    return RestoreResponse(success=True, message=message + ".", stats=stats)
