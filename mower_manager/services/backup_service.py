"""
Backup Service - Full dataset export and restore.

Archive layout:
    manifest.json                  counts and format version
    database.json                  every table as a JSON array (camelCase records,
                                   attachment payloads stripped)
    attachments/<bucket>/<parentId>/<attachmentId>_<fileName>
                                   one entry per attachment payload; bucket is
                                   mowers, components, parts or orphaned

Restore replays records in dependency order and skips (and reports) any record
that fails, so a partially damaged backup still restores everything it can.
It is not transactional.
"""

import asyncio
import io
import json
import logging
import zipfile
import zlib
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Mapping, Optional, Type

from mower_manager.config import settings
from mower_manager.db.models import (
    AssetPartDB,
    AttachmentDB,
    ComponentDB,
    MowerDB,
    PartDB,
    ServiceRecordDB,
    TaskDB,
)
from mower_manager.models.backup import (
    BackupManifest,
    BackupValidation,
    RestoreStats,
    SkippedRecord,
    TableCounts,
)
from mower_manager.models.entities import (
    AssetPartResponse,
    AttachmentResponse,
    CamelModel,
    ComponentResponse,
    MowerResponse,
    PartResponse,
    ServiceRecordResponse,
    TaskResponse,
)
from mower_manager.repositories.storage import Storage

logger = logging.getLogger(__name__)

# ============ Constants ============

BACKUP_VERSION = "1.3.4"
SCHEMA_VERSION = "1.3.4"

MANIFEST_NAME = "manifest.json"
DATABASE_NAME = "database.json"
ATTACHMENTS_PREFIX = "attachments/"

MIN_BACKUP_SIZE = 100
ZIP_SIGNATURE = b"PK"

# database.json key -> response model used to serialize the rows
DUMP_TABLES: Dict[str, Type[CamelModel]] = {
    "mowers": MowerResponse,
    "serviceRecords": ServiceRecordResponse,
    "attachments": AttachmentResponse,
    "tasks": TaskResponse,
    "components": ComponentResponse,
    "parts": PartResponse,
    "assetParts": AssetPartResponse,
}


# ============ Errors ============


class BackupServiceError(Exception):
    """Base exception for backup service errors."""

    def __init__(self, message: str, code: str = "BACKUP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class BackupFormatError(BackupServiceError):
    """Raised when the upload is not a readable ZIP archive."""

    def __init__(self, message: str):
        super().__init__(message, "INVALID_FORMAT")


class BackupStructureError(BackupServiceError):
    """Raised when a readable archive lacks the manifest or the data dump."""

    def __init__(self, message: str):
        super().__init__(message, "INVALID_STRUCTURE")


class MissingPayloadError(BackupServiceError):
    """Raised when no archive entry carries an attachment's file data."""

    def __init__(self, attachment_id: str):
        super().__init__(
            f"No file data found for attachment {attachment_id}", "MISSING_PAYLOAD"
        )


# ============ Snapshot ============


@dataclass
class BackupSnapshot:
    """Point-in-time copy of every table, taken at export time."""

    mowers: List[MowerDB]
    service_records: List[ServiceRecordDB]
    attachments: List[AttachmentDB]
    tasks: List[TaskDB]
    components: List[ComponentDB]
    parts: List[PartDB]
    asset_parts: List[AssetPartDB]

    def counts(self) -> TableCounts:
        return TableCounts(
            mowers=len(self.mowers),
            service_records=len(self.service_records),
            attachments=len(self.attachments),
            tasks=len(self.tasks),
            components=len(self.components),
            parts=len(self.parts),
            asset_parts=len(self.asset_parts),
        )

    def tables(self) -> Dict[str, list]:
        """Rows keyed by their database.json name."""
        return {
            "mowers": self.mowers,
            "serviceRecords": self.service_records,
            "attachments": self.attachments,
            "tasks": self.tasks,
            "components": self.components,
            "parts": self.parts,
            "assetParts": self.asset_parts,
        }


@dataclass
class ArchiveContents:
    """What the reader pulled out of an uploaded archive."""

    manifest: Optional[BackupManifest] = None
    data: Optional[Dict[str, Any]] = None
    attachment_files: Dict[str, bytes] = field(default_factory=dict)


# ============ Helpers ============


def build_manifest(counts: TableCounts, now: Optional[datetime] = None) -> BackupManifest:
    now = now or datetime.now(timezone.utc)
    return BackupManifest(
        version=BACKUP_VERSION,
        timestamp=now.isoformat().replace("+00:00", "Z"),
        schema_version=SCHEMA_VERSION,
        total_records=counts.total(),
        tables=counts,
    )


def build_database_dump(snapshot: BackupSnapshot) -> Dict[str, List[dict]]:
    """Serialize every table. Attachment rows carry metadata only."""
    return {
        key: [
            DUMP_TABLES[key].model_validate(row).model_dump(mode="json", by_alias=True)
            for row in rows
        ]
        for key, rows in snapshot.tables().items()
    }


def attachment_archive_path(attachment: AttachmentDB) -> str:
    """Archive path of an attachment payload, bucketed by its owner."""
    if attachment.mower_id is not None:
        folder = f"{ATTACHMENTS_PREFIX}mowers/{attachment.mower_id}"
    elif attachment.component_id is not None:
        folder = f"{ATTACHMENTS_PREFIX}components/{attachment.component_id}"
    elif attachment.part_id is not None:
        folder = f"{ATTACHMENTS_PREFIX}parts/{attachment.part_id}"
    else:
        folder = f"{ATTACHMENTS_PREFIX}orphaned"
    return f"{folder}/{attachment.id}_{attachment.file_name}"


def backup_filename(today: Optional[date] = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    return f"{settings.backup_filename_prefix}-{today.isoformat()}.zip"


def find_attachment_file(attachment_id: str, files: Mapping[str, bytes]) -> Optional[bytes]:
    """Find the payload for an attachment among buffered archive entries.

    An entry named <attachmentId>_<fileName> wins; otherwise the first path
    that contains the id at all.
    """
    if not attachment_id:
        return None
    prefix = f"{attachment_id}_"
    fallback = None
    for path, content in files.items():
        if path.rsplit("/", 1)[-1].startswith(prefix):
            return content
        if fallback is None and attachment_id in path:
            fallback = content
    return fallback


def validate_backup_file(buffer: bytes) -> BackupValidation:
    """Cheap sanity check of an upload. Only size and magic bytes are looked at."""
    if len(buffer) < MIN_BACKUP_SIZE:
        return BackupValidation(valid=False, error="File too small to be a valid backup")
    if buffer[:2] != ZIP_SIGNATURE:
        return BackupValidation(valid=False, error="Not a valid ZIP file")
    return BackupValidation(valid=True)


class _ZipStream:
    """Write-only, non-seekable sink that hands out what zipfile wrote so far.

    zipfile falls back to data descriptors when the target cannot seek, which
    lets each entry be flushed to the client as soon as it is written.
    """

    def __init__(self):
        self._chunks: List[bytes] = []
        self._offset = 0

    def write(self, data) -> int:
        self._chunks.append(bytes(data))
        self._offset += len(data)
        return len(data)

    def tell(self) -> int:
        return self._offset

    def flush(self) -> None:
        pass

    def drain(self) -> bytes:
        data = b"".join(self._chunks)
        self._chunks.clear()
        return data


def read_archive(buffer: bytes) -> ArchiveContents:
    """Read manifest, data dump and attachment payloads out of an archive.

    Unparseable manifest/dump entries are logged and left out; the caller
    decides whether what remains is usable.
    """
    try:
        zf = zipfile.ZipFile(io.BytesIO(buffer), "r")
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, ValueError) as e:
        raise BackupFormatError(f"Failed to read ZIP file: {e}") from e

    contents = ArchiveContents()
    with zf:
        for info in zf.infolist():
            if info.is_dir():
                continue

            try:
                data = zf.read(info)
            except (zipfile.BadZipFile, zlib.error, OSError, EOFError, RuntimeError, NotImplementedError) as e:
                logger.error(f"Error reading entry {info.filename}: {e}")
                continue

            if info.filename == MANIFEST_NAME:
                try:
                    contents.manifest = BackupManifest.model_validate(json.loads(data.decode("utf-8")))
                except ValueError as e:
                    logger.error(f"Failed to parse {MANIFEST_NAME}: {e}")
            elif info.filename == DATABASE_NAME:
                try:
                    parsed = json.loads(data.decode("utf-8"))
                except ValueError as e:
                    logger.error(f"Failed to parse {DATABASE_NAME}: {e}")
                    continue
                if isinstance(parsed, dict):
                    contents.data = parsed
                else:
                    logger.error(f"{DATABASE_NAME} is not a JSON object")
            elif info.filename.startswith(ATTACHMENTS_PREFIX):
                contents.attachment_files[info.filename] = data

    return contents


# ============ Service ============


class BackupService:
    """Export and restore the whole dataset through the storage gateway."""

    def __init__(self, storage: Storage):
        self.storage = storage

    # ---------- Export ----------

    async def collect_snapshot(self) -> BackupSnapshot:
        """Fetch every table concurrently."""
        logger.info("Fetching data from storage...")
        (
            mowers,
            service_records,
            attachments,
            tasks,
            components,
            parts,
            asset_parts,
        ) = await asyncio.gather(
            self.storage.get_all_mowers(),
            self.storage.get_all_service_records(),
            self.storage.get_all_attachments(),
            self.storage.get_all_tasks(),
            self.storage.get_all_components(),
            self.storage.get_all_parts(),
            self.storage.get_all_asset_parts(),
        )
        snapshot = BackupSnapshot(
            mowers=mowers,
            service_records=service_records,
            attachments=attachments,
            tasks=tasks,
            components=components,
            parts=parts,
            asset_parts=asset_parts,
        )
        logger.info(f"Data fetched: {snapshot.counts().model_dump()}")
        return snapshot

    async def stream_archive(self, snapshot: BackupSnapshot) -> AsyncIterator[bytes]:
        """Yield the backup ZIP chunk by chunk, one archive entry at a time."""
        manifest = build_manifest(snapshot.counts())
        dump = build_database_dump(snapshot)

        sink = _ZipStream()
        with zipfile.ZipFile(sink, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
            zf.writestr(MANIFEST_NAME, json.dumps(manifest.model_dump(mode="json", by_alias=True), indent=2))
            yield sink.drain()

            zf.writestr(DATABASE_NAME, json.dumps(dump, indent=2, ensure_ascii=False))
            yield sink.drain()

            logger.info("Adding attachment files to archive...")
            for attachment in snapshot.attachments:
                if not attachment.file_data:
                    continue
                try:
                    path = attachment_archive_path(attachment)
                    zf.writestr(path, bytes(attachment.file_data))
                except (TypeError, ValueError, OSError, zlib.error) as e:
                    logger.warning(f"Failed to add attachment {attachment.id} to backup: {e}")
                    continue
                chunk = sink.drain()
                if chunk:
                    yield chunk

            logger.info("Finalizing archive...")

        yield sink.drain()
        logger.info(f"Backup completed: {manifest.total_records} records")

    # ---------- Restore ----------

    async def restore(self, buffer: bytes) -> RestoreStats:
        """Restore records from a backup archive into the storage gateway.

        Raises BackupFormatError when the archive cannot be read and
        BackupStructureError when it lacks manifest.json or database.json;
        nothing is created in either case.
        """
        contents = read_archive(buffer)
        if contents.manifest is None:
            raise BackupStructureError(f"No {MANIFEST_NAME} found in backup")
        if contents.data is None:
            raise BackupStructureError(f"No {DATABASE_NAME} found in backup")

        manifest = contents.manifest
        if manifest.version != BACKUP_VERSION:
            logger.warning(
                f"Backup version {manifest.version} differs from current {BACKUP_VERSION}, restoring anyway"
            )
        logger.info(f"Starting restore process (backup from {manifest.timestamp}, {manifest.total_records} records)")

        replay = _Replay(self.storage, contents)
        await replay.run()
        await self.storage.sync_id_sequences()

        total = replay.restored.total()
        logger.info(f"Restore completed! Restored {total} records, skipped {len(replay.skipped)}.")
        return RestoreStats(
            total_records=total,
            restored=replay.restored,
            skipped=replay.skipped,
            manifest=manifest,
        )


class _Replay:
    """One sequential restore pass over the data dump."""

    def __init__(self, storage: Storage, contents: ArchiveContents):
        self.storage = storage
        self.data = contents.data or {}
        self.attachment_files = contents.attachment_files
        self.restored = TableCounts()
        self.skipped: List[SkippedRecord] = []

    async def run(self) -> None:
        # Parents before children: mowers and parts have no dependencies,
        # asset parts reference parts, mowers, components and service records.
        await self._replay_table("mowers", "mowers", self.storage.create_mower)
        await self._replay_table("parts", "parts", self.storage.create_part)
        await self._replay_table("components", "components", self.storage.create_component)
        await self._replay_table("tasks", "tasks", self.storage.create_task)
        await self._replay_table("serviceRecords", "service_records", self.storage.create_service_record)
        await self._replay_table("attachments", "attachments", self._create_attachment)
        await self._replay_table("assetParts", "asset_parts", self.storage.create_asset_part)

    async def _create_attachment(self, record: Mapping[str, Any]):
        attachment_id = str(record.get("id") or "")
        file_data = find_attachment_file(attachment_id, self.attachment_files)
        if file_data is None:
            raise MissingPayloadError(attachment_id)
        return await self.storage.create_attachment(record, file_data)

    async def _replay_table(
        self,
        key: str,
        table: str,
        create: Callable[[Mapping[str, Any]], Awaitable[Any]],
    ) -> None:
        records = self.data.get(key) or []
        if not isinstance(records, list):
            logger.warning(f"Skipping {key}: expected a list in {DATABASE_NAME}")
            return
        if not records:
            return

        logger.info(f"Restoring {len(records)} {key}...")
        for record in records:
            record_id = str(record.get("id")) if isinstance(record, dict) and record.get("id") is not None else None
            try:
                if not isinstance(record, dict):
                    raise ValueError("record is not a JSON object")
                await create(record)
            except Exception as e:
                reason = getattr(e, "message", None) or str(e)
                logger.warning(f"Failed to restore {table} record {record_id}: {reason}")
                self.skipped.append(SkippedRecord(table=table, id=record_id, reason=reason))
                continue
            setattr(self.restored, table, getattr(self.restored, table) + 1)
