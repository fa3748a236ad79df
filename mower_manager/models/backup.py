"""
Pydantic models for backup archives and restore results.

Field names follow the archive format (camelCase on the wire):

    manifest.json = {version, timestamp, schemaVersion, totalRecords,
                     tables: {mowers, serviceRecords, attachments, tasks,
                              components, parts, assetParts}}
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from mower_manager.models.entities import CamelModel


class TableCounts(CamelModel):
    mowers: int = 0
    service_records: int = 0
    attachments: int = 0
    tasks: int = 0
    components: int = 0
    parts: int = 0
    asset_parts: int = 0

    def total(self) -> int:
        return sum(self.model_dump().values())


class BackupManifest(CamelModel):
    version: str
    timestamp: str
    schema_version: Optional[str] = None
    total_records: int = 0
    tables: TableCounts = Field(default_factory=TableCounts)


class BackupValidation(BaseModel):
    valid: bool
    error: Optional[str] = None


class SkippedRecord(BaseModel):
    table: str
    id: Optional[str] = None
    reason: str


class RestoreStats(CamelModel):
    total_records: int
    restored: TableCounts
    skipped: List[SkippedRecord] = Field(default_factory=list)
    manifest: BackupManifest


class RestoreResponse(BaseModel):
    success: bool
    message: str
    stats: RestoreStats
