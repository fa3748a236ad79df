"""
Service layer for Mower Manager.

This module provides business logic for:
- Backup export and restore
- Maintenance mode during backup/restore
- WebSocket change notifications
"""

from mower_manager.services.backup_service import (
    BackupService,
    BackupServiceError,
    BackupFormatError,
    BackupStructureError,
    MissingPayloadError,
    validate_backup_file,
)
from mower_manager.services.maintenance import (
    MaintenanceBusyError,
    MaintenanceMode,
    ensure_writable,
    maintenance,
)
from mower_manager.services.websocket_service import ConnectionManager, manager

__all__ = [
    "BackupService",
    "BackupServiceError",
    "BackupFormatError",
    "BackupStructureError",
    "MissingPayloadError",
    "validate_backup_file",
    "MaintenanceBusyError",
    "MaintenanceMode",
    "ensure_writable",
    "maintenance",
    "ConnectionManager",
    "manager",
]
