"""
Maintenance mode - Process-wide guard around backup and restore.

While an export snapshot is being collected or a restore is running, a second
backup/restore is refused and mutating record routes answer 503.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional

from fastapi import HTTPException

logger = logging.getLogger(__name__)


class MaintenanceBusyError(Exception):
    """Raised when maintenance mode is already held by another operation."""

    def __init__(self, operation: Optional[str]):
        self.operation = operation
        self.message = f"A {operation or 'maintenance'} operation is already in progress"
        super().__init__(self.message)


class MaintenanceMode:
    def __init__(self):
        self.operation: Optional[str] = None
        self.started_at: Optional[datetime] = None

    @property
    def active(self) -> bool:
        return self.operation is not None

    @asynccontextmanager
    async def hold(self, operation: str) -> AsyncIterator[None]:
        """Enter maintenance mode for the duration of the block.

        Check-and-set happens without an await in between, so two requests on
        the same event loop cannot both acquire it.
        """
        if self.operation is not None:
            raise MaintenanceBusyError(self.operation)
        self.operation = operation
        self.started_at = datetime.utcnow()
        logger.info(f"Maintenance mode entered for {operation}")
        try:
            yield
        finally:
            elapsed = (datetime.utcnow() - self.started_at).total_seconds()
            logger.info(f"Maintenance mode released after {operation} ({elapsed:.1f}s)")
            self.operation = None
            self.started_at = None


maintenance = MaintenanceMode()


async def ensure_writable() -> None:
    """
    Dependency that rejects writes while a backup or restore is running.

    Usage in FastAPI:
        @router.post("/mowers", dependencies=[Depends(ensure_writable)])
    """
    if maintenance.active:
        raise HTTPException(
            status_code=503,
            detail=f"Service in maintenance: {maintenance.operation} in progress, try again shortly",
        )
