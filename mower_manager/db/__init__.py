"""
Database layer for Mower Manager.

This module provides:
- Database connection management
- SQLAlchemy ORM models
"""

from mower_manager.db.database import (
    init_db,
    drop_db,
    AsyncSessionLocal,
    engine,
)
from mower_manager.db.models import (
    MowerDB,
    ComponentDB,
    PartDB,
    ServiceRecordDB,
    TaskDB,
    AttachmentDB,
    AssetPartDB,
)

__all__ = [
    # Database
    "init_db",
    "drop_db",
    "AsyncSessionLocal",
    "engine",
    # Models
    "MowerDB",
    "ComponentDB",
    "PartDB",
    "ServiceRecordDB",
    "TaskDB",
    "AttachmentDB",
    "AssetPartDB",
]
