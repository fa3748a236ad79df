"""
Repository layer for Mower Manager.

This module provides the storage gateway used by the API routes and the
backup service.
"""

from mower_manager.repositories.storage import (
    Storage,
    StorageError,
    IntegrityViolationError,
    get_storage,
)

__all__ = [
    "Storage",
    "StorageError",
    "IntegrityViolationError",
    "get_storage",
]
