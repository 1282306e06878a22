"""Single-user stock keeping service."""
from __future__ import annotations

from .errors import (
    InsufficientStock,
    InvalidBackupFormat,
    InvalidItem,
    ItemNotFound,
    StorageUnavailable,
)
from .store import RecordStore

__all__ = [
    "RecordStore",
    "StorageUnavailable",
    "ItemNotFound",
    "InsufficientStock",
    "InvalidItem",
    "InvalidBackupFormat",
]
