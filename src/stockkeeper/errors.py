"""Exceptions raised by the stock keeping core."""
from __future__ import annotations


class InventoryError(Exception):
    """Base class for every error raised by :mod:`stockkeeper`."""


class StorageUnavailable(InventoryError, RuntimeError):
    """The record store is not initialised or the database failed."""


class ItemNotFound(InventoryError, LookupError):
    def __init__(self, item_id: str) -> None:
        super().__init__(f"Item {item_id} not found")
        self.item_id = item_id


class InsufficientStock(InventoryError, ValueError):
    def __init__(self, item_id: str, *, available: int, requested: int) -> None:
        super().__init__(
            f"Cannot remove {requested} from item {item_id}: only {available} in stock."
        )
        self.item_id = item_id
        self.available = available
        self.requested = requested


class InvalidItem(InventoryError, ValueError):
    """An item payload is missing required fields or carries bad values."""


class InvalidAdjustment(InventoryError, ValueError):
    """A stock adjustment request is malformed (e.g. non-positive quantity)."""


class InvalidBackupFormat(InventoryError, ValueError):
    """A backup document could not be parsed or is structurally incomplete."""


class AssistantUnavailable(InventoryError, RuntimeError):
    """The text generation service could not be reached or answered badly."""


__all__ = [
    "InventoryError",
    "StorageUnavailable",
    "ItemNotFound",
    "InsufficientStock",
    "InvalidItem",
    "InvalidAdjustment",
    "InvalidBackupFormat",
    "AssistantUnavailable",
]
