"""Item lifecycle: validated creation, explicit updates and deletion."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from . import crud
from .errors import InvalidItem, ItemNotFound
from .schemas import InventoryItem, ItemCreate, ItemUpdate
from .store import RecordStore
from .timestamps import now_ms

logger = logging.getLogger(__name__)

# The only item field that may be cleared with an explicit null.
_NULLABLE_FIELDS = frozenset({"image_data"})


def new_identifier() -> str:
    return uuid.uuid4().hex


def _coerce(model: type[ItemCreate] | type[ItemUpdate], data: Any):
    if isinstance(data, model):
        return data
    if not isinstance(data, Mapping):
        raise InvalidItem(f"Expected a mapping of item fields, got {type(data).__name__}")
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise InvalidItem(str(exc)) from exc


def build_item(data: ItemCreate | Mapping[str, Any], *, now: int | None = None) -> InventoryItem:
    """Turn validated input into a new item with a fresh identifier."""

    payload = _coerce(ItemCreate, data)
    return InventoryItem(
        id=new_identifier(),
        updated_at=now if now is not None else now_ms(),
        **payload.model_dump(),
    )


def apply_update(
    item: InventoryItem, changes: ItemUpdate | Mapping[str, Any], *, now: int | None = None
) -> InventoryItem:
    """Return a copy of ``item`` with the explicitly provided fields replaced.

    ``id`` and ``quantity`` are never taken from ``changes``. Only
    ``image_data`` may be cleared with ``None``.
    """

    update = _coerce(ItemUpdate, changes)
    fields = update.model_dump(exclude_unset=True)
    for name, value in fields.items():
        if value is None and name not in _NULLABLE_FIELDS:
            raise InvalidItem(f"{name} must not be null")
    fields["updated_at"] = now if now is not None else now_ms()
    return item.model_copy(update=fields)


async def create_item(
    store: RecordStore, data: ItemCreate | Mapping[str, Any], *, now: int | None = None
) -> InventoryItem:
    item = build_item(data, now=now)
    saved = await store.put_item(item)
    logger.info("Created item %s (%s)", saved.id, saved.code)
    return saved


async def update_item(
    store: RecordStore,
    item_id: str,
    changes: ItemUpdate | Mapping[str, Any],
    *,
    now: int | None = None,
) -> InventoryItem:
    async with store.transaction() as session:
        record = await crud.get_item(session, item_id)
        if record is None:
            raise ItemNotFound(item_id)
        updated = apply_update(InventoryItem.model_validate(record), changes, now=now)
        await crud.upsert_item(session, updated)
    return updated


async def delete_item(store: RecordStore, item_id: str) -> bool:
    """Delete an item. Its movements stay in the ledger."""

    removed = await store.delete_item(item_id)
    if removed:
        logger.info("Deleted item %s", item_id)
    return removed


__all__ = [
    "new_identifier",
    "build_item",
    "apply_update",
    "create_item",
    "update_item",
    "delete_item",
]
