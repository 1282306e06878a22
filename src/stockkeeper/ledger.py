"""Stock adjustments and the movement history built from them."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, timezone, tzinfo

from . import crud
from .errors import InsufficientStock, InvalidAdjustment, ItemNotFound
from .inventory import new_identifier
from .schemas import MAX_QUANTITY, AdjustmentResult, InventoryItem, MovementType, StockMovement
from .store import RecordStore
from .timestamps import end_of_day_ms, now_ms, start_of_day_ms

logger = logging.getLogger(__name__)


async def adjust_stock(
    store: RecordStore,
    item_id: str,
    quantity: int,
    direction: MovementType | str,
    reason: str | None = None,
    *,
    now: int | None = None,
) -> AdjustmentResult:
    """Move ``quantity`` units in or out of an item and record the movement.

    The item update and the movement insert share one transaction, so readers
    never observe one without the other. Raises :class:`ItemNotFound` for an
    unknown id and :class:`InsufficientStock` when the result would be
    negative; in both cases nothing is written.
    """

    try:
        direction = MovementType(direction)
    except ValueError as exc:
        raise InvalidAdjustment(f"Unknown movement type: {direction!r}") from exc
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidAdjustment("Adjustment quantity must be a positive integer.")
    if quantity > MAX_QUANTITY:
        raise InvalidAdjustment(f"Adjustment quantity must not exceed {MAX_QUANTITY}.")

    timestamp = now if now is not None else now_ms()
    async with store.transaction() as session:
        record = await crud.get_item(session, item_id)
        if record is None:
            raise ItemNotFound(item_id)

        if direction is MovementType.IN:
            new_quantity = record.quantity + quantity
        else:
            new_quantity = record.quantity - quantity
        if new_quantity < 0:
            logger.warning(
                "Rejected %s of %d for item %s: %d available",
                direction.value,
                quantity,
                item_id,
                record.quantity,
            )
            raise InsufficientStock(item_id, available=record.quantity, requested=quantity)
        if new_quantity > MAX_QUANTITY:
            raise InvalidAdjustment(f"Stock level of item {item_id} would exceed {MAX_QUANTITY}.")

        record.quantity = new_quantity
        record.updated_at = timestamp
        movement = StockMovement(
            id=new_identifier(),
            item_id=record.id,
            item_name=record.name,
            type=direction,
            quantity=quantity,
            date=timestamp,
            reason=reason or None,
        )
        await crud.upsert_movement(session, movement)
        item = InventoryItem.model_validate(record)

    logger.info(
        "Stock %s %d for item %s, now %d", direction.value, quantity, item_id, item.quantity
    )
    return AdjustmentResult(item=item, movement=movement)


def search_movements(
    movements: Iterable[StockMovement],
    *,
    text: str | None = None,
    start: date | None = None,
    end: date | None = None,
    tz: tzinfo = timezone.utc,
) -> list[StockMovement]:
    """Filter the history by item name and an inclusive day range, newest first."""

    needle = (text or "").strip().lower()
    lower = start_of_day_ms(start, tz) if start is not None else None
    upper = end_of_day_ms(end, tz) if end is not None else None

    matches = []
    for movement in movements:
        if needle and needle not in movement.item_name.lower():
            continue
        if lower is not None and movement.date < lower:
            continue
        if upper is not None and movement.date > upper:
            continue
        matches.append(movement)
    matches.sort(key=lambda movement: movement.date, reverse=True)
    return matches


__all__ = ["adjust_stock", "search_movements"]
