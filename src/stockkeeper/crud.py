"""Statement level helpers operating on an open :class:`AsyncSession`.

Nothing here commits; callers own the transaction boundary.
"""
from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from . import schemas
from .models import CONFIG_KEY, ConfigRecord, ItemRecord, MovementRecord


async def list_items(session: AsyncSession) -> Sequence[ItemRecord]:
    stmt = select(ItemRecord).order_by(ItemRecord.name, ItemRecord.id)
    result = await session.execute(stmt)
    return result.scalars().all()


async def get_item(session: AsyncSession, item_id: str) -> ItemRecord | None:
    return await session.get(ItemRecord, item_id)


async def upsert_item(session: AsyncSession, item: schemas.InventoryItem) -> ItemRecord:
    record = await session.merge(ItemRecord(**item.model_dump(mode="json")))
    await session.flush()
    return record


async def delete_item(session: AsyncSession, item_id: str) -> bool:
    result = await session.execute(delete(ItemRecord).where(ItemRecord.id == item_id))
    return result.rowcount > 0


async def list_movements(session: AsyncSession) -> Sequence[MovementRecord]:
    stmt = select(MovementRecord).order_by(MovementRecord.date, MovementRecord.id)
    result = await session.execute(stmt)
    return result.scalars().all()


async def movements_for_item(session: AsyncSession, item_id: str) -> Sequence[MovementRecord]:
    stmt = (
        select(MovementRecord)
        .where(MovementRecord.item_id == item_id)
        .order_by(MovementRecord.date.desc())
    )
    result = await session.execute(stmt)
    return result.scalars().all()


async def movements_between(
    session: AsyncSession, start: int | None, end: int | None
) -> Sequence[MovementRecord]:
    stmt = select(MovementRecord)
    if start is not None:
        stmt = stmt.where(MovementRecord.date >= start)
    if end is not None:
        stmt = stmt.where(MovementRecord.date <= end)
    result = await session.execute(stmt.order_by(MovementRecord.date.desc()))
    return result.scalars().all()


async def upsert_movement(
    session: AsyncSession, movement: schemas.StockMovement
) -> MovementRecord:
    record = await session.merge(MovementRecord(**movement.model_dump(mode="json")))
    await session.flush()
    return record


async def get_config(session: AsyncSession) -> ConfigRecord | None:
    return await session.get(ConfigRecord, CONFIG_KEY)


async def put_config(session: AsyncSession, config: schemas.DriveConfig) -> ConfigRecord:
    record = await session.merge(ConfigRecord(key=CONFIG_KEY, **config.model_dump()))
    await session.flush()
    return record


__all__ = [name for name in globals() if not name.startswith("_")]
