from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime, timezone

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from stockkeeper.api import create_app
from stockkeeper.config import Settings
from stockkeeper.schemas import InventoryItem, MovementType, StockMovement
from stockkeeper.store import RecordStore


def ms(year: int, month: int, day: int, hour: int = 12) -> int:
    return int(datetime(year, month, day, hour, tzinfo=timezone.utc).timestamp() * 1000)


def make_item(item_id: str = "item-1", **overrides) -> InventoryItem:
    fields = {
        "id": item_id,
        "code": f"SKU-{item_id}",
        "name": f"Item {item_id}",
        "price": 10.0,
        "cost": 4.0,
        "quantity": 10,
        "min_stock": 5,
        "category": "Tools",
        "updated_at": ms(2024, 1, 1),
    }
    fields.update(overrides)
    return InventoryItem(**fields)


def make_movement(
    movement_id: str,
    item_name: str,
    quantity: int,
    date: int,
    *,
    item_id: str | None = None,
    type: MovementType = MovementType.OUT,
    reason: str | None = None,
) -> StockMovement:
    return StockMovement(
        id=movement_id,
        item_id=item_id or f"id-{item_name}",
        item_name=item_name,
        type=type,
        quantity=quantity,
        date=date,
        reason=reason,
    )


@pytest.fixture()
def settings(tmp_path) -> Settings:
    db_path = tmp_path / "test.db"
    return Settings(
        database_url=f"sqlite+aiosqlite:///{db_path}",
        environment="test",
        app_name="Test Stockkeeper",
        default_timezone="UTC",
    )


@pytest.fixture()
async def store(settings: Settings) -> AsyncIterator[RecordStore]:
    record_store = RecordStore.from_settings(settings)
    await record_store.init()
    yield record_store
    await record_store.dispose()


@pytest.fixture()
def app(settings: Settings, store: RecordStore) -> FastAPI:
    return create_app(settings, store=store)


@pytest.fixture()
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
