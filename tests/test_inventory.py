from __future__ import annotations

import pytest

from conftest import ms
from stockkeeper import inventory, ledger
from stockkeeper.errors import InvalidItem, ItemNotFound
from stockkeeper.schemas import ItemCreate, ItemUpdate, MovementType
from stockkeeper.store import RecordStore


async def test_create_item_generates_id_and_timestamp(store: RecordStore) -> None:
    item = await inventory.create_item(
        store,
        ItemCreate(code="SCR-01", name="Screws", quantity=10, min_stock=3, price=0.5),
        now=ms(2024, 6, 1),
    )

    assert item.id
    assert item.updated_at == ms(2024, 6, 1)
    assert item.quantity == 10

    fetched = await store.get_item(item.id)
    assert fetched == item


async def test_create_item_accepts_camel_case_mapping(store: RecordStore) -> None:
    item = await inventory.create_item(
        store, {"code": "A1", "name": "Anchor", "minStock": 4, "imageData": "data:image/png;base64,AA=="}
    )
    assert item.min_stock == 4
    assert item.image_data.startswith("data:image/png")


async def test_identifiers_are_unique(store: RecordStore) -> None:
    first = await inventory.create_item(store, {"code": "X", "name": "Same"})
    second = await inventory.create_item(store, {"code": "X", "name": "Same"})
    assert first.id != second.id
    assert len(await store.list_items()) == 2


@pytest.mark.parametrize(
    "payload",
    [
        {"code": "", "name": "Nameless code"},
        {"code": "C1", "name": "   "},
        {"name": "Missing code"},
        {"code": "C1", "name": "Negative", "price": -1},
        "not a mapping",
    ],
)
async def test_create_item_rejects_invalid_input(store: RecordStore, payload) -> None:
    with pytest.raises(InvalidItem):
        await inventory.create_item(store, payload)
    assert await store.list_items() == []


async def test_update_item_changes_only_given_fields(store: RecordStore) -> None:
    item = await inventory.create_item(
        store, {"code": "K1", "name": "Key", "quantity": 4, "category": "Locks"}, now=ms(2024, 1, 1)
    )

    updated = await inventory.update_item(
        store, item.id, ItemUpdate(name="Brass key", price=2.5), now=ms(2024, 2, 1)
    )

    assert updated.name == "Brass key"
    assert updated.price == 2.5
    assert updated.code == "K1"
    assert updated.category == "Locks"
    assert updated.quantity == 4
    assert updated.updated_at == ms(2024, 2, 1)
    assert await store.get_item(item.id) == updated


async def test_update_item_rejects_quantity_and_blank_name(store: RecordStore) -> None:
    item = await inventory.create_item(store, {"code": "K1", "name": "Key", "quantity": 4})

    with pytest.raises(InvalidItem):
        await inventory.update_item(store, item.id, {"quantity": 100})
    with pytest.raises(InvalidItem):
        await inventory.update_item(store, item.id, {"name": ""})
    with pytest.raises(InvalidItem):
        await inventory.update_item(store, item.id, {"code": None})

    assert (await store.get_item(item.id)).quantity == 4


async def test_update_missing_item(store: RecordStore) -> None:
    with pytest.raises(ItemNotFound):
        await inventory.update_item(store, "ghost", {"name": "Boo"})


async def test_delete_item_keeps_history(store: RecordStore) -> None:
    item = await inventory.create_item(store, {"code": "D1", "name": "Drill", "quantity": 2})
    await ledger.adjust_stock(store, item.id, 1, MovementType.OUT)

    assert await inventory.delete_item(store, item.id) is True
    assert await inventory.delete_item(store, item.id) is False

    history = await store.movements_for_item(item.id)
    assert len(history) == 1
    assert history[0].item_name == "Drill"


@pytest.mark.parametrize("field", ["code", "name", "description", "price", "cost", "minStock", "category"])
async def test_update_item_rejects_null_for_required_fields(store: RecordStore, field: str) -> None:
    item = await inventory.create_item(store, {"code": "K1", "name": "Key", "description": "Brass"})

    with pytest.raises(InvalidItem):
        await inventory.update_item(store, item.id, {field: None})

    assert await store.get_item(item.id) == item


async def test_update_item_can_clear_image(store: RecordStore) -> None:
    item = await inventory.create_item(
        store, {"code": "K1", "name": "Key", "imageData": "data:image/png;base64,AA=="}
    )
    updated = await inventory.update_item(store, item.id, {"imageData": None})
    assert updated.image_data is None
    assert (await store.get_item(item.id)).image_data is None


@pytest.mark.parametrize(
    "payload",
    [
        {"code": "C1", "name": "Huge", "quantity": 2**63},
        {"code": "C1", "name": "Huge", "minStock": 2**63},
        {"code": "C1", "name": "Odd price", "price": float("nan")},
        {"code": "C1", "name": "Odd cost", "cost": float("inf")},
    ],
)
async def test_create_item_rejects_unstorable_numbers(store: RecordStore, payload) -> None:
    with pytest.raises(InvalidItem):
        await inventory.create_item(store, payload)
    assert await store.list_items() == []
