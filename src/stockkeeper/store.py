"""Durable storage for items, movements and the sync configuration."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from . import crud
from .config import Settings
from .database import Base, create_engine, create_session_factory
from .errors import ItemNotFound, StorageUnavailable
from .schemas import DriveConfig, InventoryItem, StockMovement

logger = logging.getLogger(__name__)


class RecordStore:
    """Owns the three collections and the transaction boundary around them.

    Construct one per process, call :meth:`init` before anything else and
    :meth:`dispose` on shutdown. Every operation raises
    :class:`~stockkeeper.errors.StorageUnavailable` when the store has not been
    initialised or when the database driver fails.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._sessions = create_session_factory(engine)
        self._ready = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "RecordStore":
        return cls(create_engine(settings))

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def ready(self) -> bool:
        return self._ready

    async def init(self) -> None:
        """Create the schema. Safe to call more than once."""

        if self._ready:
            return
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Could not initialise storage at %s", self._engine.url)
            raise StorageUnavailable(f"Storage could not be initialised: {exc}") from exc
        self._ready = True
        logger.info("Record store ready (%s)", self._engine.url)

    async def dispose(self) -> None:
        self._ready = False
        await self._engine.dispose()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Yield a session whose writes commit together or not at all."""

        if not self._ready:
            raise StorageUnavailable("Record store used before init()")
        try:
            async with self._sessions() as session:
                async with session.begin():
                    yield session
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Storage operation failed")
            raise StorageUnavailable(f"Storage operation failed: {exc}") from exc

    async def list_items(self) -> list[InventoryItem]:
        async with self.transaction() as session:
            records = await crud.list_items(session)
            return [InventoryItem.model_validate(record) for record in records]

    async def get_item(self, item_id: str) -> InventoryItem:
        async with self.transaction() as session:
            record = await crud.get_item(session, item_id)
            if record is None:
                raise ItemNotFound(item_id)
            return InventoryItem.model_validate(record)

    async def put_item(self, item: InventoryItem) -> InventoryItem:
        async with self.transaction() as session:
            record = await crud.upsert_item(session, item)
            return InventoryItem.model_validate(record)

    async def delete_item(self, item_id: str) -> bool:
        """Remove an item; returns ``False`` when nothing matched."""

        async with self.transaction() as session:
            return await crud.delete_item(session, item_id)

    async def list_movements(self) -> list[StockMovement]:
        async with self.transaction() as session:
            records = await crud.list_movements(session)
            return [StockMovement.model_validate(record) for record in records]

    async def movements_for_item(self, item_id: str) -> list[StockMovement]:
        async with self.transaction() as session:
            records = await crud.movements_for_item(session, item_id)
            return [StockMovement.model_validate(record) for record in records]

    async def movements_between(
        self, start: int | None = None, end: int | None = None
    ) -> list[StockMovement]:
        async with self.transaction() as session:
            records = await crud.movements_between(session, start, end)
            return [StockMovement.model_validate(record) for record in records]

    async def append_movement(self, movement: StockMovement) -> StockMovement:
        async with self.transaction() as session:
            record = await crud.upsert_movement(session, movement)
            return StockMovement.model_validate(record)

    async def get_config(self) -> DriveConfig:
        async with self.transaction() as session:
            record = await crud.get_config(session)
            if record is None:
                return DriveConfig()
            return DriveConfig.model_validate(record)

    async def put_config(self, config: DriveConfig) -> DriveConfig:
        async with self.transaction() as session:
            record = await crud.put_config(session, config)
            return DriveConfig.model_validate(record)


__all__ = ["RecordStore"]
