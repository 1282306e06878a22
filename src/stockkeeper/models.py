"""Database models for the item, movement and config collections."""
from __future__ import annotations

from sqlalchemy import BigInteger, CheckConstraint, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base

CONFIG_KEY = "driveConfig"


class ItemRecord(Base):
    __tablename__ = "items"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_items_quantity_positive"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    price: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    cost: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    min_stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    category: Mapped[str] = mapped_column(String(128), default="", nullable=False)
    image_data: Mapped[str | None] = mapped_column(Text)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


class MovementRecord(Base):
    """Audit row for one stock change.

    ``item_id`` deliberately carries no foreign key: history outlives the item.
    """

    __tablename__ = "movements"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_movements_quantity_positive"),
        CheckConstraint("type IN ('IN', 'OUT')", name="ck_movements_type"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    item_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(3), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[int] = mapped_column(BigInteger, index=True, nullable=False)
    reason: Mapped[str | None] = mapped_column(String(255))


class ConfigRecord(Base):
    __tablename__ = "config"

    key: Mapped[str] = mapped_column(String(32), primary_key=True, default=CONFIG_KEY)
    client_id: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    api_key: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    folder_id: Mapped[str | None] = mapped_column(String(255))
    last_sync: Mapped[int | None] = mapped_column(BigInteger)


__all__ = [
    "CONFIG_KEY",
    "ItemRecord",
    "MovementRecord",
    "ConfigRecord",
]
