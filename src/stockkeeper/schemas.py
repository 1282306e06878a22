"""Pydantic schemas shared by the store, the analytics and the API.

Wire names are camelCase (``minStock``, ``itemId``...) so backup documents stay
compatible with exports produced by earlier clients; attribute names are
snake_case and both spellings are accepted on input.
"""
from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from .timestamps import MAX_TIMESTAMP_MS, MIN_TIMESTAMP_MS

BACKUP_VERSION = 1
MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
# Largest value an SQLite INTEGER column holds.
MAX_QUANTITY = 2**63 - 1

Quantity = Annotated[int, Field(ge=0, le=MAX_QUANTITY)]
Amount = Annotated[float, Field(ge=0, allow_inf_nan=False)]
Timestamp = Annotated[int, Field(ge=MIN_TIMESTAMP_MS, le=MAX_TIMESTAMP_MS)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MovementType(str, Enum):
    IN = "IN"
    OUT = "OUT"


def _require_text(value: str | None, field: str) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError(f"{field} must not be blank")
    return value


class InventoryItem(CamelModel):
    id: str
    code: str
    name: str
    description: str = ""
    price: Amount = 0.0
    cost: Amount = 0.0
    quantity: Quantity = 0
    min_stock: Quantity = 0
    category: str = ""
    image_data: str | None = None
    updated_at: Timestamp


class ItemCreate(CamelModel):
    code: str
    name: str
    description: str = ""
    price: Amount = 0.0
    cost: Amount = 0.0
    quantity: Quantity = Field(0, description="Opening stock level.")
    min_stock: Quantity = 0
    category: str = ""
    image_data: str | None = None

    @field_validator("code", "name")
    @classmethod
    def _not_blank(cls, value: str, info: ValidationInfo) -> str:
        return _require_text(value, info.field_name)


class ItemUpdate(CamelModel):
    """Editable item fields. Quantity only changes through stock adjustments."""

    model_config = ConfigDict(extra="forbid")

    code: str | None = None
    name: str | None = None
    description: str | None = None
    price: Amount | None = None
    cost: Amount | None = None
    min_stock: Quantity | None = None
    category: str | None = None
    image_data: str | None = None

    @field_validator("code", "name")
    @classmethod
    def _not_blank(cls, value: str | None, info: ValidationInfo) -> str | None:
        return _require_text(value, info.field_name)


class StockMovement(CamelModel):
    id: str
    item_id: str
    item_name: str
    type: MovementType
    quantity: int = Field(..., gt=0, le=MAX_QUANTITY)
    date: Timestamp
    reason: str | None = None


class StockAdjustment(CamelModel):
    quantity: int = Field(..., gt=0, le=MAX_QUANTITY, description="Magnitude of the change.")
    type: MovementType
    reason: str | None = None


class AdjustmentResult(CamelModel):
    item: InventoryItem
    movement: StockMovement


class DriveConfig(CamelModel):
    client_id: str = ""
    api_key: str = ""
    folder_id: str | None = None
    last_sync: Timestamp | None = None


class BackupDocument(CamelModel):
    items: list[InventoryItem]
    movements: list[StockMovement]
    config: DriveConfig | None = None
    version: int = BACKUP_VERSION
    exported_at: Timestamp | None = None


class ImportSummary(CamelModel):
    items: int
    movements: int
    config_replaced: bool


class InventoryKpis(CamelModel):
    item_count: int = 0
    total_value: float = 0.0
    total_units: int = 0
    low_stock_count: int = 0


class Dashboard(CamelModel):
    kpis: InventoryKpis
    low_stock: list[InventoryItem]
    recent_movements: list[StockMovement]


class RankedItem(CamelModel):
    name: str
    total: int
    peak_month: int | None = None


class MatrixRow(CamelModel):
    name: str
    months: list[int]
    total: int


class MonthlyPoint(CamelModel):
    index: int
    label: str
    values: dict[str, int]


class YearlyReport(CamelModel):
    year: int
    search: str | None = None
    category: str | None = None
    top_items: list[RankedItem]
    matrix: list[MatrixRow]
    series: list[MonthlyPoint]
    total_units: int
    estimated_value: float


class AssistantQuestion(CamelModel):
    question: str = Field(..., min_length=1)


class DescriptionRequest(CamelModel):
    name: str = Field(..., min_length=1)
    category: str = ""


class AssistantAnswer(CamelModel):
    answer: str


class HealthStatus(BaseModel):
    status: Literal["ok"] = "ok"
    environment: str


__all__ = [
    "BACKUP_VERSION",
    "MONTH_LABELS",
    "MAX_QUANTITY",
    "MovementType",
    "InventoryItem",
    "ItemCreate",
    "ItemUpdate",
    "StockMovement",
    "StockAdjustment",
    "AdjustmentResult",
    "DriveConfig",
    "BackupDocument",
    "ImportSummary",
    "InventoryKpis",
    "Dashboard",
    "RankedItem",
    "MatrixRow",
    "MonthlyPoint",
    "YearlyReport",
    "AssistantQuestion",
    "DescriptionRequest",
    "AssistantAnswer",
    "HealthStatus",
]
