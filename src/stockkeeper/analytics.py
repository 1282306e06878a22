"""Derived figures over a snapshot of items and movements.

Every function here is pure: it takes the current lists and returns fresh
results, so callers simply recompute whenever they need up-to-date numbers.
Empty inputs produce zeros and empty lists.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import timezone, tzinfo

from .schemas import (
    MONTH_LABELS,
    Dashboard,
    InventoryItem,
    InventoryKpis,
    MatrixRow,
    MonthlyPoint,
    MovementType,
    RankedItem,
    StockMovement,
    YearlyReport,
)
from .timestamps import from_ms

DEFAULT_TOP_N = 10


def low_stock(items: Iterable[InventoryItem]) -> list[InventoryItem]:
    """Items at or below their alert threshold."""

    return [item for item in items if item.quantity <= item.min_stock]


def inventory_kpis(items: Sequence[InventoryItem]) -> InventoryKpis:
    return InventoryKpis(
        item_count=len(items),
        total_value=sum(item.price * item.quantity for item in items),
        total_units=sum(item.quantity for item in items),
        low_stock_count=len(low_stock(items)),
    )


def recent_movements(movements: Iterable[StockMovement], limit: int = 5) -> list[StockMovement]:
    return sorted(movements, key=lambda movement: movement.date, reverse=True)[:limit]


def categories(items: Iterable[InventoryItem]) -> list[str]:
    return sorted({item.category for item in items if item.category})


def dashboard(
    items: Sequence[InventoryItem], movements: Iterable[StockMovement], *, recent: int = 5
) -> Dashboard:
    return Dashboard(
        kpis=inventory_kpis(items),
        low_stock=low_stock(items),
        recent_movements=recent_movements(movements, recent),
    )


def yearly_out_movements(
    items: Iterable[InventoryItem],
    movements: Iterable[StockMovement],
    year: int,
    *,
    search: str | None = None,
    category: str | None = None,
    tz: tzinfo = timezone.utc,
) -> list[StockMovement]:
    """Outgoing movements dated in ``year``, optionally narrowed down.

    ``search`` is a case-insensitive substring of the item name. ``category``
    is resolved through the current item with the movement's ``item_id``;
    movements whose item no longer exists are excluded when a category is
    requested.
    """

    needle = (search or "").strip().lower()
    by_id = {item.id: item for item in items} if category else {}

    selected = []
    for movement in movements:
        if movement.type is not MovementType.OUT:
            continue
        if from_ms(movement.date, tz).year != year:
            continue
        if needle and needle not in movement.item_name.lower():
            continue
        if category:
            item = by_id.get(movement.item_id)
            if item is None or item.category != category:
                continue
        selected.append(movement)
    return selected


def totals_by_name(movements: Iterable[StockMovement]) -> dict[str, int]:
    """Summed quantity per item name, in first-seen order."""

    totals: dict[str, int] = {}
    for movement in movements:
        totals[movement.item_name] = totals.get(movement.item_name, 0) + movement.quantity
    return totals


def top_items(movements: Iterable[StockMovement], n: int = DEFAULT_TOP_N) -> list[tuple[str, int]]:
    """Highest volume item names; ties keep first-seen order."""

    ranked = sorted(totals_by_name(movements).items(), key=lambda entry: entry[1], reverse=True)
    return ranked[:n]


def _months_by_name(
    movements: Iterable[StockMovement], tz: tzinfo
) -> dict[str, list[int]]:
    months: dict[str, list[int]] = {}
    for movement in movements:
        row = months.setdefault(movement.item_name, [0] * 12)
        row[from_ms(movement.date, tz).month - 1] += movement.quantity
    return months


def monthly_matrix(
    movements: Iterable[StockMovement], *, tz: tzinfo = timezone.utc
) -> list[MatrixRow]:
    rows = [
        MatrixRow(name=name, months=months, total=sum(months))
        for name, months in _months_by_name(movements, tz).items()
    ]
    rows.sort(key=lambda row: row.total, reverse=True)
    return rows


def monthly_series(
    movements: Iterable[StockMovement], names: Sequence[str], *, tz: tzinfo = timezone.utc
) -> list[MonthlyPoint]:
    """One point per month holding the quantity of each of ``names``."""

    wanted = set(names)
    months = _months_by_name(
        (movement for movement in movements if movement.item_name in wanted), tz
    )
    return [
        MonthlyPoint(
            index=index,
            label=label,
            values={name: months.get(name, [0] * 12)[index] for name in names},
        )
        for index, label in enumerate(MONTH_LABELS)
    ]


def peak_month(months: Sequence[int]) -> int | None:
    """Index of the first busiest month, ``None`` when nothing moved."""

    best = max(months, default=0)
    if best <= 0:
        return None
    return list(months).index(best)


def estimated_value(items: Iterable[InventoryItem], movements: Iterable[StockMovement]) -> float:
    """Value of ``movements`` at the current price of the item with the same name."""

    prices: dict[str, float] = {}
    for item in items:
        prices.setdefault(item.name, item.price)
    return sum(prices.get(movement.item_name, 0.0) * movement.quantity for movement in movements)


def yearly_report(
    items: Sequence[InventoryItem],
    movements: Iterable[StockMovement],
    year: int,
    *,
    search: str | None = None,
    category: str | None = None,
    top: int = DEFAULT_TOP_N,
    tz: tzinfo = timezone.utc,
) -> YearlyReport:
    selected = yearly_out_movements(
        items, movements, year, search=search, category=category, tz=tz
    )
    matrix = monthly_matrix(selected, tz=tz)
    months = {row.name: row.months for row in matrix}
    ranked = [
        RankedItem(name=name, total=total, peak_month=peak_month(months[name]))
        for name, total in top_items(selected, top)
    ]
    return YearlyReport(
        year=year,
        search=search or None,
        category=category or None,
        top_items=ranked,
        matrix=matrix,
        series=monthly_series(selected, [entry.name for entry in ranked], tz=tz),
        total_units=sum(movement.quantity for movement in selected),
        estimated_value=estimated_value(items, selected),
    )


__all__ = [
    "DEFAULT_TOP_N",
    "low_stock",
    "inventory_kpis",
    "recent_movements",
    "categories",
    "dashboard",
    "yearly_out_movements",
    "totals_by_name",
    "top_items",
    "monthly_matrix",
    "monthly_series",
    "peak_month",
    "estimated_value",
    "yearly_report",
]
