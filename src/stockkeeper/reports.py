"""Spreadsheet and CSV renderings of a movement list."""
from __future__ import annotations

import csv
from collections.abc import Sequence
from datetime import date, datetime, timezone, tzinfo
from io import BytesIO, StringIO
from typing import Protocol

import xlwt

from .schemas import MovementType, StockMovement
from .timestamps import from_ms

REPORT_TITLE = "Stock movements"
MOVEMENT_FIELDS = ("ID", "Date", "Item", "Type", "Quantity", "Reason")
_DATE_FORMAT = "%Y-%m-%d %H:%M"


class DocumentRenderer(Protocol):
    """Collaborator that lays a movement list out as a printable document."""

    def render(self, movements: Sequence[StockMovement], filter_description: str) -> bytes:
        ...


def describe_filters(
    text: str | None = None, start: date | None = None, end: date | None = None
) -> str:
    if not (text or start or end):
        return "Full history"
    since = start.isoformat() if start else "beginning"
    until = end.isoformat() if end else "today"
    return f"From {since} to {until} - search: \"{text or ''}\""


def movement_row(movement: StockMovement, tz: tzinfo = timezone.utc) -> dict[str, object]:
    return {
        "ID": movement.id,
        "Date": from_ms(movement.date, tz).strftime(_DATE_FORMAT),
        "Item": movement.item_name,
        "Type": movement.type.value,
        "Quantity": movement.quantity,
        "Reason": movement.reason or "-",
    }


def movement_totals(movements: Sequence[StockMovement]) -> dict[str, int]:
    return {
        "in": sum(m.quantity for m in movements if m.type is MovementType.IN),
        "out": sum(m.quantity for m in movements if m.type is MovementType.OUT),
        "rows": len(movements),
    }


def movements_to_xls(
    movements: Sequence[StockMovement],
    *,
    filter_description: str = "",
    tz: tzinfo = timezone.utc,
) -> bytes:
    workbook = xlwt.Workbook()
    sheet = workbook.add_sheet("Movements")

    title_style = xlwt.easyxf("font: bold on, height 320; align: horiz left, vert center")
    header_style = xlwt.easyxf(
        "font: bold on; align: horiz center, vert center;"
        "borders: left thin, right thin, top thin, bottom thin"
    )
    text_style = xlwt.easyxf(
        "align: horiz left, vert center;"
        "borders: left thin, right thin, top thin, bottom thin"
    )
    number_style = xlwt.easyxf(
        "align: horiz right, vert center;"
        "borders: left thin, right thin, top thin, bottom thin"
    )

    for index, width in enumerate((34, 18, 30, 8, 10, 24)):
        sheet.col(index).width = 256 * width

    generated = datetime.now(tz).strftime(_DATE_FORMAT)
    sheet.write_merge(0, 0, 0, len(MOVEMENT_FIELDS) - 1, REPORT_TITLE, title_style)
    sheet.write(1, 0, "Generated")
    sheet.write(1, 1, generated)
    sheet.write(2, 0, "Filters")
    sheet.write(2, 1, filter_description or describe_filters())

    header_row = 4
    for col_index, field in enumerate(MOVEMENT_FIELDS):
        sheet.write(header_row, col_index, field, header_style)

    row_index = header_row + 1
    for movement in movements:
        row = movement_row(movement, tz)
        for col_index, field in enumerate(MOVEMENT_FIELDS):
            style = number_style if field == "Quantity" else text_style
            sheet.write(row_index, col_index, row[field], style)
        row_index += 1

    totals = movement_totals(movements)
    row_index += 1
    for label, key in (("Total IN", "in"), ("Total OUT", "out"), ("Rows", "rows")):
        sheet.write(row_index, 0, label)
        sheet.write(row_index, 1, totals[key])
        row_index += 1

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def movements_to_csv(movements: Sequence[StockMovement], *, tz: tzinfo = timezone.utc) -> str:
    buffer = StringIO()
    writer = csv.DictWriter(buffer, fieldnames=MOVEMENT_FIELDS)
    writer.writeheader()
    for movement in movements:
        writer.writerow(movement_row(movement, tz))
    return buffer.getvalue()


__all__ = [
    "DocumentRenderer",
    "MOVEMENT_FIELDS",
    "describe_filters",
    "movement_row",
    "movement_totals",
    "movements_to_xls",
    "movements_to_csv",
]
