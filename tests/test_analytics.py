from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from conftest import make_item, make_movement, ms
from stockkeeper import analytics
from stockkeeper.schemas import MovementType
from stockkeeper.timestamps import MAX_TIMESTAMP_MS, MIN_TIMESTAMP_MS


@pytest.mark.parametrize(
    "quantity, min_stock, expected",
    [(4, 5, True), (5, 5, True), (6, 5, False), (0, 0, True)],
)
def test_low_stock_boundary(quantity: int, min_stock: int, expected: bool) -> None:
    item = make_item(quantity=quantity, min_stock=min_stock)
    assert (analytics.low_stock([item]) == [item]) is expected


def test_low_stock_matches_definition() -> None:
    items = [make_item(str(n), quantity=n % 7, min_stock=n % 4) for n in range(30)]
    expected = [item for item in items if item.quantity <= item.min_stock]
    assert analytics.low_stock(items) == expected


def test_inventory_kpis() -> None:
    items = [
        make_item("a", price=2.5, quantity=4, min_stock=1),
        make_item("b", price=10.0, quantity=1, min_stock=3),
    ]
    kpis = analytics.inventory_kpis(items)
    assert kpis.item_count == 2
    assert kpis.total_value == pytest.approx(20.0)
    assert kpis.total_units == 5
    assert kpis.low_stock_count == 1


def test_empty_inputs_degrade_to_zero() -> None:
    assert analytics.inventory_kpis([]).model_dump() == {
        "item_count": 0,
        "total_value": 0.0,
        "total_units": 0,
        "low_stock_count": 0,
    }
    assert analytics.low_stock([]) == []
    assert analytics.top_items([]) == []
    assert analytics.monthly_matrix([]) == []
    report = analytics.yearly_report([], [], 2024)
    assert report.top_items == []
    assert report.matrix == []
    assert report.total_units == 0
    assert report.estimated_value == 0
    assert len(report.series) == 12
    assert all(point.values == {} for point in report.series)


def test_top_items_ranking() -> None:
    movements = [
        make_movement("1", "A", 5, ms(2024, 2, 1)),
        make_movement("2", "B", 9, ms(2024, 3, 1)),
        make_movement("3", "C", 3, ms(2024, 4, 1)),
    ]
    assert [name for name, _ in analytics.top_items(movements)] == ["B", "A", "C"]
    assert analytics.top_items(movements, 2) == [("B", 9), ("A", 5)]


def test_top_items_ties_keep_first_seen_order() -> None:
    movements = [
        make_movement("1", "Late", 2, ms(2024, 1, 1)),
        make_movement("2", "Early", 4, ms(2024, 1, 2)),
        make_movement("3", "Late", 2, ms(2024, 1, 3)),
        make_movement("4", "Other", 4, ms(2024, 1, 4)),
    ]
    assert analytics.top_items(movements) == [("Late", 4), ("Early", 4), ("Other", 4)]


def test_top_items_limit_defaults_to_ten() -> None:
    movements = [make_movement(str(n), f"I{n}", n + 1, ms(2024, 1, 1)) for n in range(12)]
    ranked = analytics.top_items(movements)
    assert len(ranked) == 10
    assert ranked[0] == ("I11", 12)


def test_monthly_matrix_single_march_movement() -> None:
    rows = analytics.monthly_matrix([make_movement("1", "X", 7, ms(2024, 3, 10))])
    assert len(rows) == 1
    assert rows[0].name == "X"
    assert rows[0].months == [0, 0, 7, 0, 0, 0, 0, 0, 0, 0, 0, 0]
    assert rows[0].total == 7


def test_monthly_matrix_sorted_by_total() -> None:
    movements = [
        make_movement("1", "Small", 1, ms(2024, 1, 10)),
        make_movement("2", "Big", 4, ms(2024, 1, 10)),
        make_movement("3", "Big", 6, ms(2024, 12, 10)),
    ]
    rows = analytics.monthly_matrix(movements)
    assert [row.name for row in rows] == ["Big", "Small"]
    assert rows[0].months[0] == 4
    assert rows[0].months[11] == 6
    assert rows[0].total == 10


def test_monthly_buckets_follow_timezone() -> None:
    # 23:30 UTC on 31 March is already April in Rome.
    late = int(datetime(2024, 3, 31, 23, 30, tzinfo=timezone.utc).timestamp() * 1000)
    movements = [make_movement("1", "X", 1, late)]
    assert analytics.monthly_matrix(movements)[0].months[2] == 1
    assert analytics.monthly_matrix(movements, tz=ZoneInfo("Europe/Rome"))[0].months[3] == 1


def test_monthly_series_restricted_to_names() -> None:
    movements = [
        make_movement("1", "A", 2, ms(2024, 1, 5)),
        make_movement("2", "B", 3, ms(2024, 1, 6)),
        make_movement("3", "A", 1, ms(2024, 6, 5)),
    ]
    series = analytics.monthly_series(movements, ["A"])
    assert [point.label for point in series][:3] == ["Jan", "Feb", "Mar"]
    assert series[0].values == {"A": 2}
    assert series[5].values == {"A": 1}
    assert series[1].values == {"A": 0}


def test_yearly_filter_selects_out_movements_of_year() -> None:
    items = [make_item("a", name="Alpha"), make_item("b", name="Beta")]
    movements = [
        make_movement("1", "Alpha", 1, ms(2024, 1, 1), item_id="a"),
        make_movement("2", "Alpha", 1, ms(2023, 12, 31), item_id="a"),
        make_movement("3", "Beta", 1, ms(2024, 5, 1), item_id="b", type=MovementType.IN),
        make_movement("4", "Beta", 1, ms(2024, 5, 2), item_id="b"),
    ]
    selected = analytics.yearly_out_movements(items, movements, 2024)
    assert [movement.id for movement in selected] == ["1", "4"]


def test_yearly_filter_search_is_case_insensitive() -> None:
    movements = [
        make_movement("1", "Blue Paint", 1, ms(2024, 1, 1)),
        make_movement("2", "Red paint", 1, ms(2024, 1, 1)),
        make_movement("3", "Brush", 1, ms(2024, 1, 1)),
    ]
    selected = analytics.yearly_out_movements([], movements, 2024, search="PAINT")
    assert [movement.id for movement in selected] == ["1", "2"]


def test_yearly_filter_category_excludes_deleted_items() -> None:
    items = [
        make_item("a", name="Hammer", category="Tools"),
        make_item("b", name="Glue", category="Adhesives"),
    ]
    movements = [
        make_movement("1", "Hammer", 1, ms(2024, 1, 1), item_id="a"),
        make_movement("2", "Glue", 1, ms(2024, 1, 1), item_id="b"),
        make_movement("3", "Old saw", 1, ms(2024, 1, 1), item_id="deleted"),
    ]
    selected = analytics.yearly_out_movements(items, movements, 2024, category="Tools")
    assert [movement.id for movement in selected] == ["1"]

    unfiltered = analytics.yearly_out_movements(items, movements, 2024)
    assert len(unfiltered) == 3


def test_yearly_report_bundles_figures() -> None:
    items = [make_item("a", name="A", price=2.0), make_item("b", name="B", price=1.0)]
    movements = [
        make_movement("1", "A", 5, ms(2024, 2, 1), item_id="a"),
        make_movement("2", "B", 9, ms(2024, 3, 1), item_id="b"),
        make_movement("3", "C", 3, ms(2024, 4, 1), item_id="c"),
        make_movement("4", "B", 1, ms(2024, 8, 1), item_id="b"),
    ]

    report = analytics.yearly_report(items, movements, 2024, top=2)

    assert [(entry.name, entry.total) for entry in report.top_items] == [("B", 10), ("A", 5)]
    assert report.top_items[0].peak_month == 2
    assert [row.name for row in report.matrix] == ["B", "A", "C"]
    assert report.series[2].values == {"B": 9, "A": 0}
    assert report.total_units == 18
    assert report.estimated_value == pytest.approx(5 * 2.0 + 10 * 1.0)


def test_recent_movements_and_categories() -> None:
    base = ms(2024, 1, 1)
    movements = [
        make_movement(str(n), "X", 1, base + int(timedelta(days=n).total_seconds() * 1000))
        for n in range(8)
    ]
    recent = analytics.recent_movements(movements)
    assert [movement.id for movement in recent] == ["7", "6", "5", "4", "3"]

    items = [make_item("a", category="Tools"), make_item("b", category=""), make_item("c", category="Adhesives")]
    assert analytics.categories(items) == ["Adhesives", "Tools"]


def test_peak_month() -> None:
    assert analytics.peak_month([0] * 12) is None
    assert analytics.peak_month([0, 3, 1, 3] + [0] * 8) == 1


@pytest.mark.parametrize("tz", [timezone.utc, ZoneInfo("Pacific/Kiritimati"), ZoneInfo("Pacific/Pago_Pago")])
def test_yearly_report_handles_extreme_dates(tz) -> None:
    movements = [
        make_movement("first", "Bolt", 1, MIN_TIMESTAMP_MS),
        make_movement("last", "Bolt", 2, MAX_TIMESTAMP_MS),
        make_movement("now", "Bolt", 3, ms(2024, 6, 1)),
    ]

    report = analytics.yearly_report([], movements, 2024, tz=tz)

    assert report.total_units == 3
    assert analytics.yearly_report([], movements, 9999, tz=tz).total_units == 2
