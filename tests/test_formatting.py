from __future__ import annotations

from compare_grid.formatting import (
    NOT_AVAILABLE,
    NOT_SPECIFIED,
    calculate_nights,
    format_cell,
    format_date,
    format_date_range,
    format_derived,
    format_price,
    grand_total,
    parse_price,
    price_per_person,
)
from compare_grid.schema.fields import FieldSchema


def test_format_date_supports_all_display_formats() -> None:
    assert format_date("2026-03-14") == "03/14/2026"
    assert format_date("2026-03-14", "MMM DD, YYYY") == "Mar 14, 2026"
    assert format_date("2026-03-14", "MMMM DD, YYYY") == "March 14, 2026"
    assert format_date("2026-03-14", "MMM DD") == "Mar 14"
    assert format_date("2026-03-14", "YYYY-MM-DD") == "2026-03-14"
    assert format_date("") == ""
    assert format_date("someday") == "someday"


def test_format_date_range_collapses_shared_month_and_year() -> None:
    assert format_date_range("2026-03-14", "2026-03-21") == "Mar 14-21, 2026"
    assert format_date_range("2026-03-30", "2026-04-02") == "Mar 30 - Apr 2, 2026"
    assert format_date_range("2026-12-30", "2027-01-02") == "Dec 30, 2026 - Jan 2, 2027"
    assert format_date_range("2026-03-14", None) == ""


def test_calculate_nights_is_absolute_and_zero_when_unknown() -> None:
    assert calculate_nights("2026-03-14", "2026-03-21") == 7
    assert calculate_nights("2026-03-21", "2026-03-14") == 7
    assert calculate_nights("2026-03-14", "") == 0
    assert calculate_nights("2026-03-14", "soon") == 0


def test_format_price_rounds_half_up_and_handles_garbage() -> None:
    assert format_price(1234.5) == "$1,235"
    assert format_price(1234.5, include_cents=True) == "$1,234.50"
    assert format_price("2,500") == "$2,500"
    assert format_price(None) == "$0"
    assert format_price("n/a") == "$0"


def test_parse_price_strips_symbols() -> None:
    assert parse_price("$1,200.50") == 1200.5
    assert parse_price("free") == 0.0
    assert parse_price(None) == 0.0


def test_totals_ignore_missing_amounts() -> None:
    assert grand_total(5000, "1,000", None, "") == 6000.0
    assert price_per_person(6000, 2) == 3000
    assert price_per_person(1001, 2) == 501
    assert price_per_person(100, 0) == 0
    assert price_per_person(None, 2) == 0


def test_format_cell_display_rules() -> None:
    nights = FieldSchema("nights", "Nights", "number", unit="nights")
    items = FieldSchema("inclusions", "Inclusions", "list")
    price = FieldSchema("packagePrice", "Package", "price")
    start = FieldSchema("startDate", "Start", "date")

    assert format_cell(price, "") == NOT_SPECIFIED
    assert format_cell(price, 5000) == "$5,000"
    assert format_cell(nights, 7) == "7 nights"
    assert format_cell(start, "2026-03-14", date_format="MMM DD") == "Mar 14"
    assert format_cell(items, "Spa") == "Spa"
    assert format_cell(items, "Spa, Dinner") == "• Spa\n• Dinner"
    assert format_cell(items, " , ") == NOT_SPECIFIED


def test_format_derived_uses_na_and_zero_price() -> None:
    total = FieldSchema("grandTotal", "Grand Total", "price", compute=lambda _e: 0)
    duration = FieldSchema("duration", "Duration", "number", compute=lambda _e: 0, unit="nights")

    assert format_derived(total, None) == "$0"
    assert format_derived(total, 6000.0) == "$6,000"
    assert format_derived(duration, None) == NOT_AVAILABLE
    assert format_derived(duration, 7.0) == "7 nights"
