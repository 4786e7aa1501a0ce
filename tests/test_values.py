from __future__ import annotations

import pytest

from compare_grid.values import (
    ValueValidationError,
    coerce_value,
    split_list_items,
    to_raw,
    validate_raw_value,
    values_equal,
)


def test_validate_date_accepts_iso_and_display_forms() -> None:
    assert validate_raw_value("date", "2026-03-14") == "2026-03-14"
    assert validate_raw_value("date", "03/14/2026") == "2026-03-14"
    assert validate_raw_value("date", "Mar 14, 2026") == "2026-03-14"
    assert validate_raw_value("date", "  ") == ""


def test_validate_date_rejects_non_calendar_text() -> None:
    with pytest.raises(ValueValidationError):
        validate_raw_value("date", "next tuesday")
    with pytest.raises(ValueValidationError):
        validate_raw_value("date", "2026-02-30")


@pytest.mark.parametrize("raw", ["-5", "abc", "inf", "nan"])
def test_validate_amount_rejects_negative_and_non_finite(raw: str) -> None:
    with pytest.raises(ValueValidationError):
        validate_raw_value("price", raw)


def test_validate_amount_keeps_trimmed_text_and_allows_clearing() -> None:
    assert validate_raw_value("price", " $1,200 ") == "$1,200"
    assert validate_raw_value("number", "0") == "0"
    assert validate_raw_value("number", "") == ""


def test_validate_list_canonicalizes_items_and_text_is_untouched() -> None:
    assert validate_raw_value("list", " a, ,b ,") == "a, b"
    assert validate_raw_value("list", "") == ""
    assert validate_raw_value("text", "  spaced  ") == "  spaced  "


def test_split_list_items_accepts_sequences() -> None:
    assert split_list_items(["a ", "", " b"]) == ["a", "b"]
    assert split_list_items(None) == []


def test_to_raw_renders_baseline_values_like_an_editor() -> None:
    assert to_raw(None) == ""
    assert to_raw(5000.0) == "5000"
    assert to_raw(2.5) == "2.5"
    assert to_raw(["Spa", "Dinner"]) == "Spa, Dinner"
    assert to_raw(3) == "3"


def test_values_equal_uses_type_specific_rules() -> None:
    assert values_equal("price", "5000", 5000)
    assert values_equal("price", "$5,000", "5000.0")
    assert values_equal("date", "03/14/2026", "2026-03-14")
    assert values_equal("list", "a,b", "a, b")
    assert values_equal("text", " Bali ", "Bali")
    assert not values_equal("number", "", "0")
    assert not values_equal("list", "a, b", "b, a")


def test_coerce_value_produces_compute_inputs() -> None:
    assert coerce_value("price", "1,200.50") == 1200.5
    assert coerce_value("price", "1200") == 1200
    assert coerce_value("number", "") is None
    assert coerce_value("date", "03/14/2026") == "2026-03-14"
    assert coerce_value("list", ["a", " b"]) == "a, b"
