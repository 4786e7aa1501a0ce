from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

from .schema.fields import FieldType

LIST_SEPARATOR = ", "

# Formats produced by `formatting.format_date`, accepted back on input.
_DATE_INPUT_FORMATS: tuple[str, ...] = (
    "%m/%d/%Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%Y/%m/%d",
)


class ValueValidationError(Exception):
    """Raised when a raw editor value cannot be committed for its field type."""


def split_list_items(raw: object) -> list[str]:
    """Split a comma-delimited list value into trimmed, non-empty items."""

    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        pieces: Iterable[object] = raw
    else:
        pieces = str(raw).split(",")
    return [text for text in (str(piece).strip() for piece in pieces) if text]


def join_list_items(items: Iterable[str]) -> str:
    return LIST_SEPARATOR.join(text for text in (item.strip() for item in items) if text)


def parse_amount(raw: str) -> float:
    """Parse a non-negative finite amount.

    Accepts plain numbers plus the `$`/thousands-separator forms shown by the price
    formatter (e.g. "$1,200").
    """

    text = raw.strip().replace(",", "").replace("$", "")
    if not text:
        raise ValueValidationError("Empty amount")
    try:
        value = float(text)
    except ValueError as exc:
        raise ValueValidationError(f"Not a number: {raw!r}") from exc
    if not math.isfinite(value):
        raise ValueValidationError(f"Not a finite number: {raw!r}")
    if value < 0:
        raise ValueValidationError(f"Must be zero or more: {raw!r}")
    return value


def parse_calendar_date(raw: str) -> date:
    text = raw.strip()
    if not text:
        raise ValueValidationError("Empty date")
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    for fmt in _DATE_INPUT_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueValidationError(f"Not a calendar date: {raw!r}")


def validate_raw_value(field_type: FieldType, raw: str) -> str:
    """Validate an editor value and return the string to store.

    Empty input is always accepted and clears the value. Dates are stored as ISO
    `YYYY-MM-DD` and list values in their canonical `", "`-joined form.
    """

    if field_type == "date":
        if not raw.strip():
            return ""
        return parse_calendar_date(raw).isoformat()
    if field_type in ("number", "price"):
        if not raw.strip():
            return ""
        parse_amount(raw)
        return raw.strip()
    if field_type == "list":
        return join_list_items(split_list_items(raw))
    return raw


def to_raw(value: object) -> str:
    """Render a baseline value the way an editor would hold it."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if not math.isfinite(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (list, tuple)):
        return join_list_items(str(item) for item in value)
    return str(value)


def to_number(value: object) -> float | None:
    """Best-effort numeric view of a stored value; `None` when empty or unparseable."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    text = str(value).strip()
    if not text:
        return None
    try:
        return parse_amount(text)
    except ValueValidationError:
        return None


def to_iso_date(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    if not text:
        return None
    try:
        return parse_calendar_date(text).isoformat()
    except ValueValidationError:
        return None


def values_equal(field_type: FieldType, left: object, right: object) -> bool:
    """Compare two stored values under the equality rule of `field_type`."""

    if field_type in ("number", "price"):
        left_n = to_number(left)
        right_n = to_number(right)
        if left_n is None or right_n is None:
            return to_raw(left).strip() == to_raw(right).strip()
        return left_n == right_n
    if field_type == "date":
        left_d = to_iso_date(left)
        right_d = to_iso_date(right)
        if left_d is None or right_d is None:
            return to_raw(left).strip() == to_raw(right).strip()
        return left_d == right_d
    if field_type == "list":
        return split_list_items(left) == split_list_items(right)
    return to_raw(left).strip() == to_raw(right).strip()


def coerce_value(field_type: FieldType, raw: object) -> Any:
    """Convert a stored value into the typed form used as `compute()` input."""

    if field_type in ("number", "price"):
        number = to_number(raw)
        if number is None:
            return None
        return int(number) if number.is_integer() else number
    if field_type == "date":
        return to_iso_date(raw)
    if field_type == "list":
        return join_list_items(split_list_items(raw))
    return to_raw(raw)
