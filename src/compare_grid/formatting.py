from __future__ import annotations

import math
from datetime import date

from .schema.fields import FieldSchema
from .values import split_list_items, to_number

NOT_SPECIFIED = "Not specified"
NOT_AVAILABLE = "N/A"
BULLET = "•"

DATE_FORMATS: tuple[str, ...] = (
    "MM/DD/YYYY",
    "MMM DD, YYYY",
    "MMMM DD, YYYY",
    "MMM DD",
    "YYYY-MM-DD",
)

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_MONTHS_FULL = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def _parse_iso(text: str) -> date | None:
    try:
        return date.fromisoformat(text.strip())
    except ValueError:
        return None


def _round_half_up(value: float) -> int:
    # 0.5 rounds up, unlike round().
    return math.floor(value + 0.5)


def format_date(iso_date: str | None, fmt: str = "MM/DD/YYYY") -> str:
    """Format an ISO date for display; unparseable input is returned unchanged."""

    if not iso_date:
        return ""
    parsed = _parse_iso(iso_date)
    if parsed is None:
        return iso_date
    month = parsed.month - 1
    patterns = {
        "MM/DD/YYYY": f"{parsed.month:02d}/{parsed.day:02d}/{parsed.year}",
        "MMM DD, YYYY": f"{_MONTHS[month]} {parsed.day}, {parsed.year}",
        "MMMM DD, YYYY": f"{_MONTHS_FULL[month]} {parsed.day}, {parsed.year}",
        "MMM DD": f"{_MONTHS[month]} {parsed.day}",
        "YYYY-MM-DD": iso_date,
    }
    return patterns.get(fmt, patterns["MM/DD/YYYY"])


def format_date_range(start: str | None, end: str | None) -> str:
    if not start or not end:
        return ""
    start_d = _parse_iso(start)
    end_d = _parse_iso(end)
    if start_d is None or end_d is None:
        return f"{start} - {end}"
    start_month = _MONTHS[start_d.month - 1]
    end_month = _MONTHS[end_d.month - 1]
    if start_d.year == end_d.year and start_d.month == end_d.month:
        return f"{start_month} {start_d.day}-{end_d.day}, {start_d.year}"
    if start_d.year == end_d.year:
        return f"{start_month} {start_d.day} - {end_month} {end_d.day}, {start_d.year}"
    return f"{start_month} {start_d.day}, {start_d.year} - {end_month} {end_d.day}, {end_d.year}"


def calculate_nights(start: str | None, end: str | None) -> int:
    """Number of nights between two ISO dates; 0 when either is missing or invalid."""

    if not start or not end:
        return 0
    start_d = _parse_iso(start)
    end_d = _parse_iso(end)
    if start_d is None or end_d is None:
        return 0
    return abs((end_d - start_d).days)


def format_price(amount: object, include_cents: bool = False) -> str:
    number = to_number(amount) if not isinstance(amount, (int, float)) else float(amount)
    if number is None or not math.isfinite(number):
        return "$0"
    if include_cents:
        return f"${number:,.2f}"
    return f"${_round_half_up(number):,}"


def parse_price(text: object) -> float:
    if text is None:
        return 0.0
    cleaned = str(text).replace("$", "").replace(",", "").strip()
    try:
        value = float(cleaned)
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def grand_total(*amounts: object) -> float:
    """Sum the given amounts, ignoring empty or unparseable ones."""

    total = 0.0
    for amount in amounts:
        number = to_number(amount)
        if number:
            total += number
    return total


def price_per_person(total: object, guests: object) -> int:
    total_n = to_number(total)
    guests_n = to_number(guests)
    if not total_n or not guests_n:
        return 0
    return _round_half_up(total_n / guests_n)


def format_number(value: object) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_bullets(items: list[str]) -> str:
    return "\n".join(f"{BULLET} {item}" for item in items)


def _is_empty(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return False
    return str(value).strip() == ""


def format_cell(
    field: FieldSchema,
    value: object,
    *,
    date_format: str = "MM/DD/YYYY",
    price_cents: bool = False,
) -> str:
    """Display text for an editable cell holding `value`."""

    if _is_empty(value):
        return NOT_SPECIFIED
    if field.type == "date":
        return format_date(str(value), date_format)
    if field.type == "price":
        return format_price(value, price_cents)
    if field.type == "number":
        text = format_number(value)
        return f"{text} {field.unit}" if field.unit else text
    if field.type == "list":
        items = split_list_items(value)
        if len(items) > 1:
            return format_bullets(items)
        return items[0] if items else NOT_SPECIFIED
    return str(value)


def format_derived(
    field: FieldSchema,
    value: object,
    *,
    price_cents: bool = False,
) -> str:
    """Display text for a derived cell; empty prices show as `$0`, others as `N/A`."""

    if field.type == "price":
        return format_price(value, price_cents)
    if _is_empty(value):
        return NOT_AVAILABLE
    text = format_number(value) if field.type == "number" else str(value)
    return f"{text} {field.unit}" if field.unit else text
