"""Request validation for symbols and trading dates."""

from __future__ import annotations

import re
from datetime import date

from visionfetch.errors import ValidationError

SYMBOL_PATTERN = re.compile(r"^[A-Z0-9]+$")
MIN_YEAR = 2000
MAX_YEAR = 2100


def validate_symbol(symbol: str) -> str:
    """Return ``symbol`` if it is a non-empty uppercase alphanumeric pair name."""
    if not symbol:
        raise ValidationError("symbol cannot be empty")
    if not SYMBOL_PATTERN.match(symbol):
        raise ValidationError(
            f"invalid symbol format: {symbol} (should be uppercase alphanumeric)"
        )
    return symbol


def _parse_component(value: str | int, name: str) -> int:
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError(f"invalid {name}: {value}") from None


def validate_date(year: str | int, month: str | int, day: str | int) -> date:
    """Validate date components and return the calendar date they form.

    Raises:
        ValidationError: If a component is out of range or the date does not exist
            (e.g. 2024-02-30).
    """
    y = _parse_component(year, "year")
    if not MIN_YEAR <= y <= MAX_YEAR:
        raise ValidationError(f"invalid year: {year}")

    m = _parse_component(month, "month")
    if not 1 <= m <= 12:
        raise ValidationError(f"invalid month: {month} (must be 01-12)")

    d = _parse_component(day, "day")
    if not 1 <= d <= 31:
        raise ValidationError(f"invalid day: {day} (must be 01-31)")

    try:
        return date(y, m, d)
    except ValueError:
        raise ValidationError(f"invalid date: {y:04d}-{m:02d}-{d:02d}") from None
