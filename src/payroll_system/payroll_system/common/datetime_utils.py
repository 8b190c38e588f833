from __future__ import annotations

import calendar
from datetime import date, datetime

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")


def parse_clock_minutes(value: str, field_name: str = "time") -> int:
    """Parse a 24-hour "HH:mm" clock time into minutes since midnight."""
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be an HH:mm string")
    try:
        t = datetime.strptime(value.strip(), "%H:%M").time()
    except ValueError:
        raise ValidationError(f"{field_name} is not a valid HH:mm time: {value!r}")
    return t.hour * 60 + t.minute


def add_months(value: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month's end."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()
