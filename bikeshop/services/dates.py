"""
Date helpers shared by every view that shows or compares dates.

Stored dates may come back as ``date``, ``datetime`` or ISO strings (SQLite
keeps whatever was written), so nothing here raises on bad input: parsing
returns ``None`` and formatting returns an empty string.
"""
from __future__ import annotations
import calendar
import re
from datetime import date, datetime
from typing import Optional, Tuple

# only a time part may follow the day
ISO_DATE = re.compile(r"^\s*(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?\s*$")


def parse_date(value) -> Optional[date]:
    """Coerce ``value`` to a ``date`` or return None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        match = ISO_DATE.match(value)
        if not match:
            return None
        year, month, day = (int(part) for part in match.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None
    return None


def month_day(value) -> Optional[Tuple[int, int]]:
    """Return the (month, day) of a recurring date, ignoring its year.

    ISO strings are read leniently: ``"1990-02-29"`` is not a real date but
    still names a Feb-29 anniversary.
    """
    if isinstance(value, (date, datetime)):
        return value.month, value.day
    if isinstance(value, str):
        match = ISO_DATE.match(value)
        if not match:
            return None
        month, day = int(match.group(2)), int(match.group(3))
        try:
            date(2000, month, day)  # leap year, so Feb-29 is allowed
        except ValueError:
            return None
        return month, day
    return None


def clamp_date(year: int, month: int, day: int) -> date:
    """Build a date, moving Feb-29 to Feb-28 in non-leap years."""
    if month == 2 and day == 29 and not calendar.isleap(year):
        day = 28
    return date(year, month, day)


def add_years(value: date, years: int) -> date:
    """Same month/day ``years`` later (Feb-29 clamps to Feb-28)."""
    return clamp_date(value.year + years, value.month, value.day)


def format_date(value, fmt: str = "%Y-%m-%d") -> str:
    """Format a stored date for display, '' when missing or unreadable."""
    parsed = parse_date(value)
    if parsed is None:
        return ""
    return parsed.strftime(fmt)
