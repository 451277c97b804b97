"""
Reminder computation: birthdays and upcoming inspections.

Every view that needs "is it today?" or "how many days until?" goes through
``evaluate`` so the dashboard, the customer pages and the daily reminder job
agree on leap years and window boundaries.
"""
from __future__ import annotations
from datetime import date
from typing import Iterable, List, NamedTuple, Optional

from bikeshop.services.dates import clamp_date, month_day, parse_date

BUCKET_TODAY = "today"
BUCKET_WITHIN_WEEK = "within_week"
BUCKET_WITHIN_MONTH = "within_month"
BUCKET_NONE = "none"

DEFAULT_INSPECTION_HORIZON_DAYS = 5
DEFAULT_BIRTHDAY_HORIZON_DAYS = 30

# inspections in these states are never "due"
CLOSED_INSPECTION_STATUSES = ("completed", "cancelled")


class DateWindow(NamedTuple):
    is_today: bool
    days_until: Optional[int]
    bucket: str


NO_WINDOW = DateWindow(False, None, BUCKET_NONE)


def bucket_for(days_until: Optional[int]) -> str:
    if days_until is None or days_until < 0:
        return BUCKET_NONE
    if days_until == 0:
        return BUCKET_TODAY
    if days_until <= 7:
        return BUCKET_WITHIN_WEEK
    if days_until <= 30:
        return BUCKET_WITHIN_MONTH
    return BUCKET_NONE


def evaluate(anniversary, today=None, recurring: bool = True) -> DateWindow:
    """
    Place a date relative to ``today``.

    Args:
        anniversary: date, datetime or ISO string
        today: reference date (defaults to the current date)
        recurring: True for yearly dates such as birthdays, which wrap to
            next year once passed. False for one-off dates such as a
            next-inspection date, which are compared as-is.

    Returns:
        DateWindow. Unreadable input gives ``NO_WINDOW`` instead of raising.
    """
    reference = date.today() if today is None else parse_date(today)
    if reference is None:
        return NO_WINDOW

    if recurring:
        parts = month_day(anniversary)
        if parts is None:
            return NO_WINDOW
        month, day = parts
        candidate = clamp_date(reference.year, month, day)
        if (candidate.month, candidate.day) == (reference.month, reference.day):
            return DateWindow(True, 0, BUCKET_TODAY)
        if candidate < reference:
            candidate = clamp_date(reference.year + 1, month, day)
        days_until = (candidate - reference).days
    else:
        target = parse_date(anniversary)
        if target is None:
            return NO_WINDOW
        days_until = (target - reference).days
        if days_until == 0:
            return DateWindow(True, 0, BUCKET_TODAY)

    return DateWindow(False, days_until, bucket_for(days_until))


def describe(window: DateWindow) -> str:
    """Short label for a window: 'Today', 'In 3 days' or ''."""
    if window.bucket == BUCKET_NONE:
        return ""
    if window.is_today:
        return "Today"
    if window.days_until == 1:
        return "In 1 day"
    return f"In {window.days_until} days"


def _field(record, name):
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def find_birthdays_today(customers: Iterable, today=None) -> List:
    """Customers whose birthday (month/day, any year) is today."""
    return [c for c in customers if evaluate(_field(c, "birthdate"), today).is_today]


def find_upcoming_birthdays(customers: Iterable, horizon_days: int = DEFAULT_BIRTHDAY_HORIZON_DAYS,
                            today=None) -> List:
    """Customers with a birthday between today and ``horizon_days`` ahead."""
    upcoming = []
    for customer in customers:
        window = evaluate(_field(customer, "birthdate"), today)
        if window.days_until is not None and window.days_until <= horizon_days:
            upcoming.append(customer)
    return upcoming


def find_upcoming_inspections(inspections: Iterable, horizon_days: int = DEFAULT_INSPECTION_HORIZON_DAYS,
                              today=None) -> List:
    """Open inspections whose next-inspection date is 0..horizon_days away (inclusive)."""
    upcoming = []
    for inspection in inspections:
        if _field(inspection, "status") in CLOSED_INSPECTION_STATUSES:
            continue
        window = evaluate(_field(inspection, "next_inspection_date"), today, recurring=False)
        if window.days_until is not None and 0 <= window.days_until <= horizon_days:
            upcoming.append(inspection)
    return upcoming
