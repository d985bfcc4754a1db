"""Calendar helpers for month-bucketed reports."""

import calendar
from datetime import date, datetime, time, timezone


def add_months(base_date: date, months: int) -> date:
    """Add months to a date, returning the first of the target month."""
    total_months = base_date.month + months
    year = base_date.year + (total_months - 1) // 12
    month = (total_months - 1) % 12 + 1
    return date(year, month, 1)


def shift_months(base_date: date, months: int) -> date:
    """Add months to a date keeping the day, clamped to the target month's length."""
    first = add_months(base_date, months)
    last_day = calendar.monthrange(first.year, first.month)[1]
    return first.replace(day=min(base_date.day, last_day))


def month_key(year: int, month: int) -> str:
    """Format a month bucket as ``YYYY-MM``."""
    return f"{year:04d}-{month:02d}"


def start_of_day(value: date) -> datetime:
    """Midnight UTC at the start of ``value``."""
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def days_until(target: date, today: date) -> int:
    """Whole days from ``today`` to ``target``, never negative."""
    return max((target - today).days, 0)
