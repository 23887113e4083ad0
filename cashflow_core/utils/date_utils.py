"""Date manipulation utilities

Dates cross the boundary as zero-padded ``YYYY-MM-DD`` strings and are
handled as ``datetime.date`` internally, so there is no time-of-day or
time zone component to shift a day.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import List

DATE_FORMAT = "%Y-%m-%d"


def parse_date(value: str | date) -> date:
    """Parse a ``YYYY-MM-DD`` string (dates pass through unchanged)"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value, DATE_FORMAT).date()


def format_date(value: date) -> str:
    """Format a date as zero-padded ``YYYY-MM-DD``"""
    return value.strftime(DATE_FORMAT)


def today() -> date:
    """Local calendar date"""
    return date.today()


def today_key() -> str:
    return format_date(today())


def add_days(from_date: date, days: int) -> date:
    return from_date + timedelta(days=days)


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day_to_month(day: int, year: int, month: int) -> int:
    """Day 31 in February becomes 28/29, etc."""
    return min(day, last_day_of_month(year, month))


def add_months(from_date: date, months: int, day: int | None = None) -> date:
    """
    Add calendar months, pinning to ``day`` (default: the original day).

    The day is clamped to the target month's length, so Jan 31 + 1 month
    is Feb 28/29 rather than rolling into March.
    """
    total_months = from_date.month - 1 + months
    year = from_date.year + total_months // 12
    month = total_months % 12 + 1
    target_day = day if day is not None else from_date.day
    return date(year, month, clamp_day_to_month(target_day, year, month))


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month (month is 1-12)"""
    return date(year, month, 1), date(year, month, last_day_of_month(year, month))


def generate_date_range(start: date, end: date) -> List[date]:
    """Generate list of dates from start to end (inclusive)"""
    days = (end - start).days + 1
    return [start + timedelta(days=i) for i in range(days)]


def days_between(start: date, end: date) -> int:
    return (end - start).days
