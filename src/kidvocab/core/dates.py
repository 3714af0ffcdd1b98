"""
Calendar helpers for daily/weekly periods.

All "today" lookups go through ``today()`` so tests can pin the clock.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Union


def today() -> date:
    """Local calendar date."""
    return date.today()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(day: date) -> str:
    return day.isoformat()


def week_start(day: Union[date, str]) -> date:
    """Monday of the week containing ``day``; Sunday belongs to the week that started six days earlier."""
    if isinstance(day, str):
        day = date.fromisoformat(day)
    return day - timedelta(days=day.weekday())


def local_date(moment: datetime) -> date:
    """Calendar date of a stored timestamp in local time."""
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone().date()


def start_of_today() -> datetime:
    """Local midnight as an aware datetime."""
    return datetime.combine(today(), time.min).astimezone()
