"""
ISO-8601 week helpers for the analytics views.
"""

from datetime import date, datetime, timedelta
from typing import Union

DateLike = Union[date, datetime]


def _as_date(d: DateLike) -> date:
    return d.date() if isinstance(d, datetime) else d


def iso_week(d: DateLike) -> str:
    """Week label such as ``2024-W01``. The ISO year can differ from the calendar year near New Year."""
    year, week, _ = _as_date(d).isocalendar()
    return f"{year}-W{week:02d}"


def week_bounds(d: DateLike) -> tuple[date, date]:
    """Monday and Sunday of the ISO week containing ``d``."""
    day = _as_date(d)
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)
