"""Date helpers. All timestamps are naive UTC."""

from datetime import datetime, timedelta
from typing import Optional


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def parse_iso(value) -> Optional[datetime]:
    """Accept a datetime or an ISO string (as stored in JSON columns)."""
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(moment: datetime) -> datetime:
    """Midnight of the Sunday that starts ``moment``'s week."""
    days_since_sunday = (moment.weekday() + 1) % 7
    return start_of_day(moment) - timedelta(days=days_since_sunday)


def start_of_month(moment: datetime) -> datetime:
    return start_of_day(moment).replace(day=1)


def start_of_next_month(moment: datetime) -> datetime:
    first = start_of_month(moment)
    if first.month == 12:
        return first.replace(year=first.year + 1, month=1)
    return first.replace(month=first.month + 1)


def weeks_between(earlier: Optional[datetime], later: datetime) -> float:
    if earlier is None:
        return 0.0
    return (later - earlier).total_seconds() / (60 * 60 * 24 * 7)
