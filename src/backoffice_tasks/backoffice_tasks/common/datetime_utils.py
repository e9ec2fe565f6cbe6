from __future__ import annotations

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from ..core.constants import DATE_KEY_FORMAT, DEFAULT_BUSINESS_TIMEZONE


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, DATE_KEY_FORMAT).date()


def now_local(timezone: str = DEFAULT_BUSINESS_TIMEZONE) -> datetime:
    """Current wall-clock time in the business timezone, as a naive datetime.

    Services accept an explicit ``now`` so tests never call this. Every stored
    timestamp is naive local time in the same zone.
    """
    return datetime.now(ZoneInfo(timezone)).replace(tzinfo=None)


def to_date_key(value: date | datetime) -> str:
    """Calendar-day key (YYYY-MM-DD) without any time-of-day component."""
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime(DATE_KEY_FORMAT)


def shift_date_key(key: str, *, days: int) -> str:
    return to_date_key(parse_iso_date(key) + timedelta(days=days))


def on_day(day: date, time_of_day: datetime | time) -> datetime:
    """Move a timestamp to another calendar day, keeping its time of day."""
    if isinstance(time_of_day, datetime):
        time_of_day = time_of_day.time()
    return datetime.combine(day, time_of_day)
