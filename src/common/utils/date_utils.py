"""Utility functions for date manipulation."""

from datetime import date, datetime

import pytz


def utc_now() -> datetime:
    """Returns the current time as an aware UTC datetime."""
    return datetime.now(pytz.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Treats naive datetimes (as returned by MySQL DATETIME) as UTC."""
    if dt.tzinfo is None:
        return pytz.utc.localize(dt)
    return dt.astimezone(pytz.utc)


def to_local_datetime(dt: datetime, tz_name: str) -> datetime:
    """`dt` on the operator's wall clock."""
    return ensure_utc(dt).astimezone(pytz.timezone(tz_name))


def to_local_date(dt: datetime, tz_name: str) -> date:
    """Calendar day of `dt` on the operator's wall clock."""
    return to_local_datetime(dt, tz_name).date()


def format_datetime_for_db(dt: datetime | None) -> str | None:
    """Formats a datetime as a UTC MySQL DATETIME string."""
    if dt is None:
        return None
    return ensure_utc(dt).strftime("%Y-%m-%d %H:%M:%S")
