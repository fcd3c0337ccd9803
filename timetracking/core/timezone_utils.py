"""
Timezone utility functions for Madagascar time (UTC+3).

Every calendar-day and month lookup goes through these helpers so the day
boundary never depends on the server or client local timezone.
"""
from datetime import datetime, timezone, timedelta
from typing import Optional, Tuple

# Madagascar (East Africa Time, UTC+3, no DST)
MADA = timezone(timedelta(hours=3))


def utc_now() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to aware UTC.

    Naive datetimes (what MongoDB hands back) are assumed to be UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_mada(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Convert a datetime to Madagascar time

    Args:
        dt: UTC datetime (can be naive or aware)

    Returns:
        Madagascar datetime or None
    """
    if dt is None:
        return None
    return ensure_utc(dt).astimezone(MADA)


def mada_date_string(dt: datetime) -> str:
    """Madagascar calendar day as YYYY-MM-DD, used as the entry day key."""
    return to_mada(dt).strftime("%Y-%m-%d")


def mada_month_key(dt: datetime) -> Tuple[int, int]:
    """(month, year) of the instant in Madagascar time."""
    local = to_mada(dt)
    return local.month, local.year


def end_of_mada_day(day: str) -> datetime:
    """
    Last instant (23:59:59.999) of a Madagascar day, returned in UTC.

    Millisecond precision matches what MongoDB stores.
    """
    local = datetime.strptime(day, "%Y-%m-%d").replace(
        hour=23, minute=59, second=59, microsecond=999000, tzinfo=MADA
    )
    return local.astimezone(timezone.utc)


def format_datetime_mada(dt: Optional[datetime]) -> Optional[str]:
    """
    Format datetime as Madagascar ISO string

    Example: "2024-03-01T09:00:00+03:00"
    """
    if dt is None:
        return None
    return to_mada(dt).isoformat()
