"""
Sliding-window helpers shared by the rule engine and the loops.

All timestamps are compared as timezone-aware UTC values; naive datetimes
are taken to already be UTC.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, TypeVar

T = TypeVar("T")

SANE_EPOCH = datetime(2000, 1, 1, tzinfo=timezone.utc)


def as_utc(ts: datetime) -> datetime:
    """Return ``ts`` as an aware UTC datetime."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def is_sane_timestamp(ts: object) -> bool:
    """True for a datetime at or after the sane epoch."""
    if not isinstance(ts, datetime):
        return False
    try:
        return as_utc(ts) >= SANE_EPOCH
    except (OverflowError, ValueError):
        return False


def in_trailing_window(ts: datetime, as_of: datetime, minutes: float) -> bool:
    """True when ``as_of - minutes <= ts <= as_of``."""
    ts = as_utc(ts)
    end = as_utc(as_of)
    return end - timedelta(minutes=minutes) <= ts <= end


def trailing(
    items: Iterable[T],
    as_of: datetime,
    minutes: float,
    key: Callable[[T], datetime],
) -> list[T]:
    """Items whose timestamp falls in the trailing window, input order kept."""
    return [item for item in items if in_trailing_window(key(item), as_of, minutes)]


def minute_bucket(ts: datetime) -> datetime:
    """Floor a timestamp to the start of its UTC minute."""
    return as_utc(ts).replace(second=0, microsecond=0)


def latest_timestamp(*groups: Iterable[datetime]) -> datetime | None:
    """Latest timestamp across several iterables, or None when all are empty."""
    latest = None
    for group in groups:
        for ts in group:
            ts = as_utc(ts)
            if latest is None or ts > latest:
                latest = ts
    return latest
