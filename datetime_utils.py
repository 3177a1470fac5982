from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


UTC = timezone.utc


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def local_date(dt: Optional[datetime]) -> Optional[date]:
    """Calendar date of a stored timestamp in the local timezone.

    SQLite hands timestamps back without tzinfo; they were written in UTC, so
    naive values are read as UTC before converting.
    """

    value = ensure_utc(dt)
    if value is None:
        return None
    return value.astimezone().date()


__all__ = [
    "UTC",
    "ensure_utc",
    "local_date",
    "utc_now",
]
