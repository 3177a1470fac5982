"""Calendar-date keys and minutes-from-midnight helpers."""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from core.weekdays import DAY_NAMES


MINUTES_PER_DAY = 24 * 60
DATE_KEY_FORMAT = "%Y-%m-%d"


def date_key(d: date) -> str:
    """Return ``YYYY-MM-DD`` for the calendar date of ``d`` (no tz conversion)."""

    if isinstance(d, datetime):
        d = d.date()
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_date_key(key: str) -> date:
    """Inverse of :func:`date_key`. Raises ``ValueError`` for malformed keys."""

    text = (key or "").strip()
    if len(text) != 10:
        raise ValueError(f"Invalid date key: {key!r}")
    return datetime.strptime(text, DATE_KEY_FORMAT).date()


def day_name(d: date) -> str:
    return DAY_NAMES[d.weekday()]


def minutes_to_label(minutes: int) -> str:
    """Format minutes from midnight as a 12-hour clock label, e.g. 1020 -> ``5:00PM``."""

    hour, mins = divmod(int(minutes), 60)
    period = "AM" if hour < 12 else "PM"
    display_hour = 12 if hour == 0 else hour - 12 if hour > 12 else hour
    return f"{display_hour}:{mins:02d}{period}"


def minutes_to_hhmm(minutes: int) -> str:
    hour, mins = divmod(int(minutes), 60)
    return f"{hour:02d}:{mins:02d}"


def ranges_overlap(start1: int, end1: int, start2: int, end2: int) -> bool:
    """Half-open interval overlap; touching endpoints do not overlap."""

    return start1 < end2 and start2 < end1


def is_valid_minute(value: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < MINUTES_PER_DAY


def snap_minutes(value: int, *, step: int, direction: str = "forward") -> int:
    """Snap ``value`` to ``step`` minutes using the provided ``direction``.

    ``direction`` can be ``forward`` (ceil), ``nearest`` or ``backward``.
    """

    if step <= 0:
        return value
    if direction == "nearest":
        return int(round(value / step) * step)
    remainder = value % step
    if remainder == 0:
        return value
    if direction == "backward":
        return value - remainder
    return value + (step - remainder)


def _parse_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_time_input(value: str | None) -> Optional[int]:
    """Parse ``HH:MM``, ``H.MM`` or short ``930``/``0930`` into minutes from midnight."""

    if not value:
        return None
    text = value.strip()
    if not text:
        return None

    for fmt in ("%H:%M", "%H.%M"):
        try:
            dt = datetime.strptime(text, fmt)
            return dt.hour * 60 + dt.minute
        except ValueError:
            continue

    if len(text) in {3, 4} and text.isdigit():
        hours = _parse_int(text[:-2])
        minutes = _parse_int(text[-2:])
        if hours is not None and minutes is not None and 0 <= hours <= 23 and 0 <= minutes <= 59:
            return hours * 60 + minutes

    return None


__all__ = [
    "DATE_KEY_FORMAT",
    "MINUTES_PER_DAY",
    "date_key",
    "day_name",
    "is_valid_minute",
    "minutes_to_hhmm",
    "minutes_to_label",
    "parse_date_key",
    "parse_time_input",
    "ranges_overlap",
    "snap_minutes",
]
