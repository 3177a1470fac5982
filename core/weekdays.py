"""Weekday names and the bit mask used to store a habit's active days."""
from __future__ import annotations

from typing import Dict, Iterable, Mapping, Union

# Index matches ``date.weekday()``: bit 0 is Monday, bit 6 is Sunday.
DAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

DAY_LABELS: Dict[str, str] = {
    "monday": "Mon",
    "tuesday": "Tue",
    "wednesday": "Wed",
    "thursday": "Thu",
    "friday": "Fri",
    "saturday": "Sat",
    "sunday": "Sun",
}

ALL_DAYS_MASK = (1 << 7) - 1
WEEKDAYS_MASK = (1 << 5) - 1

ActiveDaysInput = Union[int, Mapping[str, bool], Iterable[str]]


def is_day_in_mask(mask: int, weekday_index: int) -> bool:
    return bool(mask & (1 << weekday_index))


def mask_from_names(names: Iterable[str]) -> int:
    mask = 0
    for name in names:
        key = name.strip().lower()
        if key not in DAY_NAMES:
            raise ValueError(f"Unknown weekday: {name}")
        mask |= 1 << DAY_NAMES.index(key)
    return mask


def to_mask(value: ActiveDaysInput) -> int:
    """Normalize an int mask, a ``{day: bool}`` mapping or a list of day names."""

    if isinstance(value, bool):
        raise TypeError("active days must be a mask, a mapping or day names")
    if isinstance(value, int):
        if value < 0 or value > ALL_DAYS_MASK:
            raise ValueError(f"Invalid weekday mask: {value}")
        return value
    if isinstance(value, Mapping):
        return mask_from_names(name for name, enabled in value.items() if enabled)
    if isinstance(value, str):
        return mask_from_names([value])
    return mask_from_names(value)


def mask_to_dict(mask: int) -> Dict[str, bool]:
    return {name: is_day_in_mask(mask, idx) for idx, name in enumerate(DAY_NAMES)}


def shares_day(mask_a: int, mask_b: int) -> bool:
    return bool(mask_a & mask_b)


def format_days(mask: int) -> str:
    if mask == ALL_DAYS_MASK:
        return "Every day"
    if mask == WEEKDAYS_MASK:
        return "Weekdays"
    return ", ".join(DAY_LABELS[name] for idx, name in enumerate(DAY_NAMES) if is_day_in_mask(mask, idx))


__all__ = [
    "ALL_DAYS_MASK",
    "DAY_LABELS",
    "DAY_NAMES",
    "WEEKDAYS_MASK",
    "format_days",
    "is_day_in_mask",
    "mask_from_names",
    "mask_to_dict",
    "shares_day",
    "to_mask",
]
