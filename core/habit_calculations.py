"""Scheduling, overlap and completion-rate calculations.

Everything here is a pure function over the collections passed in; callers
own the habit and record snapshots.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from core.weekdays import ActiveDaysInput, shares_day, to_mask
from helpers.datetime_utils import date_key, ranges_overlap
from models.daily_record import DailyRecord
from models.habit import Habit


@dataclass(frozen=True)
class HabitOverlap:
    overlaps: bool
    conflicting_habit: Optional[Habit] = None

    def __bool__(self) -> bool:
        return self.overlaps


NO_OVERLAP = HabitOverlap(overlaps=False)


def is_active_on_date(habit: Habit, d: date) -> bool:
    if not habit.is_active:
        return False
    return habit.is_scheduled_on(d.weekday())


def habits_for_date(habits: Iterable[Habit], d: date) -> List[Habit]:
    """Habits scheduled on ``d``, earliest start first."""

    scheduled = [h for h in habits if is_active_on_date(h, d)]
    return sorted(scheduled, key=lambda h: (h.start_time, h.end_time))


def check_habit_overlap(
    new_start: int,
    new_end: int,
    new_active_days: ActiveDaysInput,
    existing_habits: Iterable[Habit],
    exclude_id: Optional[str] = None,
) -> HabitOverlap:
    """Return the first active habit sharing a weekday and a time range."""

    new_mask = to_mask(new_active_days)
    for habit in existing_habits:
        if exclude_id and habit.id == exclude_id:
            continue
        if not habit.is_active:
            continue
        if not shares_day(new_mask, habit.active_days):
            continue
        if ranges_overlap(new_start, new_end, habit.start_time, habit.end_time):
            return HabitOverlap(overlaps=True, conflicting_habit=habit)
    return NO_OVERLAP


def check_record_overlap(
    new_start: int,
    new_end: int,
    day: str,
    existing_records: Iterable[DailyRecord],
    exclude_id: Optional[str] = None,
) -> bool:
    for record in existing_records:
        if record.date != day or (exclude_id and record.id == exclude_id):
            continue
        if not record.has_times:
            continue
        if ranges_overlap(new_start, new_end, record.actual_start_time, record.actual_end_time):
            return True
    return False


def completion_rate(actual_duration: float, expected_duration: float) -> float:
    """Actual over expected duration, clamped to ``[0, 1]``."""

    if expected_duration <= 0:
        return 0.0
    return max(0.0, min(1.0, actual_duration / expected_duration))


def records_for_date(records: Iterable[DailyRecord], d: date | str) -> List[DailyRecord]:
    key = d if isinstance(d, str) else date_key(d)
    return [r for r in records if r.date == key]


def records_for_habit(records: Iterable[DailyRecord], habit_id: str) -> List[DailyRecord]:
    return [r for r in records if r.habit_id == habit_id]


def record_for_habit_on_date(
    records: Iterable[DailyRecord], habit_id: str, d: date | str
) -> Optional[DailyRecord]:
    key = d if isinstance(d, str) else date_key(d)
    for record in records:
        if record.habit_id == habit_id and record.date == key:
            return record
    return None


__all__ = [
    "HabitOverlap",
    "NO_OVERLAP",
    "check_habit_overlap",
    "check_record_overlap",
    "completion_rate",
    "habits_for_date",
    "is_active_on_date",
    "record_for_habit_on_date",
    "records_for_date",
    "records_for_habit",
]
