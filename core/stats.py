"""Adherence statistics: rolling window percentage and streaks.

Every function takes ``today`` explicitly (defaulting to the local date) so
results are anchored to a known evaluation day. Days before the habit's
creation date are never counted, and days the habit is not scheduled are
skipped without breaking streaks.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Optional

from core.habit_calculations import is_active_on_date
from core.settings import STATS
from datetime_utils import local_date
from helpers.datetime_utils import date_key, parse_date_key
from models.daily_record import DailyRecord
from models.habit import Habit


@dataclass(frozen=True)
class HabitStats:
    habit_id: str
    rolling_100_days: float     # 0.0 - 100.0
    current_streak: int
    best_streak: int
    total_completed_days: int
    reached_max_at: Optional[str] = None


def _rates_by_date(habit: Habit, records: Iterable[DailyRecord]) -> Dict[str, float]:
    rates: Dict[str, float] = {}
    for record in records:
        if record.habit_id == habit.id:
            rates.setdefault(record.date, record.completion_rate)
    return rates


def _first_day(habit: Habit, rates: Mapping[str, float], today: date) -> date:
    created = local_date(habit.created_at)
    if created is not None:
        return created
    if rates:
        return parse_date_key(min(rates))
    return today


def _rolling(habit: Habit, rates: Mapping[str, float], first_day: date, today: date) -> float:
    total = 0.0
    counted = 0
    for offset in range(STATS.rolling_window_days):
        d = today - timedelta(days=offset)
        if not is_active_on_date(habit, d):
            continue
        if d < first_day:
            continue
        counted += 1
        total += rates.get(date_key(d), 0.0)
    if counted == 0:
        return 0.0
    return total / counted * 100


def rolling_100_days(habit: Habit, records: Iterable[DailyRecord], today: Optional[date] = None) -> float:
    """Average completion over the trailing window, missing days counting as 0."""

    today = today or date.today()
    rates = _rates_by_date(habit, records)
    return _rolling(habit, rates, _first_day(habit, rates, today), today)


def _current_streak(habit: Habit, rates: Mapping[str, float], first_day: date, today: date) -> int:
    streak = 0
    for i in range(STATS.streak_lookback_days):
        d = today - timedelta(days=i)
        if not is_active_on_date(habit, d):
            continue
        if d < first_day:
            break
        rate = rates.get(date_key(d))
        if rate is not None and rate >= 1:
            streak += 1
        elif i > 0:
            # today may still be completed later
            break
    return streak


def current_streak(habit: Habit, records: Iterable[DailyRecord], today: Optional[date] = None) -> int:
    today = today or date.today()
    rates = _rates_by_date(habit, records)
    return _current_streak(habit, rates, _first_day(habit, rates, today), today)


def best_streak(habit: Habit, records: Iterable[DailyRecord], today: Optional[date] = None) -> int:
    """Longest run of fully completed scheduled days since creation."""

    today = today or date.today()
    rates = _rates_by_date(habit, records)
    first_day = _first_day(habit, rates, today)

    best = run = 0
    d = first_day
    while d <= today:
        if is_active_on_date(habit, d):
            if rates.get(date_key(d), 0.0) >= 1:
                run += 1
                best = max(best, run)
            elif d != today:
                run = 0
        d += timedelta(days=1)
    return max(best, _current_streak(habit, rates, first_day, today))


def total_completed_days(habit: Habit, records: Iterable[DailyRecord]) -> int:
    return sum(1 for r in records if r.habit_id == habit.id and r.completion_rate >= 1)


def reached_max_at(habit: Habit, records: Iterable[DailyRecord], today: Optional[date] = None) -> Optional[str]:
    """Date key of the first day the rolling window reached 100%, if ever.

    Walks forward from the first counted day with a sliding window. Rates
    never exceed 1, so a window is at 100% exactly when it counts at least
    one day and none of its counted days fell short.
    """

    today = today or date.today()
    rates = _rates_by_date(habit, records)
    if not rates:
        return None
    first_day = _first_day(habit, rates, today)
    span = (today - first_day).days + 1
    if span <= 0:
        return None

    days = [first_day + timedelta(days=i) for i in range(span)]
    keys = [date_key(d) for d in days]
    counted = [is_active_on_date(habit, d) for d in days]
    short = [c and rates.get(k, 0.0) < 1 for c, k in zip(counted, keys)]

    window = STATS.rolling_window_days
    n_counted = n_short = 0
    for i in range(span):
        if counted[i]:
            n_counted += 1
            n_short += short[i]
        leaving = i - window
        if leaving >= 0 and counted[leaving]:
            n_counted -= 1
            n_short -= short[leaving]
        if n_counted and not n_short:
            return keys[i]
    return None


def habit_stats(habit: Habit, records: Iterable[DailyRecord], today: Optional[date] = None) -> HabitStats:
    today = today or date.today()
    own = [r for r in records if r.habit_id == habit.id]
    return HabitStats(
        habit_id=habit.id,
        rolling_100_days=rolling_100_days(habit, own, today),
        current_streak=current_streak(habit, own, today),
        best_streak=best_streak(habit, own, today),
        total_completed_days=total_completed_days(habit, own),
        reached_max_at=reached_max_at(habit, own, today),
    )


def compute_stats(
    habits: Iterable[Habit], records: Iterable[DailyRecord], today: Optional[date] = None
) -> Dict[str, HabitStats]:
    """Stats per active habit id."""

    today = today or date.today()
    grouped: Dict[str, List[DailyRecord]] = {}
    for record in records:
        grouped.setdefault(record.habit_id, []).append(record)
    return {
        habit.id: habit_stats(habit, grouped.get(habit.id, []), today)
        for habit in habits
        if habit.is_active
    }


def average_completion(stats: Mapping[str, HabitStats]) -> float:
    if not stats:
        return 0.0
    return sum(s.rolling_100_days for s in stats.values()) / len(stats)


__all__ = [
    "HabitStats",
    "average_completion",
    "best_streak",
    "compute_stats",
    "current_streak",
    "habit_stats",
    "is_active_on_date",
    "reached_max_at",
    "rolling_100_days",
    "total_completed_days",
]
