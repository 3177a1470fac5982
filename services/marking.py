"""Which habit, if any, is armed for recording on the viewed date."""
from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Optional

from core.errors import DuplicateError, ValidationError
from core.habit_calculations import is_active_on_date
from models.daily_record import DailyRecord
from models.habit import Habit
from services.daily_records import DailyRecordService


class Mode(str, Enum):
    IDLE = "idle"
    MARKING_REAL = "marking-real"


class MarkingSession:
    def __init__(self, records: DailyRecordService, active_date: Optional[date] = None):
        self.records = records
        self.active_date = active_date or date.today()
        self.mode = Mode.IDLE
        self.armed_habit: Optional[Habit] = None

    @property
    def is_marking(self) -> bool:
        return self.mode is Mode.MARKING_REAL

    def _reset(self) -> None:
        self.mode = Mode.IDLE
        self.armed_habit = None

    def select(self, habit: Optional[Habit]) -> None:
        """Arm ``habit`` for recording; ``None`` disarms."""

        if habit is None:
            self._reset()
            return
        if not is_active_on_date(habit, self.active_date):
            raise ValidationError(f'"{habit.title}" is not scheduled on this day')
        if self.records.for_habit_on_date(habit.id, self.active_date) is not None:
            raise DuplicateError(f'"{habit.title}" is already recorded for this day')
        self.armed_habit = habit
        self.mode = Mode.MARKING_REAL

    def record(self, actual_start: int, actual_end: int) -> DailyRecord:
        if not self.is_marking or self.armed_habit is None:
            raise ValidationError("No habit selected")
        record = self.records.record_completion(self.armed_habit, self.active_date, actual_start, actual_end)
        # a failed attempt above keeps the habit armed
        self._reset()
        return record

    def cancel(self) -> None:
        self._reset()

    def change_date(self, d: date) -> None:
        self.active_date = d
        self._reset()


__all__ = ["MarkingSession", "Mode"]
