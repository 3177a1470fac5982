# habits/services/daily_records.py
from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional

from core.errors import DuplicateError, NotFoundError, OverlapError, PersistenceError, ValidationError
from core.habit_calculations import (
    check_record_overlap,
    completion_rate,
    record_for_habit_on_date,
    records_for_date,
    records_for_habit,
)
from core.logs import get_logger
from helpers.datetime_utils import date_key, is_valid_minute
from models.daily_record import DailyRecord
from models.habit import Habit
from services.events import ServiceEvents
from services.habit_repository import HabitRepository


class DailyRecordService(ServiceEvents):
    """Owns the in-memory record snapshot and the rules for adding to it."""

    def __init__(self, repository: HabitRepository, records: Optional[Iterable[DailyRecord]] = None):
        super().__init__()
        self.repo = repository
        self.logger = get_logger("habits.records")
        self._records: List[DailyRecord] = list(records) if records is not None else []

    @property
    def records(self) -> List[DailyRecord]:
        return list(self._records)

    def refresh(self) -> List[DailyRecord]:
        self._records = self.repo.list_records()
        return self.records

    # ---------- queries ----------
    def for_date(self, d: date | str) -> List[DailyRecord]:
        return records_for_date(self._records, d)

    def for_habit(self, habit_id: str) -> List[DailyRecord]:
        return records_for_habit(self._records, habit_id)

    def for_habit_on_date(self, habit_id: str, d: date | str) -> Optional[DailyRecord]:
        return record_for_habit_on_date(self._records, habit_id, d)

    # ---------- commands ----------
    def record_completion(self, habit: Habit, d: date | str, actual_start: int, actual_end: int) -> DailyRecord:
        day = d if isinstance(d, str) else date_key(d)
        if not (is_valid_minute(actual_start) and is_valid_minute(actual_end)):
            raise ValidationError("Times must be minutes between 00:00 and 23:59")
        if actual_start >= actual_end:
            raise ValidationError("Start time must be before end time")

        if self.for_habit_on_date(habit.id, day) is not None:
            self.logger.info("Rejected duplicate record for habit %s on %s", habit.id, day)
            raise DuplicateError(f'"{habit.title}" is already recorded for {day}')

        if check_record_overlap(actual_start, actual_end, day, self._records):
            self.logger.info("Rejected overlapping record for habit %s on %s", habit.id, day)
            raise OverlapError("This time overlaps another record of the same day")

        actual_duration = actual_end - actual_start
        record = DailyRecord(
            habit_id=habit.id,
            date=day,
            actual_start_time=actual_start,
            actual_end_time=actual_end,
            actual_duration=actual_duration,
            completion_rate=completion_rate(actual_duration, habit.expected_duration),
        )
        stored = self.repo.insert_record(record)
        self._records.append(stored)
        self.logger.info(
            "Recorded habit %s on %s: %d min (%.0f%%)",
            habit.id,
            day,
            actual_duration,
            stored.completion_rate * 100,
        )
        self._emit("after_create", stored.id)
        return stored

    def delete_record(self, record_id: str) -> None:
        if not any(r.id == record_id for r in self._records):
            raise NotFoundError(f"Record {record_id} not found")
        if not self.repo.delete_record(record_id):
            raise PersistenceError("Could not delete the record")
        self._records = [r for r in self._records if r.id != record_id]
        self.logger.info("Record %s deleted", record_id)
        self._emit("after_delete", record_id)

    def delete_for_habit(self, habit_id: str) -> bool:
        if not self.repo.delete_records_for_habit(habit_id):
            return False
        self._records = [r for r in self._records if r.habit_id != habit_id]
        return True


__all__ = ["DailyRecordService"]
