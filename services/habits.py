# habits/services/habits.py
from __future__ import annotations

import re
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from core.errors import ConflictError, NotFoundError, PersistenceError, ValidationError
from core.habit_calculations import check_habit_overlap, habits_for_date
from core.logs import get_logger
from core.settings import UI
from core.weekdays import ALL_DAYS_MASK, ActiveDaysInput, to_mask
from helpers.datetime_utils import is_valid_minute
from models.habit import Habit
from services.daily_records import DailyRecordService
from services.events import ServiceEvents
from services.habit_repository import HabitRepository


COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
EDITABLE_FIELDS = frozenset(
    {"title", "description", "start_time", "end_time", "active_days", "is_active", "color"}
)
SCHEDULE_FIELDS = frozenset({"start_time", "end_time", "active_days"})


class DeleteMode(str, Enum):
    SOFT = "soft"   # keep the habit and its history, hide it from schedules and stats
    HARD = "hard"   # remove the habit and every record that references it


class HabitService(ServiceEvents):
    MAX_TITLE = 120

    def __init__(
        self,
        repository: HabitRepository,
        records: Optional[DailyRecordService] = None,
        habits: Optional[Iterable[Habit]] = None,
    ):
        super().__init__()
        self.repo = repository
        self.records = records
        self.logger = get_logger("habits.habits")
        self._habits: List[Habit] = list(habits) if habits is not None else []

    # ---------- snapshot ----------
    @property
    def habits(self) -> List[Habit]:
        return list(self._habits)

    @property
    def active_habits(self) -> List[Habit]:
        return [h for h in self._habits if h.is_active]

    def refresh(self) -> List[Habit]:
        self._habits = self.repo.list_habits()
        return self.habits

    def get(self, habit_id: str) -> Habit:
        for habit in self._habits:
            if habit.id == habit_id:
                return habit
        raise NotFoundError(f"Habit {habit_id} not found")

    def for_date(self, d: date) -> List[Habit]:
        return habits_for_date(self._habits, d)

    # ---------- validation ----------
    def _clean_title(self, title: Optional[str]) -> str:
        cleaned = (title or "").strip()
        if not cleaned:
            raise ValidationError("Title cannot be empty")
        if len(cleaned) > self.MAX_TITLE:
            raise ValidationError("Title is too long")
        return cleaned

    def _validate_times(self, start_time: int, end_time: int) -> None:
        if not (is_valid_minute(start_time) and is_valid_minute(end_time)):
            raise ValidationError("Times must be minutes between 00:00 and 23:59")
        if start_time >= end_time:
            raise ValidationError("Start time must be before end time")

    def _validate_days(self, active_days: ActiveDaysInput) -> int:
        try:
            mask = to_mask(active_days)
        except (TypeError, ValueError) as exc:
            raise ValidationError(str(exc)) from exc
        if not mask:
            raise ValidationError("Select at least one day")
        return mask

    def _validate_color(self, color: Optional[str]) -> str:
        value = (color or "").strip()
        if not COLOR_RE.match(value):
            raise ValidationError("Color must be in #RRGGBB format")
        return value.upper()

    def _ensure_no_conflict(
        self, start_time: int, end_time: int, mask: int, exclude_id: Optional[str] = None
    ) -> None:
        overlap = check_habit_overlap(start_time, end_time, mask, self._habits, exclude_id)
        if overlap.overlaps:
            self.logger.info(
                "Schedule %d-%d conflicts with habit %s", start_time, end_time, overlap.conflicting_habit.id
            )
            raise ConflictError(overlap.conflicting_habit)

    # ---------- CRUD ----------
    def create(
        self,
        title: str,
        description: str = "",
        start_time: int = 0,
        end_time: int = 0,
        active_days: ActiveDaysInput = ALL_DAYS_MASK,
        color: str = UI.default_habit_color,
    ) -> Habit:
        cleaned_title = self._clean_title(title)
        self._validate_times(start_time, end_time)
        mask = self._validate_days(active_days)
        normalized_color = self._validate_color(color)
        self._ensure_no_conflict(start_time, end_time, mask)

        habit = Habit(
            title=cleaned_title,
            description=(description or "").strip(),
            start_time=start_time,
            end_time=end_time,
            expected_duration=end_time - start_time,
            active_days=mask,
            is_active=True,
            color=normalized_color,
        )
        stored = self.repo.insert_habit(habit)
        self._habits.append(stored)
        self.logger.info("Habit created: %s (%s)", stored.id, stored.title)
        self._emit("after_create", stored.id)
        return stored

    def update(self, habit_id: str, **changes: Any) -> Habit:
        habit = self.get(habit_id)
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update: {', '.join(sorted(unknown))}")

        fields: Dict[str, Any] = {}
        if "title" in changes:
            fields["title"] = self._clean_title(changes["title"])
        if "description" in changes:
            fields["description"] = (changes["description"] or "").strip()
        if "color" in changes:
            fields["color"] = self._validate_color(changes["color"])
        if "active_days" in changes:
            fields["active_days"] = self._validate_days(changes["active_days"])
        if "is_active" in changes:
            if not isinstance(changes["is_active"], bool):
                raise ValidationError("is_active must be True or False")
            fields["is_active"] = changes["is_active"]

        new_start = changes.get("start_time", habit.start_time)
        new_end = changes.get("end_time", habit.end_time)
        new_mask = fields.get("active_days", habit.active_days)
        if "start_time" in changes or "end_time" in changes:
            self._validate_times(new_start, new_end)
            fields["start_time"] = new_start
            fields["end_time"] = new_end

        reactivating = fields.get("is_active") is True and not habit.is_active
        if SCHEDULE_FIELDS & set(changes) or reactivating:
            self._ensure_no_conflict(new_start, new_end, new_mask, exclude_id=habit.id)

        fields["expected_duration"] = new_end - new_start

        if not self.repo.update_habit(habit.id, fields):
            raise PersistenceError("Could not update the habit")
        for key, value in fields.items():
            setattr(habit, key, value)
        self.logger.debug("Habit updated: %s %s", habit.id, sorted(fields))
        self._emit("after_update", habit.id)
        return habit

    def remove(self, habit_id: str, *, mode: DeleteMode | str = DeleteMode.HARD) -> None:
        """Soft-deactivate or hard-delete a habit.

        A hard delete removes the habit's records first. That cascade is best
        effort: if it fails the error is logged and the habit is still deleted.
        """

        mode = DeleteMode(mode)
        habit = self.get(habit_id)
        if mode is DeleteMode.SOFT:
            if habit.is_active:
                self.update(habit_id, is_active=False)
            self.logger.info("Habit deactivated: %s", habit_id)
            return

        if self.records is not None:
            cascaded = self.records.delete_for_habit(habit_id)
        else:
            cascaded = self.repo.delete_records_for_habit(habit_id)
        if not cascaded:
            self.logger.error("Error deleting records of habit %s; deleting the habit anyway", habit_id)

        if not self.repo.delete_habit(habit_id):
            raise PersistenceError("Could not delete the habit")
        self._habits = [h for h in self._habits if h.id != habit_id]
        self.logger.info("Habit deleted: %s", habit_id)
        self._emit("after_delete", habit_id)

    def delete(self, habit_id: str) -> None:
        self.remove(habit_id, mode=DeleteMode.HARD)

    def deactivate(self, habit_id: str) -> None:
        self.remove(habit_id, mode=DeleteMode.SOFT)


__all__ = ["DeleteMode", "HabitService"]
