# habits/models/habit.py
from __future__ import annotations

from datetime import datetime
from typing import Dict
import uuid

from sqlmodel import Field, SQLModel

from core.weekdays import ALL_DAYS_MASK, is_day_in_mask, mask_to_dict
from datetime_utils import utc_now


def _new_id() -> str:
    return uuid.uuid4().hex


class Habit(SQLModel, table=True):
    id: str = Field(default_factory=_new_id, primary_key=True)
    title: str = Field(index=True)
    description: str = ""
    start_time: int          # minutes from midnight
    end_time: int            # minutes from midnight, exclusive
    expected_duration: int
    active_days: int = Field(default=ALL_DAYS_MASK)  # bit 0 = Monday
    is_active: bool = Field(default=True, index=True)
    color: str = Field(default="#22C55E")
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def active_days_map(self) -> Dict[str, bool]:
        return mask_to_dict(self.active_days)

    def is_scheduled_on(self, weekday_index: int) -> bool:
        return is_day_in_mask(self.active_days, weekday_index)


__all__ = ["Habit"]
