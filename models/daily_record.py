# habits/models/daily_record.py
from __future__ import annotations

from datetime import datetime
from typing import Optional
import uuid

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from datetime_utils import utc_now


class DailyRecord(SQLModel, table=True):
    """One dated instance of actually performing a habit."""

    __table_args__ = (UniqueConstraint("habit_id", "date", name="ux_dailyrecord_habit_date"),)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True)
    habit_id: str = Field(foreign_key="habit.id", index=True)
    date: str = Field(index=True)   # 'YYYY-MM-DD'
    actual_start_time: Optional[int] = None
    actual_end_time: Optional[int] = None
    actual_duration: int = 0
    completion_rate: float = 0.0    # 0.0 - 1.0
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def has_times(self) -> bool:
        return self.actual_start_time is not None and self.actual_end_time is not None


__all__ = ["DailyRecord"]
