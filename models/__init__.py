"""ORM models exposed by the Habits application."""
from .habit import Habit
from .daily_record import DailyRecord

__all__ = ["Habit", "DailyRecord"]
