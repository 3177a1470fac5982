"""Error types raised by the habit and record services."""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from models.habit import Habit


class HabitError(Exception):
    """Base class for every rejected habit/record operation."""


class ValidationError(HabitError, ValueError):
    """Malformed input: empty title, no active days, bad time range."""


class ConflictError(HabitError):
    """The schedule overlaps another active habit."""

    def __init__(self, conflicting_habit: "Habit", message: Optional[str] = None):
        self.conflicting_habit = conflicting_habit
        super().__init__(message or f'Schedule overlaps with "{conflicting_habit.title}"')


class OverlapError(HabitError):
    """The recorded time overlaps another record on the same date."""


class DuplicateError(HabitError):
    """A record already exists for this habit and date."""


class NotFoundError(HabitError, LookupError):
    pass


class PersistenceError(HabitError, RuntimeError):
    """The storage layer failed. Not retried here."""


__all__ = [
    "ConflictError",
    "DuplicateError",
    "HabitError",
    "NotFoundError",
    "OverlapError",
    "PersistenceError",
    "ValidationError",
]
