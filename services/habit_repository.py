from __future__ import annotations

from typing import Any, Callable, List, Mapping

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from core.errors import DuplicateError, PersistenceError
from core.logs import get_logger
from models.daily_record import DailyRecord
from models.habit import Habit
from storage.db import get_session


logger = get_logger("habits.repository")

# Columns a caller may change; id and created_at belong to the store.
HABIT_UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "start_time",
        "end_time",
        "expected_duration",
        "active_days",
        "is_active",
        "color",
    }
)


class HabitRepository:
    """SQLite storage for habits and their daily records.

    List and insert calls raise :class:`PersistenceError`; update/delete calls
    report success as a bool and log the underlying failure.
    """

    def __init__(self, session_factory: Callable[[], Session] = get_session):
        self._session_factory = session_factory

    # ----- habits -----
    def list_habits(self) -> List[Habit]:
        try:
            with self._session_factory() as session:
                stmt = select(Habit).order_by(Habit.start_time.asc())
                return list(session.exec(stmt))
        except SQLAlchemyError as exc:
            logger.error("Error fetching habits: %s", exc)
            raise PersistenceError("Could not load habits") from exc

    def insert_habit(self, habit: Habit) -> Habit:
        try:
            with self._session_factory() as session:
                session.add(habit)
                session.commit()
                session.refresh(habit)
                return habit
        except SQLAlchemyError as exc:
            logger.error("Error adding habit %r: %s", habit.title, exc)
            raise PersistenceError("Could not save the habit") from exc

    def update_habit(self, habit_id: str, fields: Mapping[str, Any]) -> bool:
        unknown = set(fields) - HABIT_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported habit fields: {', '.join(sorted(unknown))}")
        try:
            with self._session_factory() as session:
                obj = session.get(Habit, habit_id)
                if not obj:
                    return False
                for key, value in fields.items():
                    setattr(obj, key, value)
                session.add(obj)
                session.commit()
                return True
        except SQLAlchemyError as exc:
            logger.error("Error updating habit %s: %s", habit_id, exc)
            return False

    def delete_habit(self, habit_id: str) -> bool:
        try:
            with self._session_factory() as session:
                obj = session.get(Habit, habit_id)
                if not obj:
                    return False
                session.delete(obj)
                session.commit()
                return True
        except SQLAlchemyError as exc:
            logger.error("Error deleting habit %s: %s", habit_id, exc)
            return False

    # ----- daily records -----
    def list_records(self) -> List[DailyRecord]:
        try:
            with self._session_factory() as session:
                stmt = select(DailyRecord).order_by(DailyRecord.date.desc())
                return list(session.exec(stmt))
        except SQLAlchemyError as exc:
            logger.error("Error fetching daily records: %s", exc)
            raise PersistenceError("Could not load records") from exc

    def insert_record(self, record: DailyRecord) -> DailyRecord:
        try:
            with self._session_factory() as session:
                session.add(record)
                session.commit()
                session.refresh(record)
                return record
        except IntegrityError as exc:
            logger.info("Duplicate record for habit %s on %s", record.habit_id, record.date)
            raise DuplicateError("This habit is already recorded for that day") from exc
        except SQLAlchemyError as exc:
            logger.error("Error adding daily record: %s", exc)
            raise PersistenceError("Could not save the record") from exc

    def delete_records_for_habit(self, habit_id: str) -> bool:
        try:
            with self._session_factory() as session:
                stmt = select(DailyRecord).where(DailyRecord.habit_id == habit_id)
                for record in list(session.exec(stmt)):
                    session.delete(record)
                session.commit()
                return True
        except SQLAlchemyError as exc:
            logger.error("Error deleting records of habit %s: %s", habit_id, exc)
            return False

    def delete_record(self, record_id: str) -> bool:
        try:
            with self._session_factory() as session:
                obj = session.get(DailyRecord, record_id)
                if not obj:
                    return False
                session.delete(obj)
                session.commit()
                return True
        except SQLAlchemyError as exc:
            logger.error("Error deleting daily record %s: %s", record_id, exc)
            return False


__all__ = ["HABIT_UPDATABLE_FIELDS", "HabitRepository"]
