from datetime import date, datetime, time, timedelta
from pathlib import Path
import sys

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.weekdays import ALL_DAYS_MASK  # noqa: E402
from helpers.datetime_utils import date_key  # noqa: E402
from models import DailyRecord, Habit  # noqa: E402


# 2024-06-10 is a Monday.
TODAY = date(2024, 6, 10)


def created_on(d: date) -> datetime:
    """Local-noon timestamp so the local calendar date is ``d`` in any timezone."""
    return datetime.combine(d, time(12, 0)).astimezone()


@pytest.fixture()
def today():
    return TODAY


@pytest.fixture()
def make_habit():
    counter = iter(range(1, 10_000))

    def factory(**overrides) -> Habit:
        n = next(counter)
        start = overrides.pop("start_time", 540)
        end = overrides.pop("end_time", 600)
        data = dict(
            id=f"habit-{n}",
            title=f"Habit {n}",
            start_time=start,
            end_time=end,
            expected_duration=end - start,
            active_days=ALL_DAYS_MASK,
            is_active=True,
            created_at=created_on(TODAY - timedelta(days=365)),
        )
        data.update(overrides)
        return Habit(**data)

    return factory


@pytest.fixture()
def make_record():
    counter = iter(range(1, 10_000))

    def factory(habit: Habit, day, rate: float = 1.0, start=None, end=None) -> DailyRecord:
        key = day if isinstance(day, str) else date_key(day)
        duration = (end - start) if start is not None and end is not None else 0
        return DailyRecord(
            id=f"record-{next(counter)}",
            habit_id=habit.id,
            date=key,
            actual_start_time=start,
            actual_end_time=end,
            actual_duration=duration,
            completion_rate=rate,
        )

    return factory


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture()
def session_factory(engine):
    def factory():
        return Session(engine)

    return factory
