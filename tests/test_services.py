import logging

import pytest
from sqlmodel import select

from core.errors import (
    ConflictError,
    DuplicateError,
    NotFoundError,
    OverlapError,
    PersistenceError,
    ValidationError,
)
from core.weekdays import WEEKDAYS_MASK
from conftest import TODAY
from models import DailyRecord, Habit
from services.daily_records import DailyRecordService
from services.habit_repository import HabitRepository
from services.habits import DeleteMode, HabitService

MONDAY = 1 << 0
WEDNESDAY = 1 << 2
SATURDAY = 1 << 5


@pytest.fixture()
def repo(session_factory):
    return HabitRepository(session_factory)


@pytest.fixture()
def records(repo):
    return DailyRecordService(repo)


@pytest.fixture()
def service(repo, records):
    return HabitService(repo, records=records)


def test_create_persists_and_updates_snapshot(service, repo):
    habit = service.create("  Read  ", "Ten pages", 540, 570, ["monday", "friday"], "#3b82f6")

    assert habit.title == "Read"
    assert habit.expected_duration == 30
    assert habit.color == "#3B82F6"
    assert habit.is_active
    assert [h.id for h in service.habits] == [habit.id]
    assert [h.id for h in repo.list_habits()] == [habit.id]


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(title="   ", start_time=540, end_time=570),
        dict(title="x" * 121, start_time=540, end_time=570),
        dict(title="Run", start_time=600, end_time=600),
        dict(title="Run", start_time=600, end_time=540),
        dict(title="Run", start_time=-10, end_time=540),
        dict(title="Run", start_time=600, end_time=1440),
        dict(title="Run", start_time=540, end_time=570, active_days=0),
        dict(title="Run", start_time=540, end_time=570, color="green"),
    ],
)
def test_create_rejects_invalid_input(service, repo, kwargs):
    with pytest.raises(ValidationError):
        service.create(**kwargs)
    assert service.habits == []
    assert repo.list_habits() == []


def test_overlapping_schedule_is_rejected_with_conflicting_habit(service):
    a = service.create("A", start_time=540, end_time=570, active_days=WEEKDAYS_MASK)

    with pytest.raises(ConflictError) as excinfo:
        service.create("B", start_time=555, end_time=585, active_days=MONDAY | WEDNESDAY)

    assert excinfo.value.conflicting_habit.id == a.id
    assert len(service.habits) == 1


def test_same_time_on_other_days_is_allowed(service):
    service.create("A", start_time=540, end_time=570, active_days=WEEKDAYS_MASK)
    b = service.create("B", start_time=540, end_time=570, active_days=SATURDAY)

    assert b.active_days == SATURDAY


def test_update_excludes_itself_from_overlap(service):
    habit = service.create("A", start_time=540, end_time=570)

    updated = service.update(habit.id, start_time=550, end_time=600)

    assert (updated.start_time, updated.end_time, updated.expected_duration) == (550, 600, 50)


def test_update_conflict_keeps_snapshot(service):
    service.create("A", start_time=540, end_time=570)
    b = service.create("B", start_time=600, end_time=630)

    with pytest.raises(ConflictError):
        service.update(b.id, start_time=560)

    assert service.get(b.id).start_time == 600


def test_update_rejects_unknown_fields(service):
    habit = service.create("A", start_time=540, end_time=570)

    with pytest.raises(ValidationError):
        service.update(habit.id, created_at=None)


def test_update_unknown_habit(service):
    with pytest.raises(NotFoundError):
        service.update("missing", title="x")


def test_failed_store_update_does_not_touch_snapshot(session_factory):
    class FailingUpdates(HabitRepository):
        def update_habit(self, habit_id, fields):
            return False

    service = HabitService(FailingUpdates(session_factory))
    habit = service.create("A", start_time=540, end_time=570)

    with pytest.raises(PersistenceError):
        service.update(habit.id, title="B")

    assert service.get(habit.id).title == "A"


def test_reactivation_rechecks_overlap(service):
    a = service.create("A", start_time=540, end_time=570)
    service.deactivate(a.id)
    service.create("B", start_time=540, end_time=570)

    with pytest.raises(ConflictError):
        service.update(a.id, is_active=True)

    assert not service.get(a.id).is_active


def test_soft_delete_keeps_history(service, records, repo):
    habit = service.create("A", start_time=540, end_time=570)
    records.record_completion(habit, TODAY, 540, 570)

    service.remove(habit.id, mode="soft")

    assert not service.get(habit.id).is_active
    assert service.active_habits == []
    assert service.for_date(TODAY) == []
    assert len(repo.list_records()) == 1


def test_hard_delete_cascades_records(service, records, repo):
    habit = service.create("A", start_time=540, end_time=570)
    records.record_completion(habit, TODAY, 540, 570)

    service.remove(habit.id, mode=DeleteMode.HARD)

    assert service.habits == []
    assert records.records == []
    assert repo.list_habits() == []
    assert repo.list_records() == []


def test_hard_delete_continues_when_cascade_fails(session_factory, caplog):
    class FailingCascade(HabitRepository):
        def delete_records_for_habit(self, habit_id):
            return False

    repo = FailingCascade(session_factory)
    service = HabitService(repo, records=DailyRecordService(repo))
    habit = service.create("A", start_time=540, end_time=570)

    with caplog.at_level(logging.ERROR, logger="habits.habits"):
        service.delete(habit.id)

    assert service.habits == []
    assert repo.list_habits() == []
    assert "Error deleting records" in caplog.text


def test_delete_unknown_habit(service):
    with pytest.raises(NotFoundError):
        service.delete("missing")


def test_record_completion_computes_rate(service, records):
    habit = service.create("A", start_time=540, end_time=570, active_days=WEEKDAYS_MASK)

    record = records.record_completion(habit, TODAY, 540, 560)

    assert record.date == "2024-06-10"
    assert record.actual_duration == 20
    assert record.completion_rate == pytest.approx(2 / 3)
    assert records.for_habit_on_date(habit.id, TODAY) is record


def test_record_completion_caps_rate(service, records):
    habit = service.create("A", start_time=540, end_time=570)

    record = records.record_completion(habit, TODAY, 500, 600)

    assert record.completion_rate == 1.0


def test_second_record_same_day_is_duplicate(service, records):
    habit = service.create("A", start_time=540, end_time=570)
    records.record_completion(habit, TODAY, 540, 560)

    with pytest.raises(DuplicateError):
        records.record_completion(habit, TODAY, 600, 620)
    assert len(records.records) == 1


def test_duplicate_caught_by_store_with_stale_snapshot(service, records, repo):
    habit = service.create("A", start_time=540, end_time=570)
    records.record_completion(habit, TODAY, 540, 560)

    stale = DailyRecordService(repo)
    with pytest.raises(DuplicateError):
        stale.record_completion(habit, TODAY, 600, 620)
    assert stale.records == []
    assert len(repo.list_records()) == 1


def test_overlapping_records_on_same_day_rejected(service, records):
    a = service.create("A", start_time=540, end_time=570)
    b = service.create("B", start_time=600, end_time=630)
    records.record_completion(a, TODAY, 540, 600)

    with pytest.raises(OverlapError):
        records.record_completion(b, TODAY, 590, 630)

    # touching ranges are fine
    records.record_completion(b, TODAY, 600, 630)
    assert len(records.for_date(TODAY)) == 2


@pytest.mark.parametrize("start, end", [(600, 600), (620, 600), (-1, 30), (0, 1440)])
def test_record_completion_rejects_bad_times(service, records, start, end):
    habit = service.create("A", start_time=540, end_time=570)

    with pytest.raises(ValidationError):
        records.record_completion(habit, TODAY, start, end)


def test_delete_record(service, records, repo):
    habit = service.create("A", start_time=540, end_time=570)
    record = records.record_completion(habit, TODAY, 540, 570)
    seen = []
    records.subscribe("after_delete", seen.append)

    records.delete_record(record.id)

    assert records.records == []
    assert repo.list_records() == []
    assert seen == [record.id]
    with pytest.raises(NotFoundError):
        records.delete_record(record.id)


def test_refresh_loads_from_store(service, repo, session_factory):
    habit = service.create("A", start_time=540, end_time=570)
    DailyRecordService(repo).record_completion(habit, TODAY, 540, 570)

    fresh_habits = HabitService(repo)
    fresh_records = DailyRecordService(repo)
    fresh_habits.refresh()
    fresh_records.refresh()

    assert [h.id for h in fresh_habits.habits] == [habit.id]
    assert len(fresh_records.for_habit(habit.id)) == 1
    with session_factory() as session:
        assert session.exec(select(Habit)).one().title == "A"
        assert session.exec(select(DailyRecord)).one().habit_id == habit.id


def test_events_fire_and_listener_errors_are_logged(service, caplog):
    created = []

    def broken(_):
        raise RuntimeError("boom")

    service.subscribe("after_create", created.append)
    service.subscribe("after_create", broken)

    with caplog.at_level(logging.ERROR, logger="habits.habits"):
        habit = service.create("A", start_time=540, end_time=570)

    assert created == [habit.id]
    assert "Listener for after_create failed" in caplog.text


def test_subscribe_rejects_unknown_event(service):
    with pytest.raises(ValueError):
        service.subscribe("before_create", lambda _id: None)


@pytest.mark.parametrize("value", ["false", 0, 1, None])
def test_update_requires_bool_active_flag(service, value):
    habit = service.create("A", start_time=540, end_time=570)
    service.deactivate(habit.id)

    with pytest.raises(ValidationError):
        service.update(habit.id, is_active=value)

    assert not service.get(habit.id).is_active


def test_reactivate_after_soft_delete(service):
    habit = service.create("A", start_time=540, end_time=570)
    service.deactivate(habit.id)

    service.update(habit.id, is_active=True)

    assert [h.id for h in service.active_habits] == [habit.id]
    assert [h.id for h in service.for_date(TODAY)] == [habit.id]
