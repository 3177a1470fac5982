import logging

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError
from sqlmodel import create_engine

from storage import migrations
from storage.db import init_db


LEGACY_SCHEMA = (
    """
    CREATE TABLE habit (
        id VARCHAR PRIMARY KEY,
        title VARCHAR NOT NULL,
        start_time INTEGER NOT NULL,
        end_time INTEGER NOT NULL,
        created_at DATETIME
    )
    """,
    """
    CREATE TABLE dailyrecord (
        id VARCHAR PRIMARY KEY,
        habit_id VARCHAR NOT NULL,
        date VARCHAR NOT NULL,
        actual_start_time INTEGER,
        actual_end_time INTEGER,
        completion_rate FLOAT NOT NULL DEFAULT 0,
        created_at DATETIME
    )
    """,
)


@pytest.fixture()
def legacy_engine(tmp_path):
    engine = create_engine(f"sqlite:///{(tmp_path / 'legacy.db').as_posix()}")
    with engine.begin() as conn:
        for ddl in LEGACY_SCHEMA:
            conn.execute(text(ddl))
        conn.execute(text("INSERT INTO habit (id, title, start_time, end_time) VALUES ('h1', 'Run', 540, 600)"))
        for rid, start in (("r1", 540), ("r2", 560)):
            conn.execute(
                text(
                    "INSERT INTO dailyrecord (id, habit_id, date, actual_start_time, actual_end_time, completion_rate) "
                    "VALUES (:id, 'h1', '2024-06-10', :start, :start + 30, 0.5)"
                ),
                {"id": rid, "start": start},
            )
    return engine


def _columns(engine, table):
    return {col["name"] for col in inspect(engine).get_columns(table)}


def test_legacy_columns_are_added(legacy_engine):
    migrations.run_all(legacy_engine)

    assert {"description", "color", "is_active", "active_days", "expected_duration"} <= _columns(legacy_engine, "habit")
    assert "actual_duration" in _columns(legacy_engine, "dailyrecord")
    with legacy_engine.connect() as conn:
        row = conn.execute(text("SELECT expected_duration, active_days, is_active FROM habit")).one()
        assert tuple(row) == (60, 127, 1)


def test_duplicate_records_are_collapsed(legacy_engine, caplog):
    with caplog.at_level(logging.WARNING, logger="habits.storage"):
        migrations.run_all(legacy_engine)

    assert "Removing duplicate record r2 of habit h1 on 2024-06-10" in caplog.text

    with legacy_engine.connect() as conn:
        rows = conn.execute(text("SELECT id, actual_duration FROM dailyrecord")).all()
    assert [tuple(r) for r in rows] == [("r1", 30)]

    with pytest.raises(IntegrityError):
        with legacy_engine.begin() as conn:
            conn.execute(
                text("INSERT INTO dailyrecord (id, habit_id, date, completion_rate) VALUES ('r3', 'h1', '2024-06-10', 1)")
            )


def test_init_db_is_idempotent(tmp_path):
    engine = create_engine(f"sqlite:///{(tmp_path / 'fresh.db').as_posix()}")

    init_db(engine)
    init_db(engine)

    assert {"habit", "dailyrecord"} <= set(inspect(engine).get_table_names())


def test_clean_table_logs_nothing(tmp_path, caplog):
    engine = create_engine(f"sqlite:///{(tmp_path / 'clean.db').as_posix()}")

    with caplog.at_level(logging.WARNING, logger="habits.storage"):
        init_db(engine)

    assert "Removing duplicate record" not in caplog.text
