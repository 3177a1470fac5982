"""Ad-hoc database migrations for Habits."""

from __future__ import annotations

from sqlalchemy import text

from core.logs import get_logger


logger = get_logger("habits.storage")


def _column_exists(conn, table: str, column: str) -> bool:
    result = conn.execute(text(f"PRAGMA table_info('{table}')"))
    return any(row[1] == column for row in result)


def ensure_habit_columns(conn) -> None:
    columns = {
        "description": "TEXT NOT NULL DEFAULT ''",
        "color": "TEXT NOT NULL DEFAULT '#22C55E'",
        "is_active": "BOOLEAN NOT NULL DEFAULT 1",
        "active_days": "INTEGER NOT NULL DEFAULT 127",
    }
    for name, ddl_type in columns.items():
        if not _column_exists(conn, "habit", name):
            conn.execute(text(f"ALTER TABLE habit ADD COLUMN {name} {ddl_type}"))


def ensure_expected_duration(conn) -> None:
    """Older rows stored only start/end; keep ``expected_duration`` consistent."""

    if not _column_exists(conn, "habit", "expected_duration"):
        conn.execute(text("ALTER TABLE habit ADD COLUMN expected_duration INTEGER NOT NULL DEFAULT 0"))
    conn.execute(
        text(
            """
            UPDATE habit
            SET expected_duration = end_time - start_time
            WHERE expected_duration IS NULL OR expected_duration != end_time - start_time
            """
        )
    )


def ensure_record_duration(conn) -> None:
    if not _column_exists(conn, "dailyrecord", "actual_duration"):
        conn.execute(text("ALTER TABLE dailyrecord ADD COLUMN actual_duration INTEGER NOT NULL DEFAULT 0"))
    conn.execute(
        text(
            """
            UPDATE dailyrecord
            SET actual_duration = actual_end_time - actual_start_time
            WHERE actual_start_time IS NOT NULL
              AND actual_end_time IS NOT NULL
              AND actual_duration != actual_end_time - actual_start_time
            """
        )
    )


def ensure_record_unique_index(conn) -> None:
    # The index cannot be built over duplicates; keep the earliest row per habit/date.
    duplicates = conn.execute(
        text(
            """
            SELECT id, habit_id, date FROM dailyrecord
            WHERE rowid NOT IN (
                SELECT MIN(rowid) FROM dailyrecord GROUP BY habit_id, date
            )
            """
        )
    ).all()
    for record_id, habit_id, day in duplicates:
        logger.warning("Removing duplicate record %s of habit %s on %s", record_id, habit_id, day)
    if duplicates:
        conn.execute(
            text(
                """
                DELETE FROM dailyrecord
                WHERE rowid NOT IN (
                    SELECT MIN(rowid) FROM dailyrecord GROUP BY habit_id, date
                )
                """
            )
        )
    conn.execute(
        text(
            "CREATE UNIQUE INDEX IF NOT EXISTS ux_dailyrecord_habit_date_idx "
            "ON dailyrecord(habit_id, date)"
        )
    )


def run_all(engine) -> None:
    with engine.begin() as conn:
        ensure_habit_columns(conn)
        ensure_expected_duration(conn)
        ensure_record_duration(conn)
        ensure_record_unique_index(conn)


__all__ = ["run_all"]
