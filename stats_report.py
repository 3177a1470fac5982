"""Console report of adherence statistics for every active habit."""
from __future__ import annotations

import argparse
import logging
from datetime import date
from pathlib import Path
from typing import List, Optional

from core.settings import LOG_DIR
from core.stats import HabitStats, average_completion, compute_stats
from core.weekdays import format_days
from helpers.datetime_utils import minutes_to_label, parse_date_key
from models.habit import Habit
from services.habit_repository import HabitRepository
from storage.db import init_db


LOG_PATH = LOG_DIR / "stats_report.log"


def build_report(
    habits: List[Habit],
    stats: dict[str, HabitStats],
    today: date,
) -> List[str]:
    lines = [f"Habit stats for {today.isoformat()}", "=" * 60]
    active = [h for h in habits if h.id in stats]
    if not active:
        lines.append("No active habits.")
        return lines

    for habit in sorted(active, key=lambda h: h.start_time):
        s = stats[habit.id]
        lines.append(
            f"{habit.title}  {minutes_to_label(habit.start_time)}-{minutes_to_label(habit.end_time)}"
            f"  ({format_days(habit.active_days)})"
        )
        lines.append(
            f"    100 days: {s.rolling_100_days:5.1f}%   streak: {s.current_streak}"
            f"   best: {s.best_streak}   completed: {s.total_completed_days}"
        )
        if s.reached_max_at:
            lines.append(f"    first reached 100% on {s.reached_max_at}")
    lines.append("-" * 60)
    lines.append(f"Average completion: {average_completion(stats):.1f}%")
    return lines


def run_report(repository: Optional[HabitRepository] = None, today: Optional[date] = None) -> List[str]:
    repo = repository or HabitRepository()
    today = today or date.today()
    habits = repo.list_habits()
    records = repo.list_records()
    logging.info("Loaded %d habits and %d records", len(habits), len(records))
    stats = compute_stats(habits, records, today)
    return build_report(habits, stats, today)


def _setup_logging(log_path: Path) -> None:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(log_path),
        filemode="a",
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__ or "")
    parser.add_argument(
        "--date",
        type=parse_date_key,
        default=None,
        help="Evaluate the stats as of this YYYY-MM-DD date (default: today)",
    )
    parser.add_argument(
        "--log",
        type=Path,
        default=LOG_PATH,
        help="Path to a log file (default: %(default)s)",
    )
    args = parser.parse_args(argv)

    _setup_logging(args.log)
    try:
        init_db()
        for line in run_report(today=args.date):
            print(line)
    except Exception as exc:  # pragma: no cover - CLI entry point
        logging.exception("Report failed: %s", exc)
        raise
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
