"""Dated copies of the habits database."""
from __future__ import annotations

from datetime import date, datetime, timedelta
from pathlib import Path
from shutil import copy2
from typing import List

from core.logs import get_logger


logger = get_logger("habits.storage")


def _backup_day(path: Path, prefix: str) -> date | None:
    stem = path.stem
    if not stem.startswith(prefix):
        return None
    try:
        return datetime.strptime(stem[len(prefix):], "%Y-%m-%d").date()
    except ValueError:
        return None


def rotate_backups(db_file: Path, backup_dir: Path, *, keep_days: int, today: date) -> List[Path]:
    """Delete backups older than ``keep_days`` and return the removed paths."""

    if keep_days <= 0:
        return []
    prefix = f"{db_file.stem}_"
    cutoff = today - timedelta(days=keep_days - 1)
    removed: List[Path] = []
    for file in backup_dir.glob(f"{prefix}*{db_file.suffix}"):
        day = _backup_day(file, prefix)
        if day is None or day >= cutoff:
            continue
        try:
            file.unlink()
            removed.append(file)
        except OSError as exc:
            logger.warning("Could not remove old backup %s: %s", file, exc)
    return removed


def ensure_daily_backup(
    db_path: str | Path,
    backup_dir: str | Path,
    *,
    keep_days: int = 7,
) -> Path | None:
    """Copy the database once per day into ``backup_dir`` and rotate old copies."""

    db_file = Path(db_path)
    if not db_file.exists():
        return None

    backups = Path(backup_dir)
    backups.mkdir(parents=True, exist_ok=True)

    today = datetime.now().date()
    destination = backups / f"{db_file.stem}_{today.isoformat()}{db_file.suffix}"

    created: Path | None = None
    if not destination.exists():
        copy2(db_file, destination)
        created = destination
        logger.info("Database backup written to %s", destination)

    rotate_backups(db_file, backups, keep_days=keep_days, today=today)
    return created


__all__ = ["ensure_daily_backup", "rotate_backups"]
