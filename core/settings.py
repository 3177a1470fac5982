"""Centralized application configuration."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os
import sys


def get_default_data_dir(
    app_name: str,
    *,
    platform: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """Return an OS-specific user data directory for ``app_name``.

    ``HABITS_DATA_DIR`` in the environment wins over the platform defaults.
    """

    platform_id = (platform or sys.platform).lower()
    environ = dict(env if env is not None else os.environ)
    override = environ.get("HABITS_DATA_DIR")
    if override:
        return Path(override).expanduser()

    home_dir = Path(home or Path.home())
    sanitized = app_name.strip() or "app"
    sanitized = sanitized.replace("/", "-").replace("\\", "-")

    if platform_id.startswith("win"):
        base = Path(environ.get("APPDATA") or home_dir / "AppData" / "Roaming")
    elif platform_id == "darwin":
        base = home_dir / "Library" / "Application Support"
    else:
        base = Path(environ.get("XDG_DATA_HOME") or home_dir / ".local" / "share")

    return base.expanduser() / sanitized


APP_NAME = "Habits"


DATA_DIR = get_default_data_dir(APP_NAME)
LOG_DIR = DATA_DIR / "logs"
BACKUP_DIR = DATA_DIR / "backups"

for _dir in (DATA_DIR, LOG_DIR, BACKUP_DIR):
    _dir.mkdir(parents=True, exist_ok=True)


DB_PATH = DATA_DIR / "habits.db"
CONFIG_PATH = DATA_DIR / "config.json"
LOG_PATH = LOG_DIR / "habits.log"


@dataclass(frozen=True)
class ThemeColors:
    surface_bg: str = "#F1F5F9"
    outline: str = "#E5E7EB"
    text_subtle: str = "#64748B"
    armed_bg: str = "#EEF2FF"
    done_bg: str = "#DCFCE7"
    progress_low: str = "#F59E0B"
    progress_track: str = "#E2E8F0"


@dataclass(frozen=True)
class DayViewSettings:
    slot_minutes: int = 10
    dialog_width: int = 460
    # Below this rolling percentage the progress bar uses the warning colour.
    progress_ok_threshold: float = 70.0


@dataclass(frozen=True)
class UISettings:
    app_title: str = APP_NAME
    theme_mode: str = "light"
    color_scheme_seed: str = "#6366F1"
    window_min_width: int = 900
    window_min_height: int = 600
    default_habit_color: str = "#22C55E"
    theme: ThemeColors = ThemeColors()
    day_view: DayViewSettings = DayViewSettings()


UI = UISettings()


@dataclass(frozen=True)
class StatsSettings:
    rolling_window_days: int = 100
    streak_lookback_days: int = 365


STATS = StatsSettings()


@dataclass(frozen=True)
class LoggingSettings:
    path: Path = LOG_PATH
    max_bytes: int = 1_000_000
    backup_count: int = 3
    fmt: str = "%(asctime)s [%(levelname)s] %(message)s"


LOGGING = LoggingSettings()


@dataclass(frozen=True)
class BackupSettings:
    enabled: bool = True
    directory: Path = BACKUP_DIR
    keep_days: int = 7


BACKUP = BackupSettings()


__all__ = [
    "APP_NAME",
    "DATA_DIR",
    "LOG_DIR",
    "BACKUP_DIR",
    "DB_PATH",
    "CONFIG_PATH",
    "LOG_PATH",
    "UI",
    "STATS",
    "LOGGING",
    "BACKUP",
    "get_default_data_dir",
]
