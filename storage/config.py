"""JSON-backed user preferences."""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from core.settings import CONFIG_PATH, UI
from core.weekdays import ALL_DAYS_MASK


@dataclass
class AppConfig:
    """Preferences persisted to ``config.json``."""

    default_color: str = UI.default_habit_color
    default_active_days: int = ALL_DAYS_MASK
    default_duration_minutes: int = 30


def _load_raw(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def load_config(path: Optional[Path] = None) -> AppConfig:
    data = _load_raw(path or CONFIG_PATH)
    defaults = AppConfig()
    mask = data.get("default_active_days", defaults.default_active_days)
    if not isinstance(mask, int) or not 0 < mask <= ALL_DAYS_MASK:
        mask = defaults.default_active_days
    duration = data.get("default_duration_minutes", defaults.default_duration_minutes)
    if not isinstance(duration, int) or duration <= 0:
        duration = defaults.default_duration_minutes
    return AppConfig(
        default_color=data.get("default_color") or defaults.default_color,
        default_active_days=mask,
        default_duration_minutes=duration,
    )


def save_config(config: AppConfig, path: Optional[Path] = None) -> None:
    target = path or CONFIG_PATH
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(asdict(config), ensure_ascii=False, indent=2, sort_keys=True)
    tmp = target.with_suffix(".tmp")
    try:
        tmp.write_text(payload, encoding="utf-8")
        tmp.replace(target)
    finally:
        if tmp.exists():
            try:
                tmp.unlink()
            except OSError:
                pass


def update_config(path: Optional[Path] = None, **changes: Any) -> AppConfig:
    target = path or CONFIG_PATH
    cfg = load_config(target)
    for key, value in changes.items():
        if not hasattr(cfg, key):
            raise AttributeError(f"Unknown config key: {key}")
        setattr(cfg, key, value)
    save_config(cfg, target)
    return cfg


__all__ = ["AppConfig", "load_config", "save_config", "update_config"]
