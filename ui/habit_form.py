# habits/ui/habit_form.py
from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

import flet as ft

from core.errors import HabitError
from core.settings import UI
from core.weekdays import DAY_LABELS, DAY_NAMES, is_day_in_mask
from helpers.datetime_utils import MINUTES_PER_DAY, minutes_to_hhmm, parse_time_input, snap_minutes
from models.habit import Habit
from storage.config import AppConfig
from ui.dialogs import close_alert_dialog, open_alert_dialog


HABIT_COLORS = {
    "#22C55E": "Green",
    "#3B82F6": "Blue",
    "#6366F1": "Indigo",
    "#A855F7": "Purple",
    "#EC4899": "Pink",
    "#EF4444": "Red",
    "#F59E0B": "Amber",
    "#14B8A6": "Teal",
}

# Receives title, description, start, end, weekday mask and color.
SubmitHandler = Callable[[str, str, int, int, int, str], None]


def _default_times(config: AppConfig) -> tuple[int, int]:
    now = datetime.now()
    step = UI.day_view.slot_minutes
    start = snap_minutes(now.hour * 60 + now.minute, step=step, direction="forward")
    start = min(start, MINUTES_PER_DAY - step - 1)
    end = min(start + config.default_duration_minutes, MINUTES_PER_DAY - 1)
    return start, end


def open_habit_form(
    page: ft.Page,
    *,
    config: AppConfig,
    on_submit: SubmitHandler,
    habit: Optional[Habit] = None,
):
    """Show the create/edit dialog. ``on_submit`` raising HabitError keeps it open."""

    if habit:
        start, end = habit.start_time, habit.end_time
        mask = habit.active_days
        color = habit.color.upper()
    else:
        start, end = _default_times(config)
        mask = config.default_active_days
        color = config.default_color.upper()

    title_tf = ft.TextField(label="Title", value=habit.title if habit else "", autofocus=True, max_length=120)
    description_tf = ft.TextField(
        label="Description",
        value=habit.description if habit else "",
        multiline=True,
        min_lines=1,
        max_lines=3,
    )
    start_tf = ft.TextField(label="Start", value=minutes_to_hhmm(start), width=110, hint_text="HH:MM")
    end_tf = ft.TextField(label="End", value=minutes_to_hhmm(end), width=110, hint_text="HH:MM")

    day_checkboxes = [
        ft.Checkbox(label=DAY_LABELS[name], value=is_day_in_mask(mask, idx))
        for idx, name in enumerate(DAY_NAMES)
    ]

    options = dict(HABIT_COLORS)
    options.setdefault(color, color)
    color_dd = ft.Dropdown(
        label="Color",
        width=180,
        value=color,
        options=[ft.dropdown.Option(key, label) for key, label in options.items()],
    )
    error_text = ft.Text("", color=ft.Colors.RED_400, size=12, visible=False)

    def collect_mask() -> int:
        value = 0
        for idx, cb in enumerate(day_checkboxes):
            if cb.value:
                value |= 1 << idx
        return value

    def show_error(message: str):
        error_text.value = message
        error_text.visible = True
        page.update()

    dlg: ft.AlertDialog | None = None

    def on_save(_):
        start_value = parse_time_input(start_tf.value)
        end_value = parse_time_input(end_tf.value)
        if start_value is None or end_value is None:
            show_error("Use HH:MM for start and end")
            return
        try:
            on_submit(
                title_tf.value or "",
                description_tf.value or "",
                start_value,
                end_value,
                collect_mask(),
                color_dd.value or config.default_color,
            )
        except HabitError as exc:
            show_error(str(exc))
            return
        close_alert_dialog(page, dlg)

    content = ft.Container(
        width=UI.day_view.dialog_width,
        content=ft.Column(
            [
                title_tf,
                description_tf,
                ft.Row([start_tf, end_tf, color_dd], spacing=12),
                ft.Text("Days", weight=ft.FontWeight.W_600),
                ft.Row(controls=day_checkboxes, wrap=True, spacing=12, run_spacing=8),
                error_text,
            ],
            spacing=12,
            tight=True,
        ),
    )

    dlg = open_alert_dialog(
        page,
        title="Edit habit" if habit else "New habit",
        content=content,
        actions=[
            ft.TextButton("Cancel", on_click=lambda e: close_alert_dialog(page, dlg)),
            ft.FilledButton("Save", icon=ft.Icons.SAVE, on_click=on_save),
        ],
    )
    return dlg


__all__ = ["HABIT_COLORS", "open_habit_form"]
