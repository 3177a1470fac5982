# habits/ui/app_shell.py
from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

import flet as ft

from core.errors import HabitError
from core.settings import UI
from core.stats import average_completion, compute_stats
from core.weekdays import format_days
from helpers.datetime_utils import (
    minutes_to_hhmm,
    minutes_to_label,
    parse_time_input,
    snap_minutes,
)
from models.habit import Habit
from services.daily_records import DailyRecordService
from services.events import EVENTS
from services.habit_repository import HabitRepository
from services.habits import DeleteMode, HabitService
from services.marking import MarkingSession
from storage.config import load_config
from ui.dialogs import confirm_dialog
from ui.habit_form import open_habit_form


class AppShell:
    def __init__(self, page: ft.Page, repository: Optional[HabitRepository] = None):
        self.page = page
        self.page.horizontal_alignment = ft.CrossAxisAlignment.STRETCH
        self.page.vertical_alignment = ft.MainAxisAlignment.START

        self.repo = repository or HabitRepository()
        self.records = DailyRecordService(self.repo)
        self.habits = HabitService(self.repo, records=self.records)
        self.marking = MarkingSession(self.records)
        self.config = load_config()

        for svc in (self.habits, self.records):
            for event in EVENTS:
                svc.subscribe(event, self._on_data_changed)

        self.date_label = ft.Text("", size=20, weight=ft.FontWeight.W_600)
        self.mode_banner = ft.Container(visible=False)
        self.day_list = ft.ListView(expand=True, spacing=8)
        self.side_list = ft.ListView(expand=True, spacing=8)
        self.average_text = ft.Text("", size=12, color=UI.theme.text_subtle)

        header = ft.Row(
            [
                ft.IconButton(icon=ft.Icons.CHEVRON_LEFT, tooltip="Previous day", on_click=lambda e: self.shift_date(-1)),
                self.date_label,
                ft.IconButton(icon=ft.Icons.CHEVRON_RIGHT, tooltip="Next day", on_click=lambda e: self.shift_date(1)),
                ft.TextButton("Today", icon=ft.Icons.TODAY, on_click=lambda e: self.go_to(date.today())),
            ],
            vertical_alignment=ft.CrossAxisAlignment.CENTER,
        )

        self.add_btn = ft.FilledButton("New habit", icon=ft.Icons.ADD, on_click=lambda e: self._open_form())
        side_panel = ft.Container(
            width=320,
            padding=12,
            bgcolor=UI.theme.surface_bg,
            content=ft.Column(
                [
                    ft.Row(
                        [ft.Text("Habits", size=18, weight=ft.FontWeight.W_600), self.add_btn],
                        alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
                    ),
                    self.average_text,
                    self.side_list,
                ],
                expand=True,
                spacing=10,
            ),
        )

        self.root = ft.Row(
            [
                ft.Container(
                    expand=True,
                    padding=16,
                    content=ft.Column([header, self.mode_banner, self.day_list], expand=True, spacing=12),
                ),
                ft.VerticalDivider(width=1),
                side_panel,
            ],
            expand=True,
            spacing=0,
        )

    # ---------- data ----------
    def load(self):
        try:
            self.habits.refresh()
            self.records.refresh()
        except HabitError as exc:
            self.toast(str(exc), ok=False)
        self.render()

    def _on_data_changed(self, _entity_id: str):
        self.render()

    # ---------- navigation ----------
    @property
    def active_date(self) -> date:
        return self.marking.active_date

    def go_to(self, d: date):
        self.marking.change_date(d)
        self.render()

    def shift_date(self, days: int):
        self.go_to(self.active_date + timedelta(days=days))

    # ---------- rendering ----------
    def render(self):
        d = self.active_date
        self.date_label.value = d.strftime("%A, %d %b %Y")
        self._render_banner()
        self.day_list.controls = [self._day_item(h) for h in self.habits.for_date(d)] or [
            ft.Text("Nothing scheduled for this day", color=UI.theme.text_subtle)
        ]
        self._render_side()
        self.page.update()

    def _render_banner(self):
        habit = self.marking.armed_habit
        if not self.marking.is_marking or habit is None:
            self.mode_banner.visible = False
            return

        step = UI.day_view.slot_minutes
        start_tf = ft.TextField(label="Started", value=minutes_to_hhmm(habit.start_time), width=110)
        end_tf = ft.TextField(label="Finished", value=minutes_to_hhmm(habit.end_time), width=110)

        def on_save(_):
            start = parse_time_input(start_tf.value)
            end = parse_time_input(end_tf.value)
            if start is None or end is None:
                self.toast("Use HH:MM for both times", ok=False)
                return
            start = snap_minutes(start, step=step, direction="nearest")
            end = snap_minutes(end, step=step, direction="nearest")
            try:
                record = self.marking.record(start, end)
            except HabitError as exc:
                self.toast(str(exc), ok=False)
                return
            self.toast(f"Recorded {record.completion_rate * 100:.0f}%")
            self.render()

        def on_cancel(_):
            self.marking.cancel()
            self.render()

        self.mode_banner.content = ft.Row(
            [
                ft.Icon(ft.Icons.TIMER_OUTLINED, color=habit.color),
                ft.Text(f"Recording: {habit.title}", weight=ft.FontWeight.W_600, expand=True),
                start_tf,
                end_tf,
                ft.FilledButton("Save", icon=ft.Icons.CHECK, on_click=on_save),
                ft.TextButton("Cancel", on_click=on_cancel),
            ],
            spacing=10,
            vertical_alignment=ft.CrossAxisAlignment.CENTER,
        )
        self.mode_banner.padding = 12
        self.mode_banner.border_radius = 10
        self.mode_banner.bgcolor = UI.theme.armed_bg
        self.mode_banner.visible = True

    def _day_item(self, habit: Habit) -> ft.Control:
        record = self.records.for_habit_on_date(habit.id, self.active_date)
        schedule = f"{minutes_to_label(habit.start_time)} - {minutes_to_label(habit.end_time)}"

        if record is not None and record.has_times:
            status = ft.Text(
                f"Done {minutes_to_label(record.actual_start_time)} - {minutes_to_label(record.actual_end_time)}"
                f" ({record.completion_rate * 100:.0f}%)",
                size=12,
            )
            action = ft.IconButton(
                icon=ft.Icons.UNDO,
                tooltip="Undo",
                on_click=lambda e, rid=record.id: self._undo(rid),
                disabled=self.marking.is_marking,
            )
        else:
            armed = self.marking.armed_habit is not None and self.marking.armed_habit.id == habit.id
            status = ft.Text("Recording..." if armed else "Not recorded", size=12, color=UI.theme.text_subtle)
            action = ft.TextButton(
                "Record",
                icon=ft.Icons.PLAY_ARROW,
                on_click=lambda e, h=habit: self._arm(h),
                disabled=armed,
            )

        return ft.Container(
            padding=ft.padding.symmetric(horizontal=12, vertical=10),
            border_radius=10,
            bgcolor=UI.theme.done_bg if record is not None else ft.Colors.SURFACE,
            border=ft.border.all(1, UI.theme.outline),
            content=ft.Row(
                [
                    ft.Container(width=6, height=40, bgcolor=habit.color, border_radius=3),
                    ft.Column(
                        [ft.Text(habit.title, weight=ft.FontWeight.W_600), ft.Text(schedule, size=12), status],
                        spacing=2,
                        expand=True,
                    ),
                    action,
                ],
                vertical_alignment=ft.CrossAxisAlignment.CENTER,
            ),
        )

    def _render_side(self):
        stats = compute_stats(self.habits.active_habits, self.records.records)
        self.average_text.value = f"Average completion: {average_completion(stats):.1f}%"
        busy = self.marking.is_marking
        self.add_btn.disabled = busy

        items = []
        for habit in sorted(self.habits.active_habits, key=lambda h: h.start_time):
            s = stats[habit.id]
            bar_color = habit.color if s.rolling_100_days >= UI.day_view.progress_ok_threshold else UI.theme.progress_low
            items.append(
                ft.Container(
                    padding=10,
                    border_radius=10,
                    bgcolor=ft.Colors.SURFACE,
                    content=ft.Column(
                        [
                            ft.Row(
                                [
                                    ft.Text(habit.title, weight=ft.FontWeight.W_600, expand=True),
                                    ft.IconButton(
                                        icon=ft.Icons.EDIT_OUTLINED,
                                        tooltip="Edit",
                                        disabled=busy,
                                        on_click=lambda e, h=habit: self._open_form(h),
                                    ),
                                    ft.IconButton(
                                        icon=ft.Icons.ARCHIVE_OUTLINED,
                                        tooltip="Deactivate",
                                        disabled=busy,
                                        on_click=lambda e, hid=habit.id: self._remove(hid, DeleteMode.SOFT),
                                    ),
                                    ft.IconButton(
                                        icon=ft.Icons.DELETE_OUTLINE,
                                        tooltip="Delete",
                                        disabled=busy,
                                        on_click=lambda e, h=habit: self._confirm_delete(h),
                                    ),
                                ],
                                spacing=0,
                            ),
                            ft.Text(format_days(habit.active_days), size=12, color=UI.theme.text_subtle),
                            ft.ProgressBar(
                                value=s.rolling_100_days / 100,
                                color=bar_color,
                                bgcolor=UI.theme.progress_track,
                            ),
                            ft.Text(
                                f"{s.rolling_100_days:.1f}% · streak {s.current_streak} · best {s.best_streak}",
                                size=12,
                            ),
                        ],
                        spacing=4,
                    ),
                )
            )
        inactive = sorted((h for h in self.habits.habits if not h.is_active), key=lambda h: h.start_time)
        if inactive:
            items.append(ft.Text("Inactive", size=14, weight=ft.FontWeight.W_600, color=UI.theme.text_subtle))
        for habit in inactive:
            items.append(
                ft.Container(
                    padding=ft.padding.symmetric(horizontal=10, vertical=4),
                    border_radius=10,
                    content=ft.Row(
                        [
                            ft.Text(habit.title, color=UI.theme.text_subtle, expand=True),
                            ft.IconButton(
                                icon=ft.Icons.UNARCHIVE_OUTLINED,
                                tooltip="Reactivate",
                                disabled=busy,
                                on_click=lambda e, hid=habit.id: self._reactivate(hid),
                            ),
                            ft.IconButton(
                                icon=ft.Icons.DELETE_OUTLINE,
                                tooltip="Delete",
                                disabled=busy,
                                on_click=lambda e, h=habit: self._confirm_delete(h),
                            ),
                        ],
                        spacing=0,
                    ),
                )
            )
        self.side_list.controls = items

    # ---------- actions ----------
    def _arm(self, habit: Habit):
        try:
            self.marking.select(habit)
        except HabitError as exc:
            self.toast(str(exc), ok=False)
        self.render()

    def _undo(self, record_id: str):
        try:
            self.records.delete_record(record_id)
        except HabitError as exc:
            self.toast(str(exc), ok=False)

    def _open_form(self, habit: Optional[Habit] = None):
        def submit(title, description, start, end, mask, color):
            if habit:
                self.habits.update(
                    habit.id,
                    title=title,
                    description=description,
                    start_time=start,
                    end_time=end,
                    active_days=mask,
                    color=color,
                )
            else:
                self.habits.create(title, description, start, end, mask, color)
            self.toast("Saved")

        open_habit_form(self.page, config=self.config, on_submit=submit, habit=habit)

    def _remove(self, habit_id: str, mode: DeleteMode):
        try:
            self.habits.remove(habit_id, mode=mode)
        except HabitError as exc:
            self.toast(str(exc), ok=False)
            return
        self.render()

    def _reactivate(self, habit_id: str):
        try:
            self.habits.update(habit_id, is_active=True)
        except HabitError as exc:
            self.toast(str(exc), ok=False)
            return
        self.render()

    def _confirm_delete(self, habit: Habit):
        confirm_dialog(
            self.page,
            title=f'Delete "{habit.title}"?',
            message="The habit and all of its records will be removed.",
            confirm_label="Delete",
            on_confirm=lambda: self._remove(habit.id, DeleteMode.HARD),
        )

    # ---------- helpers ----------
    def toast(self, text: str, *, ok: bool = True):
        self.page.open(
            ft.SnackBar(
                content=ft.Text(text),
                bgcolor=None if ok else ft.Colors.RED_400,
            )
        )

    def mount(self):
        self.page.controls.clear()
        self.page.add(self.root)
        self.load()


__all__ = ["AppShell"]
