from typing import Callable

import flet as ft


def open_alert_dialog(page: ft.Page, *, title: str, content: ft.Control, actions: list[ft.Control]):
    dlg = ft.AlertDialog(
        modal=True,
        title=ft.Text(title),
        content=content,
        actions=actions,
        actions_alignment=ft.MainAxisAlignment.END,
    )
    page.open(dlg)
    return dlg


def close_alert_dialog(page: ft.Page, dlg: ft.AlertDialog | None):
    if dlg is not None and dlg.open:
        page.close(dlg)


def confirm_dialog(
    page: ft.Page,
    *,
    title: str,
    message: str,
    confirm_label: str,
    on_confirm: Callable[[], None],
):
    dlg: ft.AlertDialog | None = None

    def _confirm(_):
        close_alert_dialog(page, dlg)
        on_confirm()

    dlg = open_alert_dialog(
        page,
        title=title,
        content=ft.Text(message),
        actions=[
            ft.TextButton("Cancel", on_click=lambda e: close_alert_dialog(page, dlg)),
            ft.FilledButton(confirm_label, icon=ft.Icons.DELETE_OUTLINE, on_click=_confirm),
        ],
    )
    return dlg
