# nicemaps/src/nicemaps/pin_map_widget/pin_form_dialog.py
"""NiceGUI dialog used as the add/edit pin form."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

from nicegui import ui

from nicemaps.pin_map_widget.coordinate_transform import StoredPoint
from nicemaps.pin_map_widget.records import PinFields
from nicemaps.utils.logging import get_logger

logger = get_logger(__name__)

OnSubmit = Callable[[PinFields], Awaitable[Any]]
OnPinAction = Callable[[int], Awaitable[Any]]

_NOTIFY_TYPES = {"info": "info", "positive": "positive", "negative": "negative", "warning": "warning"}


class PinFormDialog:
    """Add/edit form for one widget. Must be constructed within a NiceGUI slot.

    Args:
        on_submit: Awaited with the entered PinFields when Save is pressed.
        on_cancel: Called when Cancel is pressed.
        on_delete: Awaited with the pin id when Delete is pressed (edit mode).
    """

    def __init__(
        self,
        *,
        on_submit: OnSubmit,
        on_cancel: Callable[[], Any],
        on_delete: Optional[OnPinAction] = None,
    ) -> None:
        self._on_submit = on_submit
        self._on_cancel = on_cancel
        self._on_delete = on_delete
        self._pin_id: Optional[int] = None
        self._build()

    def _build(self) -> None:
        with ui.dialog().props("persistent") as self._dialog, ui.card().classes("min-w-[280px] gap-2"):
            self._title = ui.label("").classes("text-lg font-bold")
            self._location = ui.label("").classes("text-xs text-gray-500")
            self._name = ui.input("Name").props("autofocus").classes("w-full")
            self._description = ui.textarea("Description").props("autogrow").classes("w-full")
            self._link_url = ui.input("Link URL").classes("w-full")
            self._is_home = ui.checkbox("Home location")
            self._error = ui.label("").classes("text-sm text-red-600")
            self._error.visible = False
            self._spinner = ui.spinner(size="sm")
            self._spinner.visible = False
            with ui.row().classes("w-full gap-2"):
                self._save_btn = ui.button("Save", on_click=self._handle_submit)
                self._cancel_btn = ui.button("Cancel", on_click=self._handle_cancel).props("outline")
                self._delete_btn = ui.button("Delete", on_click=self._handle_delete).props("color=negative")

        with ui.dialog() as self._confirm_dialog, ui.card():
            self._confirm_label = ui.label("")
            with ui.row().classes("gap-2"):
                ui.button("Delete", on_click=lambda: self._confirm_dialog.submit(True)).props("color=negative")
                ui.button("Cancel", on_click=lambda: self._confirm_dialog.submit(False)).props("outline")

    # ------------- PinFormView API -------------

    def open_compose(self, location: StoredPoint, fields: PinFields) -> None:
        self._pin_id = None
        self._title.text = "Add New Location"
        self._location.text = f"X: {location.x:.0f}, Y: {location.y:.0f}"
        self._delete_btn.visible = False
        self._open(fields)

    def open_edit(self, pin_id: int, fields: PinFields) -> None:
        self._pin_id = pin_id
        self._title.text = "Edit Location"
        self._location.text = ""
        self._delete_btn.visible = self._on_delete is not None
        self._open(fields)

    def set_busy(self, busy: bool) -> None:
        self._spinner.visible = busy
        for btn in (self._save_btn, self._cancel_btn, self._delete_btn):
            btn.set_enabled(not busy)

    def show_error(self, message: str) -> None:
        self._error.text = message
        self._error.visible = True

    def close(self) -> None:
        self._dialog.close()

    async def confirm(self, message: str) -> bool:
        self._confirm_label.text = message
        return bool(await self._confirm_dialog)

    def notify(self, message: str, *, level: str = "info") -> None:
        ui.notify(message, type=_NOTIFY_TYPES.get(level, "info"))

    # ------------- internals -------------

    def _open(self, fields: PinFields) -> None:
        self._name.value = fields.name or ""
        self._description.value = fields.description or ""
        self._link_url.value = fields.link_url or ""
        self._is_home.value = bool(fields.is_home)
        self._error.visible = False
        self.set_busy(False)
        self._dialog.open()

    def _fields(self) -> PinFields:
        return PinFields(
            name=self._name.value or "",
            description=self._description.value,
            link_url=self._link_url.value,
            is_home=bool(self._is_home.value),
        )

    async def _handle_submit(self) -> None:
        self._error.visible = False
        try:
            await self._on_submit(self._fields())
        except Exception as e:
            logger.exception("on_submit failed")
            self.show_error(str(e))

    def _handle_cancel(self) -> None:
        try:
            self._on_cancel()
        except Exception:
            logger.exception("on_cancel failed")
            self.close()

    async def _handle_delete(self) -> None:
        if self._on_delete is None or self._pin_id is None:
            return
        try:
            await self._on_delete(self._pin_id)
        except Exception:
            logger.exception("on_delete failed")
