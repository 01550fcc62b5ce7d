# nicemaps/src/nicemaps/pin_map_widget/editing_state_machine.py
"""Add / edit / cancel / delete lifecycle of pins in one widget.

States:
    IDLE        no form open
    COMPOSING   add-pin form open for a clicked location
    EDITING     edit form open for an existing pin
    SUBMITTING  a store write is in flight; every other transition is refused

Writes go to the store first; the PinRegistry is only touched after the
store confirmed. A failed write returns to the form state it came from with
the entered fields kept.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Protocol

from nicemaps.pin_map_widget.coordinate_transform import StoredPoint, ViewportPoint, to_stored
from nicemaps.pin_map_widget.data_store import DataStore
from nicemaps.pin_map_widget.errors import NetworkError, NotFoundError, ValidationError, WriteError
from nicemaps.pin_map_widget.pin_registry import PinRegistry
from nicemaps.pin_map_widget.records import (
    PINS_TABLE,
    PinFields,
    PinRecord,
    new_pin_row,
    pin_update_row,
)
from nicemaps.utils.logging import get_logger

logger = get_logger(__name__)


class EditingState(Enum):
    IDLE = "idle"
    COMPOSING = "composing"
    EDITING = "editing"
    SUBMITTING = "submitting"


@dataclass(frozen=True)
class Draft:
    """Unsaved form content. ``location`` is fixed when the form opens."""

    location: Optional[StoredPoint] = None
    pin_id: Optional[int] = None
    fields: PinFields = field(default_factory=PinFields)


class PinFormView(Protocol):
    """What the state machine needs from the form UI."""

    def open_compose(self, location: StoredPoint, fields: PinFields) -> None: ...

    def open_edit(self, pin_id: int, fields: PinFields) -> None: ...

    def set_busy(self, busy: bool) -> None: ...

    def show_error(self, message: str) -> None: ...

    def close(self) -> None: ...

    async def confirm(self, message: str) -> bool: ...

    def notify(self, message: str, *, level: str = "info") -> None: ...


class EditingStateMachine:
    """Drives pin forms and store writes for one widget instance."""

    def __init__(
        self,
        *,
        store: DataStore,
        registry: PinRegistry,
        form: PinFormView,
        map_id: int,
        editable: bool = True,
    ) -> None:
        self._store = store
        self._registry = registry
        self._form = form
        self._map_id = map_id
        self._editable = editable

        self._state = EditingState.IDLE
        self._draft: Optional[Draft] = None
        self._mounted = True
        # Bumped on every user-initiated transition; async work started under
        # an older generation is dropped when it resumes.
        self._generation = 0

    # ------------- properties -------------

    @property
    def state(self) -> EditingState:
        return self._state

    @property
    def draft(self) -> Optional[Draft]:
        return self._draft

    @property
    def editable(self) -> bool:
        return self._editable

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    # ------------- transitions -------------

    def handle_click(self, point: ViewportPoint) -> None:
        """Open the add-pin form at ``point`` (last click wins)."""
        if not self._editable or not self._mounted:
            return
        if self._state is EditingState.SUBMITTING:
            logger.debug("click ignored: write in flight")
            return

        location = to_stored(point.lat, point.lng)
        if self._state is not EditingState.IDLE:
            logger.info(f"discarding open {self._state.value} draft for new click at ({location.x:g}, {location.y:g})")
            previous_pin = self._draft.pin_id if self._draft else None
            if previous_pin is not None:
                self._registry.refresh_popup(previous_pin)

        self._generation += 1
        self._state = EditingState.COMPOSING
        self._draft = Draft(location=location)
        self._form.open_compose(location, self._draft.fields)
        logger.debug(f"composing new pin at ({location.x:g}, {location.y:g})")

    async def edit(self, pin_id: int) -> bool:
        """Open the edit form for ``pin_id`` with freshly fetched fields."""
        if not self._editable or not self._mounted:
            return False
        if self._state is EditingState.SUBMITTING:
            logger.debug(f"edit({pin_id}) ignored: write in flight")
            return False

        self._generation += 1
        generation = self._generation
        try:
            rows = await self._store.select(PINS_TABLE, {"id": pin_id})
        except (NetworkError, WriteError) as e:
            if self._is_current(generation):
                self._form.notify(f"Failed to load location: {e}", level="negative")
            return False

        if not self._is_current(generation):
            logger.debug(f"edit({pin_id}) superseded while fetching")
            return False

        if not rows:
            logger.warning(f"edit({pin_id}): pin no longer exists in the store")
            self._registry.remove(pin_id)
            self._form.notify("This location no longer exists.", level="warning")
            return False

        try:
            record = PinRecord.from_row(rows[0])
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"edit({pin_id}): invalid pin row {rows[0]!r}: {e}")
            self._form.notify(f"Failed to load location: {e}", level="negative")
            return False

        if self._state is EditingState.EDITING and self._draft and self._draft.pin_id != pin_id:
            self._registry.refresh_popup(self._draft.pin_id)
        self._registry.upsert(record)
        self._state = EditingState.EDITING
        self._draft = Draft(location=StoredPoint(record.x, record.y), pin_id=pin_id, fields=record.fields())
        self._form.open_edit(pin_id, record.fields())
        logger.debug(f"editing pin {pin_id}")
        return True

    async def submit(self, fields: PinFields) -> bool:
        """Validate and write the open draft. Returns True on success."""
        if self._state not in (EditingState.COMPOSING, EditingState.EDITING) or self._draft is None:
            logger.debug(f"submit ignored in state {self._state.value}")
            return False

        origin = self._state
        self._draft = replace(self._draft, fields=fields)
        try:
            clean = fields.validate()
        except ValidationError as e:
            self._form.show_error(str(e))
            return False

        draft = self._draft
        self._state = EditingState.SUBMITTING
        self._form.set_busy(True)
        try:
            if origin is EditingState.COMPOSING:
                assert draft.location is not None
                row = await self._store.insert(
                    PINS_TABLE, new_pin_row(self._map_id, draft.location.x, draft.location.y, clean)
                )
            else:
                assert draft.pin_id is not None
                row = await self._store.update(PINS_TABLE, draft.pin_id, pin_update_row(clean))
            record = PinRecord.from_row(row)
        except (WriteError, NetworkError, KeyError, TypeError, ValueError) as e:
            if not self._mounted:
                logger.debug(f"discarding failed write after unmount: {e}")
                return False
            logger.warning(f"saving pin failed ({origin.value}): {e}")
            self._state = origin
            self._form.set_busy(False)
            self._form.show_error(f"Failed to save location: {e}")
            return False

        if not self._mounted:
            logger.debug(f"discarding write result for pin {record.id} after unmount")
            return False

        self._registry.upsert(record)
        self._reset()
        self._form.set_busy(False)
        self._form.close()
        logger.info(f"saved pin {record.id} '{record.name}' ({origin.value})")
        return True

    def cancel(self) -> None:
        """Close the open form without writing."""
        if self._state in (EditingState.IDLE, EditingState.SUBMITTING):
            return
        pin_id = self._draft.pin_id if self._draft else None
        self._generation += 1
        self._reset()
        self._form.close()
        if pin_id is not None:
            self._registry.refresh_popup(pin_id)
        logger.debug("form cancelled")

    async def delete(self, pin_id: int) -> bool:
        """Ask for confirmation, then delete ``pin_id``. Returns True on success."""
        if not self._editable or not self._mounted:
            return False
        if self._state is EditingState.SUBMITTING:
            logger.debug(f"delete({pin_id}) ignored: write in flight")
            return False

        record = self._registry.get(pin_id)
        label = record.name if record and record.name else "this location"
        self._generation += 1
        generation = self._generation
        if not await self._form.confirm(f'Delete "{label}"? This cannot be undone.'):
            return False
        if not self._is_current(generation):
            return False

        if self._state is not EditingState.IDLE:
            self._form.close()
        self._state = EditingState.SUBMITTING
        self._draft = Draft(pin_id=pin_id)
        try:
            await self._store.delete(PINS_TABLE, pin_id)
        except NotFoundError:
            logger.warning(f"pin {pin_id} was already deleted")
        except (WriteError, NetworkError) as e:
            if self._mounted:
                logger.warning(f"deleting pin {pin_id} failed: {e}")
                self._reset()
                self._form.notify(f"Failed to delete location: {e}", level="negative")
            return False

        if not self._mounted:
            logger.debug(f"discarding delete result for pin {pin_id} after unmount")
            return False

        self._registry.remove(pin_id)
        self._reset()
        self._form.notify("Location deleted.", level="positive")
        logger.info(f"deleted pin {pin_id}")
        return True

    def detach(self) -> None:
        """Stop applying results; called when the widget is torn down."""
        self._mounted = False
        self._generation += 1
        self._reset()
        self._form.close()

    # ------------- internals -------------

    def _is_current(self, generation: int) -> bool:
        return (
            self._mounted
            and generation == self._generation
            and self._state is not EditingState.SUBMITTING
        )

    def _reset(self) -> None:
        self._state = EditingState.IDLE
        self._draft = None
