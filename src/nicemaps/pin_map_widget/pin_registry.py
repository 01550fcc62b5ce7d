# nicemaps/src/nicemaps/pin_map_widget/pin_registry.py
"""One live marker per pin record.

PinRegistry is the only writer of the pin id -> marker mapping. Markers are
created, updated and removed here only, after the store confirmed the change.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from nicemaps.pin_map_widget.config import MarkerIcons
from nicemaps.pin_map_widget.coordinate_transform import to_viewport
from nicemaps.pin_map_widget.popups import PopupContent, build_pin_popup
from nicemaps.pin_map_widget.records import PinRecord
from nicemaps.pin_map_widget.viewport_engine import MarkerIcon, ViewportEngine
from nicemaps.utils.logging import get_logger

logger = get_logger(__name__)


def select_icon(record: PinRecord, icons: MarkerIcons) -> MarkerIcon:
    """Home pins get the home variant, everything else the default one."""
    return icons.home if record.is_home else icons.default


@dataclass
class _TrackedPin:
    record: PinRecord
    handle: Any


class PinRegistry:
    """Keeps exactly one marker per live PinRecord on one engine.

    Args:
        engine: The engine markers are drawn on.
        editable: Selects the editable popup variant.
        on_edit: Called as on_edit(pin_id) from an editable popup.
        on_delete: Called as on_delete(pin_id) from an editable popup.
        icons: Marker icon variants.
    """

    def __init__(
        self,
        engine: ViewportEngine,
        *,
        editable: bool = False,
        on_edit: Optional[Callable[[int], Any]] = None,
        on_delete: Optional[Callable[[int], Any]] = None,
        icons: Optional[MarkerIcons] = None,
    ) -> None:
        self._engine = engine
        self._editable = editable
        self._on_edit = on_edit
        self._on_delete = on_delete
        self._icons = icons or MarkerIcons()
        self._pins: Dict[int, _TrackedPin] = {}

    # ------------- queries -------------

    def __len__(self) -> int:
        return len(self._pins)

    def __contains__(self, pin_id: object) -> bool:
        return pin_id in self._pins

    def ids(self) -> List[int]:
        return list(self._pins)

    def get(self, pin_id: int) -> Optional[PinRecord]:
        tracked = self._pins.get(pin_id)
        return tracked.record if tracked else None

    def marker_for(self, pin_id: int) -> Any:
        tracked = self._pins.get(pin_id)
        return tracked.handle if tracked else None

    # ------------- mutations -------------

    def sync(self, records: Iterable[PinRecord], *, prune: bool = False) -> None:
        """Reconcile markers with ``records``.

        Untracked records get a marker, tracked ones are updated if they
        changed. Markers for ids missing from ``records`` are removed only
        when ``prune`` is True (full resync).
        """
        seen: set[int] = set()
        for record in records:
            seen.add(record.id)
            tracked = self._pins.get(record.id)
            if tracked is None:
                self._create(record)
            elif tracked.record != record:
                self._update(tracked, record)

        if prune:
            for pin_id in [i for i in self._pins if i not in seen]:
                self.remove(pin_id)

        logger.debug(f"sync: {len(seen)} record(s), {len(self._pins)} marker(s), prune={prune}")

    def upsert(self, record: PinRecord) -> None:
        """Create the marker for ``record`` or update it in place."""
        tracked = self._pins.get(record.id)
        if tracked is None:
            self._create(record)
        else:
            self._update(tracked, record)

    def remove(self, pin_id: int) -> None:
        """Detach the marker for ``pin_id``. Untracked ids are ignored."""
        tracked = self._pins.pop(pin_id, None)
        if tracked is None:
            logger.debug(f"remove: pin {pin_id} not tracked")
            return
        self._engine.remove_marker(tracked.handle)
        logger.debug(f"removed marker for pin {pin_id}")

    def refresh_popup(self, pin_id: int) -> None:
        """Re-render the popup of ``pin_id`` from its tracked record."""
        tracked = self._pins.get(pin_id)
        if tracked is not None:
            self._engine.bind_popup(tracked.handle, self.popup_for(tracked.record))

    def clear(self) -> None:
        """Remove every marker."""
        for pin_id in list(self._pins):
            self.remove(pin_id)

    # ------------- content -------------

    def popup_for(self, record: PinRecord) -> PopupContent:
        return build_pin_popup(
            record,
            editable=self._editable,
            on_edit=self._on_edit,
            on_delete=self._on_delete,
        )

    # ------------- internals -------------

    def _create(self, record: PinRecord) -> None:
        handle = self._engine.add_marker(
            to_viewport(record.x, record.y), select_icon(record, self._icons)
        )
        self._engine.bind_popup(handle, self.popup_for(record))
        self._pins[record.id] = _TrackedPin(record=record, handle=handle)
        logger.debug(f"created marker for pin {record.id} '{record.name}' at ({record.x:g}, {record.y:g})")

    def _update(self, tracked: _TrackedPin, record: PinRecord) -> None:
        old = tracked.record
        if (old.x, old.y) != (record.x, record.y):
            self._engine.move_marker(tracked.handle, to_viewport(record.x, record.y))
        self._engine.set_marker_icon(tracked.handle, select_icon(record, self._icons))
        self._engine.bind_popup(tracked.handle, self.popup_for(record))
        tracked.record = record
        logger.debug(f"updated marker for pin {record.id} '{record.name}'")
