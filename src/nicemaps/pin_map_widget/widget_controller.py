# nicemaps/src/nicemaps/pin_map_widget/widget_controller.py
"""Top-level orchestration for one mounted map widget.

WidgetController resolves which map to show, owns the MapViewportController,
PinRegistry and EditingStateMachine for it, and exposes the public API
(load_by_id / load_by_name / save_current_view_as_default / on_map_loaded).

Nothing raised while loading or saving leaves this class: failures are
rendered inline through the WidgetView so other widgets on the page keep
working.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import replace
from typing import Any, Callable, List, Optional, Protocol, Tuple

from nicemaps.pin_map_widget.config import MarkerIcons, RetryPolicy, WidgetConfig
from nicemaps.pin_map_widget.data_store import DataStore, Filters, Ilike
from nicemaps.pin_map_widget.editing_state_machine import EditingStateMachine, PinFormView
from nicemaps.pin_map_widget.errors import (
    ConfigurationError,
    MapWidgetError,
    NetworkError,
    ResolutionError,
    WriteError,
)
from nicemaps.pin_map_widget.map_viewport_controller import MapViewportController
from nicemaps.pin_map_widget.pin_registry import PinRegistry
from nicemaps.pin_map_widget.records import MAPS_TABLE, PINS_TABLE, MapRecord, PinRecord
from nicemaps.pin_map_widget.viewport_engine import EngineFactory, ZoomRange
from nicemaps.utils.logging import get_logger

logger = get_logger(__name__)

MapLoadedHandler = Callable[[MapRecord], Any]


class WidgetView(Protocol):
    """Page-side chrome around the map: title, inline error, map container."""

    container: Any

    def set_title(self, title: Optional[str]) -> None: ...

    def show_error(self, message: str) -> None: ...

    def hide_error(self) -> None: ...

    def notify(self, message: str, *, level: str = "info") -> None: ...

    async def measure(self) -> Tuple[float, float]: ...


class _StaleLoad(Exception):
    """A newer load (or unmount) superseded the running one."""


class WidgetController:
    """Lifecycle of one map widget.

    Args:
        store: Data store for maps and pins.
        view: Title / error / container chrome.
        form: Pin form UI driven by the editing state machine.
        engine_factory: Builds a ViewportEngine inside ``view.container``.
        config: Which map to show and how.
        zoom_range: Zoom limits for every map.
        retry: Wait policy while the container has no size yet.
        icons: Marker icon variants.
    """

    def __init__(
        self,
        *,
        store: DataStore,
        view: WidgetView,
        form: PinFormView,
        engine_factory: EngineFactory,
        config: Optional[WidgetConfig] = None,
        zoom_range: Optional[ZoomRange] = None,
        retry: Optional[RetryPolicy] = None,
        icons: Optional[MarkerIcons] = None,
    ) -> None:
        self._store = store
        self._view = view
        self._form = form
        self.config = config or WidgetConfig()
        self._retry = retry or RetryPolicy()
        self._icons = icons or MarkerIcons()

        self.viewport = MapViewportController(
            engine_factory, container=view.container, zoom_range=zoom_range
        )
        self._registry: Optional[PinRegistry] = None
        self._editing: Optional[EditingStateMachine] = None
        self._map: Optional[MapRecord] = None

        self._load_token = 0
        self._mounted = True
        self._map_loaded_handlers: List[MapLoadedHandler] = []

    # ------------- properties -------------

    @property
    def map_record(self) -> Optional[MapRecord]:
        return self._map

    @property
    def registry(self) -> Optional[PinRegistry]:
        return self._registry

    @property
    def editing(self) -> Optional[EditingStateMachine]:
        return self._editing

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    # ------------- public event registration API -------------

    def on_map_loaded(self, handler: MapLoadedHandler) -> None:
        """Register callback for map loaded events.

        Handler is called with: map_record (MapRecord)
        """
        self._map_loaded_handlers.append(handler)

    # ------------- public API -------------

    async def mount(self) -> bool:
        """Load the map named by ``config``."""
        try:
            self.config.require_identifier()
        except ConfigurationError as e:
            self._show_error(e)
            return False
        if self.config.map_id is not None:
            return await self.load_by_id(self.config.map_id)
        assert self.config.map_name is not None
        return await self.load_by_name(self.config.map_name)

    async def load_by_id(self, map_id: int) -> bool:
        """Show map ``map_id``, replacing whatever is shown now."""
        try:
            record_id = int(map_id)
        except (TypeError, ValueError):
            if self._mounted:
                self._load_token += 1
                self._teardown()
                self._show_error(ConfigurationError(f"Invalid map id: {map_id!r}"))
            return False
        return await self._load({"id": record_id}, str(record_id))

    async def load_by_name(self, name: str) -> bool:
        """Show the map whose name matches ``name`` case-insensitively."""
        name = (name or "").strip()
        if not name:
            self._show_error(ConfigurationError("No map specified. Use data-map-name or data-map-id."))
            return False
        return await self._load({"name": Ilike(name)}, name)

    async def save_current_view_as_default(self, display_height: Optional[str] = None) -> bool:
        """Store the current camera pose as the map's initial view."""
        map_record = self._map
        if map_record is None or self.viewport.engine is None:
            self._view.notify("No map is loaded.", level="warning")
            return False

        view_state = self.viewport.get_current_view()
        partial: dict[str, Any] = {"initial_view": view_state.to_dict()}
        if display_height:
            partial["display_height"] = display_height

        try:
            await self._store.update(MAPS_TABLE, map_record.id, partial)
        except (WriteError, NetworkError) as e:
            if self._mounted:
                logger.warning(f"saving default view for map {map_record.id} failed: {e}")
                self._view.notify(f"Failed to save default view: {e}", level="negative")
            return False
        except Exception as e:
            logger.exception("Unexpected error saving default view")
            if self._mounted:
                self._view.notify(f"Failed to save default view: {e}", level="negative")
            return False

        if not self._mounted or self._map is None or self._map.id != map_record.id:
            logger.debug("default view saved for a map that is no longer shown")
            return False

        self._map = replace(
            self._map,
            initial_view=view_state,
            display_height=display_height or self._map.display_height,
        )
        self._view.notify("Default view saved.", level="positive")
        logger.info(f"saved default view for map {map_record.id}: {view_state}")
        return True

    def reset_view(self) -> bool:
        """Go back to the map's default view, or show the whole image if it has none."""
        if self._map is None or self.viewport.engine is None:
            self._view.notify("No map is loaded.", level="warning")
            return False
        if self._map.initial_view is not None:
            self.viewport.set_view(self._map.initial_view)
        else:
            self.viewport.fit()
        return True

    def unmount(self) -> None:
        """Tear down; results of in-flight calls are discarded afterwards."""
        self._mounted = False
        self._load_token += 1
        self._teardown()
        logger.debug("widget unmounted")

    # ------------- loading -------------

    async def _load(self, filters: Filters, label: str) -> bool:
        if not self._mounted:
            return False
        self._load_token += 1
        token = self._load_token
        self._view.hide_error()
        self._teardown()

        try:
            await self._wait_for_layout(token)
            try:
                rows = await self._store.select(MAPS_TABLE, filters)
            except (NetworkError, WriteError) as e:
                raise NetworkError(f"Failed to load map: {e}") from e
            self._check_current(token)
            if not rows:
                raise ResolutionError(f"Map not found: {label}")
            map_record = MapRecord.from_row(rows[0])
            self._render(map_record)
        except _StaleLoad:
            logger.debug(f"load of map '{label}' superseded")
            return False
        except MapWidgetError as e:
            if token == self._load_token:
                self._teardown()
                self._show_error(e)
            return False
        except Exception as e:
            logger.exception(f"Unexpected error loading map '{label}'")
            if token == self._load_token:
                self._teardown()
                self._show_error(MapWidgetError(f"Failed to load map: {e}"))
            return False

        await self._load_pins(map_record, token)
        if token != self._load_token:
            return False
        await self._emit_map_loaded(map_record)
        return True

    async def _wait_for_layout(self, token: int) -> None:
        """Wait until the container has a non-zero size, bounded by the retry policy."""
        delays = self._retry.delays()
        attempts = 0
        while True:
            attempts += 1
            width, height = await self._view.measure()
            self._check_current(token)
            if width > 0 and height > 0:
                if attempts > 1:
                    logger.debug(f"container laid out after {attempts} attempt(s): {width:g}x{height:g}")
                return
            delay = next(delays, None)
            if delay is None:
                raise ConfigurationError(
                    f"Map container still has no size after {attempts} attempts; is it hidden?"
                )
            await asyncio.sleep(delay)

    def _render(self, map_record: MapRecord) -> None:
        editable = self.config.editable
        engine = self.viewport.build(map_record)
        self._registry = PinRegistry(
            engine,
            editable=editable,
            on_edit=self._request_edit,
            on_delete=self._request_delete,
            icons=self._icons,
        )
        self._editing = EditingStateMachine(
            store=self._store,
            registry=self._registry,
            form=self._form,
            map_id=map_record.id,
            editable=editable,
        )
        if editable:
            self.viewport.attach_input(self._editing.handle_click)
        self._view.set_title(map_record.name if self.config.show_title else None)
        self._map = map_record

    async def _load_pins(self, map_record: MapRecord, token: int) -> None:
        try:
            rows = await self._store.select(PINS_TABLE, {"map_id": map_record.id})
        except (NetworkError, WriteError) as e:
            if token == self._load_token:
                logger.warning(f"loading pins for map {map_record.id} failed: {e}")
                self._view.show_error(f"Failed to load location pins: {e}")
            return
        if token != self._load_token or self._registry is None:
            return

        records: List[PinRecord] = []
        for row in rows:
            try:
                records.append(PinRecord.from_row(row))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"skipping invalid pin row {row!r}: {e}")
        self._registry.sync(records, prune=True)
        logger.info(f"map {map_record.id}: {len(records)} pin(s) loaded")

    # ------------- popup actions -------------

    async def _request_edit(self, pin_id: int) -> None:
        if self._editing is not None:
            await self._editing.edit(pin_id)

    async def _request_delete(self, pin_id: int) -> None:
        if self._editing is not None:
            await self._editing.delete(pin_id)

    # ------------- internals -------------

    def _check_current(self, token: int) -> None:
        if not self._mounted or token != self._load_token:
            raise _StaleLoad()

    def _teardown(self) -> None:
        if self._editing is not None:
            self._editing.detach()
            self._editing = None
        if self._registry is not None:
            try:
                self._registry.clear()
            except Exception:
                logger.exception("Error removing markers")
            self._registry = None
        self.viewport.dispose()
        self._map = None

    def _show_error(self, error: Exception) -> None:
        logger.warning(f"{type(error).__name__}: {error}")
        self._view.show_error(str(error))

    async def _emit_map_loaded(self, map_record: MapRecord) -> None:
        for handler in list(self._map_loaded_handlers):
            try:
                result = handler(map_record)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Error in map_loaded handler")
