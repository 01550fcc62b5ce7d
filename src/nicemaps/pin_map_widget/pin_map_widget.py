# nicemaps/src/nicemaps/pin_map_widget/pin_map_widget.py
"""PinMapWidget: mounts one annotated image map into the current NiceGUI slot.

Every PinMapWidget is independent: its own view, form dialog, leaflet
engine, registry and editing state. Several can live on one page.

Example:
    ```python
    store = JsonFileDataStore.open_default()
    PinMapWidget(store, WidgetConfig(map_name="Waterdeep", editable=True))
    ```
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from nicegui import ui

from nicemaps.pin_map_widget.config import MarkerIcons, RetryPolicy, WidgetConfig
from nicemaps.pin_map_widget.coordinate_transform import ViewportBounds
from nicemaps.pin_map_widget.data_store import DataStore
from nicemaps.pin_map_widget.leaflet_engine import LeafletEngine
from nicemaps.pin_map_widget.pin_form_dialog import PinFormDialog
from nicemaps.pin_map_widget.records import MapRecord, PinFields
from nicemaps.pin_map_widget.viewport_engine import ZoomRange
from nicemaps.pin_map_widget.widget_controller import MapLoadedHandler, WidgetController
from nicemaps.pin_map_widget.widget_view import MapWidgetView
from nicemaps.utils.logging import get_logger

logger = get_logger(__name__)


def leaflet_engine_factory(container: Any, bounds: ViewportBounds, zoom_range: ZoomRange) -> LeafletEngine:
    return LeafletEngine(container, bounds, zoom_range)


class PinMapWidget:
    """Embeddable pin map. Must be constructed within a NiceGUI slot.

    Args:
        store: Data store holding the maps and pins tables.
        config: Which map to show and how (see ``WidgetConfig``).
        zoom_range: Zoom limits.
        retry: Wait policy while the container has no size yet.
        icons: Marker icon variants.
        auto_mount: Load the configured map as soon as the page is up.
    """

    def __init__(
        self,
        store: DataStore,
        config: Optional[WidgetConfig] = None,
        *,
        zoom_range: Optional[ZoomRange] = None,
        retry: Optional[RetryPolicy] = None,
        icons: Optional[MarkerIcons] = None,
        auto_mount: bool = True,
    ) -> None:
        self.config = config or WidgetConfig()

        self.view = MapWidgetView(height=self.config.height)
        with self.view.root:
            self.form = PinFormDialog(
                on_submit=self._on_form_submit,
                on_cancel=self._on_form_cancel,
                on_delete=self._on_form_delete,
            )
        self.controller = WidgetController(
            store=store,
            view=self.view,
            form=self.form,
            engine_factory=leaflet_engine_factory,
            config=self.config,
            zoom_range=zoom_range,
            retry=retry,
            icons=icons,
        )

        if auto_mount:
            with self.view.root:
                ui.timer(0.0, self.controller.mount, once=True)

    @classmethod
    def from_attributes(
        cls,
        store: DataStore,
        attrs: Mapping[str, Optional[str]],
        **kwargs: Any,
    ) -> "PinMapWidget":
        """Build from ``data-*`` container attributes (data-map-id, data-map-name, ...)."""
        return cls(store, WidgetConfig.from_attributes(attrs), **kwargs)

    # ------------- public API -------------

    @property
    def map_record(self) -> Optional[MapRecord]:
        return self.controller.map_record

    def on_map_loaded(self, handler: MapLoadedHandler) -> None:
        """Register callback called with the MapRecord after each successful load."""
        self.controller.on_map_loaded(handler)

    async def load_by_id(self, map_id: int) -> bool:
        return await self.controller.load_by_id(map_id)

    async def load_by_name(self, name: str) -> bool:
        return await self.controller.load_by_name(name)

    async def save_current_view_as_default(self, display_height: Optional[str] = None) -> bool:
        return await self.controller.save_current_view_as_default(display_height)

    def reset_view(self) -> bool:
        return self.controller.reset_view()

    def unmount(self) -> None:
        """Tear down the widget and remove its elements from the page."""
        self.controller.unmount()
        self.view.root.delete()

    # ------------- form callbacks -------------

    async def _on_form_submit(self, fields: PinFields) -> None:
        editing = self.controller.editing
        if editing is None:
            self.form.close()
            return
        await editing.submit(fields)

    def _on_form_cancel(self) -> None:
        editing = self.controller.editing
        if editing is None:
            self.form.close()
            return
        editing.cancel()

    async def _on_form_delete(self, pin_id: int) -> None:
        editing = self.controller.editing
        if editing is not None:
            await editing.delete(pin_id)
