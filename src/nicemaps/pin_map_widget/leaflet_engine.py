# nicemaps/src/nicemaps/pin_map_widget/leaflet_engine.py
"""ViewportEngine on top of NiceGUI's ``ui.leaflet`` in flat (CRS.Simple) mode.

Popup buttons emit a component event on this engine's own leaflet element,
so each button reaches the handler bound by its owning widget; nothing is
looked up through page-global state.
"""

from __future__ import annotations

import inspect
import json
from typing import Any, Callable, Dict, List, Tuple

from nicegui import events, ui

from nicemaps.pin_map_widget.coordinate_transform import ViewportBounds, ViewportPoint
from nicemaps.pin_map_widget.popups import PopupContent, render_popup_html
from nicemaps.pin_map_widget.viewport_engine import ENGINE_EVENTS, MarkerIcon, ZoomRange
from nicemaps.utils.logging import get_logger

logger = get_logger(__name__)

POPUP_ACTION_EVENT = "pin-action"


def _latlng(value: Any) -> ViewportPoint | None:
    """Parse a Leaflet latlng ({lat, lng} or [lat, lng])."""
    if isinstance(value, dict) and "lat" in value and "lng" in value:
        return ViewportPoint(float(value["lat"]), float(value["lng"]))
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return ViewportPoint(float(value[0]), float(value[1]))
    return None


def icon_js(icon: MarkerIcon) -> str:
    """JS expression building a Leaflet icon."""
    options: Dict[str, Any] = {
        "iconUrl": icon.icon_url,
        "iconSize": list(icon.icon_size),
        "iconAnchor": list(icon.icon_anchor),
        "popupAnchor": list(icon.popup_anchor),
    }
    if icon.shadow_url:
        options["shadowUrl"] = icon.shadow_url
        options["shadowSize"] = list(icon.shadow_size)
    return f"L.icon({json.dumps(options)})"


def map_options(bounds: ViewportBounds, zoom_range: ZoomRange) -> Dict[str, Any]:
    return {
        ":crs": "L.CRS.Simple",
        "minZoom": zoom_range.min_zoom,
        "maxZoom": zoom_range.max_zoom,
        "zoomSnap": zoom_range.snap,
        "maxBounds": bounds.as_pairs(),
        "maxBoundsViscosity": 1.0,
        "attributionControl": False,
        "scrollWheelZoom": True,
    }


class LeafletEngine:
    """One ``ui.leaflet`` map showing one image."""

    def __init__(self, container: Any, bounds: ViewportBounds, zoom_range: ZoomRange) -> None:
        self._handlers: Dict[str, List[Callable[..., Any]]] = {name: [] for name in ENGINE_EVENTS}
        self._actions: Dict[str, Dict[str, Callable[[], Any]]] = {}
        self._markers: Dict[str, Any] = {}
        self._pending: List[Callable[[], Any]] = []
        self._ready = False
        self._disposed = False
        self._view: Tuple[ViewportPoint, float] = (bounds.center, 0.0)

        parent = container if container is not None else ui.element("div").classes("w-full h-full")
        with parent:
            self.map = ui.leaflet(
                center=tuple(bounds.center),
                zoom=0,
                options=map_options(bounds, zoom_range),
            ).classes("w-full h-full")
        # ui.leaflet starts with an OpenStreetMap tile layer; the image replaces it
        self.map.clear_layers()

        self.map.on("init", self._on_init)
        self.map.on("map-click", self._on_click)
        self.map.on("map-contextmenu", self._on_context)
        self.map.on("map-moveend", self._on_view_event)
        self.map.on("map-zoomend", self._on_view_event)
        self.map.on(POPUP_ACTION_EVENT, self._on_popup_action)

    # ------------- ViewportEngine API -------------

    def add_image_overlay(self, url: str, bounds: ViewportBounds) -> None:
        self.map.image_overlay(url=url, bounds=bounds.as_pairs(), options={"interactive": False})

    def add_marker(self, point: ViewportPoint, icon: MarkerIcon) -> Any:
        marker = self.map.marker(latlng=tuple(point))
        self._markers[marker.id] = marker
        self.set_marker_icon(marker, icon)
        return marker

    def move_marker(self, handle: Any, point: ViewportPoint) -> None:
        handle.move(point.lat, point.lng)

    def set_marker_icon(self, handle: Any, icon: MarkerIcon) -> None:
        self._call(lambda: handle.run_method(":setIcon", icon_js(icon)))

    def remove_marker(self, handle: Any) -> None:
        self._markers.pop(handle.id, None)
        self._actions.pop(handle.id, None)
        if not self._disposed:
            self.map.remove_layer(handle)

    def bind_popup(self, handle: Any, content: PopupContent) -> None:
        self._actions[handle.id] = {a.key: a.handler for a in content.actions}
        markup = render_popup_html(content, lambda key: self._action_js(handle.id, key))
        self._call(lambda: handle.run_method("bindPopup", markup))

    def set_view(self, point: ViewportPoint, zoom: float) -> None:
        self._view = (point, float(zoom))
        self._call(lambda: self.map.run_map_method("setView", point.as_pair(), zoom))

    def get_view(self) -> Tuple[ViewportPoint, float]:
        return self._view

    def fit_to_bounds(self, bounds: ViewportBounds) -> None:
        self._view = (bounds.center, self._view[1])
        self._call(lambda: self.map.run_map_method("fitBounds", bounds.as_pairs()))

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        if event not in self._handlers:
            raise ValueError(f"unknown engine event {event!r}, expected one of {ENGINE_EVENTS}")
        self._handlers[event].append(handler)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        for handlers in self._handlers.values():
            handlers.clear()
        self._actions.clear()
        self._markers.clear()
        self._pending.clear()
        self.map.delete()

    # ------------- internals -------------

    def _action_js(self, marker_id: str, key: str) -> str:
        payload = json.dumps({"marker": marker_id, "action": key})
        return f"getElement({self.map.id}).$emit('{POPUP_ACTION_EVENT}', {payload})"

    def _call(self, fn: Callable[[], Any]) -> None:
        """Run a client-side method now, or once the map has initialized."""
        if self._disposed:
            return
        if self._ready:
            fn()
        else:
            self._pending.append(fn)

    def _on_init(self, _e: events.GenericEventArguments) -> None:
        self._ready = True
        pending, self._pending = self._pending, []
        for fn in pending:
            try:
                fn()
            except Exception:
                logger.exception("Error applying deferred leaflet call")

    async def _dispatch(self, event: str, *args: Any) -> None:
        if self._disposed:
            return
        for handler in list(self._handlers[event]):
            try:
                result = handler(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Error in {event} handler")

    async def _on_click(self, e: events.GenericEventArguments) -> None:
        point = _latlng((e.args or {}).get("latlng"))
        if point is not None:
            await self._dispatch("click", point)

    async def _on_context(self, e: events.GenericEventArguments) -> None:
        point = _latlng((e.args or {}).get("latlng"))
        if point is not None:
            await self._dispatch("context", point)

    async def _on_view_event(self, e: events.GenericEventArguments) -> None:
        args = e.args or {}
        point = _latlng(args.get("center")) or self._view[0]
        zoom = args.get("zoom", self._view[1])
        self._view = (point, float(zoom))
        await self._dispatch("viewchange", point, float(zoom))

    async def _on_popup_action(self, e: events.GenericEventArguments) -> None:
        args = e.args if isinstance(e.args, dict) else {}
        marker_id = str(args.get("marker", ""))
        handler = self._actions.get(marker_id, {}).get(str(args.get("action", "")))
        if handler is None:
            logger.debug(f"popup action {args!r} has no handler")
            return
        marker = self._markers.get(marker_id)
        if marker is not None:
            marker.run_method("closePopup")
        try:
            result = handler()
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Error in popup action handler")
