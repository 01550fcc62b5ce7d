# nicemaps/src/nicemaps/pin_map_widget/viewport_engine.py
"""Interface of the 2D pan/zoom surface the widget draws on.

All points passed to or returned by an engine are in engine space
(``ViewportPoint``); callers convert with ``coordinate_transform``.

Events (``on(name, handler)``):
    "click":      handler(ViewportPoint)  left click on the map
    "context":    handler(ViewportPoint)  right click / long press
    "viewchange": handler(ViewportPoint, zoom) after pan or zoom ends
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, Tuple, runtime_checkable

from nicemaps.pin_map_widget.coordinate_transform import ViewportBounds, ViewportPoint
from nicemaps.pin_map_widget.popups import PopupContent

ENGINE_EVENTS = ("click", "context", "viewchange")


@dataclass(frozen=True)
class ZoomRange:
    """Zoom limits, independent of image resolution.

    Zoom 0 shows one image pixel per screen pixel; each step doubles/halves.
    """

    min_zoom: float = -2.0
    max_zoom: float = 3.0
    snap: float = 0.5

    def clamp(self, zoom: float) -> float:
        return max(self.min_zoom, min(self.max_zoom, float(zoom)))


@dataclass(frozen=True)
class MarkerIcon:
    """Marker image description, in screen pixels."""

    icon_url: str
    shadow_url: Optional[str] = None
    icon_size: Tuple[int, int] = (25, 41)
    icon_anchor: Tuple[int, int] = (12, 41)
    popup_anchor: Tuple[int, int] = (1, -34)
    shadow_size: Tuple[int, int] = (41, 41)


@runtime_checkable
class ViewportEngine(Protocol):
    """One pan/zoom surface bound to a container."""

    def add_image_overlay(self, url: str, bounds: ViewportBounds) -> None: ...

    def add_marker(self, point: ViewportPoint, icon: MarkerIcon) -> Any: ...

    def move_marker(self, handle: Any, point: ViewportPoint) -> None: ...

    def set_marker_icon(self, handle: Any, icon: MarkerIcon) -> None: ...

    def remove_marker(self, handle: Any) -> None: ...

    def bind_popup(self, handle: Any, content: PopupContent) -> None: ...

    def set_view(self, point: ViewportPoint, zoom: float) -> None: ...

    def get_view(self) -> Tuple[ViewportPoint, float]: ...

    def fit_to_bounds(self, bounds: ViewportBounds) -> None: ...

    def on(self, event: str, handler: Callable[..., Any]) -> None: ...

    def dispose(self) -> None: ...


# (container, bounds, zoom_range) -> engine
EngineFactory = Callable[[Any, ViewportBounds, ZoomRange], ViewportEngine]
