# nicemaps/src/nicemaps/pin_map_widget/map_viewport_controller.py
"""Turn a MapRecord into a configured ViewportEngine.

The controller exclusively owns its engine: building a new one disposes the
previous one first, and every coordinate handed to the engine goes through
``coordinate_transform``.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from nicemaps.pin_map_widget.coordinate_transform import (
    ViewportBounds,
    ViewportPoint,
    bounds_for,
    to_stored,
    to_viewport,
)
from nicemaps.pin_map_widget.errors import ConfigurationError
from nicemaps.pin_map_widget.records import MapRecord, ViewState
from nicemaps.pin_map_widget.viewport_engine import EngineFactory, ViewportEngine, ZoomRange
from nicemaps.utils.logging import get_logger

logger = get_logger(__name__)


def require_dimensions(map_record: MapRecord) -> tuple[float, float]:
    """Return (width, height) or raise ConfigurationError. Never defaults."""
    width, height = map_record.width, map_record.height
    if width is None or height is None or width <= 0 or height <= 0:
        raise ConfigurationError(
            f"Map '{map_record.name}' has no valid image size "
            f"(width={width}, height={height}); set width and height on the map record."
        )
    return float(width), float(height)


class MapViewportController:
    """Owns one ViewportEngine for one widget container."""

    def __init__(
        self,
        engine_factory: EngineFactory,
        *,
        container: Any = None,
        zoom_range: Optional[ZoomRange] = None,
    ) -> None:
        self._engine_factory = engine_factory
        self._container = container
        self.zoom_range = zoom_range or ZoomRange()

        self._engine: Optional[ViewportEngine] = None
        self._bounds: Optional[ViewportBounds] = None
        self._map: Optional[MapRecord] = None

    # ------------- properties -------------

    @property
    def engine(self) -> Optional[ViewportEngine]:
        return self._engine

    @property
    def bounds(self) -> Optional[ViewportBounds]:
        return self._bounds

    @property
    def map_record(self) -> Optional[MapRecord]:
        return self._map

    # ------------- lifecycle -------------

    def build(self, map_record: MapRecord) -> ViewportEngine:
        """Create and configure the engine for ``map_record``.

        Raises ConfigurationError if the record has no usable width/height.
        """
        width, height = require_dimensions(map_record)
        self.dispose()

        bounds = bounds_for(width, height)
        engine = self._engine_factory(self._container, bounds, self.zoom_range)
        self._engine = engine
        self._bounds = bounds
        self._map = map_record

        engine.add_image_overlay(map_record.image_url, bounds)
        engine.on("viewchange", self._on_view_change)

        if map_record.initial_view is not None:
            self.set_view(map_record.initial_view)
        else:
            self.fit()

        logger.info(
            f"viewport built for map {map_record.id} '{map_record.name}': "
            f"image={width:g}x{height:g}, zoom=[{self.zoom_range.min_zoom:g}, {self.zoom_range.max_zoom:g}], "
            f"initial_view={map_record.initial_view}"
        )
        return engine

    def attach_input(self, handler: Callable[[ViewportPoint], Any]) -> None:
        """Route click and context events to ``handler`` (editable widgets only)."""
        engine = self._require_engine()
        engine.on("click", handler)
        engine.on("context", handler)

    def dispose(self) -> None:
        """Release the engine with its markers and handlers."""
        if self._engine is None:
            return
        try:
            self._engine.dispose()
        except Exception:
            logger.exception("Error disposing viewport engine")
        logger.debug(f"viewport disposed (map {self._map.id if self._map else None})")
        self._engine = None
        self._bounds = None
        self._map = None

    # ------------- camera -------------

    def get_current_view(self) -> ViewState:
        """Current camera pose in stored pixel coordinates."""
        engine = self._require_engine()
        point, zoom = engine.get_view()
        stored = to_stored(point.lat, point.lng)
        return ViewState(x=stored.x, y=stored.y, zoom=float(zoom))

    def set_view(self, view: ViewState) -> None:
        """Move the camera; center and zoom are clamped to the map limits."""
        engine = self._require_engine()
        engine.set_view(self.clamp_point(to_viewport(view.x, view.y)), self.zoom_range.clamp(view.zoom))

    def fit(self) -> None:
        """Show the full image."""
        engine = self._require_engine()
        assert self._bounds is not None
        engine.fit_to_bounds(self._bounds)

    def clamp_point(self, point: ViewportPoint) -> ViewportPoint:
        if self._bounds is None:
            return point
        return self._bounds.clamp(point)

    # ------------- internals -------------

    def _on_view_change(self, point: ViewportPoint, zoom: float) -> None:
        """Pull the camera back if the engine let it leave the bounds."""
        if self._engine is None or self._bounds is None:
            return
        clamped = self._bounds.clamp(point)
        clamped_zoom = self.zoom_range.clamp(zoom)
        if clamped != point or clamped_zoom != zoom:
            logger.debug(f"view {point}@{zoom} outside limits, clamping to {clamped}@{clamped_zoom}")
            self._engine.set_view(clamped, clamped_zoom)

    def _require_engine(self) -> ViewportEngine:
        if self._engine is None:
            raise ConfigurationError("No map is loaded.")
        return self._engine
