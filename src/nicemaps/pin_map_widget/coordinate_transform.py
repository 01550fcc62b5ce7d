# nicemaps/src/nicemaps/pin_map_widget/coordinate_transform.py
"""Stored image-pixel coordinates <-> viewport engine coordinates.

Stored space: origin at the top-left corner of the source image, x grows to
the right, y grows downward (the way pixels are addressed in the file).

Viewport space: the engine's flat coordinate system (Leaflet ``CRS.Simple``),
addressed as ``(lat, lng)``. ``lng`` is the horizontal axis and ``lat`` grows
upward, so the vertical axis is the negated pixel row.

This module is the only place where the vertical axis is flipped. Everything
else converts through ``to_viewport`` / ``to_stored``.
"""

from __future__ import annotations

from typing import NamedTuple


class StoredPoint(NamedTuple):
    """Point in full-image pixel space (origin top-left, y down)."""

    x: float
    y: float


class ViewportPoint(NamedTuple):
    """Point in engine space, ordered (lat, lng) like the engine expects."""

    lat: float
    lng: float

    def as_pair(self) -> list[float]:
        return [self.lat, self.lng]


class ViewportBounds(NamedTuple):
    """Axis-aligned rectangle in engine space."""

    south_west: ViewportPoint
    north_east: ViewportPoint

    @property
    def center(self) -> ViewportPoint:
        return ViewportPoint(
            0.5 * (self.south_west.lat + self.north_east.lat),
            0.5 * (self.south_west.lng + self.north_east.lng),
        )

    def as_pairs(self) -> list[list[float]]:
        """Return ``[[south, west], [north, east]]`` (engine bounds literal)."""
        return [self.south_west.as_pair(), self.north_east.as_pair()]

    def contains(self, point: ViewportPoint) -> bool:
        return (
            self.south_west.lat <= point.lat <= self.north_east.lat
            and self.south_west.lng <= point.lng <= self.north_east.lng
        )

    def clamp(self, point: ViewportPoint) -> ViewportPoint:
        """Clamp ``point`` into the rectangle (hard clamp, no overscroll)."""
        lat = max(self.south_west.lat, min(self.north_east.lat, point.lat))
        lng = max(self.south_west.lng, min(self.north_east.lng, point.lng))
        return ViewportPoint(lat, lng)


def to_viewport(x: float, y: float) -> ViewportPoint:
    """Stored pixel coords -> engine coords."""
    return ViewportPoint(lat=-float(y), lng=float(x))


def to_stored(lat: float, lng: float) -> StoredPoint:
    """Engine coords -> stored pixel coords. Exact inverse of ``to_viewport``."""
    return StoredPoint(x=float(lng), y=-float(lat))


def bounds_for(width: float, height: float) -> ViewportBounds:
    """Engine-space rectangle covering the whole ``width`` x ``height`` image.

    The bottom-left pixel corner ``(0, height)`` becomes the south-west corner
    and the top-right corner ``(width, 0)`` the north-east one.
    """
    return ViewportBounds(
        south_west=to_viewport(0.0, height),
        north_east=to_viewport(width, 0.0),
    )
