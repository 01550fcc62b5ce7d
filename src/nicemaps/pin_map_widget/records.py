# nicemaps/src/nicemaps/pin_map_widget/records.py
"""Map and pin records as read from / written to the data store.

Rows use snake_case columns. ``from_row`` is tolerant of missing optional
columns; ``to_row`` produces the dict that is sent back to the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from nicemaps.pin_map_widget.errors import ValidationError
from nicemaps.utils.logging import get_logger

logger = get_logger(__name__)

MAPS_TABLE = "maps"
PINS_TABLE = "pins"


def _blank_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


@dataclass(frozen=True)
class ViewState:
    """Camera pose in stored pixel coordinates (center x/y + zoom level).

    ``MapRecord.initial_view`` uses the same convention, so saving and
    loading both go through the coordinate transform exactly once.
    """

    x: float
    y: float
    zoom: float

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "zoom": self.zoom}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ViewState":
        """Raises ValueError if any of x/y/zoom is missing or not numeric."""
        try:
            return cls(x=float(data["x"]), y=float(data["y"]), zoom=float(data["zoom"]))
        except (KeyError, TypeError) as e:
            raise ValueError(f"invalid view state {data!r}: {e}") from e


@dataclass(frozen=True)
class MapRecord:
    """A map definition: one source image plus its display defaults."""

    id: int
    name: str
    image_url: str
    width: Optional[float] = None
    height: Optional[float] = None
    display_height: Optional[str] = None
    initial_view: Optional[ViewState] = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "MapRecord":
        initial_view = None
        raw_view = row.get("initial_view")
        if isinstance(raw_view, dict):
            try:
                initial_view = ViewState.from_dict(raw_view)
            except ValueError as e:
                logger.warning(f"map {row.get('id')}: ignoring initial_view: {e}")

        def _dim(key: str) -> Optional[float]:
            value = row.get(key)
            if value is None:
                return None
            try:
                return float(value)
            except (TypeError, ValueError):
                logger.warning(f"map {row.get('id')}: {key}={value!r} is not a number")
                return None

        return cls(
            id=int(row["id"]),
            name=str(row.get("name") or ""),
            image_url=str(row.get("map_file_url") or ""),
            width=_dim("width"),
            height=_dim("height"),
            display_height=_blank_to_none(row.get("display_height")),
            initial_view=initial_view,
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "map_file_url": self.image_url,
            "width": self.width,
            "height": self.height,
            "display_height": self.display_height,
            "initial_view": self.initial_view.to_dict() if self.initial_view else None,
        }


@dataclass(frozen=True)
class PinFields:
    """User-editable pin fields as entered in the form."""

    name: str = ""
    description: Optional[str] = None
    link_url: Optional[str] = None
    is_home: bool = False

    def normalized(self) -> "PinFields":
        """Strip text fields and turn blanks into None (never store empty strings)."""
        return PinFields(
            name=(self.name or "").strip(),
            description=_blank_to_none(self.description),
            link_url=_blank_to_none(self.link_url),
            is_home=bool(self.is_home),
        )

    def validate(self) -> "PinFields":
        """Return the normalized fields, or raise ValidationError."""
        fields = self.normalized()
        if not fields.name:
            raise ValidationError("Please enter a location name.")
        return fields


@dataclass(frozen=True)
class PinRecord:
    """A point annotation on one map, in stored pixel coordinates."""

    id: int
    map_id: int
    name: str
    x: float
    y: float
    description: Optional[str] = None
    link_url: Optional[str] = None
    is_home: bool = False

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "PinRecord":
        """Raises KeyError/ValueError/TypeError for rows without id, map_id, x or y."""
        return cls(
            id=int(row["id"]),
            map_id=int(row["map_id"]),
            name=str(row.get("name") or ""),
            x=float(row["x"]),
            y=float(row["y"]),
            description=_blank_to_none(row.get("description")),
            link_url=_blank_to_none(row.get("link_url")),
            is_home=_as_bool(row.get("is_home", False)),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "map_id": self.map_id,
            "name": self.name,
            "x": self.x,
            "y": self.y,
            "description": self.description,
            "link_url": self.link_url,
            "is_home": self.is_home,
        }

    def fields(self) -> PinFields:
        return PinFields(
            name=self.name,
            description=self.description,
            link_url=self.link_url,
            is_home=self.is_home,
        )


def new_pin_row(map_id: int, x: float, y: float, fields: PinFields) -> dict[str, Any]:
    """Row for inserting a new pin (no id; the store assigns it)."""
    return {
        "map_id": map_id,
        "name": fields.name,
        "x": x,
        "y": y,
        "description": fields.description,
        "link_url": fields.link_url,
        "is_home": fields.is_home,
    }


def pin_update_row(fields: PinFields) -> dict[str, Any]:
    """Partial row for updating a pin's editable fields."""
    return {
        "name": fields.name,
        "description": fields.description,
        "link_url": fields.link_url,
        "is_home": fields.is_home,
    }
