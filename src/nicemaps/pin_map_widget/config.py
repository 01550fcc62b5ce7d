# nicemaps/src/nicemaps/pin_map_widget/config.py
"""Configuration dataclasses for the pin map widget."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from nicemaps.pin_map_widget.errors import ConfigurationError
from nicemaps.pin_map_widget.viewport_engine import MarkerIcon
from nicemaps.utils.logging import get_logger

logger = get_logger(__name__)

_MARKER_BASE = "https://raw.githubusercontent.com/pointhi/leaflet-color-markers/master/img"
_SHADOW_URL = "https://cdnjs.cloudflare.com/ajax/libs/leaflet/1.9.4/images/marker-shadow.png"


def _attr_bool(value: Optional[str]) -> bool:
    return str(value).strip().lower() == "true" if value is not None else False


@dataclass
class WidgetConfig:
    """Per-container widget configuration.

    Mirrors the declarative container attributes:
        data-map-id:     numeric map id (takes precedence over the name)
        data-map-name:   map name, matched case-insensitively
        data-editable:   "true" enables add/edit/delete of pins
        data-height:     CSS height of the map area (default "500px")
        data-show-title: "true" shows the map name above the map
    """

    map_id: Optional[int] = None
    map_name: Optional[str] = None
    editable: bool = False
    height: str = "500px"
    show_title: bool = False

    @classmethod
    def from_attributes(cls, attrs: Mapping[str, Optional[str]]) -> "WidgetConfig":
        """Build from container attributes. Raises ConfigurationError for a non-numeric id."""
        raw_id = attrs.get("data-map-id")
        map_id: Optional[int] = None
        if raw_id is not None and str(raw_id).strip():
            try:
                map_id = int(str(raw_id).strip())
            except ValueError:
                raise ConfigurationError(f"data-map-id must be a number, got {raw_id!r}") from None
        name = attrs.get("data-map-name")
        return cls(
            map_id=map_id,
            map_name=name.strip() if name and name.strip() else None,
            editable=_attr_bool(attrs.get("data-editable")),
            height=(attrs.get("data-height") or "500px").strip(),
            show_title=_attr_bool(attrs.get("data-show-title")),
        )

    def require_identifier(self) -> None:
        if self.map_id is None and not self.map_name:
            raise ConfigurationError("No map specified. Use data-map-name or data-map-id.")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with backoff while the container has no size yet."""

    interval_sec: float = 0.1
    backoff: float = 1.5
    max_interval_sec: float = 1.0
    max_attempts: int = 20

    def delays(self):
        """Yield the sleep before each retry (max_attempts - 1 values)."""
        delay = self.interval_sec
        for _ in range(max(0, self.max_attempts - 1)):
            yield delay
            delay = min(self.max_interval_sec, delay * self.backoff)


@dataclass(frozen=True)
class MarkerIcons:
    """Icon variants for pins: home pins use `home`, everything else `default`."""

    default: MarkerIcon = field(
        default_factory=lambda: MarkerIcon(icon_url=f"{_MARKER_BASE}/marker-icon-2x-blue.png", shadow_url=_SHADOW_URL)
    )
    home: MarkerIcon = field(
        default_factory=lambda: MarkerIcon(icon_url=f"{_MARKER_BASE}/marker-icon-2x-red.png", shadow_url=_SHADOW_URL)
    )


@dataclass
class StoreSettings:
    """Connection settings for the REST data store."""

    url: str
    api_key: str
    access_token: Optional[str] = None      # user session token, if any
    timeout_sec: Optional[float] = 10.0
    maps_table: str = "location_maps"
    pins_table: str = "locations"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StoreSettings":
        """Read NICEMAPS_STORE_* variables. Raises ConfigurationError if url/key are unset."""
        env = os.environ if environ is None else environ
        url = env.get("NICEMAPS_STORE_URL", "").strip()
        key = env.get("NICEMAPS_STORE_KEY", "").strip()
        if not url or not key:
            raise ConfigurationError("NICEMAPS_STORE_URL and NICEMAPS_STORE_KEY must be set")

        timeout: Optional[float] = 10.0
        raw_timeout = env.get("NICEMAPS_STORE_TIMEOUT")
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                logger.warning(f"NICEMAPS_STORE_TIMEOUT={raw_timeout!r} is not a number, using {timeout}")
            else:
                if timeout <= 0:
                    timeout = None

        return cls(
            url=url.rstrip("/"),
            api_key=key,
            access_token=env.get("NICEMAPS_STORE_TOKEN") or None,
            timeout_sec=timeout,
            maps_table=env.get("NICEMAPS_MAPS_TABLE", "location_maps"),
            pins_table=env.get("NICEMAPS_PINS_TABLE", "locations"),
        )
