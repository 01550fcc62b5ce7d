# nicemaps/src/nicemaps/pin_map_widget/errors.py
"""Exceptions raised inside a pin map widget.

All of them derive from ``MapWidgetError`` so the widget can render any of
them inline without letting it escape into the host page.
"""

from __future__ import annotations


class MapWidgetError(Exception):
    """Base class for errors that are shown to the user inside the widget."""


class ConfigurationError(MapWidgetError):
    """Missing map identifier, missing image size, or a container that never got laid out."""


class ResolutionError(MapWidgetError):
    """No map matches the requested id or name."""


class ValidationError(MapWidgetError):
    """Form input rejected before any write is attempted."""


class WriteError(MapWidgetError):
    """A create/update/delete call to the data store failed."""


class NotFoundError(WriteError):
    """The record targeted by an update/delete does not exist."""


class NetworkError(MapWidgetError):
    """The data store could not be reached (transport failure or timeout)."""
