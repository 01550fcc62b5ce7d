# nicemaps/src/nicemaps/pin_map_widget/__init__.py
"""Pin Map Widget - data-driven image map with location pins."""

from .config import MarkerIcons, RetryPolicy, StoreSettings, WidgetConfig
from .coordinate_transform import (
    StoredPoint,
    ViewportBounds,
    ViewportPoint,
    bounds_for,
    to_stored,
    to_viewport,
)
from .data_store import DataStore, Ilike, InMemoryDataStore
from .editing_state_machine import EditingState, EditingStateMachine
from .errors import (
    ConfigurationError,
    MapWidgetError,
    NetworkError,
    NotFoundError,
    ResolutionError,
    ValidationError,
    WriteError,
)
from .json_data_store import JsonFileDataStore
from .map_viewport_controller import MapViewportController
from .pin_map_widget import PinMapWidget
from .pin_registry import PinRegistry
from .records import MapRecord, PinFields, PinRecord, ViewState
from .rest_data_store import RestDataStore
from .viewport_engine import MarkerIcon, ViewportEngine, ZoomRange
from .widget_controller import WidgetController

__all__ = [
    "ConfigurationError",
    "DataStore",
    "EditingState",
    "EditingStateMachine",
    "Ilike",
    "InMemoryDataStore",
    "JsonFileDataStore",
    "MapRecord",
    "MapViewportController",
    "MapWidgetError",
    "MarkerIcon",
    "MarkerIcons",
    "NetworkError",
    "NotFoundError",
    "PinFields",
    "PinMapWidget",
    "PinRecord",
    "PinRegistry",
    "ResolutionError",
    "RestDataStore",
    "RetryPolicy",
    "StoreSettings",
    "StoredPoint",
    "ValidationError",
    "ViewState",
    "ViewportBounds",
    "ViewportEngine",
    "ViewportPoint",
    "WidgetConfig",
    "WidgetController",
    "WriteError",
    "ZoomRange",
    "bounds_for",
    "to_stored",
    "to_viewport",
]
