# tests/pin_map_widget/conftest.py
from __future__ import annotations

import asyncio
import inspect
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import pytest


# Ensure `nicemaps/src` is importable when running tests from the repo root.
_SRC_DIR = Path(__file__).resolve().parents[2] / "src"
if _SRC_DIR.exists() and str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))


from nicemaps.pin_map_widget.coordinate_transform import StoredPoint, ViewportBounds, ViewportPoint  # noqa: E402
from nicemaps.pin_map_widget.data_store import InMemoryDataStore  # noqa: E402
from nicemaps.pin_map_widget.records import MAPS_TABLE, PINS_TABLE, PinFields  # noqa: E402
from nicemaps.pin_map_widget.viewport_engine import ENGINE_EVENTS, MarkerIcon, ZoomRange  # noqa: E402
from nicemaps.pin_map_widget.popups import PopupContent  # noqa: E402


# ------------- viewport engine -------------


class FakeMarker:
    def __init__(self, marker_id: int, point: ViewportPoint, icon: MarkerIcon) -> None:
        self.id = marker_id
        self.point = point
        self.icon = icon
        self.popup: Optional[PopupContent] = None
        self.removed = False

    def action(self, key: str) -> Callable[[], Any]:
        assert self.popup is not None
        for a in self.popup.actions:
            if a.key == key:
                return a.handler
        raise KeyError(key)


class FakeEngine:
    """Records what the widget asks of the engine; events are fired with ``emit``."""

    def __init__(self, container: Any, bounds: ViewportBounds, zoom_range: ZoomRange) -> None:
        self.container = container
        self.bounds = bounds
        self.zoom_range = zoom_range
        self.overlays: List[Tuple[str, ViewportBounds]] = []
        self.markers: List[FakeMarker] = []
        self.handlers: Dict[str, List[Callable[..., Any]]] = {name: [] for name in ENGINE_EVENTS}
        self.view: Tuple[ViewportPoint, float] = (bounds.center, 0.0)
        self.set_view_calls: List[Tuple[ViewportPoint, float]] = []
        self.fit_calls: List[ViewportBounds] = []
        self.disposed = False

    @property
    def live_markers(self) -> List[FakeMarker]:
        return [m for m in self.markers if not m.removed]

    def add_image_overlay(self, url: str, bounds: ViewportBounds) -> None:
        self.overlays.append((url, bounds))

    def add_marker(self, point: ViewportPoint, icon: MarkerIcon) -> FakeMarker:
        marker = FakeMarker(len(self.markers) + 1, point, icon)
        self.markers.append(marker)
        return marker

    def move_marker(self, handle: FakeMarker, point: ViewportPoint) -> None:
        handle.point = point

    def set_marker_icon(self, handle: FakeMarker, icon: MarkerIcon) -> None:
        handle.icon = icon

    def remove_marker(self, handle: FakeMarker) -> None:
        handle.removed = True

    def bind_popup(self, handle: FakeMarker, content: PopupContent) -> None:
        handle.popup = content

    def set_view(self, point: ViewportPoint, zoom: float) -> None:
        self.view = (point, zoom)
        self.set_view_calls.append((point, zoom))

    def get_view(self) -> Tuple[ViewportPoint, float]:
        return self.view

    def fit_to_bounds(self, bounds: ViewportBounds) -> None:
        self.view = (bounds.center, self.view[1])
        self.fit_calls.append(bounds)

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        self.handlers[event].append(handler)

    def dispose(self) -> None:
        self.disposed = True
        for handlers in self.handlers.values():
            handlers.clear()

    async def emit(self, event: str, *args: Any) -> None:
        for handler in list(self.handlers[event]):
            result = handler(*args)
            if inspect.isawaitable(result):
                await result


class EngineRecorder:
    """Engine factory that keeps every engine it built."""

    def __init__(self) -> None:
        self.engines: List[FakeEngine] = []

    def __call__(self, container: Any, bounds: ViewportBounds, zoom_range: ZoomRange) -> FakeEngine:
        engine = FakeEngine(container, bounds, zoom_range)
        self.engines.append(engine)
        return engine

    @property
    def last(self) -> FakeEngine:
        return self.engines[-1]


# ------------- form / view -------------


class FakeForm:
    def __init__(self) -> None:
        self.mode: Optional[str] = None            # "compose" / "edit" / None (closed)
        self.location: Optional[StoredPoint] = None
        self.pin_id: Optional[int] = None
        self.fields: Optional[PinFields] = None
        self.busy = False
        self.errors: List[str] = []
        self.notifications: List[Tuple[str, str]] = []
        self.confirm_messages: List[str] = []
        self.confirm_result = True
        self.confirm_gate: Optional[asyncio.Event] = None
        self.close_count = 0

    def open_compose(self, location: StoredPoint, fields: PinFields) -> None:
        self.mode, self.location, self.pin_id, self.fields = "compose", location, None, fields

    def open_edit(self, pin_id: int, fields: PinFields) -> None:
        self.mode, self.location, self.pin_id, self.fields = "edit", None, pin_id, fields

    def set_busy(self, busy: bool) -> None:
        self.busy = busy

    def show_error(self, message: str) -> None:
        self.errors.append(message)

    def close(self) -> None:
        self.mode = None
        self.close_count += 1

    async def confirm(self, message: str) -> bool:
        self.confirm_messages.append(message)
        if self.confirm_gate is not None:
            await self.confirm_gate.wait()
        return self.confirm_result

    def notify(self, message: str, *, level: str = "info") -> None:
        self.notifications.append((level, message))


class FakeView:
    def __init__(self, sizes: Iterable[Tuple[float, float]] = ()) -> None:
        self.container = object()
        self.title: Optional[str] = None
        self.error: Optional[str] = None
        self.errors: List[str] = []
        self.notifications: List[Tuple[str, str]] = []
        self._sizes = list(sizes)
        self.measure_calls = 0

    def set_title(self, title: Optional[str]) -> None:
        self.title = title

    def show_error(self, message: str) -> None:
        self.error = message
        self.errors.append(message)

    def hide_error(self) -> None:
        self.error = None

    def notify(self, message: str, *, level: str = "info") -> None:
        self.notifications.append((level, message))

    async def measure(self) -> Tuple[float, float]:
        self.measure_calls += 1
        if self._sizes:
            return self._sizes.pop(0)
        return 800.0, 500.0


# ------------- store -------------


class ScriptedStore(InMemoryDataStore):
    """In-memory store whose operations can be made to fail or to wait.

    ``fail[op]`` (or ``fail["op:table"]``) is raised once by that operation; ``gates[op]`` makes it
    wait on an asyncio.Event before touching any data.
    """

    def __init__(self, tables: Any = None) -> None:
        super().__init__(tables)
        self.fail: Dict[str, Exception] = {}
        self.gates: Dict[str, asyncio.Event] = {}
        self.calls: List[Tuple[str, str, Any]] = []

    async def _before(self, op: str, table: str, arg: Any) -> None:
        self.calls.append((op, table, arg))
        gate = self.gates.get(op)
        if gate is not None:
            await gate.wait()
        error = self.fail.pop(f"{op}:{table}", None) or self.fail.pop(op, None)
        if error is not None:
            raise error

    async def select(self, table, filters):
        await self._before("select", table, dict(filters))
        return await super().select(table, filters)

    async def insert(self, table, row):
        await self._before("insert", table, dict(row))
        return await super().insert(table, row)

    async def update(self, table, record_id, partial):
        await self._before("update", table, (record_id, dict(partial)))
        return await super().update(table, record_id, partial)

    async def delete(self, table, record_id):
        await self._before("delete", table, record_id)
        return await super().delete(table, record_id)


SWORD_COAST = {
    "id": 1,
    "name": "Sword Coast",
    "map_file_url": "https://example.org/maps/sword-coast.jpg",
    "width": 4096,
    "height": 2918,
}

SEED_PINS = [
    {"id": 5, "map_id": 1, "name": "Waterdeep", "x": 1024, "y": 512, "is_home": True},
    {"id": 6, "map_id": 1, "name": "Neverwinter", "x": 900, "y": 300,
     "description": "Jewel of the North", "link_url": "https://example.org/neverwinter"},
    {"id": 7, "map_id": 2, "name": "Elsewhere", "x": 10, "y": 10},
]


@pytest.fixture()
def engines() -> EngineRecorder:
    return EngineRecorder()


@pytest.fixture()
def form() -> FakeForm:
    return FakeForm()


@pytest.fixture()
def view() -> FakeView:
    return FakeView()


@pytest.fixture()
def store() -> ScriptedStore:
    return ScriptedStore(
        {
            MAPS_TABLE: [
                dict(SWORD_COAST),
                {"id": 2, "name": "Underdark", "map_file_url": "underdark.png", "width": 2000, "height": 1000,
                 "initial_view": {"x": 500, "y": 250, "zoom": 1}},
                {"id": 3, "name": "Unsized", "map_file_url": "unsized.png"},
            ],
            PINS_TABLE: [dict(p) for p in SEED_PINS],
        }
    )


@pytest.fixture()
def make_view() -> Callable[..., FakeView]:
    return FakeView


@pytest.fixture()
def make_controller(store: ScriptedStore, form: FakeForm, view: FakeView, engines: EngineRecorder):
    from nicemaps.pin_map_widget.config import RetryPolicy, WidgetConfig
    from nicemaps.pin_map_widget.widget_controller import WidgetController

    def _make(config: Optional[WidgetConfig] = None, **kwargs: Any) -> WidgetController:
        kwargs.setdefault("store", store)
        kwargs.setdefault("view", view)
        kwargs.setdefault("form", form)
        kwargs.setdefault("engine_factory", engines)
        kwargs.setdefault("retry", RetryPolicy(interval_sec=0.0, max_interval_sec=0.0, max_attempts=3))
        return WidgetController(config=config or WidgetConfig(map_id=1, editable=True), **kwargs)

    return _make
