# nicemaps/src/nicemaps/pin_map_widget/widget_view.py
"""NiceGUI chrome around one map: optional title, inline error banner, map container."""

from __future__ import annotations

import asyncio
import json
from typing import Optional, Tuple

from nicegui import ui

from nicemaps.utils.logging import get_logger

logger = get_logger(__name__)

_NOTIFY_TYPES = {"info": "info", "positive": "positive", "negative": "negative", "warning": "warning"}


def js_measure(element_id: int) -> str:
    """JS returning [width, height] of the element's box, or [0, 0] if not in the DOM."""
    id_js = json.dumps(element_id)
    return f"""
(() => {{
  const el = getHtmlElement({id_js});
  if (!el) return [0, 0];
  const r = el.getBoundingClientRect();
  return [r.width, r.height];
}})();
""".strip()


class MapWidgetView:
    """Builds the widget chrome in the current NiceGUI slot.

    Args:
        height: CSS height of the map area.
        measure_timeout_sec: How long to wait for the browser to answer a size query.
    """

    def __init__(self, *, height: str = "500px", measure_timeout_sec: float = 2.0) -> None:
        self._measure_timeout_sec = measure_timeout_sec
        with ui.column().classes("w-full gap-1") as self.root:
            self._title = ui.label("").classes("text-lg font-bold")
            self._title.visible = False
            self._error = ui.label("").classes(
                "w-full p-2 rounded bg-red-50 text-red-700 border border-red-200"
            )
            self._error.visible = False
            self.container = ui.element("div").classes("w-full").style(f"height: {height};")

    def set_title(self, title: Optional[str]) -> None:
        self._title.text = title or ""
        self._title.visible = bool(title)

    def show_error(self, message: str) -> None:
        self._error.text = message
        self._error.visible = True

    def hide_error(self) -> None:
        self._error.text = ""
        self._error.visible = False

    def notify(self, message: str, *, level: str = "info") -> None:
        ui.notify(message, type=_NOTIFY_TYPES.get(level, "info"))

    async def measure(self) -> Tuple[float, float]:
        """Rendered size of the map container; (0, 0) while it is not laid out yet."""
        client = self.container.client
        try:
            await client.connected()
            result = await client.run_javascript(
                js_measure(self.container.id), timeout=self._measure_timeout_sec
            )
        except (TimeoutError, asyncio.TimeoutError):
            logger.debug("size query timed out")
            return 0.0, 0.0
        if isinstance(result, (list, tuple)) and len(result) == 2:
            return float(result[0] or 0), float(result[1] or 0)
        return 0.0, 0.0
