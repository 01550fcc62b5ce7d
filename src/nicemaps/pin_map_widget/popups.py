# nicemaps/src/nicemaps/pin_map_widget/popups.py
"""Popup content for pin markers.

``build_pin_popup`` is a pure function of the record and the widget mode.
Editable popups carry ``PopupAction`` entries whose handlers were bound to the
owning widget when the registry was constructed; the engine wires them to
its buttons.
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple

from nicemaps.pin_map_widget.records import PinRecord

UNNAMED_LOCATION = "Unnamed Location"


@dataclass(frozen=True)
class PopupAction:
    """A button inside a popup."""

    key: str                                   # "edit" / "delete"
    label: str
    handler: Callable[[], Any] = field(compare=False)
    danger: bool = False


@dataclass(frozen=True)
class PopupContent:
    title: str
    description: Optional[str] = None
    link_url: Optional[str] = None
    link_text: Optional[str] = None
    is_home: bool = False
    coordinates: Optional[Tuple[float, float]] = None   # shown in editable mode
    actions: Tuple[PopupAction, ...] = ()


def _fmt_coord(value: float) -> str:
    return f"{value:g}"


def build_pin_popup(
    record: PinRecord,
    *,
    editable: bool,
    on_edit: Optional[Callable[[int], Any]] = None,
    on_delete: Optional[Callable[[int], Any]] = None,
) -> PopupContent:
    """Popup for ``record``.

    Read-only popups show name, description and a "Read More" link.
    Editable popups show the raw link, the home flag, the stored coordinates,
    and Edit/Delete actions when the callbacks are given.
    """
    title = record.name or UNNAMED_LOCATION
    if not editable:
        return PopupContent(
            title=title,
            description=record.description,
            link_url=record.link_url,
            link_text="Read More »" if record.link_url else None,
        )

    actions: list[PopupAction] = []
    pin_id = record.id
    if on_edit is not None:
        actions.append(PopupAction("edit", "Edit", lambda: on_edit(pin_id)))
    if on_delete is not None:
        actions.append(PopupAction("delete", "Delete", lambda: on_delete(pin_id), danger=True))

    return PopupContent(
        title=title,
        description=record.description,
        link_url=record.link_url,
        link_text=record.link_url,
        is_home=record.is_home,
        coordinates=(record.x, record.y),
        actions=tuple(actions),
    )


def render_popup_html(content: PopupContent, action_js: Callable[[str], str]) -> str:
    """Render popup markup. ``action_js(key)`` returns the onclick JS for an action.

    Record text is HTML-escaped; only ``action_js`` output is inserted raw
    (attribute-escaped).
    """
    esc = html.escape
    parts = ['<div class="nicemaps-popup" style="min-width: 180px;">']
    parts.append(f"<h3>{esc(content.title)}</h3>")
    if content.description:
        parts.append(f"<p>{esc(content.description)}</p>")
    if content.link_url:
        parts.append(
            f'<p><a href="{esc(content.link_url, quote=True)}" target="_blank" rel="noopener">'
            f"{esc(content.link_text or content.link_url)}</a></p>"
        )
    if content.is_home:
        parts.append("<p><strong>Home Location</strong></p>")
    if content.coordinates is not None:
        x, y = content.coordinates
        parts.append(
            f'<p style="font-size: 12px; color: #666;">X: {_fmt_coord(x)}, Y: {_fmt_coord(y)}</p>'
        )
    if content.actions:
        parts.append('<div style="display: flex; gap: 8px; margin-top: 10px;">')
        for action in content.actions:
            bg = "#c0392b" if action.danger else "#58180D"
            parts.append(
                f'<button type="button" onclick="{esc(action_js(action.key), quote=True)}" '
                f'style="flex: 1; background: {bg}; color: white; border: none; '
                f'padding: 6px; border-radius: 4px; cursor: pointer;">{esc(action.label)}</button>'
            )
        parts.append("</div>")
    parts.append("</div>")
    return "".join(parts)
