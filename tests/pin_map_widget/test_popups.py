"""Popup content and HTML rendering."""

from __future__ import annotations

from typing import List

from nicemaps.pin_map_widget.popups import UNNAMED_LOCATION, build_pin_popup, render_popup_html
from nicemaps.pin_map_widget.records import PinRecord

PIN = PinRecord(id=5, map_id=1, name="Waterdeep", x=1024, y=512, description="City of Splendors",
                link_url="https://example.org/waterdeep", is_home=True)


def test_read_only_popup_has_read_more_and_no_actions() -> None:
    content = build_pin_popup(PIN, editable=False, on_edit=lambda i: None, on_delete=lambda i: None)
    assert content.title == "Waterdeep"
    assert content.link_text == "Read More »"
    assert content.actions == ()
    assert content.coordinates is None
    assert content.is_home is False


def test_editable_popup_binds_actions_to_pin() -> None:
    edited: List[int] = []
    deleted: List[int] = []
    content = build_pin_popup(PIN, editable=True, on_edit=edited.append, on_delete=deleted.append)

    assert [a.key for a in content.actions] == ["edit", "delete"]
    assert content.coordinates == (1024, 512)
    assert content.is_home is True
    for action in content.actions:
        action.handler()
    assert edited == [5]
    assert deleted == [5]


def test_unnamed_pin_gets_placeholder_title() -> None:
    content = build_pin_popup(PinRecord(id=1, map_id=1, name="", x=0, y=0), editable=False)
    assert content.title == UNNAMED_LOCATION
    assert content.link_url is None


def test_render_escapes_record_text() -> None:
    pin = PinRecord(id=1, map_id=1, name="<b>Evil</b>", x=1, y=2,
                    description='"><script>alert(1)</script>', link_url='javascript:"x"')
    markup = render_popup_html(build_pin_popup(pin, editable=False), lambda key: key)
    assert "<script>" not in markup
    assert "&lt;b&gt;Evil&lt;/b&gt;" in markup
    assert 'href="javascript:&quot;x&quot;"' in markup


def test_render_editable_buttons_use_action_js() -> None:
    content = build_pin_popup(PIN, editable=True, on_edit=lambda i: None, on_delete=lambda i: None)
    markup = render_popup_html(content, lambda key: f"emit('{key}')")
    assert "onclick=\"emit(&#x27;edit&#x27;)\"" in markup
    assert "onclick=\"emit(&#x27;delete&#x27;)\"" in markup
    assert "Home Location" in markup
    assert "X: 1024, Y: 512" in markup
