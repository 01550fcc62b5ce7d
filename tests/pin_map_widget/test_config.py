"""WidgetConfig, RetryPolicy, StoreSettings."""

from __future__ import annotations

import pytest

from nicemaps.pin_map_widget.config import MarkerIcons, RetryPolicy, StoreSettings, WidgetConfig
from nicemaps.pin_map_widget.errors import ConfigurationError


def test_widget_config_defaults() -> None:
    cfg = WidgetConfig()
    assert cfg.map_id is None
    assert cfg.map_name is None
    assert cfg.editable is False
    assert cfg.height == "500px"
    assert cfg.show_title is False


def test_widget_config_from_attributes() -> None:
    cfg = WidgetConfig.from_attributes(
        {
            "data-map-id": " 12 ",
            "data-map-name": "Sword Coast",
            "data-editable": "TRUE",
            "data-height": "80vh",
            "data-show-title": "true",
        }
    )
    assert cfg == WidgetConfig(map_id=12, map_name="Sword Coast", editable=True, height="80vh", show_title=True)


def test_widget_config_editable_needs_literal_true() -> None:
    assert WidgetConfig.from_attributes({"data-map-name": "m", "data-editable": "yes"}).editable is False


def test_widget_config_rejects_non_numeric_id() -> None:
    with pytest.raises(ConfigurationError):
        WidgetConfig.from_attributes({"data-map-id": "abc"})


def test_require_identifier() -> None:
    WidgetConfig(map_name="m").require_identifier()
    WidgetConfig(map_id=1).require_identifier()
    with pytest.raises(ConfigurationError, match="No map specified"):
        WidgetConfig.from_attributes({"data-map-name": "   "}).require_identifier()


def test_retry_policy_delays_are_bounded() -> None:
    delays = list(RetryPolicy(interval_sec=0.1, backoff=2.0, max_interval_sec=0.3, max_attempts=5).delays())
    assert delays == pytest.approx([0.1, 0.2, 0.3, 0.3])
    assert list(RetryPolicy(max_attempts=1).delays()) == []


def test_marker_icons_home_is_red() -> None:
    icons = MarkerIcons()
    assert icons.home.icon_url.endswith("marker-icon-2x-red.png")
    assert icons.default.icon_url.endswith("marker-icon-2x-blue.png")


def test_store_settings_from_env() -> None:
    s = StoreSettings.from_env(
        {
            "NICEMAPS_STORE_URL": "https://db.example.org/",
            "NICEMAPS_STORE_KEY": "anon",
            "NICEMAPS_STORE_TIMEOUT": "0",
            "NICEMAPS_PINS_TABLE": "pins",
        }
    )
    assert s.url == "https://db.example.org"
    assert s.api_key == "anon"
    assert s.access_token is None
    assert s.timeout_sec is None
    assert (s.maps_table, s.pins_table) == ("location_maps", "pins")


def test_store_settings_bad_timeout_keeps_default() -> None:
    s = StoreSettings.from_env({"NICEMAPS_STORE_URL": "u", "NICEMAPS_STORE_KEY": "k", "NICEMAPS_STORE_TIMEOUT": "soon"})
    assert s.timeout_sec == 10.0


def test_store_settings_require_url_and_key() -> None:
    with pytest.raises(ConfigurationError):
        StoreSettings.from_env({"NICEMAPS_STORE_URL": "https://db.example.org"})
