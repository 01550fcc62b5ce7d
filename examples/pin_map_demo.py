"""
Pin map demo: two independent widgets on one page.

Demonstrates:
- Read-only widget resolved by map name, with title
- Editable widget resolved by map id (click the map to add a pin,
  use the popup buttons to edit or delete)
- "Save view as default" stored on the map record
- Local JSON store seeded on first run; a PostgREST/Supabase backend is used
  instead when NICEMAPS_STORE_URL and NICEMAPS_STORE_KEY are set

Run:
    python examples/pin_map_demo.py
"""

import os

from nicegui import ui

from nicemaps.pin_map_widget import (
    JsonFileDataStore,
    MapRecord,
    PinMapWidget,
    RestDataStore,
    StoreSettings,
    WidgetConfig,
)
from nicemaps.pin_map_widget.records import MAPS_TABLE, PINS_TABLE
from nicemaps.utils.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

SEED = {
    MAPS_TABLE: [
        {
            "id": 1,
            "name": "Lake Country",
            "map_file_url": "https://picsum.photos/id/1018/2048/1365",
            "width": 2048,
            "height": 1365,
        },
    ],
    PINS_TABLE: [
        {"id": 1, "map_id": 1, "name": "Harbor", "x": 420, "y": 980, "is_home": True,
         "description": "Where the journey starts."},
        {"id": 2, "map_id": 1, "name": "North Ridge", "x": 1500, "y": 310,
         "link_url": "https://nicegui.io"},
    ],
}


def make_store():
    if os.environ.get("NICEMAPS_STORE_URL"):
        logger.info("using REST data store")
        return RestDataStore(StoreSettings.from_env())
    store = JsonFileDataStore.open_default(seed=SEED)
    logger.info(f"using local data store at {store.path}")
    return store


store = make_store()


@ui.page("/")
def index():
    ui.label("nicemaps demo").classes("text-3xl font-bold mb-6")

    with ui.row().classes("w-full gap-6 no-wrap"):
        with ui.column().classes("flex-1"):
            ui.label("Read-only, by name").classes("text-xl font-bold mb-2")
            PinMapWidget.from_attributes(
                store,
                {"data-map-name": "lake country", "data-show-title": "true", "data-height": "420px"},
            )

        with ui.column().classes("flex-1"):
            ui.label("Editable, by id").classes("text-xl font-bold mb-2")
            editor = PinMapWidget(store, WidgetConfig(map_id=1, editable=True, height="420px"))
            status = ui.label("").classes("text-sm text-gray-600")

            def on_loaded(record: MapRecord) -> None:
                status.text = f"Loaded '{record.name}' ({record.width:g} x {record.height:g})"

            editor.on_map_loaded(on_loaded)

            with ui.row().classes("gap-2"):
                ui.button("Save view as default", on_click=lambda: editor.save_current_view_as_default())
                ui.button("Reset view", on_click=lambda: editor.reset_view()).props("outline")
                ui.button("Reload", on_click=lambda: editor.load_by_id(1)).props("outline")


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(title="nicemaps demo", reload=False)
