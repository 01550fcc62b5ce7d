"""InMemoryDataStore and JsonFileDataStore behavior."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from nicemaps.pin_map_widget.data_store import DataStore, Ilike, InMemoryDataStore, row_matches
from nicemaps.pin_map_widget.errors import NotFoundError, WriteError
from nicemaps.pin_map_widget.json_data_store import SCHEMA_VERSION, JsonFileDataStore
from nicemaps.pin_map_widget.records import MAPS_TABLE, PINS_TABLE


@pytest.mark.parametrize(
    "pattern, value, expected",
    [
        ("sword coast", "Sword Coast", True),
        ("SWORD COAST", "Sword Coast", True),
        ("sword", "Sword Coast", False),
        ("sword%", "Sword Coast", True),
        ("%coast", "Sword Coast", True),
        ("sword_coast", "Sword Coast", True),
        ("a.b", "axb", False),
        ("x", None, False),
    ],
)
def test_ilike_matches(pattern: str, value, expected: bool) -> None:
    assert Ilike(pattern).matches(value) is expected


def test_row_matches_combines_filters() -> None:
    row = {"id": 3, "map_id": 1, "name": "Waterdeep"}
    assert row_matches(row, {"map_id": 1, "name": Ilike("water%")})
    assert not row_matches(row, {"map_id": 2})
    assert row_matches(row, {})


def test_in_memory_store_satisfies_protocol() -> None:
    assert isinstance(InMemoryDataStore(), DataStore)


@pytest.mark.asyncio
async def test_insert_assigns_ids_and_copies() -> None:
    store = InMemoryDataStore({PINS_TABLE: [{"id": 4, "map_id": 1, "name": "a", "x": 0, "y": 0}]})
    row = {"map_id": 1, "name": "b", "x": 1, "y": 2}
    inserted = await store.insert(PINS_TABLE, row)
    assert inserted["id"] == 5
    assert "id" not in row

    inserted["name"] = "mutated"
    rows = await store.select(PINS_TABLE, {"id": 5})
    assert rows[0]["name"] == "b"


@pytest.mark.asyncio
async def test_update_merges_partial_and_keeps_id() -> None:
    store = InMemoryDataStore({MAPS_TABLE: [{"id": 1, "name": "m", "width": 10}]})
    updated = await store.update(MAPS_TABLE, 1, {"id": 99, "initial_view": {"x": 1, "y": 2, "zoom": 0}})
    assert updated == {"id": 1, "name": "m", "width": 10, "initial_view": {"x": 1, "y": 2, "zoom": 0}}


@pytest.mark.asyncio
async def test_update_and_delete_missing_raise_not_found() -> None:
    store = InMemoryDataStore()
    with pytest.raises(NotFoundError):
        await store.update(PINS_TABLE, 1, {"name": "x"})
    with pytest.raises(NotFoundError):
        await store.delete(PINS_TABLE, 1)
    with pytest.raises(WriteError):
        await store.delete(PINS_TABLE, 1)


@pytest.mark.asyncio
async def test_select_unknown_table_raises() -> None:
    with pytest.raises(NotFoundError):
        await InMemoryDataStore().select("nope", {})


# ------------- JSON file store -------------


@pytest.mark.asyncio
async def test_json_store_persists_every_write(tmp_path: Path) -> None:
    path = tmp_path / "maps.json"
    store = JsonFileDataStore(path=path, seed={MAPS_TABLE: [{"id": 1, "name": "m"}]})
    assert not path.exists()

    pin = await store.insert(PINS_TABLE, {"map_id": 1, "name": "p", "x": 1, "y": 2})
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["schema_version"] == SCHEMA_VERSION
    assert payload["tables"][PINS_TABLE] == [pin]

    reopened = JsonFileDataStore(path=path, seed={MAPS_TABLE: []})
    assert await reopened.select(MAPS_TABLE, {}) == [{"id": 1, "name": "m"}]
    assert await reopened.select(PINS_TABLE, {"name": "p"}) == [pin]

    await reopened.delete(PINS_TABLE, pin["id"])
    assert json.loads(path.read_text(encoding="utf-8"))["tables"][PINS_TABLE] == []


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        "[1, 2]",
        json.dumps({"schema_version": 999, "tables": {}}),
        json.dumps({"schema_version": SCHEMA_VERSION, "tables": []}),
    ],
)
@pytest.mark.asyncio
async def test_json_store_falls_back_to_seed(tmp_path: Path, content: str) -> None:
    path = tmp_path / "maps.json"
    path.write_text(content, encoding="utf-8")
    store = JsonFileDataStore(path=path, seed={MAPS_TABLE: [{"id": 7, "name": "seeded"}]})
    assert [r["id"] for r in await store.select(MAPS_TABLE, {})] == [7]


@pytest.mark.asyncio
async def test_json_store_skips_rows_without_id(tmp_path: Path) -> None:
    path = tmp_path / "maps.json"
    path.write_text(
        json.dumps(
            {
                "schema_version": SCHEMA_VERSION,
                "tables": {PINS_TABLE: [{"id": 1, "name": "ok"}, {"name": "no id"}, "junk"]},
                "extra": True,
            }
        ),
        encoding="utf-8",
    )
    store = JsonFileDataStore(path=path)
    assert [r["name"] for r in await store.select(PINS_TABLE, {})] == ["ok"]


@pytest.mark.asyncio
async def test_json_store_write_failure_raises_write_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = JsonFileDataStore(path=blocker / "maps.json")
    with pytest.raises(WriteError):
        await store.insert(MAPS_TABLE, {"name": "m"})


@pytest.mark.asyncio
async def test_json_store_failed_writes_leave_tables_unchanged(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = JsonFileDataStore(
        path=blocker / "maps.json",
        seed={PINS_TABLE: [{"id": 5, "map_id": 1, "name": "Waterdeep", "x": 1, "y": 2}]},
    )
    before = store.dump()

    for _ in range(2):
        with pytest.raises(WriteError):
            await store.insert(PINS_TABLE, {"map_id": 1, "name": "Inn", "x": 10.0, "y": 10.0})
    assert await store.select(PINS_TABLE, {"name": "Inn"}) == []

    with pytest.raises(WriteError):
        await store.update(PINS_TABLE, 5, {"name": "Renamed"})
    with pytest.raises(WriteError):
        await store.delete(PINS_TABLE, 5)
    assert store.dump() == before

    # ids are not consumed by a rolled-back insert
    store.path = tmp_path / "maps.json"
    pin = await store.insert(PINS_TABLE, {"map_id": 1, "name": "Inn", "x": 10.0, "y": 10.0})
    assert pin["id"] == 6


def test_default_path_uses_platformdirs(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    import nicemaps.pin_map_widget.json_data_store as mod

    monkeypatch.setattr(mod, "user_data_dir", lambda app, author=None: str(tmp_path / app))
    path = JsonFileDataStore.default_path()
    assert path == tmp_path / "nicemaps" / "maps.json"
    assert path.parent.is_dir()
