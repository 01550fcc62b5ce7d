# nicemaps/src/nicemaps/pin_map_widget/data_store.py
"""Abstract CRUD interface over the ``maps`` and ``pins`` tables.

Every method is a coroutine so the widget suspends only at await points.
Implementations raise:

- ``NetworkError`` when the backend cannot be reached,
- ``WriteError`` when a create/update/delete is rejected,
- ``NotFoundError`` (a ``WriteError``) when update/delete targets a missing id.

Filters are a mapping of column -> value. Plain values mean equality;
``Ilike(pattern)`` means case-insensitive match where ``%`` matches any run of
characters and ``_`` a single character (PostgREST ``ilike`` semantics).
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple, runtime_checkable

from nicemaps.pin_map_widget.errors import NotFoundError
from nicemaps.pin_map_widget.records import MAPS_TABLE, PINS_TABLE
from nicemaps.utils.logging import get_logger

logger = get_logger(__name__)

Row = Dict[str, Any]
Filters = Mapping[str, Any]


@dataclass(frozen=True)
class Ilike:
    """Case-insensitive pattern filter; no wildcard means exact match."""

    pattern: str

    def matches(self, value: Any) -> bool:
        if value is None:
            return False
        regex = "".join(
            ".*" if ch == "%" else "." if ch == "_" else re.escape(ch)
            for ch in self.pattern
        )
        return re.fullmatch(regex, str(value), flags=re.IGNORECASE | re.DOTALL) is not None


def row_matches(row: Row, filters: Filters) -> bool:
    """True if ``row`` satisfies every filter."""
    for column, expected in filters.items():
        value = row.get(column)
        if isinstance(expected, Ilike):
            if not expected.matches(value):
                return False
        elif value != expected:
            return False
    return True


@runtime_checkable
class DataStore(Protocol):
    """Async CRUD service consumed by the widget."""

    async def select(self, table: str, filters: Filters) -> List[Row]: ...

    async def insert(self, table: str, row: Row) -> Row: ...

    async def update(self, table: str, record_id: int, partial: Row) -> Row: ...

    async def delete(self, table: str, record_id: int) -> None: ...


class InMemoryDataStore:
    """Dict-backed store. Rows are deep-copied in and out.

    Used by tests and demos, and as the base of ``JsonFileDataStore``.
    """

    def __init__(self, tables: Optional[Mapping[str, List[Row]]] = None) -> None:
        self._tables: Dict[str, Dict[int, Row]] = {MAPS_TABLE: {}, PINS_TABLE: {}}
        self._next_id: Dict[str, int] = {MAPS_TABLE: 1, PINS_TABLE: 1}
        for table, rows in (tables or {}).items():
            for row in rows:
                self._put(table, copy.deepcopy(dict(row)))

    # ------------- DataStore API -------------

    async def select(self, table: str, filters: Filters) -> List[Row]:
        rows = self._table(table).values()
        result = [copy.deepcopy(r) for r in rows if row_matches(r, filters)]
        logger.debug(f"select {table} {dict(filters)!r}: {len(result)} row(s)")
        return result

    async def insert(self, table: str, row: Row) -> Row:
        snapshot = self._snapshot()
        stored = self._put(table, copy.deepcopy(dict(row)))
        self._commit(snapshot)
        logger.debug(f"insert {table}: id={stored['id']}")
        return copy.deepcopy(stored)

    async def update(self, table: str, record_id: int, partial: Row) -> Row:
        rows = self._table(table)
        if record_id not in rows:
            raise NotFoundError(f"{table} id={record_id} does not exist")
        changes = {k: copy.deepcopy(v) for k, v in partial.items() if k != "id"}
        snapshot = self._snapshot()
        rows[record_id].update(changes)
        self._commit(snapshot)
        logger.debug(f"update {table} id={record_id}: {sorted(changes)}")
        return copy.deepcopy(rows[record_id])

    async def delete(self, table: str, record_id: int) -> None:
        rows = self._table(table)
        if record_id not in rows:
            raise NotFoundError(f"{table} id={record_id} does not exist")
        snapshot = self._snapshot()
        del rows[record_id]
        self._commit(snapshot)
        logger.debug(f"delete {table} id={record_id}")

    # ------------- helpers -------------

    def dump(self) -> Dict[str, List[Row]]:
        """Snapshot of all tables, rows ordered by id."""
        return {
            table: [copy.deepcopy(rows[k]) for k in sorted(rows)]
            for table, rows in self._tables.items()
        }

    def _changed(self) -> None:
        """Hook called after every write; raising rolls the write back."""

    def _snapshot(self) -> Tuple[Dict[str, Dict[int, Row]], Dict[str, int]]:
        return copy.deepcopy(self._tables), dict(self._next_id)

    def _commit(self, snapshot: Tuple[Dict[str, Dict[int, Row]], Dict[str, int]]) -> None:
        try:
            self._changed()
        except Exception:
            self._tables, self._next_id = snapshot
            raise

    def _table(self, table: str) -> Dict[int, Row]:
        try:
            return self._tables[table]
        except KeyError:
            raise NotFoundError(f"unknown table {table!r}") from None

    def _put(self, table: str, row: Row) -> Row:
        rows = self._tables.setdefault(table, {})
        self._next_id.setdefault(table, 1)
        if row.get("id") is None:
            row["id"] = self._next_id[table]
        row["id"] = int(row["id"])
        if row["id"] >= self._next_id[table]:
            self._next_id[table] = row["id"] + 1
        rows[row["id"]] = row
        return row
