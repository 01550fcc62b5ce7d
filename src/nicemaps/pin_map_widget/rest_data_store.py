# nicemaps/src/nicemaps/pin_map_widget/rest_data_store.py
"""DataStore backed by a PostgREST endpoint (e.g. a Supabase project).

Logical tables ``maps``/``pins`` map to the physical tables named in
``StoreSettings``. Requests run in a worker thread (``asyncio.to_thread``) so
the NiceGUI event loop is never blocked; a timeout or transport failure
becomes ``NetworkError``.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import requests

from nicemaps.pin_map_widget.config import StoreSettings
from nicemaps.pin_map_widget.data_store import Filters, Ilike, Row
from nicemaps.pin_map_widget.errors import NetworkError, NotFoundError, WriteError
from nicemaps.pin_map_widget.records import MAPS_TABLE, PINS_TABLE
from nicemaps.utils.logging import get_logger

logger = get_logger(__name__)


def filters_to_params(filters: Filters) -> Dict[str, str]:
    """Translate store filters to PostgREST query parameters."""
    params: Dict[str, str] = {}
    for column, expected in filters.items():
        if isinstance(expected, Ilike):
            params[column] = f"ilike.{expected.pattern}"
        elif expected is None:
            params[column] = "is.null"
        elif isinstance(expected, bool):
            params[column] = f"is.{str(expected).lower()}"
        else:
            params[column] = f"eq.{expected}"
    return params


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return f"{resp.status_code}: {body['message']}"
    return f"{resp.status_code}: {resp.reason or 'request failed'}"


class RestDataStore:
    """PostgREST client implementing the DataStore protocol."""

    def __init__(self, settings: StoreSettings, *, session: Optional[requests.Session] = None) -> None:
        self.settings = settings
        self._session = session if session is not None else requests.Session()
        self._physical = {MAPS_TABLE: settings.maps_table, PINS_TABLE: settings.pins_table}

    # ------------- DataStore API -------------

    async def select(self, table: str, filters: Filters) -> List[Row]:
        rows = await asyncio.to_thread(
            self._request, "GET", table, params={"select": "*", **filters_to_params(filters)}
        )
        return list(rows or [])

    async def insert(self, table: str, row: Row) -> Row:
        rows = await asyncio.to_thread(
            self._request, "POST", table, json=row, write=True
        )
        if not rows:
            raise WriteError(f"insert into {table} returned no row")
        return rows[0]

    async def update(self, table: str, record_id: int, partial: Row) -> Row:
        rows = await asyncio.to_thread(
            self._request, "PATCH", table, params={"id": f"eq.{record_id}"}, json=partial, write=True
        )
        if not rows:
            raise NotFoundError(f"{table} id={record_id} does not exist")
        return rows[0]

    async def delete(self, table: str, record_id: int) -> None:
        rows = await asyncio.to_thread(
            self._request, "DELETE", table, params={"id": f"eq.{record_id}"}, write=True
        )
        if rows:
            return
        # Row-level security answers a refused delete with an empty 200 too.
        if await self.select(table, {"id": record_id}):
            logger.warning(f"delete {table} id={record_id} matched no row it may remove")
            raise WriteError(f"not allowed to delete {table} id={record_id}")
        raise NotFoundError(f"{table} id={record_id} does not exist")

    # ------------- internals -------------

    def _url(self, table: str) -> str:
        try:
            physical = self._physical[table]
        except KeyError:
            raise NotFoundError(f"unknown table {table!r}") from None
        return f"{self.settings.url}/rest/v1/{physical}"

    def _headers(self, *, write: bool) -> Dict[str, str]:
        token = self.settings.access_token or self.settings.api_key
        headers = {
            "apikey": self.settings.api_key,
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        if write:
            headers["Content-Type"] = "application/json"
            headers["Prefer"] = "return=representation"
        return headers

    def _request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Row] = None,
        write: bool = False,
    ) -> Any:
        url = self._url(table)
        try:
            resp = self._session.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(write=write),
                timeout=self.settings.timeout_sec,
            )
        except requests.Timeout as e:
            logger.warning(f"{method} {url} timed out after {self.settings.timeout_sec}s")
            raise NetworkError(f"request to {table} timed out") from e
        except requests.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise NetworkError(f"could not reach the data store: {e}") from e

        if not resp.ok:
            message = _error_message(resp)
            logger.warning(f"{method} {url} -> {message}")
            if write:
                raise WriteError(message)
            raise NetworkError(message)

        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise NetworkError(f"invalid JSON from {table}: {e}") from e
