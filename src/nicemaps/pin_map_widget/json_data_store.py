# nicemaps/src/nicemaps/pin_map_widget/json_data_store.py
"""
Local map/pin persistence (platformdirs + JSON).

Persisted items (schema v1):
- tables: {"maps": [row, ...], "pins": [row, ...]}

Behavior:
- If the file is missing or unreadable -> start empty (or from `seed`)
- If schema_version mismatches -> start empty, the file is rewritten on the next write
- Unknown root keys are ignored with warnings
- Every successful write rewrites the whole file
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from platformdirs import user_data_dir

from nicemaps.pin_map_widget.data_store import InMemoryDataStore, Row
from nicemaps.pin_map_widget.errors import WriteError
from nicemaps.utils.logging import get_logger

logger = get_logger(__name__)

# Increment when making a breaking change to the on-disk JSON schema.
SCHEMA_VERSION: int = 1


class JsonFileDataStore(InMemoryDataStore):
    """In-memory store mirrored to a JSON file after every write."""

    def __init__(
        self,
        *,
        path: Path,
        seed: Optional[Mapping[str, List[Row]]] = None,
    ) -> None:
        self.path = path
        tables = self._read(path)
        if tables is None:
            tables = dict(seed or {})
        super().__init__(tables)

    @staticmethod
    def default_path(
        app_name: str = "nicemaps",
        filename: str = "maps.json",
        app_author: str | None = None,
    ) -> Path:
        """
        Determine OS-appropriate per-user data path.

        macOS:   ~/Library/Application Support/nicemaps/maps.json
        Linux:   ~/.local/share/nicemaps/maps.json
        Windows: %LOCALAPPDATA%\\nicemaps\\maps.json
        """
        d = Path(user_data_dir(app_name, app_author))
        d.mkdir(parents=True, exist_ok=True)
        return d / filename

    @classmethod
    def open_default(cls, *, seed: Optional[Mapping[str, List[Row]]] = None) -> "JsonFileDataStore":
        return cls(path=cls.default_path(), seed=seed)

    def save(self) -> None:
        """Write all tables to disk. Raises WriteError on failure."""
        payload: Dict[str, Any] = {
            "schema_version": SCHEMA_VERSION,
            "tables": self.dump(),
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Error saving map data to {self.path}: {e}")
            raise WriteError(f"could not save {self.path}: {e}") from e
        logger.debug(f"Saved map data to {self.path}")

    def _changed(self) -> None:
        self.save()

    @staticmethod
    def _read(path: Path) -> Optional[Dict[str, List[Row]]]:
        """Tolerant loader: returns None when the file can't be used."""
        try:
            parsed = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.debug(f"Map data file not found at {path}, starting empty")
            return None
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Map data file at {path} is unreadable: {e}, starting empty")
            return None

        if not isinstance(parsed, dict):
            logger.warning(f"Map data file at {path} does not contain a dict, starting empty")
            return None

        version = parsed.get("schema_version", -1)
        if version != SCHEMA_VERSION:
            logger.warning(
                f"Map data schema version mismatch: loaded={version}, "
                f"expected={SCHEMA_VERSION}, starting empty"
            )
            return None

        for key in parsed:
            if key not in ("schema_version", "tables"):
                logger.warning(f"Unknown key '{key}' in map data file, ignoring")

        tables = parsed.get("tables")
        if not isinstance(tables, dict):
            logger.warning(f"'tables' in {path} is not a dict, starting empty")
            return None

        result: Dict[str, List[Row]] = {}
        for table, rows in tables.items():
            if not isinstance(rows, list):
                logger.warning(f"table '{table}' is not a list, ignoring")
                continue
            result[table] = [r for r in rows if isinstance(r, dict) and "id" in r]
        return result
