"""Flat JSON-file store shared by the broker, nodes and portal.

Each service keeps its whole state in one JSON document of named arrays
(``{"patients": [...], ...}``). Every request handler reads the entire
document, mutates it in memory and rewrites the entire file. There is no
locking: two concurrent writers can clobber each other's change.
"""

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from hie_interop.utils.exceptions import StoreError

logger = logging.getLogger(__name__)

StoreData = Dict[str, List[Dict[str, Any]]]


class JsonStore:
    """Whole-document JSON store backed by a single file.

    Attributes:
        path: Location of the JSON document
        default_data: Collections (and seed records) for a fresh store

    Example:
        >>> store = JsonStore(Path("data/hie-db.json"), {"patients": []})
        >>> store.initialize()
        >>> data = store.read()
        >>> data["patients"].append({"id": "PT-20250106-000001"})
        >>> store.write(data)
    """

    def __init__(self, path: Path, default_data: Optional[StoreData] = None) -> None:
        self.path = Path(path)
        self.default_data: StoreData = copy.deepcopy(default_data or {"patients": []})

    def initialize(self) -> StoreData:
        """Create the file if missing and add any missing collections.

        Returns:
            The document as written
        """
        data = self.read()
        for name, seed in self.default_data.items():
            if not isinstance(data.get(name), list):
                data[name] = copy.deepcopy(seed)
        self.write(data)
        logger.info(
            f"Store initialized at {self.path} "
            f"({len(data.get('patients', []))} patients)"
        )
        return data

    def read(self) -> StoreData:
        """Read the whole document.

        Returns:
            Parsed document, or a copy of the default data if the file does not exist

        Raises:
            StoreError: If the file is unreadable or not a JSON object
        """
        if not self.path.exists():
            return copy.deepcopy(self.default_data)

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StoreError(
                f"Corrupt store file: {self.path}\n"
                f"Error: {e}\n"
                f"Fix: Repair the JSON at line {e.lineno}, column {e.colno} "
                f"or delete the file to start empty"
            ) from e
        except OSError as e:
            raise StoreError(f"Failed to read store file: {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StoreError(f"Store file must contain a JSON object: {self.path}")
        return data

    def write(self, data: StoreData) -> None:
        """Rewrite the whole document.

        The document is written to a temporary file in the same directory and
        renamed over the old one, so readers never see a half-written file.

        Raises:
            StoreError: If the file cannot be written
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StoreError(f"Failed to write store file: {self.path}: {e}") from e

        logger.debug(f"Store written: {self.path}")


def find_by_id(records: List[Dict[str, Any]], record_id: str) -> Optional[Dict[str, Any]]:
    """Return the first record whose ``id`` equals record_id, or None."""
    return next((r for r in records if r.get("id") == record_id), None)
