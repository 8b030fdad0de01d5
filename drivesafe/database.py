from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")

SETTINGS_KEY = "settings"
TRIP_HISTORY_KEY = "trip_history"


class InMemoryKeyValueDatabase(Generic[K, V]):
    """
    Simple in-memory key/value database.
    """

    def __init__(self) -> None:
        self._store: MutableMapping[K, V] = {}

    def put(self, key: K, value: V) -> None:
        self._store[key] = value

    def get(self, key: K) -> V | None:
        return self._store.get(key)

    def delete(self, key: K) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)


class JsonFileKeyValueDatabase(InMemoryKeyValueDatabase[str, Any]):
    """
    Key/value database mirrored to a single JSON file.

    The file is read once on construction and rewritten after every put or
    delete. Values must be JSON-serializable.
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"Store load failed, starting empty: {e}")
            else:
                if isinstance(data, dict):
                    self._store.update(data)
                else:
                    logger.warning(f"Store file {self.path} is not a JSON object")

    def put(self, key: str, value: Any) -> None:
        super().put(key, value)
        self._flush()

    def delete(self, key: str) -> None:
        super().delete(key)
        self._flush()

    def clear(self) -> None:
        super().clear()
        self._flush()

    def _flush(self) -> None:
        """Write to a sibling temp file, then swap it in."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(dict(self._store), f, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            os.unlink(tmp)
            raise


def open_store(store_path: str | None) -> InMemoryKeyValueDatabase[str, Any]:
    """File-backed store when a path is configured, in-memory otherwise."""
    if store_path:
        return JsonFileKeyValueDatabase(store_path)
    return InMemoryKeyValueDatabase()
