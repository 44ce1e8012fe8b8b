"""Key-value persistence backends for the archive and user directory.

Stores expose two calls, ``get(key)`` and ``set(key, value)``, with JSON-shaped
values. ArchiveStore and DirectoryStore receive one explicitly:
- ``InMemoryKeyValueStore``: process-local dict, optional byte capacity.
- ``JsonFileKeyValueStore``: one JSON file per key under a directory.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import re
from typing import Any, Dict, Optional

from sekretar.config import Config, ensure_data_dirs
from sekretar.errors import StorageError
from sekretar.utils.io_utils import encode_json, json_size, read_text, replace_text


class KeyValueStore:
    """Synchronous, always-available store; last write wins."""

    def get(self, key: str) -> Optional[Any]:  # pragma: no cover - interface
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, capacity_bytes: Optional[int] = None):
        self._data: Dict[str, Any] = {}
        self.capacity_bytes = capacity_bytes

    def get(self, key: str) -> Optional[Any]:
        return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        if self.capacity_bytes is not None:
            size = json_size(value)
            if size > self.capacity_bytes:
                raise StorageError(f"Value for '{key}' exceeds store capacity ({size} > {self.capacity_bytes} bytes)")
        self._data[key] = copy.deepcopy(value)


class JsonFileKeyValueStore(KeyValueStore):
    """Persist each key as ``{root}/{key}.json`` using atomic writes."""

    def __init__(self, root: Optional[str] = None):
        self.root = root or Config.DB_DIR
        os.makedirs(self.root, exist_ok=True)

    def _path(self, key: str) -> str:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return os.path.join(self.root, f"{safe}.json")

    def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        raw = read_text(path)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            # Hand back the raw text; callers treat non-list values as corrupt
            logging.warning("Store file %s is not valid JSON", path)
            return raw

    def set(self, key: str, value: Any) -> None:
        try:
            replace_text(self._path(key), encode_json(value))
        except OSError as e:
            raise StorageError(f"Failed to write '{key}': {e}") from e


def store_from_config(cfg: Config = Config) -> KeyValueStore:
    if cfg.STORE_BACKEND == "memory":
        return InMemoryKeyValueStore()
    ensure_data_dirs(cfg)
    return JsonFileKeyValueStore(cfg.DB_DIR)
