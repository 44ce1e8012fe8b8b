"""File helpers behind the JSON key-value store.

- ``encode_json(value)`` / ``json_size(value)``: the on-disk encoding
  (UTF-8, Cyrillic kept readable) and its byte length.
- ``read_text(path)``: file contents, or ``None`` when the file is absent.
- ``replace_text(path, text)``: write through a sibling temp file and
  ``os.replace`` so readers never observe a half-written document.
"""

from __future__ import annotations

import json
import os
import tempfile
from typing import Any, Optional


def encode_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, indent=2)


def json_size(value: Any) -> int:
    return len(json.dumps(value, ensure_ascii=False).encode("utf-8"))


def read_text(path: str) -> Optional[str]:
    if not os.path.isfile(path):
        return None
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


def replace_text(path: str, text: str) -> None:
    folder = os.path.dirname(path) or "."
    os.makedirs(folder, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=folder, prefix=".tmp_", suffix=".json", delete=False
    ) as tmp:
        try:
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        except OSError:
            tmp.close()
            os.unlink(tmp.name)
            raise
    try:
        os.replace(tmp.name, path)
    except OSError:
        os.unlink(tmp.name)
        raise
