"""ID and clock helpers for archive items, accounts and workspaces.

Provides:
- ``new_id(prefix)``: returns a time-sortable ID string with the given prefix
  (e.g., ``archive_0001695400000-3f2a...``). Not a true ULID but stable and sortable.
- ``now_millis()``: current wall-clock time in epoch milliseconds.
"""

from __future__ import annotations

import time
import uuid


def now_millis() -> int:
    return int(time.time() * 1000)


def new_id(prefix: str) -> str:
    """Generate a time-sortable unique ID with the given prefix.

    Format: ``{prefix}_{millis}-{uuid16}``
    """
    rand = uuid.uuid4().hex[:16]
    return f"{prefix}_{now_millis():013d}-{rand}"
