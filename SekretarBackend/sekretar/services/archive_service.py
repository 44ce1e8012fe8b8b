"""ArchiveStore: newest-first log of every generated draft.

Items are created once per successful generation and are immutable apart
from deletion. Persistence is best-effort: a failed write is logged and the
caller still receives the created item, so an archive entry may be lost on
reload when the backing store is full.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from pydantic import ValidationError

from sekretar.errors import StorageError
from sekretar.schemas import ArchiveItem, ArchiveStatus
from sekretar.services.kv_store import KeyValueStore
from sekretar.utils.ids import new_id, now_millis
from sekretar.utils.text import is_blank

ARCHIVE_KEY = "sekretar_archive_v1"


class ArchiveStore:
    def __init__(self, store: KeyValueStore, key: str = ARCHIVE_KEY):
        self.store = store
        self.key = key

    def _load(self) -> List[ArchiveItem]:
        raw: Any = self.store.get(self.key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logging.warning("Archive data under '%s' is not a list; treating as empty", self.key)
            return []
        try:
            return [ArchiveItem.model_validate(rec) for rec in raw]
        except ValidationError:
            logging.warning("Archive data under '%s' failed validation; treating as empty", self.key)
            return []

    def _save(self, items: Sequence[ArchiveItem]) -> None:
        payload = [it.model_dump(mode="json", by_alias=True) for it in items]
        self.store.set(self.key, payload)

    def append(self, file_name: str, file_type: str, instruction: str, response_text: str) -> ArchiveItem:
        current = self._load()
        ts = now_millis()
        if current and current[0].timestamp > ts:
            # Wall clock stepped back; keep timestamps non-decreasing
            ts = current[0].timestamp
        item = ArchiveItem(
            id=new_id("archive"),
            timestamp=ts,
            file_name=file_name,
            file_type=file_type,
            instruction=instruction,
            response_text=response_text,
            status=ArchiveStatus.DRAFT,
        )
        try:
            self._save([item, *current])
            logging.info("Archived draft %s for %s", item.id, file_name)
        except StorageError:
            logging.exception("Failed to persist archive (capacity might be exceeded); item %s kept in memory only", item.id)
        return item

    def list(self) -> List[ArchiveItem]:
        return self._load()

    def get(self, item_id: str) -> Optional[ArchiveItem]:
        for it in self._load():
            if it.id == item_id:
                return it
        return None

    def remove(self, item_id: str) -> None:
        current = self._load()
        remaining = [it for it in current if it.id != item_id]
        if len(remaining) == len(current):
            return
        try:
            self._save(remaining)
        except StorageError:
            logging.exception("Failed to persist archive after removing %s", item_id)


def search_archive(items: Sequence[ArchiveItem], term: Optional[str]) -> List[ArchiveItem]:
    """Case-insensitive substring filter over file name and instruction."""
    if is_blank(term):
        return list(items)
    needle = term.strip().casefold()
    return [it for it in items if needle in it.file_name.casefold() or needle in it.instruction.casefold()]
