"""Obsession/compulsion journal backed by a single persisted JSON blob.

The store is the only writer of journal entries. Front ends call its command
methods and re-render from ``entries`` when notified through ``subscribe``.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Callable, Iterator, Optional

from pydantic import TypeAdapter, ValidationError

from ocdian import db
from ocdian.models import JournalEntry

log = logging.getLogger(__name__)

JOURNAL_KEY = "OCDEntries"

_ENTRIES = TypeAdapter(list[JournalEntry])

Observer = Callable[["JournalStore"], None]


class JournalStore:
    """Ordered list of journal entries persisted under one blob key."""

    def __init__(self, conn: sqlite3.Connection, key: str = JOURNAL_KEY) -> None:
        self._conn = conn
        self._key = key
        self._entries: list[JournalEntry] = []
        self._observers: list[Observer] = []

    # -- Queries --

    @property
    def entries(self) -> list[JournalEntry]:
        return list(self._entries)

    def get(self, entry_id: str) -> Optional[JournalEntry]:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[JournalEntry]:
        return iter(list(self._entries))

    # -- Observers --

    def subscribe(self, callback: Observer) -> None:
        if callback not in self._observers:
            self._observers.append(callback)

    def unsubscribe(self, callback: Observer) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def _changed(self) -> None:
        self.save()
        for callback in list(self._observers):
            callback(self)

    # -- Commands --

    def add_entry(self, obsession: str) -> Optional[JournalEntry]:
        """Append a new entry. Blank text is ignored."""
        text = obsession.strip()
        if not text:
            log.debug("Ignoring empty journal entry")
            return None
        entry = JournalEntry(obsession=text)
        self._entries.append(entry)
        self._changed()
        return entry

    def attach_compulsion(self, entry_id: str, compulsion: str) -> Optional[JournalEntry]:
        """Set the compulsion on an existing entry, replacing any earlier one."""
        text = compulsion.strip()
        if not text:
            log.debug("Ignoring empty compulsion for entry %s", entry_id)
            return None
        for i, entry in enumerate(self._entries):
            if entry.id == entry_id:
                updated = entry.model_copy(update={"compulsion": text})
                self._entries[i] = updated
                self._changed()
                return updated
        log.debug("No journal entry with id %s", entry_id)
        return None

    def delete_entry(self, index: int) -> Optional[JournalEntry]:
        """Remove the entry at *index*. Out-of-range indices are ignored."""
        if not 0 <= index < len(self._entries):
            log.debug("No journal entry at index %d", index)
            return None
        removed = self._entries.pop(index)
        self._changed()
        return removed

    def delete_all(self) -> int:
        """Remove every entry. Returns how many were removed."""
        count = len(self._entries)
        self._entries.clear()
        self._changed()
        return count

    # -- Persistence --

    def save(self) -> None:
        """Write the full entry list to storage."""
        db.put_blob(self._conn, self._key, _ENTRIES.dump_json(self._entries).decode())

    def load(self) -> bool:
        """Replace the in-memory entries with the stored ones.

        Returns False, leaving the store untouched, when nothing is stored or
        the stored blob cannot be read.
        """
        raw = db.get_blob(self._conn, self._key)
        if raw is None:
            return False
        try:
            entries = _ENTRIES.validate_json(raw)
        except ValidationError:
            log.warning("Could not read stored journal %r; keeping current entries", self._key)
            return False
        if len({e.id for e in entries}) != len(entries):
            log.warning("Stored journal %r has duplicate entry ids; keeping current entries", self._key)
            return False
        self._entries = entries
        for callback in list(self._observers):
            callback(self)
        return True
