"""
In-memory record cache with two independent maps.

``by_id`` maps a 64-char hex event id to its record; ``by_pointer`` maps the
raw pointer string from the subdomain to the record it resolved to. Both are
append-only for the lifetime of the process: there is no expiry, no
invalidation and no size bound. The first record stored under a key stays
there, so a later, possibly different, race result for the same pointer is
discarded.

No locking is needed: every method is synchronous and runs to completion on
the event loop.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from nostrgate.models.record import Record


@dataclass(slots=True)
class CacheStats:
    """Hit and miss counters of a [RecordCache][nostrgate.core.cache.RecordCache]."""

    id_hits: int = 0
    id_misses: int = 0
    pointer_hits: int = 0
    pointer_misses: int = 0


class RecordCache:
    """Two append-only maps of resolved records."""

    def __init__(self) -> None:
        self._by_id: dict[str, Record] = {}
        self._by_pointer: dict[str, Record] = {}
        self.stats = CacheStats()

    def get_by_id(self, event_id: str) -> Record | None:
        record = self._by_id.get(event_id.lower())
        if record is None:
            self.stats.id_misses += 1
        else:
            self.stats.id_hits += 1
        return record

    def set_by_id(self, record: Record) -> Record:
        """Store *record* under its id and return the record now stored there."""
        return self._by_id.setdefault(record.id, record)

    def get_by_pointer(self, pointer: str) -> Record | None:
        record = self._by_pointer.get(pointer)
        if record is None:
            self.stats.pointer_misses += 1
        else:
            self.stats.pointer_hits += 1
        return record

    def set_by_pointer(self, pointer: str, record: Record) -> Record:
        """Store *record* under *pointer* and return the record now stored there."""
        return self._by_pointer.setdefault(pointer, record)

    @property
    def id_size(self) -> int:
        return len(self._by_id)

    @property
    def pointer_size(self) -> int:
        return len(self._by_pointer)
