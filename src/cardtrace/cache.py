"""Relation cache - the process-wide relation collections, keyed by file pair.

The cache is the only state shared between views. Entries are stored
under the canonical pair key in canonical orientation; callers get the
collection oriented to the pair they asked for.

Each pair has its own lock, so loading or saving one pair never blocks
another. The cache is an explicit object created at application start
and cleared by ``reset()``; it is injected into whatever needs it.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from cardtrace.graph.relations import FilePair, Relation
from cardtrace.persistence import PersistenceAdapter, PersistenceError

logger = logging.getLogger(__name__)


class CacheStatus(Enum):
    """Load state of a cache entry."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    MISSING = "missing"
    ERROR = "error"


@dataclass
class CacheEntry:
    """Cached relation collection for one canonical file pair.

    Attributes:
        pair: The pair in canonical orientation.
        status: Load state.
        relations: Relations in canonical orientation.
        trace_file_name: Trace file backing the entry, once known.
        header: Trace file header, once known.
        updated_at: When the entry was last loaded or stored.
        error: Last load error message (status ERROR only).
    """

    pair: FilePair
    status: CacheStatus = CacheStatus.IDLE
    relations: list[Relation] = field(default_factory=list)
    trace_file_name: str | None = None
    header: dict[str, Any] | None = None
    updated_at: datetime | None = None
    error: str | None = None

    @property
    def is_loaded(self) -> bool:
        """True when the entry can be served without a reload."""
        return self.status in (CacheStatus.READY, CacheStatus.MISSING)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.pair.key,
            "status": self.status.value,
            "relation_count": len(self.relations),
            "trace_file_name": self.trace_file_name,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "error": self.error,
        }


class RelationCache:
    """Relation collections per canonical file pair.

    Args:
        adapter: Persistence adapter used to load missing entries.
    """

    def __init__(self, adapter: PersistenceAdapter) -> None:
        self._adapter = adapter
        self._entries: dict[str, CacheEntry] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._table_lock = threading.Lock()

    def lock_for(self, pair: FilePair) -> threading.RLock:
        """Return the lock guarding one pair's entry (re-entrant)."""
        with self._table_lock:
            lock = self._locks.get(pair.key)
            if lock is None:
                lock = self._locks[pair.key] = threading.RLock()
            return lock

    def _entry(self, pair: FilePair) -> CacheEntry:
        with self._table_lock:
            entry = self._entries.get(pair.key)
            if entry is None:
                entry = self._entries[pair.key] = CacheEntry(pair=pair.canonical())
            return entry

    def get(self, pair: FilePair) -> CacheEntry | None:
        """Return the entry for a pair without loading it."""
        return self._entries.get(pair.key)

    def load(self, pair: FilePair, force: bool = False) -> list[Relation]:
        """Return the pair's relations, loading them on first use.

        Entries that are ready or missing are served from memory unless
        ``force`` is set; entries in error are retried.

        Raises:
            PersistenceError: If the adapter fails to load the trace file.
        """
        with self.lock_for(pair):
            entry = self._entry(pair)
            if entry.is_loaded and not force:
                return pair.orient(entry.relations, entry.pair)

            entry.status = CacheStatus.LOADING
            canonical = entry.pair
            try:
                bundle = self._adapter.load_relations(canonical.left_file, canonical.right_file)
            except PersistenceError as e:
                entry.status = CacheStatus.ERROR
                entry.error = str(e)
                entry.updated_at = datetime.now()
                logger.error("failed to load relations for %s: %s", canonical, e)
                raise

            if bundle is None:
                entry.status = CacheStatus.MISSING
                entry.relations = []
                entry.trace_file_name = None
                entry.header = None
            else:
                entry.status = CacheStatus.READY
                entry.relations = bundle.relations
                entry.trace_file_name = bundle.file_name
                entry.header = bundle.header
            entry.error = None
            entry.updated_at = datetime.now()
            logger.debug("loaded %d relation(s) for %s", len(entry.relations), canonical)
            return pair.orient(entry.relations, entry.pair)

    def store(
        self,
        pair: FilePair,
        relations: list[Relation],
        file_name: str | None = None,
        header: dict[str, Any] | None = None,
    ) -> CacheEntry:
        """Record a saved collection (given in ``pair`` orientation)."""
        with self.lock_for(pair):
            entry = self._entry(pair)
            entry.relations = entry.pair.orient(relations, pair)
            entry.status = CacheStatus.READY
            if file_name is not None:
                entry.trace_file_name = file_name
            if header is not None:
                entry.header = header
            entry.error = None
            entry.updated_at = datetime.now()
            return entry

    def cached_relations(self, left_file: str, right_file: str) -> list[Relation]:
        """Relations for a pair if already loaded, else an empty list.

        Never touches the adapter and never takes a lock, so it is safe to
        call from event handlers.
        """
        pair = FilePair(left_file, right_file)
        entry = self._entries.get(pair.key)
        if entry is None or not entry.is_loaded:
            return []
        return pair.orient(entry.relations, entry.pair)

    def entries(self) -> list[CacheEntry]:
        """All entries, sorted by key."""
        with self._table_lock:
            return [self._entries[key] for key in sorted(self._entries)]

    def reset(self) -> None:
        """Drop every entry (application reset)."""
        with self._table_lock:
            count = len(self._entries)
            self._entries.clear()
            self._locks.clear()
        logger.info("relation cache reset (%d entr%s dropped)", count, "y" if count == 1 else "ies")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, pair: object) -> bool:
        return isinstance(pair, FilePair) and pair.key in self._entries


__all__ = ["CacheEntry", "CacheStatus", "RelationCache"]
