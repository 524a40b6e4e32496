"""Optimistic updates - apply locally, then commit or roll back.

An edit runs in two phases:

1. ``apply(next)`` sets the new collection on the view at once and
   returns a RollbackToken holding the previous collection.
2. ``commit(token)`` saves through the persistence adapter. On success
   the cache is updated and the change is broadcast to the other views;
   on failure the view is rolled back to the previous collection.

A view closed between the two phases is left alone: the save still
completes and is broadcast, but neither metadata nor rollback is applied
to the closed view.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from cardtrace.cache import RelationCache
from cardtrace.graph.mutations import MutationEntry
from cardtrace.graph.relations import FilePair, Relation
from cardtrace.persistence import PersistenceAdapter, PersistenceError, SaveResult
from cardtrace.sync.bus import EventBus, Topic, TraceChangeEvent
from cardtrace.view.state import MatrixView

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RollbackToken:
    """Everything needed to finish or undo one optimistic edit.

    Attributes:
        view_id: View the edit was applied to.
        pair: The view's file pair at apply time.
        previous: Collection before the edit.
        next: Collection after the edit.
        operation: Edit name, recorded in the mutation log.
        target_id: Edited cell key or relation id.
    """

    view_id: str
    pair: FilePair
    previous: list[Relation]
    next: list[Relation]
    operation: str = "set_relations"
    target_id: str = ""
    id: str = field(default_factory=lambda: uuid4().hex)


@dataclass
class CommitResult:
    """Outcome of an edit, as reported to the caller.

    Attributes:
        success: False when the save failed and the edit was rolled back.
        changed: False when the edit was a no-op (nothing saved).
        file_name: Trace file written by the save.
        error: Failure message.
        is_active: Cell state after a toggle (None for other edits).
    """

    success: bool
    changed: bool = True
    file_name: str | None = None
    error: str | None = None
    is_active: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success, "changed": self.changed}
        if self.file_name is not None:
            result["file_name"] = self.file_name
        if self.error is not None:
            result["error"] = self.error
        if self.is_active is not None:
            result["is_active"] = self.is_active
        return result


def save_relations(
    adapter: PersistenceAdapter,
    cache: RelationCache,
    pair: FilePair,
    relations: list[Relation],
    header: dict[str, Any] | None = None,
) -> SaveResult:
    """Save a pair's collection and record it in the cache.

    Raises:
        PersistenceError: If the adapter rejects the save; the cache is
            left unchanged.
    """
    with cache.lock_for(pair):
        result = adapter.save_relations(pair.left_file, pair.right_file, relations, header)
        cache.store(pair, relations, result.file_name, result.header)
    return result


def broadcast_change(
    bus: EventBus,
    pair: FilePair,
    relations: list[Relation],
    source_view_id: str | None = None,
    result: SaveResult | None = None,
) -> int:
    """Broadcast a saved collection to every subscribed view."""
    event = TraceChangeEvent(
        left_file=pair.left_file,
        right_file=pair.right_file,
        relations=tuple(relations),
        source_view_id=source_view_id,
        file_name=result.file_name if result else None,
        header=result.header if result else None,
    )
    return bus.send(Topic.TRACE_CHANGED, event)


class OptimisticUpdate:
    """Two-phase edit of one view's relation collection.

    Args:
        view: View being edited.
        adapter: Persistence adapter to save through.
        cache: Shared relation cache.
        bus: Event bus to broadcast on.
    """

    def __init__(
        self,
        view: MatrixView,
        adapter: PersistenceAdapter,
        cache: RelationCache,
        bus: EventBus,
    ) -> None:
        self.view = view
        self.adapter = adapter
        self.cache = cache
        self.bus = bus

    def apply(
        self,
        next_relations: list[Relation],
        operation: str = "set_relations",
        target_id: str = "",
    ) -> RollbackToken:
        """Set ``next_relations`` on the view and return the rollback token."""
        token = RollbackToken(
            view_id=self.view.id,
            pair=self.view.pair,
            previous=self.view.relations,
            next=next_relations,
            operation=operation,
            target_id=target_id,
        )
        self.view.set_relations(next_relations)
        return token

    def commit(self, token: RollbackToken) -> CommitResult:
        """Save the applied collection, then broadcast it.

        On a PersistenceError the view is rolled back and the failure is
        returned, never raised.
        """
        header = self.view.trace_header
        try:
            result = save_relations(self.adapter, self.cache, token.pair, token.next, header)
        except PersistenceError as e:
            logger.error("save failed for %s, rolling back: %s", token.pair, e)
            self.rollback(token)
            if not self.view.closed:
                self.view.error = str(e)
            return CommitResult(success=False, error=str(e))

        if not self.view.closed:
            self.view.set_trace_metadata(result.file_name, result.header)
            self.view.error = None
            self.view.mutation_log.append(
                MutationEntry(
                    operation=token.operation,
                    target_id=token.target_id,
                    before_state={"relation_count": len(token.previous)},
                    after_state={"relation_count": len(token.next)},
                )
            )
        broadcast_change(self.bus, token.pair, token.next, source_view_id=token.view_id, result=result)
        logger.debug("committed %s on %s", token.operation, token.pair)
        return CommitResult(success=True, file_name=result.file_name)

    def rollback(self, token: RollbackToken) -> bool:
        """Restore the collection from before ``apply``.

        A collection broadcast by another view while the save was in
        flight has already replaced the optimistic one and is kept.

        Returns:
            False when the view is already closed or its collection was
            replaced since ``apply`` (nothing restored).
        """
        if self.view.closed or self.view.relations is not token.next:
            return False
        self.view.set_relations(token.previous)
        return True


__all__ = [
    "CommitResult",
    "OptimisticUpdate",
    "RollbackToken",
    "broadcast_change",
    "save_relations",
]
