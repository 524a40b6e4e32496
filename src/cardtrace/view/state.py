"""Matrix view state - one open view on a file pair.

A MatrixView holds the two card snapshots, the relation collection and
the display state (filter, selection, highlights) of one view. Every edit
path ends in ``set_relations``, which replaces the collection and
recomputes the derived stats; the cell index is rebuilt lazily whenever
the collection object changes.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from cardtrace.graph.cards import Card
from cardtrace.graph.index import RelationIndex, build_index
from cardtrace.graph.integrity import IntegrityViolation, report_violations
from cardtrace.graph.metrics import TraceStats, compute_stats
from cardtrace.graph.mutations import MutationLog, RelationDefaults
from cardtrace.graph.relations import FilePair, Relation, Side, TraceDirection
from cardtrace.view.filters import MatrixFilter, filter_cards

if TYPE_CHECKING:
    from cardtrace.sync.bus import TraceChangeEvent

logger = logging.getLogger(__name__)


class MatrixView:
    """State of one matrix view (embedded panel or separate window).

    Args:
        left_file: Card file shown on the rows.
        right_file: Card file shown on the columns.
        view_id: Identifier; generated when omitted.
        defaults: Kind/direction for relations created by toggle.
    """

    def __init__(
        self,
        left_file: str,
        right_file: str,
        view_id: str | None = None,
        defaults: RelationDefaults | None = None,
    ) -> None:
        self.id = view_id or uuid4().hex
        self.pair = FilePair(left_file, right_file)
        self.defaults = defaults or RelationDefaults()
        self.left_cards: list[Card] = []
        self.right_cards: list[Card] = []
        self._relations: list[Relation] = []
        self._index: RelationIndex = build_index(self._relations)
        self.stats = TraceStats()
        self.filter = MatrixFilter()
        self.selected: dict[Side, tuple[str, ...]] = {"left": (), "right": ()}
        self.highlighted: dict[Side, frozenset[str]] = {"left": frozenset(), "right": frozenset()}
        self.trace_file_name: str | None = None
        self.trace_header: dict[str, Any] | None = None
        self.mutation_log = MutationLog()
        self.error: str | None = None
        self.closed = False
        # serializes edits: held from computing an edit until its commit or rollback
        self.lock = threading.RLock()

    @property
    def left_file(self) -> str:
        return self.pair.left_file

    @property
    def right_file(self) -> str:
        return self.pair.right_file

    @property
    def relations(self) -> list[Relation]:
        return self._relations

    @property
    def index(self) -> RelationIndex:
        """Cell index for the current collection."""
        if not self._index.built_from(self._relations):
            self._index = build_index(self._relations)
        return self._index

    @property
    def integrity_violations(self) -> list[IntegrityViolation]:
        return self.index.violations

    def cards_on(self, side: Side) -> list[Card]:
        return self.left_cards if side == "left" else self.right_cards

    def _recompute_stats(self) -> None:
        self.stats = compute_stats(self.left_cards, self.right_cards, self._relations)

    def set_cards(self, side: Side, cards: list[Card]) -> None:
        """Replace one side's card snapshot and recompute stats."""
        if side == "left":
            self.left_cards = list(cards)
        else:
            self.right_cards = list(cards)
        self._recompute_stats()

    def set_relations(self, relations: list[Relation]) -> None:
        """Replace the relation collection and recompute stats.

        Cell collisions in the new collection are reported as integrity
        warnings; the collection is stored as given.
        """
        self._relations = relations
        self._recompute_stats()
        if not self.index.is_consistent:
            report_violations(self.index.violations, context=str(self.pair))

    def apply_remote_change(self, event: TraceChangeEvent) -> bool:
        """Apply a relation change broadcast by another view.

        The event is ignored when this view is closed, when it is this
        view's own echo, or when it concerns another file pair. An event
        for the same pair in the opposite orientation is transposed.

        Returns:
            True when the collection was replaced.
        """
        if self.closed or event.source_view_id == self.id:
            return False
        if not self.pair.same_pair(event.pair):
            return False
        self.set_relations(self.pair.orient(list(event.relations), event.pair))
        if event.file_name is not None:
            self.set_trace_metadata(event.file_name, event.header)
        return True

    def set_trace_metadata(self, file_name: str | None, header: dict[str, Any] | None) -> None:
        self.trace_file_name = file_name
        self.trace_header = header

    def set_default_kind(self, kind: str) -> None:
        self.defaults = RelationDefaults(kind=kind, direction=self.defaults.direction)

    def set_default_direction(self, direction: TraceDirection) -> None:
        self.defaults = RelationDefaults(kind=self.defaults.kind, direction=direction)

    # Display state

    def set_filter(self, matrix_filter: MatrixFilter) -> None:
        self.filter = matrix_filter

    def reset_filter(self) -> None:
        self.filter = MatrixFilter()

    def visible_cards(self, side: Side) -> list[Card]:
        """Cards of one side that pass the current filter."""
        return filter_cards(self.cards_on(side), side, self.filter, self.index)

    def select(self, side: Side, card_ids: Iterable[str]) -> None:
        self.selected[side] = tuple(card_ids)

    def set_highlights(self, side: Side, card_ids: Iterable[str]) -> None:
        self.highlighted[side] = frozenset(card_ids)

    def close(self) -> None:
        """Tear the view down; later events and rollbacks are ignored."""
        self.closed = True

    def snapshot(self) -> dict[str, Any]:
        """Serializable state for the HTTP API."""
        return {
            "id": self.id,
            "left_file": self.left_file,
            "right_file": self.right_file,
            "trace_file_name": self.trace_file_name,
            "trace_header": self.trace_header,
            "defaults": {
                "kind": self.defaults.kind,
                "direction": self.defaults.direction.value,
            },
            "relations": [relation.to_dict() for relation in self._relations],
            "stats": self.stats.to_dict(),
            "filter": self.filter.to_dict(),
            "visible": {
                "left": [card.id for card in self.visible_cards("left")],
                "right": [card.id for card in self.visible_cards("right")],
            },
            "selected": {side: list(ids) for side, ids in self.selected.items()},
            "highlighted": {side: sorted(ids) for side, ids in self.highlighted.items()},
            "integrity": [violation.to_dict() for violation in self.integrity_violations],
            "error": self.error,
            "closed": self.closed,
        }

    def __repr__(self) -> str:
        return f"MatrixView(id={self.id!r}, pair={self.pair!s}, relations={len(self._relations)})"


__all__ = ["MatrixView"]
