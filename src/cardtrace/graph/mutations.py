"""Relation mutations - pure edit operations over relation collections.

Every function here takes a relation list and returns a new list; the
input is never modified. Relations that an edit does not touch are
returned as the same objects, and a no-op edit returns the input list
itself, so callers can detect "nothing changed" with an identity check.

Unknown card or relation ids are no-ops, never errors: a view may race
a deletion against a pending edit.

This module also provides the mutation log kept per view:
- MutationEntry: A record of one committed edit
- MutationLog: Append-only history of entries
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any
from uuid import uuid4

from cardtrace.graph.index import build_index
from cardtrace.graph.relations import Relation, TraceDirection


@dataclass(frozen=True)
class RelationDefaults:
    """Kind and direction given to relations created by toggle."""

    kind: str = "trace"
    direction: TraceDirection = TraceDirection.LEFT_TO_RIGHT


@dataclass(frozen=True)
class ToggleResult:
    """Outcome of toggling one matrix cell.

    Attributes:
        next: The resulting relation collection.
        is_active: True when the cell is linked after the toggle.
        relation: The created relation (on) or the relation the cell was
            removed from (off), as it was before the toggle.
    """

    next: list[Relation]
    is_active: bool
    relation: Relation | None = None


def toggle(
    relations: list[Relation],
    left_id: str,
    right_id: str,
    defaults: RelationDefaults | None = None,
) -> ToggleResult:
    """Turn the link for one (left_id, right_id) cell on or off.

    If no relation covers the cell, a new 1x1 relation is appended with
    the default kind and direction. Otherwise ``left_id`` is removed from
    the owning relation's left side and ``right_id`` from its right side;
    if either side becomes empty the relation is dropped.

    Args:
        relations: Current relation collection.
        left_id: Card id on the left side.
        right_id: Card id on the right side.
        defaults: Kind/direction for a newly created relation.

    Returns:
        ToggleResult with the new collection and the resulting cell state.
    """
    defaults = defaults or RelationDefaults()
    existing = build_index(relations).get(left_id, right_id)
    if existing is None:
        created = Relation(
            left_ids=(left_id,),
            right_ids=(right_id,),
            type=defaults.kind,
            directed=defaults.direction,
        )
        return ToggleResult(next=[*relations, created], is_active=True, relation=created)

    next_relations: list[Relation] = []
    for relation in relations:
        if relation is not existing:
            next_relations.append(relation)
            continue
        left_ids = tuple(i for i in relation.left_ids if i != left_id)
        right_ids = tuple(i for i in relation.right_ids if i != right_id)
        if left_ids and right_ids:
            next_relations.append(replace(relation, left_ids=left_ids, right_ids=right_ids))
    return ToggleResult(next=next_relations, is_active=False, relation=existing)


def change_kind(
    relations: list[Relation],
    left_id: str,
    right_id: str,
    kind: str,
) -> list[Relation]:
    """Replace the kind of the relation covering a cell.

    Returns the input list unchanged when no relation covers the cell or
    the kind is already set.
    """
    existing = build_index(relations).get(left_id, right_id)
    if existing is None or existing.type == kind:
        return relations
    return [replace(r, type=kind) if r is existing else r for r in relations]


def _replace_by_id(relations: list[Relation], relation_id: str, **changes: Any) -> list[Relation]:
    for position, relation in enumerate(relations):
        if relation.id != relation_id:
            continue
        if all(getattr(relation, name) == value for name, value in changes.items()):
            return relations
        next_relations = list(relations)
        next_relations[position] = replace(relation, **changes)
        return next_relations
    return relations


def change_direction(
    relations: list[Relation],
    relation_id: str,
    direction: TraceDirection,
) -> list[Relation]:
    """Replace the direction of a relation by id.

    Returns the input list unchanged for an unknown id or an unchanged
    direction, so no save/broadcast cycle is triggered.
    """
    return _replace_by_id(relations, relation_id, directed=direction)


def normalize_memo(memo: str | None) -> str | None:
    """Trim a memo; blank text means "no memo"."""
    if memo is None:
        return None
    trimmed = memo.strip()
    return trimmed or None


def change_memo(
    relations: list[Relation],
    relation_id: str,
    memo: str | None,
) -> list[Relation]:
    """Set or clear the memo of a relation by id.

    Returns the input list unchanged for an unknown id or an unchanged memo.
    """
    return _replace_by_id(relations, relation_id, memo=normalize_memo(memo))


@dataclass
class MutationEntry:
    """Single committed edit record.

    Attributes:
        id: Unique mutation ID (UUID4).
        timestamp: When the edit was committed.
        operation: Operation type (e.g., "toggle", "change_kind").
        target_id: Primary target (cell key, relation id or card id).
        before_state: State before the edit.
        after_state: State after the edit.
    """

    operation: str
    target_id: str
    before_state: dict[str, Any]
    after_state: dict[str, Any]
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        """Human-readable representation."""
        return f"[{self.id[:8]}] {self.operation}({self.target_id})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "operation": self.operation,
            "target_id": self.target_id,
            "before_state": self.before_state,
            "after_state": self.after_state,
            "timestamp": self.timestamp.isoformat(),
        }


class MutationLog:
    """Append-only history of committed edits, in chronological order."""

    def __init__(self) -> None:
        self._entries: list[MutationEntry] = []

    def append(self, entry: MutationEntry) -> None:
        self._entries.append(entry)

    def iter_entries(self) -> Iterator[MutationEntry]:
        """Iterate over all entries in chronological order."""
        yield from self._entries

    def recent(self, limit: int) -> list[MutationEntry]:
        """Return up to ``limit`` most recent entries, newest first."""
        if limit <= 0:
            return []
        return list(reversed(self._entries[-limit:]))

    def __len__(self) -> int:
        return len(self._entries)

    def last(self) -> MutationEntry | None:
        """Return the most recent entry, or None if empty."""
        return self._entries[-1] if self._entries else None

    def clear(self) -> None:
        self._entries.clear()


__all__ = [
    "MutationEntry",
    "MutationLog",
    "RelationDefaults",
    "ToggleResult",
    "change_direction",
    "change_kind",
    "change_memo",
    "normalize_memo",
    "toggle",
]
