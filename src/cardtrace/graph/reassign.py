"""Merge reassignment - rewrite relation endpoints when cards collapse.

When the card editor merges several source cards into one target card,
every relation referencing a source card on the merged side is rewritten
to reference the target instead. Deleting cards removes them from the
endpoint sets. Both operations keep each relation's id, kind, direction
and memo; only endpoint ids change.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from cardtrace.graph.index import cell_key
from cardtrace.graph.integrity import IntegrityViolation, cell_collision, empty_side
from cardtrace.graph.relations import Relation, Side, unique_ids


@dataclass
class ReassignResult:
    """Outcome of rewriting one relation collection.

    Attributes:
        relations: The rewritten collection (the input list when unchanged).
        changed_ids: Relations whose endpoints were rewritten.
        removed_ids: Relations dropped because their cells were fully
            covered by other relations, or because a side became empty.
        violations: Collisions the rewrite could not resolve.
    """

    relations: list[Relation]
    changed_ids: list[str] = field(default_factory=list)
    removed_ids: list[str] = field(default_factory=list)
    violations: list[IntegrityViolation] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        """True when anything needs to be persisted."""
        return bool(self.changed_ids or self.removed_ids)


def _other(side: Side) -> Side:
    return "right" if side == "left" else "left"


def _cell(side: Side, card_id: str, other_id: str) -> str:
    return cell_key(card_id, other_id) if side == "left" else cell_key(other_id, card_id)


def _claim(claimed: dict[str, str], relation: Relation) -> None:
    for left_id, right_id in relation.iter_cells():
        claimed.setdefault(cell_key(left_id, right_id), relation.id)


def reassign_endpoints(
    relations: list[Relation],
    side: Side,
    source_ids: Iterable[str],
    target_id: str,
) -> ReassignResult:
    """Rewrite relations after ``source_ids`` were merged into ``target_id``.

    For every relation referencing a source id on ``side``, each source id
    is replaced by the target and the side is deduplicated in first-seen
    order. Relations that end up unchanged are skipped.

    A rewritten relation may claim cells another relation already owns.
    Relations that were not rewritten keep their cells. If every cell a
    rewritten relation gains through the target is already owned, the
    target is dropped from its side again (and the relation is dropped if
    that side becomes empty); the link surface is still covered by the
    owner. If only some are owned and the target is the relation's only id
    on ``side``, the owned cells are dropped from the other side instead.
    Partial overlaps on a side that still holds other ids cannot be split
    without reshaping the relation and are reported as violations.

    Args:
        relations: The pair's relation collection.
        side: Side on which the merged file appears.
        source_ids: Card ids that were merged away.
        target_id: Card id they were merged into.

    Returns:
        ReassignResult describing the rewritten collection.
    """
    sources = set(source_ids)
    rewritten: dict[int, Relation] = {}
    for position, relation in enumerate(relations):
        ids = relation.ids_on(side)
        if sources.isdisjoint(ids):
            continue
        new_ids = unique_ids(target_id if card_id in sources else card_id for card_id in ids)
        if new_ids == ids:
            continue
        rewritten[position] = relation.with_ids(side, new_ids)

    if not rewritten:
        return ReassignResult(relations=relations)

    claimed: dict[str, str] = {}
    for position, relation in enumerate(relations):
        if position not in rewritten:
            _claim(claimed, relation)

    result = ReassignResult(relations=[])
    other = _other(side)
    for position, relation in enumerate(relations):
        candidate = rewritten.get(position)
        if candidate is None:
            result.relations.append(relation)
            continue

        gained = [
            _cell(side, target_id, other_id)
            for other_id in candidate.ids_on(other)
            if target_id not in relation.ids_on(side)
        ]
        taken = [key for key in gained if key in claimed and claimed[key] != candidate.id]
        if gained and len(taken) == len(gained):
            remaining = tuple(i for i in candidate.ids_on(side) if i != target_id)
            if not remaining:
                result.removed_ids.append(candidate.id)
                continue
            candidate = candidate.with_ids(side, remaining)
        elif taken and candidate.ids_on(side) == (target_id,):
            # every cell of the candidate is a target cell; the owner keeps the taken ones
            free = tuple(
                other_id
                for other_id in candidate.ids_on(other)
                if _cell(side, target_id, other_id) not in taken
            )
            candidate = candidate.with_ids(other, free)
        else:
            for key in taken:
                result.violations.append(cell_collision(key, claimed[key], candidate.id))

        if candidate.is_empty():
            result.violations.append(
                empty_side(candidate.id, "left" if not candidate.left_ids else "right")
            )
            result.removed_ids.append(candidate.id)
            continue
        _claim(claimed, candidate)
        result.changed_ids.append(candidate.id)
        result.relations.append(candidate)
    return result


def remove_endpoints(
    relations: list[Relation],
    side: Side,
    card_ids: Iterable[str],
) -> ReassignResult:
    """Remove deleted cards from one side of every relation.

    A relation whose side becomes empty is deleted, never kept empty.
    """
    doomed = set(card_ids)
    result = ReassignResult(relations=[])
    for relation in relations:
        ids = relation.ids_on(side)
        if doomed.isdisjoint(ids):
            result.relations.append(relation)
            continue
        remaining = tuple(card_id for card_id in ids if card_id not in doomed)
        if not remaining:
            result.removed_ids.append(relation.id)
            continue
        result.changed_ids.append(relation.id)
        result.relations.append(relation.with_ids(side, remaining))
    if not result.changed:
        result.relations = relations
    return result


__all__ = ["ReassignResult", "reassign_endpoints", "remove_endpoints"]
