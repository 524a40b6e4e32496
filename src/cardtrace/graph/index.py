"""Relation lookup index - O(1) cell to relation lookup.

The index maps every covered (left_id, right_id) cell to the relation
that owns it. It is rebuilt whenever the relation collection changes.
A cell claimed by two relations is an integrity fault: the first
claimant keeps the cell and the collision is recorded, never resolved
by letting the later relation overwrite the earlier one.
"""

from __future__ import annotations

from collections.abc import Iterator

from cardtrace.graph.integrity import IntegrityViolation, cell_collision
from cardtrace.graph.relations import Relation

CELL_KEY_SEPARATOR = "::"


def cell_key(left_id: str, right_id: str) -> str:
    """Build the lookup key for a matrix cell."""
    return f"{left_id}{CELL_KEY_SEPARATOR}{right_id}"


class RelationIndex:
    """Read-only cell lookup built from one relation collection.

    Example:
        >>> index = build_index([Relation(left_ids=("A",), right_ids=("X",))])
        >>> index.has("A", "X")
        True
    """

    def __init__(
        self,
        cells: dict[str, Relation],
        source: list[Relation],
        violations: list[IntegrityViolation],
    ) -> None:
        self._cells = cells
        self._source = source
        self._violations = violations

    def get(self, left_id: str, right_id: str) -> Relation | None:
        """Return the relation covering a cell, or None."""
        return self._cells.get(cell_key(left_id, right_id))

    def has(self, left_id: str, right_id: str) -> bool:
        """Check whether a cell is linked."""
        return cell_key(left_id, right_id) in self._cells

    def built_from(self, relations: list[Relation]) -> bool:
        """True when this index was built from exactly this collection object."""
        return self._source is relations

    @property
    def violations(self) -> list[IntegrityViolation]:
        """Cell collisions found while building the index."""
        return list(self._violations)

    @property
    def is_consistent(self) -> bool:
        """True when every cell has exactly one owner."""
        return not self._violations

    def keys(self) -> Iterator[str]:
        """Iterate over the occupied cell keys."""
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, key: object) -> bool:
        return key in self._cells


def build_index(relations: list[Relation]) -> RelationIndex:
    """Build the cell lookup for a relation collection.

    Args:
        relations: The relation collection.

    Returns:
        RelationIndex with one entry per occupied cell and any collisions
        recorded as violations.
    """
    cells: dict[str, Relation] = {}
    violations: list[IntegrityViolation] = []
    for relation in relations:
        for left_id, right_id in relation.iter_cells():
            key = cell_key(left_id, right_id)
            owner = cells.get(key)
            if owner is None:
                cells[key] = relation
            elif owner.id != relation.id:
                violations.append(cell_collision(key, owner.id, relation.id))
    return RelationIndex(cells, relations, violations)


__all__ = ["CELL_KEY_SEPARATOR", "RelationIndex", "build_index", "cell_key"]
