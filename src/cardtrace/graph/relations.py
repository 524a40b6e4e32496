"""Relations - trace links between the left and right card collections.

This module defines the relation entity and the file pair it lives in:
- TraceDirection: Enum of link directions
- Relation: A group of left card ids linked to a group of right card ids
- FilePair: The (left file, right file) pair a relation collection belongs to
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Literal
from uuid import uuid4

Side = Literal["left", "right"]
SIDES: tuple[Side, Side] = ("left", "right")


class TraceDirection(Enum):
    """Direction of a trace link as seen from the left file."""

    LEFT_TO_RIGHT = "left_to_right"
    RIGHT_TO_LEFT = "right_to_left"
    BIDIRECTIONAL = "bidirectional"

    def flipped(self) -> TraceDirection:
        """Return the direction as seen with left and right swapped."""
        if self is TraceDirection.LEFT_TO_RIGHT:
            return TraceDirection.RIGHT_TO_LEFT
        if self is TraceDirection.RIGHT_TO_LEFT:
            return TraceDirection.LEFT_TO_RIGHT
        return self

    @classmethod
    def parse(cls, value: str | TraceDirection) -> TraceDirection:
        """Parse a direction value.

        Accepts the stored names plus the legacy ``forward``/``backward``
        spellings.

        Raises:
            ValueError: If the value is not a known direction.
        """
        if isinstance(value, TraceDirection):
            return value
        legacy = {"forward": cls.LEFT_TO_RIGHT, "backward": cls.RIGHT_TO_LEFT}
        normalized = value.strip().lower()
        if normalized in legacy:
            return legacy[normalized]
        return cls(normalized)


def new_relation_id() -> str:
    """Generate a fresh relation id (UUID4, never reused)."""
    return str(uuid4())


def unique_ids(ids: Iterable[str]) -> tuple[str, ...]:
    """Drop duplicate ids, keeping first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for card_id in ids:
        if card_id not in seen:
            seen.add(card_id)
            result.append(card_id)
    return tuple(result)


@dataclass(frozen=True)
class Relation:
    """A trace link between a group of left cards and a group of right cards.

    Relations are immutable; every edit produces a new instance so that
    unchanged relations keep their identity across collection updates.

    Attributes:
        id: Relation identifier, stable until the relation is deleted.
        left_ids: Card ids from the left file (non-empty, no duplicates).
        right_ids: Card ids from the right file (non-empty, no duplicates).
        type: Relation kind from the configured vocabulary.
        directed: Link direction.
        memo: Optional free-text annotation.
    """

    left_ids: tuple[str, ...]
    right_ids: tuple[str, ...]
    type: str = "trace"
    directed: TraceDirection = TraceDirection.LEFT_TO_RIGHT
    memo: str | None = None
    id: str = field(default_factory=new_relation_id)

    def __post_init__(self) -> None:
        # Lists from callers are frozen to tuples and deduplicated
        object.__setattr__(self, "left_ids", unique_ids(self.left_ids))
        object.__setattr__(self, "right_ids", unique_ids(self.right_ids))

    def ids_on(self, side: Side) -> tuple[str, ...]:
        """Return the endpoint ids on one side."""
        return self.left_ids if side == "left" else self.right_ids

    def with_ids(self, side: Side, ids: Iterable[str]) -> Relation:
        """Return a copy with one side's endpoint ids replaced."""
        if side == "left":
            return replace(self, left_ids=tuple(ids))
        return replace(self, right_ids=tuple(ids))

    def covers(self, left_id: str, right_id: str) -> bool:
        """Check whether this relation links the given cell."""
        return left_id in self.left_ids and right_id in self.right_ids

    def iter_cells(self) -> Iterable[tuple[str, str]]:
        """Yield every (left_id, right_id) cell this relation covers."""
        for left_id in self.left_ids:
            for right_id in self.right_ids:
                yield left_id, right_id

    def is_empty(self) -> bool:
        """True when either endpoint set is empty."""
        return not self.left_ids or not self.right_ids

    def transposed(self) -> Relation:
        """Return the same relation seen from the opposite orientation."""
        return replace(
            self,
            left_ids=self.right_ids,
            right_ids=self.left_ids,
            directed=self.directed.flipped(),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the trace file JSON form."""
        result: dict[str, Any] = {
            "id": self.id,
            "left_ids": list(self.left_ids),
            "right_ids": list(self.right_ids),
            "type": self.type,
            "directed": self.directed.value,
        }
        if self.memo:
            result["memo"] = self.memo
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Relation:
        """Deserialize from the trace file JSON form."""
        return cls(
            id=str(data.get("id") or new_relation_id()),
            left_ids=tuple(data.get("left_ids") or ()),
            right_ids=tuple(data.get("right_ids") or ()),
            type=data.get("type") or "trace",
            directed=TraceDirection.parse(data.get("directed") or "left_to_right"),
            memo=data.get("memo") or None,
        )


def transpose_relations(relations: list[Relation]) -> list[Relation]:
    """Transpose a whole collection (left and right swapped)."""
    return [relation.transposed() for relation in relations]


PAIR_KEY_SEPARATOR = "|||"


@dataclass(frozen=True)
class FilePair:
    """The two card files between which relations are tracked.

    A pair is identified by the unordered pair of file names; ``key`` is
    the same whichever file is on the left.

    Attributes:
        left_file: Card file shown on the rows (left side).
        right_file: Card file shown on the columns (right side).
    """

    left_file: str
    right_file: str

    @property
    def key(self) -> str:
        """Canonical, order-independent cache key."""
        first, second = sorted((self.left_file, self.right_file))
        return f"{first}{PAIR_KEY_SEPARATOR}{second}"

    @property
    def is_canonical(self) -> bool:
        """True when the left file sorts first (the stored orientation)."""
        return self.left_file <= self.right_file

    def canonical(self) -> FilePair:
        """Return this pair in canonical (sorted) orientation."""
        return self if self.is_canonical else self.reversed()

    def reversed(self) -> FilePair:
        """Return the pair with left and right swapped."""
        return FilePair(self.right_file, self.left_file)

    def same_pair(self, other: FilePair) -> bool:
        """True when both pairs address the same file pair, in any order."""
        return self.key == other.key

    def contains(self, file_name: str) -> bool:
        """Check whether a file takes part in this pair."""
        return file_name in (self.left_file, self.right_file)

    def sides_of(self, file_name: str) -> list[Side]:
        """Return the side(s) on which a file appears."""
        sides: list[Side] = []
        if self.left_file == file_name:
            sides.append("left")
        if self.right_file == file_name:
            sides.append("right")
        return sides

    def file_on(self, side: Side) -> str:
        """Return the file name shown on one side."""
        return self.left_file if side == "left" else self.right_file

    def orient(self, relations: list[Relation], source: FilePair) -> list[Relation]:
        """Re-orient a collection stored for ``source`` to this pair's orientation.

        Returns the input list itself when no transposition is needed.
        """
        if source.left_file == self.left_file and source.right_file == self.right_file:
            return relations
        return transpose_relations(relations)

    def __str__(self) -> str:
        return f"{self.left_file} / {self.right_file}"


__all__ = [
    "PAIR_KEY_SEPARATOR",
    "SIDES",
    "FilePair",
    "Relation",
    "Side",
    "TraceDirection",
    "new_relation_id",
    "transpose_relations",
    "unique_ids",
]
