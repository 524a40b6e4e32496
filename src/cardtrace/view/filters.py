"""Matrix filters - which cards a view shows on its rows and columns.

Filters are display state only; they never touch relation data.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any

from cardtrace.graph.cards import Card, CardStatus
from cardtrace.graph.index import RelationIndex
from cardtrace.graph.relations import Side

ALL_STATUSES = frozenset(CardStatus)


@dataclass(frozen=True)
class MatrixFilter:
    """Filter state for one matrix view.

    Text queries are case-insensitive substring matches. Status sets list
    the statuses still shown; kind sets are None when every kind is shown.

    Attributes:
        card_id_query: Match against the card label (card id or id).
        title_query: Match against the card title.
        left_statuses: Statuses shown on the rows.
        right_statuses: Statuses shown on the columns.
        left_kinds: Kinds shown on the rows (None: all).
        right_kinds: Kinds shown on the columns (None: all).
        focus_right_id: Only show rows linked to this right card.
        focus_left_id: Only show columns linked to this left card.
    """

    card_id_query: str = ""
    title_query: str = ""
    left_statuses: frozenset[CardStatus] = field(default=ALL_STATUSES)
    right_statuses: frozenset[CardStatus] = field(default=ALL_STATUSES)
    left_kinds: frozenset[str] | None = None
    right_kinds: frozenset[str] | None = None
    focus_right_id: str | None = None
    focus_left_id: str | None = None

    @property
    def is_default(self) -> bool:
        return self == MatrixFilter()

    def statuses_on(self, side: Side) -> frozenset[CardStatus]:
        return self.left_statuses if side == "left" else self.right_statuses

    def kinds_on(self, side: Side) -> frozenset[str] | None:
        return self.left_kinds if side == "left" else self.right_kinds

    def with_status_toggled(self, side: Side, status: CardStatus) -> MatrixFilter:
        """Show or hide one status on one side."""
        statuses = self.statuses_on(side) ^ {status}
        if side == "left":
            return replace(self, left_statuses=statuses)
        return replace(self, right_statuses=statuses)

    def with_kind_toggled(self, side: Side, kind: str, known_kinds: frozenset[str]) -> MatrixFilter:
        """Show or hide one card kind on one side.

        ``known_kinds`` is the full kind set, used when the side currently
        shows every kind.
        """
        current = self.kinds_on(side)
        kinds = (known_kinds if current is None else current) ^ {kind}
        if side == "left":
            return replace(self, left_kinds=kinds)
        return replace(self, right_kinds=kinds)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["left_statuses"] = sorted(s.value for s in self.left_statuses)
        data["right_statuses"] = sorted(s.value for s in self.right_statuses)
        data["left_kinds"] = sorted(self.left_kinds) if self.left_kinds is not None else None
        data["right_kinds"] = sorted(self.right_kinds) if self.right_kinds is not None else None
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], base: MatrixFilter | None = None) -> MatrixFilter:
        """Build a filter from a (partial) JSON payload over ``base``.

        Raises:
            ValueError: If a status value is unknown or a field is not
                recognised.
        """
        base = base or cls()
        unknown = set(data) - set(asdict(base))
        if unknown:
            raise ValueError(f"unknown filter field(s): {', '.join(sorted(unknown))}")
        changes: dict[str, Any] = {}
        for name in ("card_id_query", "title_query"):
            if name in data:
                changes[name] = str(data[name] or "")
        for name in ("left_statuses", "right_statuses"):
            if name in data:
                changes[name] = frozenset(CardStatus(value) for value in data[name])
        for name in ("left_kinds", "right_kinds"):
            if name in data:
                changes[name] = None if data[name] is None else frozenset(data[name])
        for name in ("focus_right_id", "focus_left_id"):
            if name in data:
                changes[name] = data[name] or None
        return replace(base, **changes)


def _matches(query: str, text: str) -> bool:
    return not query or query.lower() in text.lower()


def filter_cards(
    cards: list[Card],
    side: Side,
    matrix_filter: MatrixFilter,
    index: RelationIndex,
) -> list[Card]:
    """Return the cards of one side that pass the filter, in order.

    Args:
        cards: Card snapshot of the side.
        side: Which side the cards are shown on.
        matrix_filter: Current filter state.
        index: Cell index of the view's relations (for trace focus).
    """
    statuses = matrix_filter.statuses_on(side)
    kinds = matrix_filter.kinds_on(side)
    focus = matrix_filter.focus_right_id if side == "left" else matrix_filter.focus_left_id

    result = []
    for card in cards:
        if not _matches(matrix_filter.card_id_query, card.label):
            continue
        if not _matches(matrix_filter.title_query, card.title):
            continue
        if card.status not in statuses:
            continue
        if kinds is not None and card.kind not in kinds:
            continue
        if focus:
            linked = index.has(card.id, focus) if side == "left" else index.has(focus, card.id)
            if not linked:
                continue
        result.append(card)
    return result


__all__ = ["ALL_STATUSES", "MatrixFilter", "filter_cards"]
