"""Export data - the row list and matrix table handed to writers.

Writers (CSV, HTML, spreadsheet tools) only serialize these shapes; the
cards included are whatever the view currently shows after filtering.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from cardtrace.graph.cards import Card
from cardtrace.graph.index import build_index
from cardtrace.graph.metrics import TraceStats, compute_stats
from cardtrace.graph.relations import Relation
from cardtrace.view.state import MatrixView


@dataclass(frozen=True)
class ExportRow:
    """One (left card, right card) combination and the relation linking them."""

    left_card: Card
    right_card: Card
    relation: Relation | None = None

    @property
    def is_linked(self) -> bool:
        return self.relation is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "left_card": self.left_card.to_dict(),
            "right_card": self.right_card.to_dict(),
            "relation": self.relation.to_dict() if self.relation else None,
        }


@dataclass
class MatrixTable:
    """Tabular form of a matrix: one row per left card, one column per right card.

    Attributes:
        left_file: File shown on the rows.
        right_file: File shown on the columns.
        left_cards: Row cards, in order.
        right_cards: Column cards, in order.
        cells: ``cells[i][j]`` is the relation linking row i and column j.
        stats: Trace statistics over the exported cards.
    """

    left_file: str
    right_file: str
    left_cards: list[Card]
    right_cards: list[Card]
    cells: list[list[Relation | None]] = field(default_factory=list)
    stats: TraceStats = field(default_factory=TraceStats)

    @property
    def column_labels(self) -> list[str]:
        return [card.label for card in self.right_cards]

    def rows(self):
        """Yield (left card, cells) for each row."""
        yield from zip(self.left_cards, self.cells)


def build_export_rows(
    left_cards: list[Card],
    right_cards: list[Card],
    relations: list[Relation],
    linked_only: bool = False,
) -> list[ExportRow]:
    """Build the row list for every left x right combination.

    Args:
        left_cards: Left cards, in display order.
        right_cards: Right cards, in display order.
        relations: Relations of the pair.
        linked_only: Skip combinations no relation links.
    """
    index = build_index(relations)
    rows = []
    for left_card in left_cards:
        for right_card in right_cards:
            relation = index.get(left_card.id, right_card.id)
            if relation is None and linked_only:
                continue
            rows.append(ExportRow(left_card, right_card, relation))
    return rows


def build_matrix_table(
    left_file: str,
    right_file: str,
    left_cards: list[Card],
    right_cards: list[Card],
    relations: list[Relation],
) -> MatrixTable:
    """Build the matrix table for the given cards."""
    index = build_index(relations)
    cells = [
        [index.get(left_card.id, right_card.id) for right_card in right_cards]
        for left_card in left_cards
    ]
    return MatrixTable(
        left_file=left_file,
        right_file=right_file,
        left_cards=list(left_cards),
        right_cards=list(right_cards),
        cells=cells,
        stats=compute_stats(left_cards, right_cards, relations),
    )


def view_export_rows(view: MatrixView, linked_only: bool = False) -> list[ExportRow]:
    """Row list for a view, restricted to its visible cards."""
    return build_export_rows(
        view.visible_cards("left"),
        view.visible_cards("right"),
        view.relations,
        linked_only=linked_only,
    )


def view_matrix_table(view: MatrixView) -> MatrixTable:
    """Matrix table for a view, restricted to its visible cards."""
    return build_matrix_table(
        view.left_file,
        view.right_file,
        view.visible_cards("left"),
        view.visible_cards("right"),
        view.relations,
    )


__all__ = [
    "ExportRow",
    "MatrixTable",
    "build_export_rows",
    "build_matrix_table",
    "view_export_rows",
    "view_matrix_table",
]
