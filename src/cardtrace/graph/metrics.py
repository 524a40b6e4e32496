"""Trace statistics for a view.

This module defines the derived numbers shown for a file pair:
- TraceStats: relation count and untraced card counts per side
- compute_stats: recompute them from cards and relations
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from cardtrace.graph.cards import Card, CardStatus
from cardtrace.graph.relations import Relation, Side


@dataclass(frozen=True)
class TraceStats:
    """Aggregated trace metrics for one file pair.

    Attributes:
        total_traces: Number of relations in the collection
        untraced_left_count: Non-deprecated left cards not in any relation
        untraced_right_count: Non-deprecated right cards not in any relation
    """

    total_traces: int = 0
    untraced_left_count: int = 0
    untraced_right_count: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def traced_ids(relations: list[Relation], side: Side) -> set[str]:
    """Collect every card id that appears on one side of the collection."""
    ids: set[str] = set()
    for relation in relations:
        ids.update(relation.ids_on(side))
    return ids


def untraced_cards(cards: list[Card], relations: list[Relation], side: Side) -> list[Card]:
    """Return the cards on one side that no relation references.

    Deprecated cards are never reported as untraced.
    """
    traced = traced_ids(relations, side)
    return [
        card
        for card in cards
        if card.id not in traced and card.status is not CardStatus.DEPRECATED
    ]


def compute_stats(
    left_cards: list[Card],
    right_cards: list[Card],
    relations: list[Relation],
) -> TraceStats:
    """Recompute the trace metrics for a view."""
    return TraceStats(
        total_traces=len(relations),
        untraced_left_count=len(untraced_cards(left_cards, relations, "left")),
        untraced_right_count=len(untraced_cards(right_cards, relations, "right")),
    )


__all__ = ["TraceStats", "compute_stats", "traced_ids", "untraced_cards"]
