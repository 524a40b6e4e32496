"""Selection highlighting across files.

Selecting cards in one view highlights, in every other view showing a
related file, the selected cards themselves and every card linked to
them through at least one relation.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from cardtrace.graph.relations import Relation

# (file shown on the left, other file) -> relations oriented with the first file on the left
RelationLookup = Callable[[str, str], list[Relation]]


@dataclass(frozen=True)
class SelectionSeed:
    """The current card selection in one file."""

    file_name: str
    card_ids: tuple[str, ...]


def linked_ids(relations: list[Relation], selected: set[str]) -> set[str]:
    """Left-side ids linked to any selected right-side id."""
    result: set[str] = set()
    for relation in relations:
        if not selected.isdisjoint(relation.right_ids):
            result.update(relation.left_ids)
    return result


def compute_highlight(
    target_file: str,
    seeds: Iterable[SelectionSeed],
    relations_for: RelationLookup,
    exclude_self: bool = False,
    related_files: Iterable[str] = (),
) -> set[str]:
    """Compute the highlighted card ids for one file.

    The result is the union, over all seeds, of the seed's own selection
    (when the seed is in ``target_file``) and every ``target_file`` card
    reachable through one relation from a seed card in another file.

    With ``exclude_self``, own selected ids are kept only when they take
    part in a relation with another file: any other seeded file, or any
    file in ``related_files``.

    Args:
        target_file: File whose highlight set is computed.
        seeds: Current selections, at most one per file.
        relations_for: Lookup for the relations between two files.
        exclude_self: Drop own selections that have no cross-file link.
        related_files: Further files known to share relations with
            ``target_file``.

    Returns:
        Set of card ids in ``target_file`` to highlight.
    """
    seeds = list(seeds)
    other_files = list(
        dict.fromkeys(
            name
            for name in [*(s.file_name for s in seeds), *related_files]
            if name != target_file
        )
    )
    result: set[str] = set()
    for seed in seeds:
        selected = set(seed.card_ids)
        if not selected:
            continue
        if seed.file_name != target_file:
            result |= linked_ids(relations_for(target_file, seed.file_name), selected)
            continue
        if not exclude_self:
            result |= selected
            continue
        for other_file in other_files:
            for relation in relations_for(target_file, other_file):
                result |= selected.intersection(relation.left_ids)
    return result


__all__ = ["RelationLookup", "SelectionSeed", "compute_highlight", "linked_ids"]
