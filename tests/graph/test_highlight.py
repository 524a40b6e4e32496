"""Tests for cross-file selection highlighting."""

import pytest

from cardtrace.graph.highlight import SelectionSeed, compute_highlight
from cardtrace.graph.relations import FilePair, Relation


@pytest.fixture
def relations_for():
    """Lookup over two stored pairs: reqs/tests and reqs/design."""
    stored = {
        FilePair("reqs", "tests"): [
            Relation(left_ids=("A",), right_ids=("X", "Y")),
            Relation(left_ids=("B",), right_ids=("Z",)),
        ],
        FilePair("reqs", "design"): [
            Relation(left_ids=("A",), right_ids=("P",)),
        ],
    }

    def lookup(first, second):
        requested = FilePair(first, second)
        for pair, relations in stored.items():
            if pair.same_pair(requested):
                return requested.orient(relations, pair)
        return []

    return lookup


class TestComputeHighlight:
    """compute_highlight() seeds and modes."""

    def test_own_selection_is_highlighted(self, relations_for):
        seeds = [SelectionSeed("reqs", ("C",))]
        assert compute_highlight("reqs", seeds, relations_for) == {"C"}

    def test_linked_cards_in_other_file(self, relations_for):
        seeds = [SelectionSeed("reqs", ("A",))]
        assert compute_highlight("tests", seeds, relations_for) == {"X", "Y"}
        assert compute_highlight("design", seeds, relations_for) == {"P"}

    def test_reverse_direction_lookup(self, relations_for):
        seeds = [SelectionSeed("tests", ("Z",))]
        assert compute_highlight("reqs", seeds, relations_for) == {"B"}

    def test_union_over_several_seeds(self, relations_for):
        seeds = [SelectionSeed("tests", ("Z",)), SelectionSeed("design", ("P",))]
        assert compute_highlight("reqs", seeds, relations_for) == {"A", "B"}

    def test_exclude_self_keeps_only_linked_own_ids(self, relations_for):
        seeds = [SelectionSeed("reqs", ("A", "C")), SelectionSeed("tests", ("Y",))]
        assert compute_highlight("reqs", seeds, relations_for) == {"A", "C"}
        assert compute_highlight("reqs", seeds, relations_for, exclude_self=True) == {"A"}

    def test_exclude_self_with_single_seed_uses_related_files(self, relations_for):
        seeds = [SelectionSeed("reqs", ("A", "B", "C"))]
        assert compute_highlight("reqs", seeds, relations_for, exclude_self=True) == set()
        assert compute_highlight(
            "reqs", seeds, relations_for, exclude_self=True, related_files=["tests", "design"]
        ) == {"A", "B"}
        assert compute_highlight(
            "reqs", seeds, relations_for, exclude_self=True, related_files=["design"]
        ) == {"A"}

    def test_empty_selection_highlights_nothing(self, relations_for):
        assert compute_highlight("tests", [SelectionSeed("reqs", ())], relations_for) == set()
