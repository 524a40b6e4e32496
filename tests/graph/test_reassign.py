"""Tests for merge reassignment and card deletion rewrites."""

from cardtrace.graph.index import build_index
from cardtrace.graph.integrity import CELL_COLLISION
from cardtrace.graph.mutations import toggle
from cardtrace.graph.reassign import reassign_endpoints, remove_endpoints
from cardtrace.graph.relations import Relation, TraceDirection


def link_pairs(relations):
    return {cell for relation in relations for cell in relation.iter_cells()}


class TestReassignEndpoints:
    """reassign_endpoints() after a card merge."""

    def test_merge_collapses_sources_into_target(self):
        relation = Relation(id="r1", left_ids=("A", "B"), right_ids=("X",), type="trace")
        result = reassign_endpoints([relation], "left", ["A", "B"], "C")

        [merged] = result.relations
        assert merged.id == "r1"
        assert merged.left_ids == ("C",)
        assert merged.right_ids == ("X",)
        assert merged.type == "trace"
        assert result.changed_ids == ["r1"]
        assert not result.violations

    def test_kind_direction_and_memo_are_kept(self):
        relation = Relation(
            id="r1",
            left_ids=("A",),
            right_ids=("X",),
            type="tests",
            directed=TraceDirection.BIDIRECTIONAL,
            memo="keep me",
        )
        [merged] = reassign_endpoints([relation], "left", ["A"], "C").relations
        assert (merged.id, merged.type, merged.directed, merged.memo) == (
            "r1",
            "tests",
            TraceDirection.BIDIRECTIONAL,
            "keep me",
        )

    def test_target_already_present_dedupes(self):
        relation = Relation(id="r1", left_ids=("C", "A"), right_ids=("X",))
        [merged] = reassign_endpoints([relation], "left", ["A"], "C").relations
        assert merged.left_ids == ("C",)

    def test_out_of_scope_relations_are_skipped(self):
        relations = [Relation(left_ids=("B",), right_ids=("X",))]
        result = reassign_endpoints(relations, "left", ["A"], "C")
        assert result.relations is relations
        assert not result.changed

    def test_only_the_merged_side_is_rewritten(self):
        relations = [Relation(id="r1", left_ids=("X",), right_ids=("A",))]
        assert reassign_endpoints(relations, "left", ["A"], "C").relations is relations

        [merged] = reassign_endpoints(relations, "right", ["A"], "C").relations
        assert merged.left_ids == ("X",)
        assert merged.right_ids == ("C",)

    def test_relation_fully_covered_by_target_owner_is_absorbed(self):
        moved = Relation(id="r1", left_ids=("A",), right_ids=("X",))
        owner = Relation(id="r2", left_ids=("C",), right_ids=("X",))
        result = reassign_endpoints([moved, owner], "left", ["A"], "C")

        assert result.relations == [owner]
        assert result.removed_ids == ["r1"]
        assert not result.violations
        assert build_index(result.relations).is_consistent

    def test_absorbed_target_is_dropped_from_group(self):
        moved = Relation(id="r1", left_ids=("A", "B"), right_ids=("X",))
        owner = Relation(id="r2", left_ids=("C",), right_ids=("X",))
        result = reassign_endpoints([moved, owner], "left", ["A"], "C")

        rewritten = next(r for r in result.relations if r.id == "r1")
        assert rewritten.left_ids == ("B",)
        assert build_index(result.relations).is_consistent

    def test_partial_overlap_on_single_target_drops_owned_cells(self):
        owner = Relation(id="r1", left_ids=("A",), right_ids=("X",))
        moved = Relation(id="r2", left_ids=("B",), right_ids=("X", "Y"), memo="keep")
        result = reassign_endpoints([owner, moved], "left", ["A", "B"], "C")

        assert [(r.id, r.left_ids, r.right_ids) for r in result.relations] == [
            ("r1", ("C",), ("X",)),
            ("r2", ("C",), ("Y",)),
        ]
        assert result.relations[1].memo == "keep"
        assert not result.violations
        assert build_index(result.relations).is_consistent

    def test_toggle_off_after_overlapping_merge_unlinks_cell(self):
        relations = [
            Relation(id="r1", left_ids=("A",), right_ids=("X",)),
            Relation(id="r2", left_ids=("B",), right_ids=("X", "Y")),
        ]
        merged = reassign_endpoints(relations, "left", ["A", "B"], "C").relations
        outcome = toggle(merged, "C", "X")

        assert outcome.is_active is False
        assert ("C", "X") not in link_pairs(outcome.next)
        assert ("C", "Y") in link_pairs(outcome.next)

    def test_unsplittable_partial_overlap_is_reported(self):
        moved = Relation(id="r1", left_ids=("A", "D"), right_ids=("X", "Y"))
        owner = Relation(id="r2", left_ids=("C",), right_ids=("X",))
        result = reassign_endpoints([moved, owner], "left", ["A"], "C")

        [violation] = result.violations
        assert violation.rule_name == CELL_COLLISION
        assert violation.subject == "C::X"
        assert violation.relation_ids == ("r2", "r1")
        assert owner in result.relations

    def test_merge_never_leaves_empty_sides(self):
        relations = [
            Relation(left_ids=("A",), right_ids=("X",)),
            Relation(left_ids=("B",), right_ids=("X",)),
            Relation(left_ids=("A", "B"), right_ids=("Y",)),
        ]
        result = reassign_endpoints(relations, "left", ["A", "B"], "C")
        assert all(r.left_ids and r.right_ids for r in result.relations)

    def test_mapped_back_links_are_a_superset(self):
        relations = [
            Relation(left_ids=("A",), right_ids=("X",)),
            Relation(left_ids=("B",), right_ids=("X", "Y")),
            Relation(left_ids=("D",), right_ids=("Z",)),
            Relation(left_ids=("A", "D"), right_ids=("W",)),
        ]
        sources = {"A", "B"}
        before = link_pairs(relations)
        after = reassign_endpoints(relations, "left", sorted(sources), "C").relations

        expanded = set()
        for left_id, right_id in link_pairs(after):
            for original in (sources | {"C"}) if left_id == "C" else {left_id}:
                expanded.add((original, right_id))
        assert before <= expanded
        assert build_index(after).is_consistent

    def test_merge_sequences_keep_cells_unique(self):
        relations = [
            Relation(id="r1", left_ids=("A",), right_ids=("X",)),
            Relation(id="r2", left_ids=("B",), right_ids=("X", "Y")),
            Relation(id="r3", left_ids=("D",), right_ids=("Y", "Z")),
            Relation(id="r4", left_ids=("E",), right_ids=("X", "Y", "Z")),
            Relation(id="r5", left_ids=("A", "F"), right_ids=("W",)),
        ]
        before = link_pairs(relations)
        merged = {"A", "B", "D", "E"}

        step = reassign_endpoints(relations, "left", ["A", "B"], "C")
        assert build_index(step.relations).is_consistent
        step = reassign_endpoints(step.relations, "left", ["D", "E"], "C")
        assert build_index(step.relations).is_consistent
        assert not step.violations

        expanded = set()
        for left_id, right_id in link_pairs(step.relations):
            for original in (merged | {"C"}) if left_id == "C" else {left_id}:
                expanded.add((original, right_id))
        assert before <= expanded
        assert all(r.left_ids and r.right_ids for r in step.relations)


class TestRemoveEndpoints:
    """remove_endpoints() after card deletion."""

    def test_removes_card_from_group(self):
        relation = Relation(id="r1", left_ids=("A", "B"), right_ids=("X",))
        result = remove_endpoints([relation], "left", ["A"])
        assert result.relations[0].left_ids == ("B",)
        assert result.changed_ids == ["r1"]

    def test_relation_with_no_endpoints_left_is_deleted(self):
        relation = Relation(id="r1", left_ids=("A",), right_ids=("X",))
        result = remove_endpoints([relation], "left", ["A"])
        assert result.relations == []
        assert result.removed_ids == ["r1"]

    def test_untouched_collection_is_returned_as_is(self):
        relations = [Relation(left_ids=("A",), right_ids=("X",))]
        assert remove_endpoints(relations, "right", ["A"]).relations is relations
