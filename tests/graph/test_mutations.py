"""Tests for the pure relation edit operations and the mutation log."""

from cardtrace.graph.index import build_index
from cardtrace.graph.mutations import (
    MutationEntry,
    MutationLog,
    RelationDefaults,
    change_direction,
    change_kind,
    change_memo,
    toggle,
)
from cardtrace.graph.relations import Relation, TraceDirection


class TestToggle:
    """toggle() on and off."""

    def test_toggle_on_empty_creates_single_cell_relation(self):
        result = toggle([], "A", "X")

        assert result.is_active is True
        assert len(result.next) == 1
        created = result.next[0]
        assert created.left_ids == ("A",)
        assert created.right_ids == ("X",)
        assert created.type == "trace"
        assert created.directed is TraceDirection.LEFT_TO_RIGHT
        assert result.relation is created

    def test_toggle_twice_returns_to_empty(self):
        first = toggle([], "A", "X")
        second = toggle(first.next, "A", "X")

        assert second.is_active is False
        assert second.next == []

    def test_toggle_uses_defaults(self):
        defaults = RelationDefaults(kind="tests", direction=TraceDirection.BIDIRECTIONAL)
        created = toggle([], "A", "X", defaults).next[0]
        assert created.type == "tests"
        assert created.directed is TraceDirection.BIDIRECTIONAL

    def test_toggle_twice_restores_existing_collection(self):
        existing = [
            Relation(left_ids=("B",), right_ids=("Y",)),
            Relation(left_ids=("C",), right_ids=("Z",)),
        ]
        after = toggle(toggle(existing, "A", "X").next, "A", "X").next
        assert after == existing
        assert all(a is b for a, b in zip(after, existing))

    def test_toggle_off_shrinks_multi_id_relation(self):
        group = Relation(id="g", left_ids=("A", "B"), right_ids=("X", "Y"))
        result = toggle([group], "A", "X")

        assert result.is_active is False
        assert result.relation is group
        assert len(result.next) == 1
        assert result.next[0].id == "g"
        assert result.next[0].left_ids == ("B",)
        assert result.next[0].right_ids == ("Y",)

    def test_toggle_off_drops_relation_with_empty_side(self):
        group = Relation(left_ids=("A", "B"), right_ids=("X",))
        result = toggle([group], "A", "X")
        assert result.next == []

    def test_untouched_relations_keep_identity(self):
        other = Relation(left_ids=("C",), right_ids=("Z",))
        result = toggle([other], "A", "X")
        assert result.next[0] is other

    def test_toggle_never_creates_cell_collisions(self):
        relations: list[Relation] = []
        for left_id, right_id in [("A", "X"), ("A", "Y"), ("B", "X"), ("A", "X"), ("A", "X")]:
            relations = toggle(relations, left_id, right_id).next
            index = build_index(relations)
            assert index.is_consistent
            assert all(not r.is_empty() for r in relations)


class TestChangeKind:
    """change_kind() by cell."""

    def test_changes_owning_relation_only(self):
        owner = Relation(id="r1", left_ids=("A",), right_ids=("X",))
        other = Relation(id="r2", left_ids=("B",), right_ids=("Y",))
        result = change_kind([owner, other], "A", "X", "refines")

        assert result[0].type == "refines"
        assert result[0].id == "r1"
        assert result[1] is other

    def test_unlinked_cell_is_noop(self):
        relations = [Relation(left_ids=("A",), right_ids=("X",))]
        assert change_kind(relations, "B", "X", "tests") is relations

    def test_same_kind_is_noop(self):
        relations = [Relation(left_ids=("A",), right_ids=("X",), type="tests")]
        assert change_kind(relations, "A", "X", "tests") is relations


class TestChangeDirection:
    """change_direction() by relation id."""

    def test_unknown_id_returns_same_list(self):
        relations = [Relation(id="r1", left_ids=("A",), right_ids=("X",))]
        assert change_direction(relations, "missing", TraceDirection.BIDIRECTIONAL) is relations

    def test_unchanged_direction_returns_same_list(self):
        relations = [Relation(id="r1", left_ids=("A",), right_ids=("X",))]
        assert change_direction(relations, "r1", TraceDirection.LEFT_TO_RIGHT) is relations

    def test_changes_direction(self):
        relations = [Relation(id="r1", left_ids=("A",), right_ids=("X",))]
        result = change_direction(relations, "r1", TraceDirection.RIGHT_TO_LEFT)
        assert result is not relations
        assert result[0].directed is TraceDirection.RIGHT_TO_LEFT
        assert relations[0].directed is TraceDirection.LEFT_TO_RIGHT


class TestChangeMemo:
    """change_memo() normalization."""

    def test_memo_is_trimmed(self):
        relations = [Relation(id="r1", left_ids=("A",), right_ids=("X",))]
        assert change_memo(relations, "r1", "  covers happy path ")[0].memo == "covers happy path"

    def test_blank_memo_clears(self):
        relations = [Relation(id="r1", left_ids=("A",), right_ids=("X",), memo="old")]
        assert change_memo(relations, "r1", "   ")[0].memo is None

    def test_blank_memo_on_memo_less_relation_is_noop(self):
        relations = [Relation(id="r1", left_ids=("A",), right_ids=("X",))]
        assert change_memo(relations, "r1", "") is relations

    def test_unknown_id_is_noop(self):
        relations = [Relation(id="r1", left_ids=("A",), right_ids=("X",))]
        assert change_memo(relations, "r2", "x") is relations


class TestMutationLog:
    """MutationLog history."""

    def test_recent_is_newest_first(self):
        log = MutationLog()
        for name in ("toggle", "change_kind", "change_memo"):
            log.append(MutationEntry(operation=name, target_id="t", before_state={}, after_state={}))

        assert len(log) == 3
        assert [e.operation for e in log.recent(2)] == ["change_memo", "change_kind"]
        assert log.last().operation == "change_memo"
        assert log.recent(0) == []

    def test_clear(self):
        log = MutationLog()
        log.append(MutationEntry(operation="toggle", target_id="A::X", before_state={}, after_state={}))
        log.clear()
        assert len(log) == 0
        assert log.last() is None

    def test_entry_dict(self):
        entry = MutationEntry(
            operation="toggle",
            target_id="A::X",
            before_state={"relation_count": 0},
            after_state={"relation_count": 1},
        )
        data = entry.to_dict()
        assert data["operation"] == "toggle"
        assert data["after_state"] == {"relation_count": 1}
        assert "timestamp" in data
        assert str(entry).endswith("toggle(A::X)")
