"""Tests for the JSON workspace persistence adapter."""

import json
import logging

import pytest

from cardtrace.graph.relations import FilePair, Relation, TraceDirection
from cardtrace.persistence import JsonWorkspaceStore, PersistenceError, trace_file_name


class TestTraceFileName:
    """Trace file naming."""

    def test_same_name_for_both_orientations(self):
        assert trace_file_name(FilePair("tests.json", "reqs.json")) == "trace_reqs__tests.json"
        assert trace_file_name(FilePair("reqs.json", "tests.json")) == "trace_reqs__tests.json"


class TestRelations:
    """load_relations / save_relations."""

    def test_missing_trace_file_loads_none(self, store):
        assert store.load_relations("reqs.json", "tests.json") is None

    def test_saved_relations_load_back(self, store):
        relation = Relation(id="r1", left_ids=("A",), right_ids=("X",), memo="m")
        result = store.save_relations("reqs.json", "tests.json", [relation])

        assert result.file_name == "trace_reqs__tests.json"
        assert result.header["fileName"] == "trace_reqs__tests.json"
        assert "createdAt" in result.header

        bundle = store.load_relations("reqs.json", "tests.json")
        assert bundle.relations == [relation]
        assert bundle.header["id"] == result.header["id"]

    def test_reversed_load_transposes(self, store):
        store.save_relations(
            "reqs.json",
            "tests.json",
            [Relation(id="r1", left_ids=("A",), right_ids=("X", "Y"))],
        )
        bundle = store.load_relations("tests.json", "reqs.json")

        [relation] = bundle.relations
        assert relation.id == "r1"
        assert relation.left_ids == ("X", "Y")
        assert relation.right_ids == ("A",)
        assert relation.directed is TraceDirection.RIGHT_TO_LEFT

    def test_header_id_and_created_at_survive_resave(self, store):
        first = store.save_relations("reqs.json", "tests.json", [])
        second = store.save_relations("reqs.json", "tests.json", [], header=first.header)
        assert second.header["id"] == first.header["id"]
        assert second.header["createdAt"] == first.header["createdAt"]

    def test_file_layout(self, store, tmp_path):
        store.save_relations("reqs.json", "tests.json", [Relation(id="r1", left_ids=("A",), right_ids=("X",))])
        data = json.loads((tmp_path / "_out" / "trace_reqs__tests.json").read_text(encoding="utf-8"))

        assert data["schemaVersion"] == 1
        assert data["left_file"] == "reqs.json"
        assert data["right_file"] == "tests.json"
        assert data["relations"][0]["left_ids"] == ["A"]

    def test_corrupt_trace_file_raises(self, store, tmp_path):
        (tmp_path / "_out" / "trace_reqs__tests.json").write_text("{broken", encoding="utf-8")
        with pytest.raises(PersistenceError) as excinfo:
            store.load_relations("reqs.json", "tests.json")
        assert excinfo.value.file_pair == FilePair("reqs.json", "tests.json")

    @pytest.mark.parametrize("name", ["../secrets.json", "sub/reqs.json", ""])
    def test_unsafe_names_are_rejected(self, store, name):
        with pytest.raises(PersistenceError):
            store.save_relations(name, "tests.json", [])

    def test_no_temp_files_left_behind(self, store, tmp_path):
        store.save_relations("reqs.json", "tests.json", [])
        leftovers = [p.name for p in (tmp_path / "_out").iterdir() if p.name.endswith(".tmp")]
        assert leftovers == []


class TestCardSnapshots:
    """load_card_snapshot."""

    def test_loads_written_cards(self, store, req_cards):
        assert store.load_card_snapshot("reqs.json") == req_cards

    def test_missing_snapshot_is_empty_with_warning(self, store, caplog):
        with caplog.at_level(logging.WARNING, logger="cardtrace.persistence"):
            assert store.load_card_snapshot("nope.json") == []
        assert "nope.json" in caplog.text

    def test_body_key_is_accepted(self, tmp_path):
        workspace = JsonWorkspaceStore(tmp_path, cards_dir="cards")
        (tmp_path / "cards").mkdir()
        (tmp_path / "cards" / "doc.json").write_text(
            json.dumps({"schemaVersion": 1, "header": {}, "body": [{"id": "c1", "title": "T"}]}),
            encoding="utf-8",
        )
        [card] = workspace.load_card_snapshot("doc.json")
        assert card.id == "c1"


class TestListFilePairs:
    """list_file_pairs."""

    def test_lists_pairs_for_a_file(self, store):
        store.save_relations("reqs.json", "tests.json", [])
        store.save_relations("design.json", "reqs.json", [])
        store.save_relations("design.json", "tests.json", [])

        pairs = store.list_file_pairs("reqs.json")
        assert [p.key for p in pairs] == ["design.json|||reqs.json", "reqs.json|||tests.json"]
        assert len(store.list_file_pairs()) == 3

    def test_empty_workspace(self, tmp_path):
        assert JsonWorkspaceStore(tmp_path / "missing").list_file_pairs() == []
