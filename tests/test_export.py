"""Tests for export rows and the CSV/HTML writers."""

import csv
from io import StringIO

import pytest

from cardtrace.export import (
    build_export_rows,
    build_matrix_table,
    generate_links_csv,
    generate_matrix_csv,
    generate_matrix_html,
    view_export_rows,
    view_matrix_table,
)
from cardtrace.graph.cards import Card
from cardtrace.graph.relations import Relation, TraceDirection
from cardtrace.view import MatrixFilter, MatrixView


@pytest.fixture
def relations():
    return [
        Relation(id="r1", left_ids=("A",), right_ids=("X",), type="tests", memo="happy path"),
        Relation(id="r2", left_ids=("B",), right_ids=("X", "Y"), directed=TraceDirection.BIDIRECTIONAL),
    ]


@pytest.fixture
def table(req_cards, test_cards, relations):
    return build_matrix_table("reqs.json", "tests.json", req_cards, test_cards, relations)


def parse(text):
    return list(csv.reader(StringIO(text)))


class TestExportRows:
    """build_export_rows / build_matrix_table."""

    def test_one_row_per_combination(self, req_cards, test_cards, relations):
        rows = build_export_rows(req_cards, test_cards, relations)
        assert len(rows) == 12
        linked = [(r.left_card.id, r.right_card.id, r.relation.id) for r in rows if r.is_linked]
        assert linked == [("A", "X", "r1"), ("B", "X", "r2"), ("B", "Y", "r2")]

    def test_linked_only(self, req_cards, test_cards, relations):
        rows = build_export_rows(req_cards, test_cards, relations, linked_only=True)
        assert len(rows) == 3

    def test_table_cells_and_stats(self, table):
        assert table.column_labels == ["TC-1", "TC-2", "Z"]
        assert table.cells[1][1].id == "r2"
        assert table.cells[2] == [None, None, None]
        assert table.stats.total_traces == 2


class TestMatrixCsv:
    """generate_matrix_csv()."""

    def test_layout(self, table):
        rows = parse(generate_matrix_csv(table))
        assert rows[0] == ["", "TC-1", "TC-2", "Z"]
        assert rows[1] == ["REQ-1", "●", "", ""]
        assert rows[2] == ["REQ-2", "●", "●", ""]
        assert len(rows) == 5

    def test_kind_and_memo(self, table):
        rows = parse(generate_matrix_csv(table, mark="x", include_kind=True, include_memo=True))
        assert rows[1][1] == "x tests (happy path)"
        assert rows[2][2] == "x trace"


class TestLinksCsv:
    """generate_links_csv()."""

    def test_only_linked_rows(self, req_cards, test_cards, relations):
        rows = parse(generate_links_csv(build_export_rows(req_cards, test_cards, relations)))
        assert rows[0][0] == "Left ID"
        assert rows[1] == ["REQ-1", "Login", "TC-1", "login succeeds", "r1", "tests", "left_to_right", "happy path"]
        assert [row[4] for row in rows[1:]] == ["r1", "r2", "r2"]
        assert rows[2][6] == "bidirectional"


class TestMatrixHtml:
    """generate_matrix_html()."""

    def test_contains_labels_and_marks(self, table):
        html = generate_matrix_html(table)
        assert "<!DOCTYPE html>" in html
        assert "TC-1" in html
        assert "REQ-3" in html
        assert "●→" in html
        assert "●↔" in html
        assert "by cardtrace" in html

    def test_memos_only_when_requested(self, table):
        assert "happy path" not in generate_matrix_html(table)
        assert "happy path" in generate_matrix_html(table, include_memo=True)

    def test_card_text_is_escaped(self, req_cards, test_cards):
        req_cards[0] = Card(id="A", card_id="<b>REQ-1</b>", title="Login")
        table = build_matrix_table("reqs.json", "tests.json", req_cards, test_cards, [])
        html = generate_matrix_html(table)
        assert "&lt;b&gt;REQ-1&lt;/b&gt;" in html
        assert "<b>REQ-1</b>" not in html


class TestViewExport:
    """Exports follow the view's filter."""

    def test_filtered_cards_are_left_out(self, req_cards, test_cards, relations):
        view = MatrixView("reqs.json", "tests.json")
        view.set_cards("left", req_cards)
        view.set_cards("right", test_cards)
        view.set_relations(relations)
        view.set_filter(MatrixFilter(focus_right_id="Y"))

        table = view_matrix_table(view)
        assert [card.id for card in table.left_cards] == ["B"]
        assert len(view_export_rows(view)) == 3
        assert len(view_export_rows(view, linked_only=True)) == 2
