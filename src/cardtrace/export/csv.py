"""
cardtrace.export.csv - CSV generation.

Provides functions to generate CSV traceability matrices and link lists.
"""

import csv
from io import StringIO

from cardtrace.export.rows import ExportRow, MatrixTable
from cardtrace.graph.relations import Relation

DEFAULT_MARK = "●"


def _cell_text(relation: Relation | None, mark: str, include_kind: bool, include_memo: bool) -> str:
    if relation is None:
        return ""
    parts = [mark]
    if include_kind:
        parts.append(relation.type)
    if include_memo and relation.memo:
        parts.append(f"({relation.memo})")
    return " ".join(parts)


def generate_matrix_csv(
    table: MatrixTable,
    mark: str = DEFAULT_MARK,
    include_kind: bool = False,
    include_memo: bool = False,
) -> str:
    """Generate a CSV traceability matrix.

    Args:
        table: The matrix to render
        mark: Text placed in linked cells
        include_kind: Append the relation kind to the mark
        include_memo: Append the relation memo (when set) to the mark

    Returns:
        CSV string whose header row holds the right card labels, followed
        by one row per left card
    """
    output = StringIO()
    writer = csv.writer(output, lineterminator="\n")

    writer.writerow(["", *table.column_labels])
    for left_card, cells in table.rows():
        writer.writerow(
            [
                left_card.label,
                *(_cell_text(cell, mark, include_kind, include_memo) for cell in cells),
            ]
        )

    return output.getvalue()


def generate_links_csv(rows: list[ExportRow]) -> str:
    """Generate a CSV list of linked card pairs.

    Args:
        rows: Export rows; unlinked rows are skipped

    Returns:
        CSV with columns: Left ID, Left Title, Right ID, Right Title,
        Relation ID, Kind, Direction, Memo
    """
    output = StringIO()
    writer = csv.writer(output, lineterminator="\n")

    writer.writerow(
        [
            "Left ID",
            "Left Title",
            "Right ID",
            "Right Title",
            "Relation ID",
            "Kind",
            "Direction",
            "Memo",
        ]
    )

    for row in rows:
        relation = row.relation
        if relation is None:
            continue
        writer.writerow(
            [
                row.left_card.label,
                row.left_card.title,
                row.right_card.label,
                row.right_card.title,
                relation.id,
                relation.type,
                relation.directed.value,
                relation.memo or "",
            ]
        )

    return output.getvalue()
