"""
cardtrace.export.html - HTML matrix report.

Renders a MatrixTable with the ``matrix.html.j2`` Jinja2 template.
"""

from __future__ import annotations

from datetime import datetime

from jinja2 import Environment, PackageLoader, select_autoescape

from cardtrace import __version__
from cardtrace.export.csv import DEFAULT_MARK
from cardtrace.export.rows import MatrixTable

DIRECTION_ARROWS = {
    "left_to_right": "→",
    "right_to_left": "←",
    "bidirectional": "↔",
}


class HTMLMatrixGenerator:
    """Generates a standalone HTML traceability matrix.

    Args:
        table: The matrix to render.
        mark: Text placed in linked cells.
        include_memo: Show relation memos as cell tooltips and a memo list.
        version: Version string for the footer (defaults to the package version).
    """

    def __init__(
        self,
        table: MatrixTable,
        mark: str = DEFAULT_MARK,
        include_memo: bool = False,
        version: str | None = None,
    ) -> None:
        self.table = table
        self.mark = mark
        self.include_memo = include_memo
        self.version = version if version is not None else __version__

    def _environment(self) -> Environment:
        env = Environment(
            loader=PackageLoader("cardtrace.export", "templates"),
            autoescape=select_autoescape(["html", "xml", "j2"]),
        )
        env.globals["arrows"] = DIRECTION_ARROWS
        return env

    def _memos(self) -> list[dict[str, str]]:
        seen: set[str] = set()
        memos = []
        for _, cells in self.table.rows():
            for relation in cells:
                if relation is None or not relation.memo or relation.id in seen:
                    continue
                seen.add(relation.id)
                memos.append({"id": relation.id, "kind": relation.type, "memo": relation.memo})
        return memos

    def generate(self) -> str:
        """Generate the complete HTML document."""
        template = self._environment().get_template("matrix.html.j2")
        return template.render(
            table=self.table,
            stats=self.table.stats,
            mark=self.mark,
            include_memo=self.include_memo,
            memos=self._memos() if self.include_memo else [],
            generated_at=datetime.now().strftime("%Y-%m-%d %H:%M"),
            version=self.version,
        )


def generate_matrix_html(table: MatrixTable, mark: str = DEFAULT_MARK, include_memo: bool = False) -> str:
    """Render a matrix table as a standalone HTML page."""
    return HTMLMatrixGenerator(table, mark=mark, include_memo=include_memo).generate()


__all__ = ["DIRECTION_ARROWS", "HTMLMatrixGenerator", "generate_matrix_html"]
