"""
cardtrace.commands.export_cmd - Export a file pair's trace matrix.

Formats:
- csv: matrix with a mark in linked cells
- links: one row per linked card pair
- html: standalone HTML report
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from cardtrace.commands._context import build_coordinator
from cardtrace.export.csv import DEFAULT_MARK, generate_links_csv, generate_matrix_csv
from cardtrace.export.html import generate_matrix_html
from cardtrace.export.rows import view_export_rows, view_matrix_table

EXPORT_FORMATS = ("csv", "links", "html")


def run(args: argparse.Namespace) -> int:
    """Run the export command."""
    coordinator, config = build_coordinator(args)
    view = coordinator.open_view(args.left, args.right)

    export_config = config.get("export", {})
    mark = export_config.get("mark", DEFAULT_MARK)
    include_memo = args.include_memo or bool(export_config.get("include_memo", False))

    if args.format == "csv":
        content = generate_matrix_csv(
            view_matrix_table(view),
            mark=mark,
            include_kind=args.include_kind,
            include_memo=include_memo,
        )
    elif args.format == "links":
        content = generate_links_csv(view_export_rows(view, linked_only=True))
    else:
        content = generate_matrix_html(view_matrix_table(view), mark=mark, include_memo=include_memo)

    if args.output:
        output: Path = args.output
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(content, encoding="utf-8")
        if not args.quiet:
            print(f"Wrote {args.format} export to {output}", file=sys.stderr)
    else:
        sys.stdout.write(content)
    return 0
