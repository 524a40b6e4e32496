"""
cardtrace.export - Export row data and writers (CSV, HTML)
"""

from cardtrace.export.csv import generate_links_csv, generate_matrix_csv
from cardtrace.export.html import HTMLMatrixGenerator, generate_matrix_html
from cardtrace.export.rows import (
    ExportRow,
    MatrixTable,
    build_export_rows,
    build_matrix_table,
    view_export_rows,
    view_matrix_table,
)

__all__ = [
    "ExportRow",
    "HTMLMatrixGenerator",
    "MatrixTable",
    "build_export_rows",
    "build_matrix_table",
    "generate_links_csv",
    "generate_matrix_csv",
    "generate_matrix_html",
    "view_export_rows",
    "view_matrix_table",
]
