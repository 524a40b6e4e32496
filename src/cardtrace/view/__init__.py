"""
cardtrace.view - Per-view state for open matrix views
"""

from cardtrace.view.filters import MatrixFilter, filter_cards
from cardtrace.view.registry import ViewRegistry
from cardtrace.view.state import MatrixView

__all__ = ["MatrixFilter", "MatrixView", "ViewRegistry", "filter_cards"]
