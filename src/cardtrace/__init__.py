"""
cardtrace - Traceability relations between two card collections

cardtrace keeps many-to-many trace links between two independently
edited card files (for example requirements and tests), keeps every open
matrix view consistent through a publish/subscribe channel, and rewrites
links when cards are merged or deleted.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("cardtrace")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed
__license__ = "MIT"

from cardtrace.graph.cards import Card, CardStatus
from cardtrace.graph.index import RelationIndex, build_index
from cardtrace.graph.mutations import (
    RelationDefaults,
    ToggleResult,
    change_direction,
    change_kind,
    change_memo,
    toggle,
)
from cardtrace.graph.relations import FilePair, Relation, TraceDirection

__all__ = [
    "__version__",
    "Card",
    "CardStatus",
    "FilePair",
    "Relation",
    "RelationDefaults",
    "RelationIndex",
    "ToggleResult",
    "TraceDirection",
    "build_index",
    "change_direction",
    "change_kind",
    "change_memo",
    "toggle",
]
