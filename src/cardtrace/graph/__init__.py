"""Graph module - relation model and the pure algorithms over it.

Exports:
- Card, CardStatus: the traced cards (read-only input)
- Relation, TraceDirection, FilePair: relation entity and its file pair
- RelationDefaults, ToggleResult, toggle/change_*: pure edit operations
- RelationIndex, build_index: cell lookup
- IntegrityViolation, Severity: integrity fault records
- TraceStats, compute_stats: derived counts
- ReassignResult, reassign_endpoints, remove_endpoints: merge reassignment
- SelectionSeed, compute_highlight: cross-file highlighting
- MutationEntry, MutationLog: committed edit history
"""

from cardtrace.graph.cards import Card, CardStatus
from cardtrace.graph.highlight import SelectionSeed, compute_highlight
from cardtrace.graph.index import RelationIndex, build_index, cell_key
from cardtrace.graph.integrity import IntegrityViolation, Severity
from cardtrace.graph.metrics import TraceStats, compute_stats
from cardtrace.graph.mutations import (
    MutationEntry,
    MutationLog,
    RelationDefaults,
    ToggleResult,
    change_direction,
    change_kind,
    change_memo,
    toggle,
)
from cardtrace.graph.reassign import ReassignResult, reassign_endpoints, remove_endpoints
from cardtrace.graph.relations import FilePair, Relation, TraceDirection

__all__ = [
    "Card",
    "CardStatus",
    "FilePair",
    "IntegrityViolation",
    "MutationEntry",
    "MutationLog",
    "ReassignResult",
    "Relation",
    "RelationDefaults",
    "RelationIndex",
    "SelectionSeed",
    "Severity",
    "ToggleResult",
    "TraceDirection",
    "TraceStats",
    "build_index",
    "cell_key",
    "change_direction",
    "change_kind",
    "change_memo",
    "compute_highlight",
    "compute_stats",
    "reassign_endpoints",
    "remove_endpoints",
    "toggle",
]
