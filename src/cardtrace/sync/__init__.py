"""
cardtrace.sync - Cross-view synchronization

Exports:
- EventBus, Topic, TraceChangeEvent, CardSelectionEvent: publish/subscribe
- OptimisticUpdate, RollbackToken, CommitResult: apply/commit/rollback
- SyncCoordinator, PairOutcome: engine entry point for open views
"""

from cardtrace.sync.bus import (
    CardSelectionEvent,
    EventBus,
    Subscription,
    Topic,
    TraceChangeEvent,
)
from cardtrace.sync.coordinator import PairOutcome, SyncCoordinator
from cardtrace.sync.transaction import CommitResult, OptimisticUpdate, RollbackToken

__all__ = [
    "CardSelectionEvent",
    "CommitResult",
    "EventBus",
    "OptimisticUpdate",
    "PairOutcome",
    "RollbackToken",
    "Subscription",
    "SyncCoordinator",
    "Topic",
    "TraceChangeEvent",
]
