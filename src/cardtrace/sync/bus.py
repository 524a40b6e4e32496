"""Event bus - typed publish/subscribe between open views.

Two topics are used:
- Topic.TRACE_CHANGED: a pair's full relation collection after a save
- Topic.CARD_SELECTION: the selected card ids in one file

Delivery is synchronous and in-process. A failing handler is logged and
does not stop delivery to the remaining subscribers. Every subscription
returns a handle whose ``unsubscribe()`` must be called on view teardown.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from cardtrace.graph.relations import FilePair, Relation

logger = logging.getLogger(__name__)


class Topic(Enum):
    """Broadcast topics."""

    TRACE_CHANGED = "trace-changed"
    CARD_SELECTION = "card-selection"


@dataclass(frozen=True)
class TraceChangeEvent:
    """A pair's relation collection was saved.

    Attributes:
        left_file: Left file as seen by the sender.
        right_file: Right file as seen by the sender.
        relations: Full collection, oriented to (left_file, right_file).
        source_view_id: Sending view, or None for engine-originated saves.
        file_name: Trace file name returned by the save.
        header: Trace header returned by the save.
    """

    left_file: str
    right_file: str
    relations: tuple[Relation, ...]
    source_view_id: str | None = None
    file_name: str | None = None
    header: dict[str, Any] | None = None

    @property
    def pair(self) -> FilePair:
        return FilePair(self.left_file, self.right_file)


@dataclass(frozen=True)
class CardSelectionEvent:
    """The selection in one card file changed."""

    file_name: str
    card_ids: tuple[str, ...]
    source_view_id: str | None = None


Handler = Callable[[Any], None]


class Subscription:
    """Handle returned by ``EventBus.subscribe``."""

    def __init__(self, bus: EventBus, topic: Topic, handler: Handler) -> None:
        self.bus = bus
        self.topic = topic
        self.handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        """Stop receiving events; calling twice is harmless."""
        if self.active:
            self.bus._remove(self)
            self.active = False


class EventBus:
    """Synchronous in-process publish/subscribe."""

    def __init__(self) -> None:
        self._subscribers: dict[Topic, list[Subscription]] = {topic: [] for topic in Topic}
        self._lock = threading.Lock()

    def subscribe(self, topic: Topic, handler: Handler) -> Subscription:
        subscription = Subscription(self, topic, handler)
        with self._lock:
            self._subscribers[topic].append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers[subscription.topic]
            if subscription in subscribers:
                subscribers.remove(subscription)

    def send(self, topic: Topic, payload: Any) -> int:
        """Deliver a payload to every subscriber of a topic.

        Returns:
            Number of handlers that ran without raising.
        """
        with self._lock:
            subscribers = list(self._subscribers[topic])
        delivered = 0
        for subscription in subscribers:
            if not subscription.active:
                continue
            try:
                subscription.handler(payload)
            except Exception:
                logger.exception("handler for %s failed", topic.value)
                continue
            delivered += 1
        logger.debug("%s delivered to %d subscriber(s)", topic.value, delivered)
        return delivered

    def subscriber_count(self, topic: Topic) -> int:
        return len(self._subscribers[topic])


__all__ = [
    "CardSelectionEvent",
    "EventBus",
    "Handler",
    "Subscription",
    "Topic",
    "TraceChangeEvent",
]
