"""Sync coordinator - the engine's entry point for open views.

The coordinator owns the relation cache, the event bus and the view
registry. It opens and closes views, runs every edit through the
optimistic apply/commit path, keeps highlights current when selections
or relations change, and rewrites relations when cards are merged or
deleted.

Edits are validated at this boundary: an unknown relation kind or
direction raises ValueError and an unknown view id raises KeyError.
Unknown card or relation ids are no-ops, as in the pure operations.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from functools import partial
from typing import Any

from cardtrace.cache import RelationCache
from cardtrace.config.defaults import DEFAULT_CONFIG
from cardtrace.config.loader import TraceSettings
from cardtrace.graph.highlight import SelectionSeed, compute_highlight
from cardtrace.graph.index import cell_key
from cardtrace.graph.integrity import IntegrityViolation, report_violations
from cardtrace.graph.mutations import change_direction, change_kind, change_memo, toggle
from cardtrace.graph.reassign import ReassignResult, reassign_endpoints, remove_endpoints
from cardtrace.graph.relations import SIDES, FilePair, Relation, Side, TraceDirection
from cardtrace.persistence import PersistenceAdapter, PersistenceError
from cardtrace.sync.bus import (
    CardSelectionEvent,
    EventBus,
    Subscription,
    Topic,
    TraceChangeEvent,
)
from cardtrace.sync.transaction import (
    CommitResult,
    OptimisticUpdate,
    broadcast_change,
    save_relations,
)
from cardtrace.view.registry import ViewRegistry
from cardtrace.view.state import MatrixView

logger = logging.getLogger(__name__)

Rewrite = Callable[[list[Relation], Side], ReassignResult]


@dataclass
class PairOutcome:
    """Result of rewriting one file pair after a card merge or deletion.

    Attributes:
        pair: The pair in canonical orientation.
        success: False when loading or saving the pair failed.
        changed_ids: Relations whose endpoints were rewritten.
        removed_ids: Relations dropped by the rewrite.
        violations: Integrity faults found while rewriting.
        error: Failure message.
    """

    pair: FilePair
    success: bool = True
    changed_ids: list[str] = field(default_factory=list)
    removed_ids: list[str] = field(default_factory=list)
    violations: list[IntegrityViolation] = field(default_factory=list)
    error: str | None = None

    @property
    def changed(self) -> bool:
        return bool(self.changed_ids or self.removed_ids)

    def to_dict(self) -> dict[str, Any]:
        return {
            "left_file": self.pair.left_file,
            "right_file": self.pair.right_file,
            "success": self.success,
            "changed_ids": list(self.changed_ids),
            "removed_ids": list(self.removed_ids),
            "violations": [v.to_dict() for v in self.violations],
            "error": self.error,
        }


class SyncCoordinator:
    """Open views, their edits and cross-view synchronization.

    Args:
        adapter: Persistence adapter for trace files and card snapshots.
        config: Effective configuration (defaults when omitted).
        cache: Relation cache; a fresh one is created when omitted.
        bus: Event bus; a fresh one is created when omitted.
        registry: View registry; a fresh one is created when omitted.
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        config: dict[str, Any] | None = None,
        cache: RelationCache | None = None,
        bus: EventBus | None = None,
        registry: ViewRegistry | None = None,
    ) -> None:
        config = config or DEFAULT_CONFIG
        settings = TraceSettings.from_config(config)
        sync = config.get("sync", {})
        self.kinds = settings.kinds
        self.defaults = settings.defaults
        self.refresh_cards_on_change = bool(sync.get("refresh_cards_on_change", True))
        self.exclude_self_highlight = bool(sync.get("exclude_self_highlight", False))
        self.adapter = adapter
        self.cache = cache or RelationCache(adapter)
        self.bus = bus or EventBus()
        self.views = registry or ViewRegistry()
        self._subscriptions: dict[str, list[Subscription]] = {}
        self._selections: dict[str, SelectionSeed] = {}
        self._selection_sources: dict[str, str] = {}

    # ─────────────────────────────────────────────────────────────────
    # View lifecycle
    # ─────────────────────────────────────────────────────────────────

    def open_view(self, left_file: str, right_file: str, view_id: str | None = None) -> MatrixView:
        """Open a view on a file pair.

        Loads both card snapshots and the pair's relations (through the
        cache), registers the view and subscribes it to both topics.

        Raises:
            PersistenceError: If the trace file or a snapshot cannot be read.
            ValueError: If ``view_id`` is already open.
        """
        view = MatrixView(left_file, right_file, view_id=view_id, defaults=self.defaults)
        view.set_cards("left", self.adapter.load_card_snapshot(left_file))
        view.set_cards("right", self.adapter.load_card_snapshot(right_file))
        view.set_relations(self.cache.load(view.pair))
        entry = self.cache.get(view.pair)
        if entry is not None:
            view.set_trace_metadata(entry.trace_file_name, entry.header)

        self.views.add(view)
        self._subscriptions[view.id] = [
            self.bus.subscribe(Topic.TRACE_CHANGED, partial(self._on_trace_changed, view)),
            self.bus.subscribe(Topic.CARD_SELECTION, partial(self._on_selection, view)),
        ]
        self._refresh_highlights(view)
        logger.info("opened view %s on %s", view.id, view.pair)
        return view

    def close_view(self, view_id: str) -> MatrixView:
        """Tear a view down and unsubscribe it.

        Selections made in the view are withdrawn from the other views.
        """
        view = self.views.remove(view_id)
        view.close()
        for subscription in self._subscriptions.pop(view.id, []):
            subscription.unsubscribe()

        withdrawn = [f for f, source in self._selection_sources.items() if source == view.id]
        for file_name in withdrawn:
            self._selections.pop(file_name, None)
            self._selection_sources.pop(file_name, None)
            self.bus.send(Topic.CARD_SELECTION, CardSelectionEvent(file_name, (), view.id))
        logger.info("closed view %s", view.id)
        return view

    def get_view(self, view_id: str) -> MatrixView:
        return self.views.get(view_id)

    def list_views(self) -> list[MatrixView]:
        return list(self.views)

    def refresh_cards(self, view_id: str) -> MatrixView:
        """Reload both card snapshots of a view.

        Raises:
            PersistenceError: If a snapshot cannot be read.
        """
        view = self.views.get(view_id)
        view.set_cards("left", self.adapter.load_card_snapshot(view.left_file))
        view.set_cards("right", self.adapter.load_card_snapshot(view.right_file))
        return view

    def reset(self) -> None:
        """Application reset: close every view and drop the relation cache."""
        for view in self.views.clear():
            view.close()
        for subscriptions in self._subscriptions.values():
            for subscription in subscriptions:
                subscription.unsubscribe()
        self._subscriptions.clear()
        self._selections.clear()
        self._selection_sources.clear()
        self.cache.reset()

    # ─────────────────────────────────────────────────────────────────
    # Edits
    # ─────────────────────────────────────────────────────────────────

    def _commit(
        self,
        view: MatrixView,
        next_relations: list[Relation],
        operation: str,
        target_id: str,
        is_active: bool | None = None,
    ) -> CommitResult:
        if next_relations is view.relations:
            return CommitResult(success=True, changed=False, is_active=is_active)
        update = OptimisticUpdate(view, self.adapter, self.cache, self.bus)
        token = update.apply(next_relations, operation=operation, target_id=target_id)
        result = update.commit(token)
        if is_active is not None:
            # a rolled-back toggle leaves the cell as it was
            result.is_active = is_active if result.success else not is_active
        self._refresh_highlights(view)
        return result

    def _check_kind(self, kind: str) -> str:
        if kind not in self.kinds:
            raise ValueError(f"unknown relation kind '{kind}' (expected one of: {', '.join(self.kinds)})")
        return kind

    def toggle(self, view_id: str, left_id: str, right_id: str) -> CommitResult:
        """Toggle one cell of a view.

        ``is_active`` on the result is the cell state after the call: the
        toggled state on success, the previous state when the save failed
        and the view was rolled back.
        """
        view = self.views.get(view_id)
        with view.lock:
            outcome = toggle(view.relations, left_id, right_id, view.defaults)
            return self._commit(
                view, outcome.next, "toggle", cell_key(left_id, right_id), is_active=outcome.is_active
            )

    def change_kind(self, view_id: str, left_id: str, right_id: str, kind: str) -> CommitResult:
        view = self.views.get(view_id)
        kind = self._check_kind(kind)
        with view.lock:
            next_relations = change_kind(view.relations, left_id, right_id, kind)
            return self._commit(view, next_relations, "change_kind", cell_key(left_id, right_id))

    def change_direction(
        self, view_id: str, relation_id: str, direction: str | TraceDirection
    ) -> CommitResult:
        view = self.views.get(view_id)
        direction = TraceDirection.parse(direction)
        with view.lock:
            next_relations = change_direction(view.relations, relation_id, direction)
            return self._commit(view, next_relations, "change_direction", relation_id)

    def change_memo(self, view_id: str, relation_id: str, memo: str | None) -> CommitResult:
        view = self.views.get(view_id)
        with view.lock:
            next_relations = change_memo(view.relations, relation_id, memo)
            return self._commit(view, next_relations, "change_memo", relation_id)

    def set_defaults(
        self,
        view_id: str,
        kind: str | None = None,
        direction: str | TraceDirection | None = None,
    ) -> MatrixView:
        """Change the kind/direction a view gives to toggled-on relations."""
        view = self.views.get(view_id)
        with view.lock:
            if kind is not None:
                view.set_default_kind(self._check_kind(kind))
            if direction is not None:
                view.set_default_direction(TraceDirection.parse(direction))
        return view

    # ─────────────────────────────────────────────────────────────────
    # Selection and highlights
    # ─────────────────────────────────────────────────────────────────

    def select_cards(self, view_id: str, side: Side, card_ids: Iterable[str]) -> int:
        """Record a view's selection on one side and broadcast it.

        Returns:
            Number of views the selection was delivered to.
        """
        if side not in SIDES:
            raise ValueError(f"unknown side '{side}'")
        view = self.views.get(view_id)
        ids = tuple(dict.fromkeys(card_ids))
        view.select(side, ids)
        file_name = view.pair.file_on(side)
        if ids:
            self._selections[file_name] = SelectionSeed(file_name, ids)
            self._selection_sources[file_name] = view.id
        else:
            self._selections.pop(file_name, None)
            self._selection_sources.pop(file_name, None)
        return self.bus.send(Topic.CARD_SELECTION, CardSelectionEvent(file_name, ids, view.id))

    def _cached_partners(self, file_name: str) -> list[str]:
        """Files sharing a loaded cache entry with ``file_name``."""
        partners = []
        for entry in self.cache.entries():
            if not entry.is_loaded or not entry.pair.contains(file_name):
                continue
            partner = entry.pair.right_file if entry.pair.left_file == file_name else entry.pair.left_file
            if partner != file_name:
                partners.append(partner)
        return partners

    def _refresh_highlights(self, view: MatrixView) -> None:
        seeds = list(self._selections.values())
        for side in SIDES:
            file_name = view.pair.file_on(side)
            highlighted = compute_highlight(
                file_name,
                seeds,
                self.cache.cached_relations,
                exclude_self=self.exclude_self_highlight,
                related_files=self._cached_partners(file_name) if self.exclude_self_highlight else (),
            )
            view.set_highlights(side, highlighted)

    def _on_selection(self, view: MatrixView, event: CardSelectionEvent) -> None:
        if view.closed:
            return
        self._refresh_highlights(view)

    def _on_trace_changed(self, view: MatrixView, event: TraceChangeEvent) -> None:
        if view.closed:
            return
        if view.apply_remote_change(event) and self.refresh_cards_on_change:
            self._refresh_cards_quietly(view)
        self._refresh_highlights(view)

    def _refresh_cards_quietly(self, view: MatrixView) -> None:
        try:
            self.refresh_cards(view.id)
        except (KeyError, PersistenceError) as e:
            logger.error("card refresh failed for view %s: %s", view.id, e)
            view.error = str(e)

    # ─────────────────────────────────────────────────────────────────
    # Card merge / delete
    # ─────────────────────────────────────────────────────────────────

    def _pairs_touching(self, file_name: str) -> list[FilePair]:
        pairs: dict[str, FilePair] = {}
        for pair in self.adapter.list_file_pairs(file_name):
            pairs.setdefault(pair.key, pair.canonical())
        for entry in self.cache.entries():
            if entry.pair.contains(file_name):
                pairs.setdefault(entry.pair.key, entry.pair)
        for view in self.views.views_showing(file_name):
            pairs.setdefault(view.pair.key, view.pair.canonical())
        return [pairs[key] for key in sorted(pairs)]

    def _rewrite_pairs(self, file_name: str, rewrite: Rewrite, operation: str) -> list[PairOutcome]:
        outcomes: list[PairOutcome] = []
        for pair in self._pairs_touching(file_name):
            outcome = PairOutcome(pair=pair)
            try:
                with self.cache.lock_for(pair):
                    relations = self.cache.load(pair)
                    current = relations
                    for side in pair.sides_of(file_name):
                        step = rewrite(current, side)
                        outcome.changed_ids.extend(
                            i for i in step.changed_ids if i not in outcome.changed_ids
                        )
                        outcome.removed_ids.extend(step.removed_ids)
                        outcome.violations.extend(step.violations)
                        current = step.relations
                    report_violations(outcome.violations, context=str(pair))
                    if current is relations:
                        outcomes.append(outcome)
                        continue
                    entry = self.cache.get(pair)
                    header = entry.header if entry is not None else None
                    saved = save_relations(self.adapter, self.cache, pair, current, header)
            except PersistenceError as e:
                logger.error("%s failed for %s: %s", operation, pair, e)
                outcome.success = False
                outcome.error = str(e)
                outcomes.append(outcome)
                continue

            broadcast_change(self.bus, pair, current, source_view_id=None, result=saved)
            logger.info(
                "%s rewrote %s: %d changed, %d removed",
                operation,
                pair,
                len(outcome.changed_ids),
                len(outcome.removed_ids),
            )
            outcomes.append(outcome)

        if self.refresh_cards_on_change:
            rewritten = {o.pair.key for o in outcomes if o.success and o.changed}
            for view in self.views.views_showing(file_name):
                if view.pair.key not in rewritten:
                    self._refresh_cards_quietly(view)
        return outcomes

    def reassign_cards(
        self, file_name: str, target_id: str, source_ids: Iterable[str]
    ) -> list[PairOutcome]:
        """Rewrite relations after cards of ``file_name`` were merged.

        Every pair involving the file is rewritten independently; a failed
        pair does not undo pairs already saved.
        """
        sources = [card_id for card_id in dict.fromkeys(source_ids) if card_id != target_id]
        if not sources:
            return []
        return self._rewrite_pairs(
            file_name,
            lambda relations, side: reassign_endpoints(relations, side, sources, target_id),
            "merge",
        )

    def remove_cards(self, file_name: str, card_ids: Iterable[str]) -> list[PairOutcome]:
        """Remove deleted cards of ``file_name`` from every relation."""
        doomed = list(dict.fromkeys(card_ids))
        if not doomed:
            return []
        return self._rewrite_pairs(
            file_name,
            lambda relations, side: remove_endpoints(relations, side, doomed),
            "delete",
        )


__all__ = ["PairOutcome", "SyncCoordinator"]
