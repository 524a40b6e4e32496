"""Registry of open views."""

from __future__ import annotations

import threading
from collections.abc import Iterator

from cardtrace.graph.relations import FilePair
from cardtrace.view.state import MatrixView


class ViewRegistry:
    """Open views by id.

    Lookups of unknown ids raise KeyError so the HTTP layer can answer 404.
    """

    def __init__(self) -> None:
        self._views: dict[str, MatrixView] = {}
        self._lock = threading.Lock()

    def add(self, view: MatrixView) -> MatrixView:
        with self._lock:
            if view.id in self._views:
                raise ValueError(f"view already open: {view.id}")
            self._views[view.id] = view
        return view

    def get(self, view_id: str) -> MatrixView:
        try:
            return self._views[view_id]
        except KeyError:
            raise KeyError(f"unknown view: {view_id}") from None

    def remove(self, view_id: str) -> MatrixView:
        with self._lock:
            view = self._views.pop(view_id, None)
        if view is None:
            raise KeyError(f"unknown view: {view_id}")
        return view

    def views_for_pair(self, pair: FilePair) -> list[MatrixView]:
        """Open views on a pair, in either orientation."""
        return [view for view in self if view.pair.same_pair(pair)]

    def views_showing(self, file_name: str) -> list[MatrixView]:
        """Open views with ``file_name`` on either side."""
        return [view for view in self if view.pair.contains(file_name)]

    def clear(self) -> list[MatrixView]:
        """Remove and return every view."""
        with self._lock:
            views = list(self._views.values())
            self._views.clear()
        return views

    def __iter__(self) -> Iterator[MatrixView]:
        with self._lock:
            views = list(self._views.values())
        return iter(views)

    def __len__(self) -> int:
        return len(self._views)

    def __contains__(self, view_id: object) -> bool:
        return view_id in self._views


__all__ = ["ViewRegistry"]
