"""Shared fixtures: card files, a JSON workspace and a coordinator over it."""

from __future__ import annotations

import pytest

from cardtrace.graph.cards import Card, CardStatus
from cardtrace.persistence import JsonWorkspaceStore, PersistenceError
from cardtrace.sync.coordinator import SyncCoordinator


class FlakyStore(JsonWorkspaceStore):
    """Workspace store whose saves can be made to fail."""

    fail_saves = False
    fail_pairs: set[str] = set()

    def save_relations(self, left_file, right_file, relations, header=None):
        if self.fail_saves or f"{left_file}|{right_file}" in self.fail_pairs:
            raise PersistenceError(f"disk full while saving {left_file}/{right_file}")
        return super().save_relations(left_file, right_file, relations, header)


REQ_CARDS = [
    Card(id="A", card_id="REQ-1", title="Login", status=CardStatus.APPROVED, kind="heading"),
    Card(id="B", card_id="REQ-2", title="Logout", status=CardStatus.DRAFT),
    Card(id="C", card_id="REQ-3", title="Session timeout", status=CardStatus.REVIEW),
    Card(id="D", card_id="REQ-4", title="Legacy SSO", status=CardStatus.DEPRECATED),
]

TEST_CARDS = [
    Card(id="X", card_id="TC-1", title="login succeeds", kind="test"),
    Card(id="Y", card_id="TC-2", title="logout clears session", kind="test"),
    Card(id="Z", title="timeout after idle", kind="test"),
]

DESIGN_CARDS = [
    Card(id="P", card_id="DD-1", title="Auth service"),
    Card(id="Q", card_id="DD-2", title="Session store"),
]


@pytest.fixture
def req_cards() -> list[Card]:
    return list(REQ_CARDS)


@pytest.fixture
def test_cards() -> list[Card]:
    return list(TEST_CARDS)


@pytest.fixture
def store(tmp_path) -> FlakyStore:
    """Workspace with reqs.json, tests.json and design.json card snapshots."""
    workspace = FlakyStore(tmp_path)
    workspace.fail_pairs = set()
    workspace.write_card_snapshot("reqs.json", REQ_CARDS)
    workspace.write_card_snapshot("tests.json", TEST_CARDS)
    workspace.write_card_snapshot("design.json", DESIGN_CARDS)
    return workspace


@pytest.fixture
def coordinator(store) -> SyncCoordinator:
    return SyncCoordinator(store)
