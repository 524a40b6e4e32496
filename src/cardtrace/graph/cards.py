"""Cards - the read-mostly nodes of the two traced document trees.

Cards are owned by the card-tree editor. The trace engine only reads
``id``, ``card_id``, ``title``, ``status`` and ``kind`` for filtering
and for display labels; the tree links are carried through untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CardStatus(Enum):
    """Lifecycle status of a card."""

    DRAFT = "draft"
    REVIEW = "review"
    APPROVED = "approved"
    DEPRECATED = "deprecated"

    @classmethod
    def parse(cls, value: str | None) -> CardStatus:
        """Parse a status string, falling back to DRAFT for unknown values."""
        if not value:
            return cls.DRAFT
        try:
            return cls(value.lower())
        except ValueError:
            return cls.DRAFT


@dataclass(frozen=True)
class Card:
    """A node in one of the two hierarchical card trees.

    Attributes:
        id: Stable, process-wide unique identifier.
        card_id: Optional human label (e.g. "REQ-12"); used for display.
        title: Card title.
        body: Card body text.
        status: Lifecycle status.
        kind: Card kind (heading, paragraph, test, ...).
        level: Tree depth.
        parent_id: Parent card id, or None for roots.
        child_ids: Ordered child card ids.
        prev_id: Previous sibling id.
        next_id: Next sibling id.
    """

    id: str
    title: str = ""
    body: str = ""
    status: CardStatus = CardStatus.DRAFT
    kind: str = "paragraph"
    level: int = 0
    card_id: str | None = None
    parent_id: str | None = None
    child_ids: tuple[str, ...] = field(default_factory=tuple)
    prev_id: str | None = None
    next_id: str | None = None

    @property
    def label(self) -> str:
        """Display key: the human card id when present, else the id."""
        return self.card_id or self.id

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Card:
        """Build a Card from its JSON form.

        Accepts both the editor's camelCase ``cardId`` and ``card_id``.
        Older snapshots keep the text under ``content.text``.
        """
        title = data.get("title")
        if title is None:
            title = (data.get("content") or {}).get("text", "")
        return cls(
            id=str(data["id"]),
            title=title or "",
            body=data.get("body") or "",
            status=CardStatus.parse(data.get("status")),
            kind=data.get("kind") or data.get("type") or "paragraph",
            level=int(data.get("level") or 0),
            card_id=data.get("cardId") or data.get("card_id"),
            parent_id=data.get("parent_id"),
            child_ids=tuple(data.get("child_ids") or ()),
            prev_id=data.get("prev_id"),
            next_id=data.get("next_id"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the editor's JSON form."""
        result: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "status": self.status.value,
            "kind": self.kind,
            "level": self.level,
            "parent_id": self.parent_id,
            "child_ids": list(self.child_ids),
            "prev_id": self.prev_id,
            "next_id": self.next_id,
        }
        if self.card_id:
            result["cardId"] = self.card_id
        return result


__all__ = ["Card", "CardStatus"]
