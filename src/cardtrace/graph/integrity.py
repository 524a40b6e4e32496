"""Integrity faults in relation collections.

Integrity faults are modeling bugs, not user errors: two relations
claiming the same cell, or a relation left with an empty side. They are
collected as IntegrityViolation records and reported as warnings so the
cause can be investigated; they are never resolved by picking one
relation arbitrarily.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class Severity(Enum):
    """Severity level for integrity violations."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


CELL_COLLISION = "integrity.cell_collision"
EMPTY_SIDE = "integrity.empty_side"


@dataclass(frozen=True)
class IntegrityViolation:
    """Represents an integrity fault found in a relation collection.

    Attributes:
        rule_name: Name of the violated rule (e.g., "integrity.cell_collision")
        subject: Cell key ("left::right") or relation id the fault concerns
        message: Human-readable description of the fault
        relation_ids: Relations involved in the fault
        severity: Severity level
    """

    rule_name: str
    subject: str
    message: str
    relation_ids: tuple[str, ...] = ()
    severity: Severity = Severity.WARNING

    def __str__(self) -> str:
        return f"{self.severity.value.upper()} [{self.rule_name}] {self.subject}: {self.message}"

    def to_dict(self) -> dict[str, object]:
        return {
            "rule_name": self.rule_name,
            "subject": self.subject,
            "message": self.message,
            "relation_ids": list(self.relation_ids),
            "severity": self.severity.value,
        }


def cell_collision(key: str, first_id: str, second_id: str) -> IntegrityViolation:
    """Build the violation for two relations claiming the same cell."""
    return IntegrityViolation(
        rule_name=CELL_COLLISION,
        subject=key,
        message=f"cell is claimed by relations {first_id} and {second_id}",
        relation_ids=(first_id, second_id),
    )


def empty_side(relation_id: str, side: str) -> IntegrityViolation:
    """Build the violation for a relation whose side would become empty."""
    return IntegrityViolation(
        rule_name=EMPTY_SIDE,
        subject=relation_id,
        message=f"relation would be left with no {side} endpoints",
        relation_ids=(relation_id,),
    )


def report_violations(violations: Iterable[IntegrityViolation], context: str = "") -> int:
    """Log each violation as a data-integrity warning.

    Args:
        violations: Violations to report.
        context: Optional label (e.g. the file pair) added to each message.

    Returns:
        Number of violations reported.
    """
    count = 0
    for violation in violations:
        if context:
            logger.warning("data integrity (%s): %s", context, violation)
        else:
            logger.warning("data integrity: %s", violation)
        count += 1
    return count


__all__ = [
    "CELL_COLLISION",
    "EMPTY_SIDE",
    "IntegrityViolation",
    "Severity",
    "cell_collision",
    "empty_side",
    "report_violations",
]
