"""Persistence layer - trace files and card snapshots on disk.

The engine depends only on the PersistenceAdapter protocol:

- ``load_relations`` - the relation collection for a file pair (or None)
- ``save_relations`` - write a collection atomically
- ``load_card_snapshot`` - the cards of one card file
- ``list_file_pairs`` - the pairs that have a trace file

JsonWorkspaceStore implements it over JSON files in a workspace
directory. Trace files are named after the canonical pair, so a pair
saved as (a, b) is found again when opened as (b, a); the stored
relations are transposed to the requested orientation on load.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol
from uuid import uuid4

from cardtrace.graph.cards import Card
from cardtrace.graph.relations import FilePair, Relation

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
TRACE_FILE_PREFIX = "trace_"


class PersistenceError(Exception):
    """A load or save against the persistence adapter failed.

    Attributes:
        file_pair: The pair being loaded or saved, when known.
    """

    def __init__(self, message: str, file_pair: FilePair | None = None) -> None:
        super().__init__(message)
        self.file_pair = file_pair


@dataclass
class TraceBundle:
    """A loaded trace file, oriented to the requested pair.

    Attributes:
        file_name: Trace file name inside the trace directory.
        header: Trace file header (id, fileName, paths, timestamps, memo).
        relations: Relations with the requested left file on the left.
    """

    file_name: str
    header: dict[str, Any]
    relations: list[Relation] = field(default_factory=list)


@dataclass
class SaveResult:
    """Metadata returned by a successful save."""

    file_name: str
    header: dict[str, Any]


class PersistenceAdapter(Protocol):
    """Contract the trace engine consumes for loading and saving."""

    def load_relations(self, left_file: str, right_file: str) -> TraceBundle | None: ...

    def save_relations(
        self,
        left_file: str,
        right_file: str,
        relations: list[Relation],
        header: dict[str, Any] | None = None,
    ) -> SaveResult: ...

    def load_card_snapshot(self, file_name: str) -> list[Card]: ...

    def list_file_pairs(self, file_name: str | None = None) -> list[FilePair]: ...


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _check_file_name(file_name: str) -> None:
    """Reject names that could escape the workspace directories."""
    if not file_name or "/" in file_name or "\\" in file_name or ".." in file_name:
        raise PersistenceError(f"invalid file name: {file_name!r}")


def trace_file_name(pair: FilePair) -> str:
    """Trace file name for a pair; identical for both orientations."""
    canonical = pair.canonical()
    left_stem = Path(canonical.left_file).stem
    right_stem = Path(canonical.right_file).stem
    return f"{TRACE_FILE_PREFIX}{left_stem}__{right_stem}.json"


def _atomic_write_json(path: Path, payload: dict[str, Any]) -> None:
    """Write JSON to ``path`` so readers see either the old or the new file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=False, indent=2)
            handle.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class JsonWorkspaceStore:
    """PersistenceAdapter over JSON files in a workspace directory.

    Args:
        root: Workspace root directory.
        cards_dir: Directory (relative to root) holding card snapshots.
        trace_dir: Directory (relative to root) holding trace files.
    """

    def __init__(self, root: Path, cards_dir: str = "_out", trace_dir: str = "_out") -> None:
        self.root = root
        self.cards_path = root / cards_dir
        self.trace_path = root / trace_dir

    @classmethod
    def from_config(cls, config: dict[str, Any], root: Path) -> JsonWorkspaceStore:
        workspace = config.get("workspace", {})
        return cls(
            root,
            cards_dir=workspace.get("cards_dir", "_out"),
            trace_dir=workspace.get("trace_dir", "_out"),
        )

    def _read_json(self, path: Path, pair: FilePair | None = None) -> dict[str, Any]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"cannot read {path.name}: {e}", pair) from e
        if not isinstance(data, dict):
            raise PersistenceError(f"{path.name}: expected a JSON object", pair)
        return data

    def load_relations(self, left_file: str, right_file: str) -> TraceBundle | None:
        """Load the trace file for a pair, oriented as requested.

        Returns:
            TraceBundle, or None when no trace file exists yet.

        Raises:
            PersistenceError: If the file exists but cannot be read.
        """
        pair = FilePair(left_file, right_file)
        _check_file_name(left_file)
        _check_file_name(right_file)
        path = self.trace_path / trace_file_name(pair)
        if not path.exists():
            return None

        data = self._read_json(path, pair)
        stored = FilePair(
            data.get("left_file") or pair.canonical().left_file,
            data.get("right_file") or pair.canonical().right_file,
        )
        if not stored.same_pair(pair):
            raise PersistenceError(f"{path.name} belongs to pair {stored}", pair)
        try:
            relations = [Relation.from_dict(item) for item in data.get("relations") or []]
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"{path.name}: invalid relation: {e}", pair) from e
        header = dict(data.get("header") or {})
        header.setdefault("fileName", path.name)
        return TraceBundle(
            file_name=path.name,
            header=header,
            relations=pair.orient(relations, stored),
        )

    def save_relations(
        self,
        left_file: str,
        right_file: str,
        relations: list[Relation],
        header: dict[str, Any] | None = None,
    ) -> SaveResult:
        """Write the relation collection for a pair.

        The file is replaced atomically; on failure the previous file is
        left untouched.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        pair = FilePair(left_file, right_file)
        _check_file_name(left_file)
        _check_file_name(right_file)
        file_name = trace_file_name(pair)
        timestamp = _now()
        new_header: dict[str, Any] = {
            "id": uuid4().hex,
            "createdAt": timestamp,
            **(header or {}),
        }
        new_header.update(
            {
                "fileName": file_name,
                "leftFilePath": str(self.cards_path / left_file),
                "rightFilePath": str(self.cards_path / right_file),
                "updatedAt": timestamp,
            }
        )
        payload = {
            "schemaVersion": SCHEMA_VERSION,
            "header": new_header,
            "left_file": left_file,
            "right_file": right_file,
            "relations": [relation.to_dict() for relation in relations],
        }
        try:
            _atomic_write_json(self.trace_path / file_name, payload)
        except OSError as e:
            raise PersistenceError(f"cannot write {file_name}: {e}", pair) from e
        logger.debug("saved %d relation(s) to %s", len(relations), file_name)
        return SaveResult(file_name=file_name, header=new_header)

    def load_card_snapshot(self, file_name: str) -> list[Card]:
        """Load the cards of one card file.

        A missing snapshot yields an empty list (with a warning), matching
        a card file that has not been converted yet.

        Raises:
            PersistenceError: If the file exists but is malformed.
        """
        _check_file_name(file_name)
        path = self.cards_path / file_name
        if not path.exists():
            logger.warning("card snapshot not found: %s", file_name)
            return []
        data = self._read_json(path)
        items = data.get("cards")
        if items is None:
            items = data.get("body") or []
        try:
            return [Card.from_dict(item) for item in items]
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"{file_name}: invalid card: {e}") from e

    def list_file_pairs(self, file_name: str | None = None) -> list[FilePair]:
        """List the pairs that have a trace file, optionally filtered by file.

        Pairs are returned in their stored orientation, sorted by key.
        Unreadable trace files are skipped with a warning.
        """
        if not self.trace_path.is_dir():
            return []
        pairs: dict[str, FilePair] = {}
        for path in sorted(self.trace_path.glob(f"{TRACE_FILE_PREFIX}*.json")):
            try:
                data = self._read_json(path)
            except PersistenceError as e:
                logger.warning("skipping trace file: %s", e)
                continue
            left_file, right_file = data.get("left_file"), data.get("right_file")
            if not left_file or not right_file:
                continue
            pair = FilePair(left_file, right_file)
            if file_name is None or pair.contains(file_name):
                pairs[pair.key] = pair
        return [pairs[key] for key in sorted(pairs)]

    def write_card_snapshot(self, file_name: str, cards: list[Card]) -> Path:
        """Write a card snapshot (used by the card editor and fixtures)."""
        _check_file_name(file_name)
        path = self.cards_path / file_name
        payload = {
            "schemaVersion": SCHEMA_VERSION,
            "header": {"fileName": file_name, "updatedAt": _now()},
            "cards": [card.to_dict() for card in cards],
        }
        _atomic_write_json(path, payload)
        return path


__all__ = [
    "JsonWorkspaceStore",
    "PersistenceAdapter",
    "PersistenceError",
    "SaveResult",
    "TraceBundle",
    "trace_file_name",
]
