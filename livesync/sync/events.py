"""
Filesystem events and update batches.

A watcher reports one (path, kind) pair per change. classify() turns each
into exactly one UpdateBatch for the diff engine; events are never merged.

Dockerfile edits are classified like any other file. A dockerfile change
really needs a full rebuild, which this engine does not trigger.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from livesync.errors import UnknownEventError


class FileEventKind(str, Enum):
    """Filesystem change kinds emitted by watchers."""

    ADD = "add"
    CHANGE = "change"
    UNLINK = "unlink"


_KIND_ALIASES = {
    "add": FileEventKind.ADD,
    "change": FileEventKind.CHANGE,
    "modify": FileEventKind.CHANGE,
    "unlink": FileEventKind.UNLINK,
    "delete": FileEventKind.UNLINK,
}


@dataclass(frozen=True, slots=True)
class FilesystemEvent:
    """A raw change notification, path relative to the build context."""

    path: str
    kind: FileEventKind | str

    def to_dict(self) -> dict[str, Any]:
        kind = self.kind.value if isinstance(self.kind, FileEventKind) else self.kind
        return {"path": self.path, "kind": kind}


@dataclass(frozen=True, slots=True)
class UpdateBatch:
    """
    Paths to reconcile with a running container.

    The three sets are disjoint. Produced by classify(), so exactly one of
    them holds a single path; an empty batch is still valid.
    """

    added: tuple[str, ...] = ()
    modified: tuple[str, ...] = ()
    deleted: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.modified or self.deleted)

    @property
    def paths(self) -> tuple[str, ...]:
        return self.added + self.modified + self.deleted

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "added": list(self.added),
            "modified": list(self.modified),
            "deleted": list(self.deleted),
        }


def parse_event_kind(kind: FileEventKind | str, path: str = "") -> FileEventKind:
    """Normalize a kind value, raising UnknownEventError for anything else."""
    if isinstance(kind, FileEventKind):
        return kind
    if isinstance(kind, str) and kind in _KIND_ALIASES:
        return _KIND_ALIASES[kind]
    raise UnknownEventError(kind, path)


def classify(event: FilesystemEvent) -> UpdateBatch:
    """
    Map one filesystem event to an update batch.

    Raises:
        UnknownEventError: If the kind is not add/change/unlink
    """
    kind = parse_event_kind(event.kind, event.path)

    if kind is FileEventKind.ADD:
        return UpdateBatch(added=(event.path,))
    if kind is FileEventKind.CHANGE:
        return UpdateBatch(modified=(event.path,))
    return UpdateBatch(deleted=(event.path,))


__all__ = [
    "FileEventKind",
    "FilesystemEvent",
    "UpdateBatch",
    "classify",
    "parse_event_kind",
]
