"""
Build context watcher backed by watchdog.

Watches a build context recursively and reports (relative_path, kind)
pairs to a sink on the asyncio loop:

    created  -> add
    modified -> change
    deleted  -> unlink
    moved    -> unlink (source) + add (destination)

Files that exist when the watch starts are not reported; only later
changes are. Directory events are ignored.
"""

from __future__ import annotations

import asyncio
import fnmatch
import logging
from collections.abc import Callable
from pathlib import Path, PurePath
from typing import Protocol, runtime_checkable

from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    DirModifiedEvent,
    DirMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from livesync.config.schemas import DEFAULT_IGNORE_PATTERNS

from .events import FileEventKind

logger = logging.getLogger(__name__)

# Receives (path relative to the watched root, kind)
EventSink = Callable[[str, FileEventKind], None]


@runtime_checkable
class Watcher(Protocol):
    """Protocol for build context watchers."""

    @property
    def is_running(self) -> bool: ...

    def start(self, sink: EventSink) -> None:
        """Begin reporting changes to `sink`. Must be called on the loop."""
        ...

    def stop(self) -> None:
        """Stop watching. Safe to call more than once."""
        ...


# Creates a watcher rooted at a build context
WatcherFactory = Callable[[str], Watcher]


class ContextEventHandler(FileSystemEventHandler):
    """
    watchdog handler translating events for one build context.

    watchdog calls this from its observer thread; events are handed to
    the asyncio loop with call_soon_threadsafe.
    """

    def __init__(
        self,
        root: Path,
        sink: EventSink,
        loop: asyncio.AbstractEventLoop,
        ignore_patterns: list[str],
    ):
        super().__init__()
        self.root = root
        self.sink = sink
        self.loop = loop
        self.ignore_patterns = ignore_patterns

    def relative_path(self, path: str | bytes) -> str | None:
        """POSIX path relative to the root, or None if outside it."""
        if isinstance(path, bytes):
            path = path.decode()
        try:
            return Path(path).relative_to(self.root).as_posix()
        except ValueError:
            return None

    def should_ignore(self, rel_path: str) -> bool:
        parts = PurePath(rel_path).parts
        for pattern in self.ignore_patterns:
            if fnmatch.fnmatch(rel_path, pattern):
                return True
            if any(fnmatch.fnmatch(part, pattern) for part in parts):
                return True
        return False

    def _push(self, path: str | bytes, kind: FileEventKind) -> None:
        rel_path = self.relative_path(path)
        if rel_path is None or self.should_ignore(rel_path):
            return
        if self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self.sink, rel_path, kind)

    def on_created(self, event: FileSystemEvent) -> None:
        if isinstance(event, DirCreatedEvent):
            return
        self._push(event.src_path, FileEventKind.ADD)

    def on_modified(self, event: FileSystemEvent) -> None:
        if isinstance(event, DirModifiedEvent):
            return
        self._push(event.src_path, FileEventKind.CHANGE)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if isinstance(event, DirDeletedEvent):
            return
        self._push(event.src_path, FileEventKind.UNLINK)

    def on_moved(self, event: FileSystemEvent) -> None:
        if isinstance(event, DirMovedEvent):
            return
        self._push(event.src_path, FileEventKind.UNLINK)
        self._push(event.dest_path, FileEventKind.ADD)


class ContextWatcher:
    """
    Recursive watchdog watch over one build context.

    Example:
        watcher = ContextWatcher("/src/project/web")
        watcher.start(lambda path, kind: print(path, kind))
        ...
        watcher.stop()
    """

    def __init__(
        self,
        root: str | Path,
        ignore_patterns: list[str] | None = None,
    ):
        self.root = Path(root).resolve()
        self.ignore_patterns = (
            list(ignore_patterns) if ignore_patterns is not None else list(DEFAULT_IGNORE_PATTERNS)
        )
        self._observer: Observer | None = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def start(self, sink: EventSink) -> None:
        if self._observer is not None:
            logger.warning(f"Watcher already running: {self.root}")
            return
        if not self.root.is_dir():
            raise FileNotFoundError(f"Build context does not exist: {self.root}")

        handler = ContextEventHandler(
            root=self.root,
            sink=sink,
            loop=asyncio.get_running_loop(),
            ignore_patterns=self.ignore_patterns,
        )
        observer = Observer()
        observer.schedule(handler, str(self.root), recursive=True)
        observer.start()
        self._observer = observer
        logger.debug(f"Watching build context: {self.root}")

    def stop(self) -> None:
        if self._observer is None:
            return
        observer, self._observer = self._observer, None
        observer.stop()
        observer.join(timeout=5.0)
        logger.debug(f"Stopped watching build context: {self.root}")

    def __repr__(self) -> str:
        return f"ContextWatcher(root='{self.root}', running={self.is_running})"


def watcher_factory(ignore_patterns: list[str] | None = None) -> WatcherFactory:
    """Build a WatcherFactory producing ContextWatchers with shared ignores."""

    def create(context: str) -> Watcher:
        return ContextWatcher(context, ignore_patterns=ignore_patterns)

    return create


__all__ = [
    "ContextEventHandler",
    "ContextWatcher",
    "EventSink",
    "Watcher",
    "WatcherFactory",
    "watcher_factory",
]
