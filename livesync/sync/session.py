"""
Update session: one per buildable service.

A session ties together a watcher on the service's build context, a diff
engine bound to the service's running container, and an execution lock.

Dispatch (per filesystem event):

    IDLE -> DIFFING -> (no actions) IDLE
                    -> (actions)    EXECUTING -> IDLE

Diffing is not serialized; batches that arrive while an execution is in
flight are diffed right away and their actions queue on the lock. At most
one execution runs per session. Sessions never share a lock.

The diff engine stays bound to the container id captured at creation.
If the container is replaced, the session goes stale and keeps
targeting the old container; see LiveSyncManager.stale_services().
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from enum import Enum
from typing import Any

from livesync.errors import ExecutionError, UnknownEventError
from livesync.observability import LiveSyncLogger

from .diff import COMMAND_EXECUTE_EVENT, COMMAND_OUTPUT_EVENT, DiffEngine, ObservableDiffEngine
from .events import FileEventKind, FilesystemEvent, UpdateBatch, classify
from .executor import ActionExecutor, ExecutionResult
from .watcher import Watcher

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Dispatch state of an update session."""

    IDLE = "idle"
    DIFFING = "diffing"
    EXECUTING = "executing"


class UpdateSession:
    """
    Watch-and-update unit for one service.

    Example:
        session = UpdateSession(
            service_name="web",
            context="/src/project/web",
            container_id="4c1f...",
            diff_engine=engine,
            watcher=ContextWatcher("/src/project/web"),
        )
        session.start()
        ...
        await session.close()
    """

    def __init__(
        self,
        service_name: str,
        context: str,
        container_id: str,
        diff_engine: DiffEngine,
        watcher: Watcher,
        executor: ActionExecutor | None = None,
        log: LiveSyncLogger | None = None,
    ):
        self.service_name = service_name
        self.context = context
        self.container_id = container_id
        self.diff_engine = diff_engine
        self.watcher = watcher
        self._root_log = log or LiveSyncLogger()
        self.log = self._root_log.for_service(service_name)
        self.executor = executor or ActionExecutor(log=self._root_log)
        self.execution_lock = asyncio.Lock()
        self.last_result: ExecutionResult | None = None

        self._diffing = 0
        self._tasks: set[asyncio.Task[ExecutionResult | None]] = set()
        self._closed = False

        if isinstance(diff_engine, ObservableDiffEngine):
            diff_engine.on(COMMAND_EXECUTE_EVENT, self._on_command_execute)
            diff_engine.on(COMMAND_OUTPUT_EVENT, self._on_command_output)

    # ==================== State ====================

    @property
    def state(self) -> SessionState:
        if self.execution_lock.locked():
            return SessionState.EXECUTING
        if self._diffing:
            return SessionState.DIFFING
        return SessionState.IDLE

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Number of dispatches still in flight."""
        return len(self._tasks)

    # ==================== Lifecycle ====================

    def start(self) -> None:
        """Start the watcher, routing its events to on_filesystem_event."""
        if self._closed:
            raise RuntimeError(f"Session for {self.service_name} is closed")
        self.watcher.start(self.on_filesystem_event)

    async def close(self) -> None:
        """Stop the watcher and wait for in-flight dispatches to finish."""
        if self._closed:
            return
        self._closed = True
        self.watcher.stop()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def wait_idle(self) -> None:
        """Wait until every dispatch scheduled so far has completed."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ==================== Dispatch ====================

    def on_filesystem_event(
        self,
        path: str,
        kind: FileEventKind | str,
    ) -> asyncio.Task[ExecutionResult | None] | None:
        """
        Watcher sink. Schedules handling of one event on the running loop.

        Returns the scheduled task, or None once the session is closed.
        """
        if self._closed:
            return None
        task = asyncio.get_running_loop().create_task(
            self.handle_event(FilesystemEvent(path=path, kind=kind)),
            name=f"livesync:{self.service_name}:{path}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def handle_event(self, event: FilesystemEvent) -> ExecutionResult | None:
        """
        Classify, diff and (if needed) execute for one filesystem event.

        Per-event failures are logged and contained here.
        """
        # TODO: a dockerfile change needs a full rebuild, not an incremental diff
        self.log.debug(
            f"Got a filesystem event for service: {self.service_name}. "
            f"Event: {json.dumps(event.to_dict())}"
        )

        try:
            batch = classify(event)
        except UnknownEventError as e:
            self.log.error(
                f"Dropping filesystem event: {e}",
                path=event.path,
                kind=str(e.kind),
            )
            return None

        return await self.dispatch(batch)

    async def dispatch(self, batch: UpdateBatch) -> ExecutionResult | None:
        """
        Diff a batch and execute its actions under the execution lock.

        Returns:
            ExecutionResult if actions ran (successfully or not), else None
        """
        self._diffing += 1
        try:
            actions = list(await self.diff_engine.actions_needed(batch))
        except Exception as e:
            self.log.error(
                f"Failed to compute actions: {type(e).__name__}: {e}",
                batch=batch.to_dict(),
            )
            logger.debug(f"actions_needed failed for {self.service_name}", exc_info=True)
            return None
        finally:
            self._diffing -= 1

        if not actions:
            return None

        self._root_log.livepush(
            f"Detected changes for container {self.service_name}, updating...",
            service=self.service_name,
        )

        async with self.execution_lock:
            start_time = time.perf_counter()
            try:
                result = await self.executor.execute(self, batch, actions)
            except ExecutionError as e:
                self.log.error(
                    str(e),
                    batch=batch.to_dict(),
                    group_index=e.group_index,
                    completed=e.completed,
                )
                result = ActionExecutor.failed_result(
                    batch,
                    actions,
                    e,
                    duration_ms=(time.perf_counter() - start_time) * 1000,
                )
            self.last_result = result

        return result

    # ==================== Diff engine hooks ====================

    def _on_command_execute(self, command: Any) -> None:
        self.log.livepush(f"Executing command: `{command}`")

    def _on_command_output(self, output: Any) -> None:
        data = getattr(output, "output", None)
        if data is None and isinstance(output, dict):
            data = output.get("output")
        if data is None:
            data = output
        if isinstance(data, bytes):
            data = data.decode(errors="replace")
        self.log.livepush(f"    {data}")

    def __repr__(self) -> str:
        return (
            f"UpdateSession(service='{self.service_name}', "
            f"container='{self.container_id[:12]}', state={self.state.value})"
        )


__all__ = [
    "SessionState",
    "UpdateSession",
]
