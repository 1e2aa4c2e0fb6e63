"""
Action executor.

Runs a diff engine's action groups against a session's container, one
group at a time and in order. The first failing group stops the run;
nothing is rolled back, so a failure leaves the container partially
updated and is reported loudly.

Locking is the caller's job: UpdateSession holds its execution lock
around execute().
"""
from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from livesync.errors import ExecutionError
from livesync.observability import LiveSyncLogger

from .diff import ActionGroup, describe_action_group
from .events import UpdateBatch

if TYPE_CHECKING:
    from .session import UpdateSession

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """Outcome of executing one batch's action groups."""

    service_name: str
    batch: UpdateBatch
    groups_total: int
    groups_executed: int = 0
    duration_ms: float = 0.0
    success: bool = True
    error: ExecutionError | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "service_name": self.service_name,
            "batch": self.batch.to_dict(),
            "groups_total": self.groups_total,
            "groups_executed": self.groups_executed,
            "duration_ms": round(self.duration_ms, 2),
            "success": self.success,
            "error": str(self.error) if self.error else None,
        }


class ActionExecutor:
    """
    Executes ordered action groups through a session's diff engine.

    Example:
        executor = ActionExecutor()
        result = await executor.execute(session, batch, actions)
    """

    def __init__(self, log: LiveSyncLogger | None = None):
        self.log = log or LiveSyncLogger()

    async def execute(
        self,
        session: UpdateSession,
        batch: UpdateBatch,
        actions: Sequence[ActionGroup],
    ) -> ExecutionResult:
        """
        Run `actions` for `batch` against the session's container.

        Returns:
            ExecutionResult on full success

        Raises:
            ValueError: If `actions` is empty
            ExecutionError: On the first failing group (later groups never run)
        """
        if not actions:
            raise ValueError("execute() requires at least one action group")

        result = ExecutionResult(
            service_name=session.service_name,
            batch=batch,
            groups_total=len(actions),
        )
        start_time = time.perf_counter()

        for index, group in enumerate(actions):
            logger.debug(
                f"Executing action group {index + 1}/{len(actions)} for "
                f"{session.service_name}: {describe_action_group(group)}"
            )
            try:
                ok = await session.diff_engine.perform_actions(batch, [group])
            except Exception as e:
                raise self._fail(result, index, group, cause=e) from e
            if ok is False:
                raise self._fail(result, index, group)
            result.groups_executed += 1

        result.duration_ms = (time.perf_counter() - start_time) * 1000
        self.log.livepush(
            f"Restarting container for service {session.service_name}",
            service=session.service_name,
        )
        return result

    def _fail(
        self,
        result: ExecutionResult,
        index: int,
        group: ActionGroup,
        cause: BaseException | None = None,
    ) -> ExecutionError:
        return ExecutionError(
            result.service_name,
            result.batch,
            group_index=index,
            group=group,
            completed=result.groups_executed,
            cause=cause,
        )

    @staticmethod
    def failed_result(
        batch: UpdateBatch,
        actions: Sequence[ActionGroup],
        error: ExecutionError,
        duration_ms: float = 0.0,
    ) -> ExecutionResult:
        """Build the ExecutionResult describing a failed run."""
        return ExecutionResult(
            service_name=error.service_name,
            batch=batch,
            groups_total=len(actions),
            groups_executed=error.completed,
            duration_ms=duration_ms,
            success=False,
            error=error,
        )


__all__ = [
    "ActionExecutor",
    "ExecutionResult",
]
