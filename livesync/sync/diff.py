"""
Diff engine contract.

The diff engine is bound to one (dockerfile, context, container) triple.
Given an UpdateBatch it decides which action groups (layers of commands)
must run in the container, and it runs them. The algorithm lives outside
this package; only the interface is defined here.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Protocol, runtime_checkable

from .events import UpdateBatch

# Opaque unit of reconciliation work returned by the diff engine.
ActionGroup = Any

# Events livepush-style engines emit while running commands.
COMMAND_EXECUTE_EVENT = "commandExecute"
COMMAND_OUTPUT_EVENT = "commandOutput"


@runtime_checkable
class DiffEngine(Protocol):
    """
    Protocol for diff engines.

    Implementations must provide:
    - actions_needed(): Ordered action groups for a batch (may be empty)
    - perform_actions(): Run action groups against the bound container
    """

    async def actions_needed(self, batch: UpdateBatch) -> Sequence[ActionGroup]:
        """Return the ordered action groups `batch` requires."""
        ...

    async def perform_actions(
        self,
        batch: UpdateBatch,
        actions: Sequence[ActionGroup],
    ) -> bool | None:
        """
        Run `actions` in order.

        ActionExecutor passes one group per call, so implementations must
        accept a single-group sequence and may copy files or restart the
        container once per call.

        Returns False or raises on failure; True or None means success.
        """
        ...


@runtime_checkable
class ObservableDiffEngine(DiffEngine, Protocol):
    """A diff engine that reports the commands it runs."""

    def on(self, event: str, callback: Callable[[Any], None]) -> Any: ...


class DiffEngineFactory(Protocol):
    """
    Creates a diff engine bound to a container.

    May raise DiffEngineInitError when the dockerfile cannot be parsed.
    """

    def __call__(self, dockerfile: str, context: str, container_id: str) -> DiffEngine: ...


def describe_action_group(group: ActionGroup) -> str:
    """Render an action group for logs."""
    commands = getattr(group, "commands", None)
    if commands:
        return " && ".join(str(c) for c in commands)
    return repr(group)


__all__ = [
    "COMMAND_EXECUTE_EVENT",
    "COMMAND_OUTPUT_EVENT",
    "ActionGroup",
    "DiffEngine",
    "DiffEngineFactory",
    "ObservableDiffEngine",
    "describe_action_group",
]
