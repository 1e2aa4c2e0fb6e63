"""
Exceptions for livesync.

All errors derive from LiveSyncError so hosts can catch the whole family.
Each error carries structured attributes for logging; str() gives a
readable, operator-facing message.

Severity:
- ConfigurationError: fatal to initialization (no sessions are created)
- DiffEngineInitError: fatal to one session, other sessions continue
- UnknownEventError: fatal to one filesystem event
- ExecutionError: fatal to one batch, container left partially updated
- DeviceStatusError: transient by default (see settle.py)
- SettleTimeoutError: raised only when a settle deadline is configured
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .sync.events import UpdateBatch


class LiveSyncError(Exception):
    """Base exception for livesync errors."""


class ConfigurationError(LiveSyncError):
    """Composition, build tasks and device state disagree."""

    def __init__(self, message: str, service_name: str | None = None):
        super().__init__(message)
        self.service_name = service_name

    def __str__(self) -> str:
        if self.service_name:
            return f"{self.args[0]} (service: {self.service_name})"
        return self.args[0]


class UnknownEventError(LiveSyncError):
    """A watcher emitted an event kind outside add/change/unlink."""

    def __init__(self, kind: Any, path: str = ""):
        super().__init__(f"Unknown event: {kind}")
        self.kind = kind
        self.path = path


class DiffEngineInitError(LiveSyncError):
    """The diff engine could not bind to a dockerfile/context/container."""

    def __init__(
        self,
        message: str,
        service_name: str | None = None,
        *,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.service_name = service_name
        self.cause = cause

    def __str__(self) -> str:
        parts = [self.args[0]]
        if self.service_name:
            parts.append(f"(service: {self.service_name})")
        if self.cause is not None:
            parts.append(f"caused by {type(self.cause).__name__}: {self.cause}")
        return " ".join(parts)


class ExecutionError(LiveSyncError):
    """
    An action group failed while updating a container.

    Groups before `group_index` were applied and are not rolled back,
    so the container is in a partially-updated state.
    """

    def __init__(
        self,
        service_name: str,
        batch: UpdateBatch,
        *,
        group_index: int,
        group: Any,
        completed: int,
        cause: BaseException | None = None,
    ):
        super().__init__(
            f"Action group {group_index} failed for service {service_name}"
        )
        self.service_name = service_name
        self.batch = batch
        self.group_index = group_index
        self.group = group
        self.completed = completed
        self.cause = cause

    def __str__(self) -> str:
        msg = (
            f"Action group {self.group_index} failed for service "
            f"{self.service_name} after {self.completed} group(s) were applied; "
            f"container is partially updated (batch={self.batch.to_dict()})"
        )
        if self.cause is not None:
            msg += f": {type(self.cause).__name__}: {self.cause}"
        return msg


class DeviceStatusError(LiveSyncError, OSError):
    """Fetching the device state failed."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        retryable: bool = True,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable

    def __str__(self) -> str:
        if self.status_code:
            return f"{self.args[0]} (status={self.status_code})"
        return self.args[0]


class SettleTimeoutError(LiveSyncError, TimeoutError):
    """The device did not settle within the configured bound."""

    def __init__(self, attempts: int, elapsed: float):
        super().__init__(
            f"Device state did not settle after {attempts} attempt(s) "
            f"({elapsed:.1f}s)"
        )
        self.attempts = attempts
        self.elapsed = elapsed


__all__ = [
    "ConfigurationError",
    "DeviceStatusError",
    "DiffEngineInitError",
    "ExecutionError",
    "LiveSyncError",
    "SettleTimeoutError",
    "UnknownEventError",
]
