"""
livesync Sync Engine

Settle -> build sessions -> watch -> classify -> diff -> execute.
"""

from .backoff import BackoffStrategy, ConstantBackoff, NoBackoff
from .diff import (
    COMMAND_EXECUTE_EVENT,
    COMMAND_OUTPUT_EVENT,
    ActionGroup,
    DiffEngine,
    DiffEngineFactory,
    ObservableDiffEngine,
    describe_action_group,
)
from .events import FileEventKind, FilesystemEvent, UpdateBatch, classify, parse_event_kind
from .executor import ActionExecutor, ExecutionResult
from .factory import SessionPlan, build_sessions, plan_sessions
from .manager import LiveSyncManager
from .session import SessionState, UpdateSession
from .settle import (
    DEVICE_STATUS_SETTLE_CHECK_INTERVAL,
    SettlePolicy,
    StabilizationPoller,
    await_settled,
)
from .watcher import ContextEventHandler, ContextWatcher, EventSink, Watcher, WatcherFactory, watcher_factory

__all__ = [
    # Backoff
    "BackoffStrategy",
    "ConstantBackoff",
    "NoBackoff",
    # Settle
    "DEVICE_STATUS_SETTLE_CHECK_INTERVAL",
    "SettlePolicy",
    "StabilizationPoller",
    "await_settled",
    # Events
    "FileEventKind",
    "FilesystemEvent",
    "UpdateBatch",
    "classify",
    "parse_event_kind",
    # Diff engine
    "COMMAND_EXECUTE_EVENT",
    "COMMAND_OUTPUT_EVENT",
    "ActionGroup",
    "DiffEngine",
    "DiffEngineFactory",
    "ObservableDiffEngine",
    "describe_action_group",
    # Watching
    "ContextEventHandler",
    "ContextWatcher",
    "EventSink",
    "Watcher",
    "WatcherFactory",
    "watcher_factory",
    # Execution
    "ActionExecutor",
    "ExecutionResult",
    # Sessions
    "SessionPlan",
    "SessionState",
    "UpdateSession",
    "build_sessions",
    "plan_sessions",
    "LiveSyncManager",
]
