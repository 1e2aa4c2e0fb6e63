"""
Observability for livesync.

Provides the logger sink used by the sync engine. Messages fall into two
categories:
- debug: internal detail (settle polling, raw filesystem events)
- livepush: operator-facing progress ("Detected changes...", "Restarting...")

Design Philosophy:
- The engine only emits, it never reads back from a sink
- Sinks are swappable (stdlib text, JSON, or a recording fake in tests)
- Per-service loggers prefix messages with "[service <name>]"
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger(__name__)

LIVEPUSH_CATEGORY = "livepush"


class LogLevel(Enum):
    """Standard log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


# =============================================================================
# Sink Protocol
# =============================================================================


class LogSink(Protocol):
    """
    Protocol for leveled log sinks.

    Context keyword arguments are structured fields; how they are
    rendered is up to the sink.
    """

    def debug(self, message: str, **context: Any) -> None: ...

    def info(self, message: str, **context: Any) -> None: ...

    def warning(self, message: str, **context: Any) -> None: ...

    def error(self, message: str, **context: Any) -> None: ...


# =============================================================================
# Sink Implementations
# =============================================================================


@dataclass
class StandardLogSink:
    """
    Sink that forwards to a standard library logger.

    Context is appended as key=value pairs:
        Restarting container for service web [category=livepush]
    """

    name: str = "livesync"
    _python_logger: logging.Logger = field(init=False)

    def __post_init__(self) -> None:
        self._python_logger = logging.getLogger(self.name)

    def _log(self, level: LogLevel, message: str, context: dict[str, Any]) -> None:
        if context:
            rendered = " ".join(f"{k}={v}" for k, v in context.items())
            message = f"{message} [{rendered}]"
        getattr(self._python_logger, level.value)(message)

    def debug(self, message: str, **context: Any) -> None:
        self._log(LogLevel.DEBUG, message, context)

    def info(self, message: str, **context: Any) -> None:
        self._log(LogLevel.INFO, message, context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(LogLevel.WARNING, message, context)

    def error(self, message: str, **context: Any) -> None:
        self._log(LogLevel.ERROR, message, context)


@dataclass
class JSONLogSink:
    """
    Sink that outputs JSON-formatted records.

    Example output:
        {"timestamp": "2026-01-02T10:30:00+00:00", "level": "info",
         "message": "Restarting container for service web",
         "category": "livepush", "service": "web"}
    """

    name: str = "livesync"
    extra_context: dict[str, Any] = field(default_factory=dict)
    _python_logger: logging.Logger = field(init=False)

    def __post_init__(self) -> None:
        self._python_logger = logging.getLogger(self.name)

    def _log(self, level: LogLevel, message: str, context: dict[str, Any]) -> None:
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level.value,
            "message": message,
            **self.extra_context,
            **context,
        }
        getattr(self._python_logger, level.value)(json.dumps(record, default=str))

    def debug(self, message: str, **context: Any) -> None:
        self._log(LogLevel.DEBUG, message, context)

    def info(self, message: str, **context: Any) -> None:
        self._log(LogLevel.INFO, message, context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(LogLevel.WARNING, message, context)

    def error(self, message: str, **context: Any) -> None:
        self._log(LogLevel.ERROR, message, context)


# =============================================================================
# LiveSync Logger
# =============================================================================


@dataclass
class LiveSyncLogger:
    """
    Category-aware logger used throughout the sync engine.

    Example:
        log = LiveSyncLogger()
        log.livepush("Waiting for device state to settle...")
        web = log.for_service("web")
        web.livepush("Executing command: `npm install`")
        # -> "[service web] Executing command: `npm install`"
    """

    sink: LogSink = field(default_factory=StandardLogSink)
    service_name: str | None = None

    def _format(self, message: str) -> str:
        if self.service_name:
            return f"[service {self.service_name}] {message}"
        return message

    def _context(self, context: dict[str, Any]) -> dict[str, Any]:
        if self.service_name:
            return {"service": self.service_name, **context}
        return context

    def debug(self, message: str, **context: Any) -> None:
        self.sink.debug(self._format(message), **self._context(context))

    def livepush(self, message: str, **context: Any) -> None:
        """Operator-facing progress message."""
        self.sink.info(
            self._format(message),
            category=LIVEPUSH_CATEGORY,
            **self._context(context),
        )

    def warning(self, message: str, **context: Any) -> None:
        self.sink.warning(self._format(message), **self._context(context))

    def error(self, message: str, **context: Any) -> None:
        self.sink.error(self._format(message), **self._context(context))

    def for_service(self, service_name: str) -> LiveSyncLogger:
        """Create a logger whose messages are scoped to one service."""
        return LiveSyncLogger(sink=self.sink, service_name=service_name)


def configure_logging(level: str = "INFO", json_logs: bool = False) -> LiveSyncLogger:
    """
    Configure stdlib logging for a host process and return a logger.

    Hosts that already configure logging can build LiveSyncLogger directly.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s" if json_logs else "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    sink: LogSink = JSONLogSink() if json_logs else StandardLogSink()
    logger.debug(f"Logging configured: level={level}, json={json_logs}")
    return LiveSyncLogger(sink=sink)


__all__ = [
    "LIVEPUSH_CATEGORY",
    "JSONLogSink",
    "LiveSyncLogger",
    "LogLevel",
    "LogSink",
    "StandardLogSink",
    "configure_logging",
]
