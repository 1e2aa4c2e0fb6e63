"""
livesync - live updates for containers running on a development device.

livesync watches the build context of every service in a multi-service
composition and, when source files change, applies the change to the
running container in place instead of rebuilding the image:

- **Settle**: wait until the device reports its target state as applied
- **Sessions**: one watch-and-update session per buildable service
- **Classify**: each filesystem event becomes one update batch
- **Diff**: an external diff engine decides which action groups to run
- **Execute**: action groups run in order, one execution per container

Quick Start:
    >>> from livesync import LiveSyncManager
    >>> from livesync.device import DeviceAPI
    >>>
    >>> manager = LiveSyncManager(
    ...     context_root="/src/project",
    ...     composition=composition,
    ...     build_tasks=build_tasks,
    ...     provider=DeviceAPI.for_address("192.168.1.20"),
    ...     diff_engine_factory=make_engine,
    ... )
    >>> await manager.init()
"""

__version__ = "0.1.0"
__license__ = "MIT"

from livesync.compose import BuildConfig, BuildTask, Composition, ServiceDefinition
from livesync.config import LiveSyncSettings, get_settings
from livesync.errors import (
    ConfigurationError,
    DeviceStatusError,
    DiffEngineInitError,
    ExecutionError,
    LiveSyncError,
    SettleTimeoutError,
    UnknownEventError,
)
from livesync.observability import LiveSyncLogger, configure_logging
from livesync.sync import LiveSyncManager, UpdateBatch, UpdateSession

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Inputs
    "BuildConfig",
    "BuildTask",
    "Composition",
    "ServiceDefinition",
    # Configuration
    "LiveSyncSettings",
    "get_settings",
    # Errors
    "ConfigurationError",
    "DeviceStatusError",
    "DiffEngineInitError",
    "ExecutionError",
    "LiveSyncError",
    "SettleTimeoutError",
    "UnknownEventError",
    # Logging
    "LiveSyncLogger",
    "configure_logging",
    # Engine
    "LiveSyncManager",
    "UpdateBatch",
    "UpdateSession",
]
