"""
Configuration Schemas for livesync.

Pydantic models for runtime settings. Values usually come from
LIVESYNC_* environment variables (see settings.py).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from livesync.observability import LiveSyncLogger
    from livesync.sync.settle import SettlePolicy

DEFAULT_IGNORE_PATTERNS = [
    ".git",
    "node_modules",
    "*.swp",
    "*.swo",
    "*~",
    ".DS_Store",
]


class LiveSyncSettings(BaseModel):
    """
    Settings for a live-update run.

    The settle poll has no upper bound unless settle_max_attempts or
    settle_timeout_seconds is set.
    """

    model_config = ConfigDict(extra="forbid")

    # Device supervisor API
    device_address: str = Field("127.0.0.1", description="Device IP or hostname")
    device_port: int = Field(48484, ge=1, le=65535, description="Supervisor API port")
    request_timeout: float = Field(30.0, gt=0, description="HTTP timeout in seconds")

    # Settle polling
    settle_interval_ms: int = Field(500, ge=0, description="Delay between state polls")
    settle_max_attempts: int | None = Field(None, ge=1)
    settle_timeout_seconds: float | None = Field(None, gt=0)
    settle_retry_on_error: bool = Field(
        True, description="Treat device state fetch errors as transient"
    )

    # Watching
    ignore_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    @property
    def device_base_url(self) -> str:
        return f"http://{self.device_address}:{self.device_port}"

    def settle_policy(self) -> SettlePolicy:
        """Build the poller policy described by these settings."""
        from livesync.sync.backoff import ConstantBackoff
        from livesync.sync.settle import SettlePolicy

        return SettlePolicy(
            backoff=ConstantBackoff(delay=self.settle_interval_ms / 1000),
            max_attempts=self.settle_max_attempts,
            timeout=self.settle_timeout_seconds,
            retry_on_error=self.settle_retry_on_error,
        )

    def configure_logging(self) -> LiveSyncLogger:
        """Configure stdlib logging from log_level / json_logs."""
        from livesync.observability import configure_logging

        return configure_logging(level=self.log_level, json_logs=self.json_logs)
