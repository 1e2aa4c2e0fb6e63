"""
Environment-backed settings loader.
"""

from __future__ import annotations

import os

from .schemas import DEFAULT_IGNORE_PATTERNS, LiveSyncSettings


def _optional_int(name: str) -> int | None:
    value = os.getenv(name)
    return int(value) if value else None


def _optional_float(name: str) -> float | None:
    value = os.getenv(name)
    return float(value) if value else None


def get_settings() -> LiveSyncSettings:
    """
    Get livesync settings from environment.

    LIVESYNC_IGNORE_PATTERNS is a comma-separated list of globs.
    """
    ignore = os.getenv("LIVESYNC_IGNORE_PATTERNS")
    return LiveSyncSettings(
        # Device
        device_address=os.getenv("LIVESYNC_DEVICE_ADDRESS", "127.0.0.1"),
        device_port=int(os.getenv("LIVESYNC_DEVICE_PORT", "48484")),
        request_timeout=float(os.getenv("LIVESYNC_REQUEST_TIMEOUT", "30")),
        # Settle polling
        settle_interval_ms=int(os.getenv("LIVESYNC_SETTLE_INTERVAL_MS", "500")),
        settle_max_attempts=_optional_int("LIVESYNC_SETTLE_MAX_ATTEMPTS"),
        settle_timeout_seconds=_optional_float("LIVESYNC_SETTLE_TIMEOUT"),
        settle_retry_on_error=os.getenv("LIVESYNC_SETTLE_RETRY_ON_ERROR", "true").lower()
        == "true",
        # Watching
        ignore_patterns=(
            [p.strip() for p in ignore.split(",") if p.strip()]
            if ignore
            else list(DEFAULT_IGNORE_PATTERNS)
        ),
        # Logging
        log_level=os.getenv("LIVESYNC_LOG_LEVEL", "INFO"),
        json_logs=os.getenv("LIVESYNC_JSON_LOGS", "false").lower() == "true",
    )
