"""
livesync Configuration

Pydantic settings populated from LIVESYNC_* environment variables.
"""

from .schemas import DEFAULT_IGNORE_PATTERNS, LiveSyncSettings
from .settings import get_settings

__all__ = [
    "DEFAULT_IGNORE_PATTERNS",
    "LiveSyncSettings",
    "get_settings",
]
