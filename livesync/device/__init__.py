"""
Device state access.

The supervisor on the device reports which containers are running and
whether the last target state has been fully applied.
"""

from .api import DEFAULT_SUPERVISOR_PORT, DeviceAPI, DeviceStateProvider
from .schemas import AppState, ContainerStatus, DeviceStatus, ImageStatus

__all__ = [
    "DEFAULT_SUPERVISOR_PORT",
    "AppState",
    "ContainerStatus",
    "DeviceAPI",
    "DeviceStateProvider",
    "DeviceStatus",
    "ImageStatus",
]
