"""
Pydantic schemas for the device supervisor state API.

The supervisor reports camelCase keys; models accept both the wire
aliases and the snake_case field names.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Enums
# =============================================================================


class AppState(str, Enum):
    """Application state reported by the supervisor."""

    APPLIED = "applied"
    APPLYING = "applying"


# =============================================================================
# Response Schemas
# =============================================================================


class ContainerStatus(BaseModel):
    """A container running on the device."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    service_name: str = Field(..., alias="serviceName")
    container_id: str = Field(..., alias="containerId")
    status: str | None = None
    app_id: int | None = Field(None, alias="appId")
    image_id: int | None = Field(None, alias="imageId")
    service_id: int | None = Field(None, alias="serviceId")
    created_at: str | None = Field(None, alias="createdAt")


class ImageStatus(BaseModel):
    """An image known to the device."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = ""
    service_name: str | None = Field(None, alias="serviceName")
    status: str | None = None
    download_progress: int | None = Field(None, alias="downloadProgress")


class DeviceStatus(BaseModel):
    """
    Point-in-time snapshot of the device's application state.

    app_state stays a plain string when the supervisor reports a value
    outside AppState; such states count as not settled.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    status: str = "success"
    app_state: AppState | str = Field(..., alias="appState")
    overall_download_progress: int | None = Field(None, alias="overallDownloadProgress")
    containers: list[ContainerStatus] = Field(default_factory=list)
    images: list[ImageStatus] = Field(default_factory=list)

    @property
    def is_settled(self) -> bool:
        return self.app_state == AppState.APPLIED

    def container_for(self, service_name: str) -> ContainerStatus | None:
        """Return the first running container reported for a service."""
        for container in self.containers:
            if container.service_name == service_name:
                return container
        return None
