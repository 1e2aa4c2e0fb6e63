"""
Input models for the composition and its build tasks.

Both arrive already parsed. Composition mirrors the compose file's
`services` section; BuildTask carries the per-service build metadata
resolved by the multi-service build step (notably the dockerfile).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BuildConfig(BaseModel):
    """The `build` section of a service."""

    model_config = ConfigDict(extra="allow")

    context: str = Field(".", description="Build context, relative to the project root")
    dockerfile: str | None = Field(None, description="Dockerfile path within the context")


class ServiceDefinition(BaseModel):
    """One entry of the composition's `services` mapping."""

    model_config = ConfigDict(extra="allow")

    image: str | None = None
    build: BuildConfig | None = None

    @field_validator("build", mode="before")
    @classmethod
    def _normalize_build(cls, value: Any) -> Any:
        # `build: ./web` is shorthand for `build: {context: ./web}`
        if isinstance(value, str):
            return {"context": value}
        return value

    @property
    def is_buildable(self) -> bool:
        return self.build is not None


class Composition(BaseModel):
    """A parsed multi-service composition."""

    model_config = ConfigDict(extra="allow")

    version: str | None = None
    services: dict[str, ServiceDefinition] = Field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Composition:
        """Build a composition from an already-loaded compose mapping."""
        services = data.get("services") or {}
        return cls(
            version=str(data["version"]) if data.get("version") is not None else None,
            services={name: (svc or {}) for name, svc in services.items()},
        )


@dataclass(frozen=True, slots=True)
class BuildTask:
    """
    Build metadata for one service.

    `dockerfile` holds the resolved dockerfile contents; it is None when
    the build step could not locate one.
    """

    service_name: str
    dockerfile: str | None = None
    dockerfile_path: str | None = None
    context: str | None = None


def find_build_task(build_tasks: list[BuildTask], service_name: str) -> BuildTask | None:
    """Return the build task for a service, if any."""
    for task in build_tasks:
        if task.service_name == service_name:
            return task
    return None
