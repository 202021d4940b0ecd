"""Config models for projects and the workspace."""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator


def deep_merge(base: Mapping[str, Any], changes: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``changes`` into a copy of ``base``, descending into nested mappings."""

    merged = dict(base)
    for key, value in changes.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class ProjectConfig(BaseModel):
    """Contents of a project's ``.cin.json``."""

    model_config = ConfigDict(extra="allow")

    name: str | None = Field(default=None, description="Canonical owner/repo name.")
    alias: str | None = Field(default=None, description="Short name accepted in place of owner/repo.")
    repository: str | None = Field(default=None, description="Clone URL used as the origin remote.")
    command: str | None = Field(default="make test", description="Shell command that runs the build.")
    env: dict[str, str] = Field(
        default_factory=lambda: {"NODE_ENV": "test", "RAILS_ENV": "test"},
        description="Environment applied to the build command.",
    )
    versions: dict[str, str] = Field(
        default_factory=lambda: {"node": "*", "ruby": "*"},
        description="Runtime version constraints.",
    )

    @field_validator("env", mode="before")
    @classmethod
    def _stringify_env(cls, value: Any):
        if value is None:
            return {}
        if isinstance(value, Mapping):
            return {str(key): str(item) for key, item in value.items()}
        raise TypeError("env must be a mapping of variable names to values")


class BuildsConfig(BaseModel):
    concurrency: int = 2

    @field_validator("concurrency")
    @classmethod
    def _validate_concurrency(cls, value: int) -> int:
        if value < 1:
            raise ValueError("builds.concurrency must be >= 1")
        return value


class WorkspaceConfig(BaseModel):
    """Contents of the workspace ``.cin-server.json``."""

    model_config = ConfigDict(extra="allow")

    environments: dict[str, str] = Field(default_factory=lambda: {"node": "nvm", "ruby": "rbenv"})
    builds: BuildsConfig = Field(default_factory=BuildsConfig)


__all__ = ["BuildsConfig", "ProjectConfig", "WorkspaceConfig", "deep_merge"]
