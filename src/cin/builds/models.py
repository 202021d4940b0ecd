"""Build status record persisted next to every build."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class BuildStatus(BaseModel):
    """State of the most recent attempt for one build target."""

    model_config = ConfigDict(populate_by_name=True)

    running: bool = Field(default=False, description="Whether a build process is currently live.")
    last_run_at: datetime | None = Field(
        default=None,
        alias="lastRunAt",
        description="When the last attempt finished.",
    )
    success: bool = Field(default=False, description="Whether the last attempt exited with code 0.")

    def merged(self, **changes) -> "BuildStatus":
        """Return a copy with only the given fields replaced."""

        unknown = set(changes) - set(type(self).model_fields)
        if unknown:
            raise ValueError(f"Unknown status fields: {', '.join(sorted(unknown))}")
        return self.model_copy(update=changes)

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


__all__ = ["BuildStatus"]
