"""Build execution and status tracking."""

from .executor import (
    HEAD,
    BuildAlreadyRunningError,
    BuildError,
    BuildExecutor,
    BuildNotFoundError,
    NoBuildCommandError,
    SourceSyncError,
)
from .interrupts import ActiveBuilds, active_builds
from .models import BuildStatus

__all__ = [
    "ActiveBuilds",
    "BuildAlreadyRunningError",
    "BuildError",
    "BuildExecutor",
    "BuildNotFoundError",
    "BuildStatus",
    "HEAD",
    "NoBuildCommandError",
    "SourceSyncError",
    "active_builds",
]
