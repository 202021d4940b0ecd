"""Errors raised by the project, branch and workspace layer."""

from __future__ import annotations

from ..process import CommandResult


class ProjectError(RuntimeError):
    """Base class for project errors."""


class InvalidProjectNameError(ProjectError):
    """Raised when a name cannot be parsed as ``owner/repo``."""


class InvalidRefError(ProjectError):
    """Raised when a ref would resolve outside its branch or builds directory."""


class ProjectNotFoundError(ProjectError):
    """Raised when a project has no config file."""


class BranchNotCheckedOutError(ProjectError):
    """Raised when a branch is used before its source has been checked out."""


class ProjectCheckoutError(ProjectError):
    """Raised when the initial checkout of a project fails."""

    def __init__(self, name: str, result: CommandResult) -> None:
        self.result = result
        detail = (result.error or "").strip() or f"exit code {result.returncode}"
        super().__init__(f'Unable to check out "{name}": {detail}')


class WorkspaceNotInstalledError(ProjectError):
    """Raised when the working path has no workspace config."""


class WorkspaceAlreadyInstalledError(ProjectError):
    """Raised when installing over an existing workspace."""


__all__ = [
    "BranchNotCheckedOutError",
    "InvalidProjectNameError",
    "InvalidRefError",
    "ProjectCheckoutError",
    "ProjectError",
    "ProjectNotFoundError",
    "WorkspaceAlreadyInstalledError",
    "WorkspaceNotInstalledError",
]
