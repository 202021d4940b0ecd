"""Projects, branches and the workspace that holds them."""

from .errors import (
    BranchNotCheckedOutError,
    InvalidProjectNameError,
    InvalidRefError,
    ProjectCheckoutError,
    ProjectError,
    ProjectNotFoundError,
    WorkspaceAlreadyInstalledError,
    WorkspaceNotInstalledError,
)
from .models import ProjectConfig, WorkspaceConfig
from .project import Branch, Project
from .workspace import Workspace

__all__ = [
    "Branch",
    "BranchNotCheckedOutError",
    "InvalidProjectNameError",
    "InvalidRefError",
    "Project",
    "ProjectCheckoutError",
    "ProjectConfig",
    "ProjectError",
    "ProjectNotFoundError",
    "Workspace",
    "WorkspaceAlreadyInstalledError",
    "WorkspaceConfig",
    "WorkspaceNotInstalledError",
]
