"""The workspace: a working path holding the server config and all projects."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ..builds import BuildExecutor, BuildStatus
from ..config import CinSettings, get_settings
from ..process import CommandRunner
from .errors import WorkspaceAlreadyInstalledError, WorkspaceNotInstalledError
from .models import WorkspaceConfig
from .project import Branch, Project

logger = logging.getLogger(__name__)

SERVER_CONFIG_FILENAME = ".cin-server.json"
PROJECTS_DIRNAME = "projects"


class Workspace:
    """Entry point tying settings, projects and builds together.

    ``name`` arguments accept ``owner/repo``, ``owner/repo@ref``, a GitHub
    clone URL, or a project alias optionally followed by ``@ref``.
    """

    def __init__(
        self,
        working_path: str | Path | None = None,
        *,
        settings: CinSettings | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self.working_path = Path(working_path or self._settings.working_path)
        self.projects_path = self.working_path / PROJECTS_DIRNAME
        self.config_path = self.working_path / SERVER_CONFIG_FILENAME
        self._runner = runner

    @property
    def runner(self) -> CommandRunner:
        if self._runner is None:
            self._runner = CommandRunner(self._settings.shell)
        return self._runner

    def _project_options(self) -> dict[str, Any]:
        return {
            "runner": self.runner,
            "default_head": self._settings.default_branch,
            "git_executable": self._settings.git_path,
        }

    def installed(self) -> bool:
        return self.config_path.exists()

    def install(self) -> WorkspaceConfig:
        if self.installed():
            raise WorkspaceAlreadyInstalledError(f"Already installed at {self.working_path}.")
        config = WorkspaceConfig()
        self.projects_path.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(json.dumps(config.model_dump(), indent=2), encoding="utf-8")
        logger.info("write %s", self.config_path)
        return config

    def load_config(self) -> WorkspaceConfig:
        self.assert_installed()
        return WorkspaceConfig.model_validate_json(self.config_path.read_text(encoding="utf-8"))

    def project(self, name: str) -> Project:
        self.assert_installed()
        return Project(self.resolve_alias(name), self.projects_path, **self._project_options())

    def projects(self) -> list[Project]:
        self.assert_installed()
        return Project.all(self.projects_path, **self._project_options())

    async def add(self, name: str, **options: Any) -> Branch:
        """Register a project and check out its head branch."""

        return await self.project(name).create(**options)

    def remove(self, name: str) -> None:
        """Delete the project directory. There is no undo."""

        self.project(name).destroy()

    def build(self, name: str, ref: str | None = None) -> BuildExecutor:
        return self.project(name).build(ref)

    async def run(self, name: str, ref: str | None = None) -> BuildStatus:
        return await self.build(name, ref).run()

    def resolve_alias(self, name: str) -> str:
        """Map ``alias[@ref]`` to ``owner/repo@ref``; other names pass through."""

        alias, _, head = name.partition("@")
        for project in self.projects():
            if project.load_config().alias == alias:
                return f"{project.name}@{head or self._settings.default_branch}"
        return name

    def assert_installed(self) -> None:
        if not self.installed():
            raise WorkspaceNotInstalledError(
                f"cin is not installed at {self.working_path}. "
                "Run `cin install` or change working paths."
            )


__all__ = ["PROJECTS_DIRNAME", "SERVER_CONFIG_FILENAME", "Workspace"]
