"""Projects and their checked-out branches on disk.

Layout under the workspace ``projects/`` directory::

    <owner>-<repo>/.cin.json
    <owner>-<repo>/<ref>/source/           working copy
    <owner>-<repo>/<ref>/builds/<ref>/     status.json, build.log
"""

from __future__ import annotations

import json
import logging
import os
import shutil
from pathlib import Path
from typing import Any, Iterator

from ..builds import HEAD, BuildExecutor, BuildStatus
from ..builds.executor import STATUS_FILENAME
from ..process import CommandRunner
from ..vcs import SourceRepository
from .errors import (
    BranchNotCheckedOutError,
    ProjectCheckoutError,
    ProjectNotFoundError,
)
from .models import ProjectConfig, deep_merge
from .naming import check_ref, directory_name, name_from_directory, parse_head, parse_name

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".cin.json"
SOURCE_DIRNAME = "source"
BUILDS_DIRNAME = "builds"


def _walk_until(root: Path, marker: str) -> Iterator[Path]:
    """Yield directories below ``root`` containing ``marker`` without descending into them."""

    if not root.is_dir():
        return
    for dirpath, dirnames, filenames in os.walk(root):
        if marker in dirnames or marker in filenames:
            dirnames[:] = []
            yield Path(dirpath)
            continue
        dirnames.sort()


class Branch:
    """A checked-out ref of a project, owning its working copy and builds."""

    def __init__(
        self,
        ref: str,
        *,
        project_name: str,
        project_path: str | Path,
        config: ProjectConfig,
        runner: CommandRunner,
        git_executable: str = "git",
    ) -> None:
        self.ref = check_ref(ref)
        self.project_name = project_name
        self.name = f"{project_name}@{ref}"
        self.path = Path(project_path) / ref
        self.source_path = self.path / SOURCE_DIRNAME
        self.builds_path = self.path / BUILDS_DIRNAME
        self.config = config
        self._runner = runner
        self.repository = SourceRepository(
            self.source_path,
            config.repository or "",
            head=ref,
            runner=runner,
            git_executable=git_executable,
        )

    def exists(self) -> bool:
        return self.source_path.exists()

    async def checkout(self):
        """Create the branch directories and check the source out at ``ref``."""

        for directory in (self.path, self.source_path, self.builds_path):
            if not directory.exists():
                directory.mkdir(parents=True, exist_ok=True)
                logger.info("create %s", directory)
        return await self.repository.checkout(self.ref)

    def build(self, ref: str | None = None) -> BuildExecutor:
        self.assert_exists()
        ref = check_ref(ref or HEAD)
        label = self.ref if ref == HEAD else ref
        return BuildExecutor(
            ref,
            name=f"{self.project_name}@{label}",
            path=self.builds_path / ref,
            repository=self.repository,
            command=self.config.command,
            env=self.config.env,
            runner=self._runner,
        )

    def load_status(self, ref: str | None = None) -> BuildStatus:
        return self.build(ref).load_status()

    def builds(self) -> list[BuildExecutor]:
        self.assert_exists()
        return [
            self.build(path.relative_to(self.builds_path).as_posix())
            for path in _walk_until(self.builds_path, STATUS_FILENAME)
            if path != self.builds_path
        ]

    def destroy(self) -> None:
        self.assert_exists()
        shutil.rmtree(self.path)
        logger.info("remove %s", self.path)

    def assert_exists(self) -> None:
        if not self.exists():
            raise BranchNotCheckedOutError(f'Branch "{self.name}" hasn\'t been checked out yet.')

    @classmethod
    def all(cls, project: "Project") -> list["Branch"]:
        return [
            project.branch(path.relative_to(project.path).as_posix())
            for path in _walk_until(project.path, SOURCE_DIRNAME)
            if path != project.path
        ]


class Project:
    """A repository registered in the workspace, configured by ``.cin.json``."""

    def __init__(
        self,
        name: str,
        projects_path: str | Path,
        *,
        runner: CommandRunner | None = None,
        default_head: str = "master",
        git_executable: str = "git",
    ) -> None:
        self.name = parse_name(name)
        self.head = parse_head(name, default_head)
        self.alias = self.name.split("/")[1]
        self.path = Path(projects_path) / directory_name(self.name)
        self.config_path = self.path / CONFIG_FILENAME
        self._runner = runner
        self._git_executable = git_executable
        self._config: ProjectConfig | None = None

    @property
    def runner(self) -> CommandRunner:
        if self._runner is None:
            self._runner = CommandRunner()
        return self._runner

    def exists(self) -> bool:
        return self.config_path.exists()

    def load_config(self) -> ProjectConfig:
        self.assert_exists()
        if self._config is None:
            self._config = ProjectConfig.model_validate_json(self.config_path.read_text(encoding="utf-8"))
        return self._config

    def save_config(self, **changes: Any) -> ProjectConfig:
        """Deep-merge ``changes`` into the stored (or default) config and write it."""

        existing = self.load_config() if self.exists() else ProjectConfig()
        config = ProjectConfig.model_validate(deep_merge(existing.model_dump(), changes))
        self.path.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(json.dumps(config.model_dump(), indent=2), encoding="utf-8")
        self._config = config
        logger.info("write %s", self.config_path)
        return config

    async def create(self, **options: Any) -> Branch:
        """Write the config and check out the head branch.

        A brand-new project whose first checkout fails is removed again.
        """

        if self.exists():
            branch = self.branch()
            result = await branch.checkout()
            if not result.ok:
                raise ProjectCheckoutError(branch.name, result)
            return branch

        defaults = {
            "name": self.name,
            "alias": self.alias,
            "repository": f"git@github.com:{self.name}.git",
        }
        if not self.path.exists():
            self.path.mkdir(parents=True, exist_ok=True)
            logger.info("create %s", self.path)
        self.save_config(**{**defaults, **{key: value for key, value in options.items() if value is not None}})

        branch = self.branch()
        result = await branch.checkout()
        if not result.ok:
            self.destroy()
            raise ProjectCheckoutError(branch.name, result)
        return branch

    def branch(self, name: str | None = None) -> Branch:
        config = self.load_config()
        return Branch(
            name or self.head,
            project_name=self.name,
            project_path=self.path,
            config=config,
            runner=self.runner,
            git_executable=self._git_executable,
        )

    def branches(self) -> list[Branch]:
        self.assert_exists()
        return Branch.all(self)

    def build(self, ref: str | None = None) -> BuildExecutor:
        return self.branch().build(ref)

    def destroy(self) -> None:
        self.assert_exists()
        shutil.rmtree(self.path)
        self._config = None
        logger.info("remove %s", self.path)

    def assert_exists(self) -> None:
        if not self.exists():
            raise ProjectNotFoundError(f'Project "{self.name}" doesn\'t exist.')

    @classmethod
    def all(cls, projects_path: str | Path, **kwargs: Any) -> list["Project"]:
        root = Path(projects_path)
        if not root.is_dir():
            return []
        projects: list[Project] = []
        for entry in sorted(root.iterdir()):
            config_path = entry / CONFIG_FILENAME
            if not entry.is_dir() or not config_path.exists():
                continue
            stored = ProjectConfig.model_validate_json(config_path.read_text(encoding="utf-8"))
            projects.append(cls(stored.name or name_from_directory(entry.name), root, **kwargs))
        return projects


__all__ = ["Branch", "CONFIG_FILENAME", "Project"]
