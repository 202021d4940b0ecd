"""Local working copy kept in step with a remote ref."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Awaitable, Callable

from ..process import CommandResult, CommandRunner
from .git import GitClient

logger = logging.getLogger(__name__)


class SourceRepository:
    """Own a git checkout at ``path`` whose ``origin`` points at ``origin_url``.

    Every ref-changing operation first makes sure the checkout exists,
    running :meth:`create` when the ``.git`` directory is missing.
    """

    def __init__(
        self,
        path: str | Path,
        origin_url: str,
        *,
        head: str = "master",
        runner: CommandRunner | None = None,
        git: GitClient | None = None,
        git_executable: str = "git",
    ) -> None:
        self.path = Path(path)
        self._origin_url = origin_url
        if git is None:
            git = GitClient(
                self.path,
                runner or CommandRunner(),
                head=head,
                executable=git_executable,
            )
        self.git = git

    @property
    def origin_url(self) -> str:
        return self._origin_url

    @property
    def head(self) -> str:
        return self.git.head

    def exists(self) -> bool:
        return (self.path / ".git").exists()

    async def _series(self, steps: list[Callable[[], Awaitable[CommandResult]]]) -> CommandResult:
        if not steps:
            raise ValueError("no git steps to run")
        for step in steps:
            result = await step()
            if not result.ok:
                logger.warning(
                    "git step failed",
                    extra={"command": result.command, "returncode": result.returncode},
                )
                return result
        return result

    async def create(self) -> CommandResult:
        """Init the checkout, add ``origin`` and fetch it.

        Stops at the first failing step; whatever was created stays on disk.
        """

        if not self.path.exists():
            self.path.mkdir(parents=True, exist_ok=True)
            logger.info("create %s", self.path)
        return await self._series(
            [
                self.git.init,
                lambda: self.git.add_remote(self._origin_url, "origin"),
                lambda: self.git.fetch("origin"),
            ]
        )

    async def _ensure_created(self) -> CommandResult | None:
        if self.exists():
            return None
        return await self.create()

    async def checkout(self, ref: str) -> CommandResult:
        """Check out ``ref`` and hard-reset the tree to it, creating the checkout first if needed."""

        created = await self._ensure_created()
        if created is not None and not created.ok:
            return created
        return await self._series(
            [
                lambda: self.git.checkout(ref),
                lambda: self.git.reset(ref, hard=True),
            ]
        )

    async def reset(self, ref: str) -> CommandResult:
        """Hard-reset the tree to ``ref``; a missing checkout is only created."""

        created = await self._ensure_created()
        if created is not None:
            return created
        return await self.git.reset(ref, hard=True)

    async def fetch(self) -> CommandResult:
        created = await self._ensure_created()
        if created is not None:
            return created
        return await self.git.fetch("origin")


__all__ = ["SourceRepository"]
