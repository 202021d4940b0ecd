"""Thin git client issuing one shell command per operation."""

from __future__ import annotations

import logging
import shlex
from pathlib import Path

from ..process import CommandResult, CommandRunner

logger = logging.getLogger(__name__)


class GitClient:
    """Run git sub-commands inside a fixed working directory.

    Arguments are quoted but otherwise passed through untouched; a bad ref
    only shows up as a failed :class:`CommandResult`.
    """

    def __init__(
        self,
        path: str | Path,
        runner: CommandRunner,
        *,
        head: str = "master",
        remote: str = "origin",
        executable: str = "git",
    ) -> None:
        self.path = Path(path)
        self.head = head
        self.remote = remote
        self._runner = runner
        self._executable = executable

    async def exec(self, *args: str) -> CommandResult:
        command = shlex.join([self._executable, *args])
        logger.info("exec %s", command, extra={"cwd": str(self.path)})
        return await self._runner.run(command, cwd=self.path)

    async def init(self) -> CommandResult:
        return await self.exec("init", ".")

    async def add_remote(self, url: str, name: str | None = None) -> CommandResult:
        return await self.exec("remote", "add", name or self.remote, url)

    async def fetch(self, remote: str | None = None) -> CommandResult:
        return await self.exec("fetch", remote or self.remote)

    async def checkout(self, ref: str | None = None) -> CommandResult:
        if ref:
            self.head = ref
        return await self.exec("checkout", self.head)

    async def reset(self, ref: str, *, hard: bool = False) -> CommandResult:
        args = ["reset"]
        if hard:
            args.append("--hard")
        return await self.exec(*args, ref)

    async def rev_list(self, ref: str) -> CommandResult:
        return await self.exec("rev-list", ref)

    async def rev_parse(self, ref: str) -> CommandResult:
        return await self.exec("rev-parse", "--verify", ref)


__all__ = ["GitClient"]
