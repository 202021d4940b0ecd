"""Run the configured build command for one ref of a branch."""

from __future__ import annotations

import json
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Mapping

from ..process import CommandResult, CommandRunner, RunningCommand
from ..vcs import SourceRepository
from .interrupts import ActiveBuilds, active_builds
from .models import BuildStatus

logger = logging.getLogger(__name__)

HEAD = "HEAD"
STATUS_FILENAME = "status.json"
LOG_FILENAME = "build.log"


class BuildError(RuntimeError):
    """Base class for build errors."""


class BuildAlreadyRunningError(BuildError):
    """Raised when a build is started while its status says it is running."""


class NoBuildCommandError(BuildError):
    """Raised when the project has no build command configured."""


class BuildNotFoundError(BuildError):
    """Raised when a build has no status record on disk."""


class SourceSyncError(BuildError):
    """Raised when the working copy cannot be reset to the build ref."""

    def __init__(self, name: str, ref: str, result: CommandResult) -> None:
        self.result = result
        detail = (result.error or "").strip() or f"exit code {result.returncode}"
        super().__init__(f'Unable to sync "{name}" to {ref}: {detail}')


class BuildExecutor:
    """Own one build target: a ref, its build directory and its status record.

    The executor may be run repeatedly; every :meth:`run` resets the working
    copy to ``ref``, runs ``command`` there with output appended to
    ``build.log`` and records the outcome in ``status.json``. The record is
    cached after the first read, so ``running`` only guards against
    re-entry within this process.
    """

    def __init__(
        self,
        ref: str | None,
        *,
        name: str,
        path: str | Path,
        repository: SourceRepository,
        command: str | None,
        env: Mapping[str, str] | None = None,
        runner: CommandRunner | None = None,
        registry: ActiveBuilds | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.ref = ref or HEAD
        self.name = name
        self.path = Path(path)
        self.status_path = self.path / STATUS_FILENAME
        self.log_path = self.path / LOG_FILENAME
        self.repository = repository
        self.command = command
        self.env = dict(env or {})
        self._runner = runner or CommandRunner()
        self._registry = active_builds if registry is None else registry
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._status: BuildStatus | None = None
        self._process: RunningCommand | None = None
        self._claimed = False

    @property
    def is_head(self) -> bool:
        return self.ref == HEAD

    @property
    def process(self) -> RunningCommand | None:
        return self._process

    def exists(self) -> bool:
        return self.status_path.exists()

    def load_status(self) -> BuildStatus:
        """Return the status record, creating it with defaults when missing."""

        if not self.exists():
            return self.save_status()
        if self._status is None:
            self._status = BuildStatus.model_validate_json(self.status_path.read_text(encoding="utf-8"))
        return self._status

    def save_status(self, **changes) -> BuildStatus:
        """Merge ``changes`` into the record and rewrite the status file."""

        status = (self._status or BuildStatus()).merged(**changes)
        if not self.path.exists():
            self.path.mkdir(parents=True, exist_ok=True)
            logger.info("create %s", self.path)
        self.status_path.write_text(json.dumps(status.to_document(), indent=2), encoding="utf-8")
        self._status = status
        logger.debug("write %s", self.status_path, extra={"status": status.to_document()})
        return status

    def read_log(self) -> str:
        if not self.log_path.exists():
            return ""
        return self.log_path.read_text(encoding="utf-8", errors="replace")

    async def run(self) -> BuildStatus:
        """Sync the working copy, run the build command and return the final status.

        A failing build command is an outcome, not an error: it comes back as
        ``success=False``. Errors are raised only for broken preconditions and
        for a working copy that cannot be synced. A build cancelled or
        interrupted while its command runs is stopped and recorded as failed
        before the cancellation propagates.
        """

        self.assert_not_running()
        if not self.command:
            raise NoBuildCommandError(f'No build command set for "{self.name}"')

        self._claimed = True
        try:
            return await self._run()
        finally:
            self._claimed = False

    async def _run(self) -> BuildStatus:
        sync = await self.repository.reset(self.ref)
        if not sync.ok:
            raise SourceSyncError(self.name, self.ref, sync)

        logger.info("building %s", self.name, extra={"ref": self.ref, "command": self.command})
        self.save_status(running=True)

        with self.log_path.open("ab", buffering=0) as build_log:
            try:
                handle = await self._runner.start(
                    self.command,
                    cwd=self.repository.path,
                    env=self.env,
                    output=build_log,
                )
            except BaseException:
                self.save_status(running=False, success=False)
                raise

            self._process = handle
            self._registry.register(self)
            try:
                result = await handle.wait()
            except BaseException:
                handle.terminate()
                self.save_status(running=False, last_run_at=self._clock(), success=False)
                logger.warning("build %s interrupted", self.name)
                raise
            finally:
                self._registry.unregister(self)
                self._process = None

        if not result.ok:
            logger.error(
                "build %s failed: %s",
                self.name,
                (result.error or "").strip(),
                extra={"returncode": result.returncode},
            )

        status = self.save_status(running=False, last_run_at=self._clock(), success=result.ok)
        logger.info(
            "finished %s",
            self.name,
            extra={"success": status.success, "returncode": result.returncode},
        )
        return status

    def stop(self) -> bool:
        """Signal the live build process, if any. Status is updated when it exits."""

        handle = self._process
        if handle is None:
            return False
        signalled = handle.terminate()
        logger.info("stopped %s", self.name)
        return signalled

    def destroy(self) -> None:
        """Remove the build directory, status and log included."""

        self.assert_exists()
        self.assert_not_running()
        shutil.rmtree(self.path)
        self._status = None
        logger.info("remove %s", self.path)

    def assert_exists(self) -> None:
        if not self.exists():
            raise BuildNotFoundError(f'Build "{self.name}" doesn\'t exist.')

    def assert_not_running(self) -> None:
        if self._claimed or self._process is not None or self.load_status().running:
            raise BuildAlreadyRunningError(f'Build "{self.name}" is already running!')


__all__ = [
    "BuildAlreadyRunningError",
    "BuildError",
    "BuildExecutor",
    "BuildNotFoundError",
    "HEAD",
    "LOG_FILENAME",
    "NoBuildCommandError",
    "STATUS_FILENAME",
    "SourceSyncError",
]
