"""Async runner for shell commands."""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import shutil
import signal
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, Mapping

from .utils import clean_error, log_complete_lines, log_output, sanitize_environment

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 8192


class CommandRunnerError(RuntimeError):
    """Base class for command runner errors."""


class ShellNotFoundError(CommandRunnerError):
    """Raised when the shell executable cannot be located."""


class CommandSpawnError(CommandRunnerError):
    """Raised when the operating system refuses to start a command."""


@dataclass(slots=True)
class CommandResult:
    """Holds the outcome of a finished command."""

    command: str
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def error(self) -> str | None:
        """Cleaned stderr of a failed command, ``None`` on success."""

        if self.ok:
            return None
        return clean_error(self.stderr)


class RunningCommand:
    """Handle on a live child process.

    Output is drained as it arrives: each chunk is copied to ``output`` (when
    given), forwarded to the output log and kept for the final result.
    """

    def __init__(
        self,
        command: str,
        process: asyncio.subprocess.Process,
        *,
        output: BinaryIO | None = None,
    ) -> None:
        self.command = command
        self.process = process
        self._output = output
        self._stdout = bytearray()
        self._stderr = bytearray()
        self._completion = asyncio.ensure_future(self._complete())

    @property
    def pid(self) -> int | None:
        return self.process.pid

    @property
    def finished(self) -> bool:
        return self._completion.done()

    async def _pump(self, stream: asyncio.StreamReader | None, buffer: bytearray) -> None:
        if stream is None:
            return
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        pending = ""
        while True:
            chunk = await stream.read(_CHUNK_SIZE)
            if not chunk:
                break
            buffer.extend(chunk)
            if self._output is not None:
                self._output.write(chunk)
            pending = log_complete_lines(pending + decoder.decode(chunk))
        log_output(pending + decoder.decode(b"", final=True))

    async def _complete(self) -> CommandResult:
        await asyncio.gather(
            self._pump(self.process.stdout, self._stdout),
            self._pump(self.process.stderr, self._stderr),
        )
        returncode = await self.process.wait()
        return CommandResult(
            command=self.command,
            returncode=returncode,
            stdout=self._stdout.decode("utf-8", errors="replace").strip(),
            stderr=self._stderr.decode("utf-8", errors="replace"),
        )

    async def wait(self) -> CommandResult:
        """Wait for the process to exit and return its result."""

        return await asyncio.shield(self._completion)

    def terminate(self, signum: int = signal.SIGTERM) -> bool:
        """Signal the process group; returns False when nothing was running."""

        if self.process.returncode is not None:
            return False
        try:
            os.killpg(os.getpgid(self.process.pid), signum)
        except ProcessLookupError:
            return False
        return True


class CommandRunner:
    """Execute shell commands asynchronously."""

    def __init__(self, shell: str | Path = "bash") -> None:
        self._shell_path = self._resolve_shell(shell)

    @staticmethod
    def _resolve_shell(shell: str | Path) -> Path:
        candidate = Path(shell)
        if candidate.is_absolute() or os.sep in str(shell):
            if candidate.exists() and candidate.is_file():
                return candidate
            raise ShellNotFoundError(f"Shell not found at {candidate}")

        binary = shutil.which(str(shell))
        if binary is None:
            raise ShellNotFoundError(f"Shell '{shell}' not found on PATH")
        return Path(binary)

    @property
    def shell(self) -> Path:
        return self._shell_path

    async def start(
        self,
        command: str,
        *,
        cwd: str | Path,
        env: Mapping[str, str] | None = None,
        output: BinaryIO | None = None,
    ) -> RunningCommand:
        """Spawn ``command`` through the shell and return without waiting."""

        try:
            process = await asyncio.create_subprocess_exec(
                str(self._shell_path),
                "-c",
                command,
                cwd=str(cwd),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=sanitize_environment(env),
                start_new_session=True,
            )
        except OSError as exc:
            raise CommandSpawnError(f"Unable to spawn '{command}' in {cwd}: {exc}") from exc
        logger.debug("Spawned command", extra={"command": command, "cwd": str(cwd), "pid": process.pid})
        return RunningCommand(command, process, output=output)

    async def run(
        self,
        command: str,
        *,
        cwd: str | Path,
        env: Mapping[str, str] | None = None,
        output: BinaryIO | None = None,
    ) -> CommandResult:
        """Run ``command`` to completion."""

        handle = await self.start(command, cwd=cwd, env=env, output=output)
        return await handle.wait()


class _FinishedCommand:
    """Completed handle returned by :class:`FakeCommandRunner`."""

    pid = None
    finished = True

    def __init__(self, result: CommandResult) -> None:
        self.command = result.command
        self._result = result
        self.terminated = False

    async def wait(self) -> CommandResult:
        return self._result

    def terminate(self, signum: int = signal.SIGTERM) -> bool:
        self.terminated = True
        return False


class FakeCommandRunner(CommandRunner):
    """Test double that records commands and replays canned results."""

    def __init__(self, responses: Iterable[CommandResult] | None = None) -> None:  # type: ignore[override]
        self._responses = list(responses or [])
        self._invocations: list[tuple[str, str]] = []
        self._shell_path = Path("/bin/fake-sh")

    async def start(  # type: ignore[override]
        self,
        command: str,
        *,
        cwd: str | Path,
        env: Mapping[str, str] | None = None,
        output: BinaryIO | None = None,
    ) -> _FinishedCommand:
        self._invocations.append((command, str(cwd)))
        if self._responses:
            result = self._responses.pop(0)
            result = CommandResult(
                command=command,
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )
        else:
            result = CommandResult(command=command, returncode=0, stdout="", stderr="")
        if output is not None:
            output.write((result.stdout + result.stderr).encode("utf-8"))
        return _FinishedCommand(result)

    @property
    def invocations(self) -> list[tuple[str, str]]:
        return self._invocations

    @property
    def commands(self) -> list[str]:
        return [command for command, _ in self._invocations]


__all__ = [
    "CommandResult",
    "CommandRunner",
    "CommandRunnerError",
    "CommandSpawnError",
    "FakeCommandRunner",
    "RunningCommand",
    "ShellNotFoundError",
]
