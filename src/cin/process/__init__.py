"""Shell command execution utilities."""

from .runner import (
    CommandResult,
    CommandRunner,
    CommandRunnerError,
    CommandSpawnError,
    FakeCommandRunner,
    RunningCommand,
    ShellNotFoundError,
)

__all__ = [
    "CommandResult",
    "CommandRunner",
    "CommandRunnerError",
    "CommandSpawnError",
    "FakeCommandRunner",
    "RunningCommand",
    "ShellNotFoundError",
]
