from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable

import pytest


def run_git(*args: str, cwd: Path) -> str:
    completed = subprocess.run(
        ["git", "-c", "user.name=Tester", "-c", "user.email=tester@example.com", *args],
        cwd=cwd,
        check=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
    )
    return completed.stdout


@pytest.fixture
def git() -> Callable[..., str]:
    return run_git


@pytest.fixture
def origin_repo(tmp_path: Path) -> Path:
    """A local repository with one commit on ``main`` to act as the remote."""

    origin = tmp_path / "origin"
    origin.mkdir()
    run_git("init", cwd=origin)
    run_git("symbolic-ref", "HEAD", "refs/heads/main", cwd=origin)
    (origin / "README.md").write_text("hello\n", encoding="utf-8")
    (origin / "build.sh").write_text("echo building\n", encoding="utf-8")
    run_git("add", "-A", cwd=origin)
    run_git("commit", "-m", "initial", cwd=origin)
    return origin
