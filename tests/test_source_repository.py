from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from cin.process import CommandResult, CommandRunner, FakeCommandRunner
from cin.vcs import SourceRepository


def _initialized(path: Path) -> Path:
    (path / ".git").mkdir(parents=True)
    return path


def test_exists_tracks_git_directory(tmp_path: Path) -> None:
    repo = SourceRepository(tmp_path / "source", "https://example.com/demo.git", runner=FakeCommandRunner())
    assert not repo.exists()

    _initialized(tmp_path / "source")

    assert repo.exists()


def test_create_runs_steps_in_order(tmp_path: Path) -> None:
    fake = FakeCommandRunner()
    repo = SourceRepository(tmp_path / "source", "https://example.com/demo.git", runner=fake)

    result = asyncio.run(repo.create())

    assert result.ok
    assert (tmp_path / "source").is_dir()
    assert fake.commands == [
        "git init .",
        "git remote add origin https://example.com/demo.git",
        "git fetch origin",
    ]


def test_create_stops_at_first_failure(tmp_path: Path) -> None:
    fake = FakeCommandRunner(
        [
            CommandResult(command="", returncode=0, stdout="", stderr=""),
            CommandResult(command="", returncode=3, stdout="", stderr="error: remote origin already exists."),
        ]
    )
    repo = SourceRepository(tmp_path / "source", "https://example.com/demo.git", runner=fake)

    result = asyncio.run(repo.create())

    assert not result.ok
    assert result.error == "remote origin already exists."
    assert len(fake.commands) == 2
    assert (tmp_path / "source").is_dir()


def test_reset_existing_copy_only_resets(tmp_path: Path) -> None:
    fake = FakeCommandRunner()
    repo = SourceRepository(_initialized(tmp_path / "source"), "https://example.com/demo.git", runner=fake)

    result = asyncio.run(repo.reset("main"))

    assert result.ok
    assert fake.commands == ["git reset --hard main"]


def test_reset_missing_copy_only_creates(tmp_path: Path) -> None:
    fake = FakeCommandRunner()
    repo = SourceRepository(tmp_path / "source", "https://example.com/demo.git", runner=fake)

    asyncio.run(repo.reset("main"))

    assert fake.commands == [
        "git init .",
        "git remote add origin https://example.com/demo.git",
        "git fetch origin",
    ]


def test_checkout_existing_copy_checks_out_then_resets(tmp_path: Path) -> None:
    fake = FakeCommandRunner()
    repo = SourceRepository(_initialized(tmp_path / "source"), "https://example.com/demo.git", runner=fake)

    asyncio.run(repo.checkout("develop"))

    assert fake.commands == ["git checkout develop", "git reset --hard develop"]
    assert repo.head == "develop"


def test_checkout_skips_reset_when_checkout_fails(tmp_path: Path) -> None:
    fake = FakeCommandRunner(
        [CommandResult(command="", returncode=1, stdout="", stderr="error: pathspec 'nope' did not match")]
    )
    repo = SourceRepository(_initialized(tmp_path / "source"), "https://example.com/demo.git", runner=fake)

    result = asyncio.run(repo.checkout("nope"))

    assert not result.ok
    assert fake.commands == ["git checkout nope"]


def test_fetch_existing_copy(tmp_path: Path) -> None:
    fake = FakeCommandRunner()
    repo = SourceRepository(_initialized(tmp_path / "source"), "https://example.com/demo.git", runner=fake)

    asyncio.run(repo.fetch())

    assert fake.commands == ["git fetch origin"]


def test_checkout_missing_copy_matches_remote(tmp_path: Path, origin_repo: Path) -> None:
    source = tmp_path / "source"
    source.mkdir()
    (source / "notes.txt").write_text("local scratch\n", encoding="utf-8")
    repo = SourceRepository(source, str(origin_repo), head="main", runner=CommandRunner())

    result = asyncio.run(repo.checkout("main"))

    assert result.ok, result.stderr
    assert repo.exists()
    assert (source / "README.md").read_text(encoding="utf-8") == "hello\n"
    assert (source / "build.sh").read_text(encoding="utf-8") == "echo building\n"

    (source / "README.md").write_text("local edit\n", encoding="utf-8")
    (source / "build.sh").unlink()

    again = asyncio.run(repo.checkout("main"))

    assert again.ok, again.stderr
    assert (source / "README.md").read_text(encoding="utf-8") == "hello\n"
    assert (source / "build.sh").exists()


def test_reset_discards_local_changes(tmp_path: Path, origin_repo: Path) -> None:
    source = tmp_path / "source"
    repo = SourceRepository(source, str(origin_repo), head="main", runner=CommandRunner())
    assert asyncio.run(repo.checkout("main")).ok

    (source / "README.md").write_text("dirty\n", encoding="utf-8")
    result = asyncio.run(repo.reset("main"))

    assert result.ok, result.stderr
    assert (source / "README.md").read_text(encoding="utf-8") == "hello\n"


def test_checkout_unreachable_origin_fails(tmp_path: Path) -> None:
    repo = SourceRepository(tmp_path / "source", str(tmp_path / "missing-origin"), runner=CommandRunner())

    result = asyncio.run(repo.checkout("main"))

    assert not result.ok
    assert result.command.startswith("git fetch")
    assert repo.exists()


def test_series_rejects_empty_step_list(tmp_path: Path) -> None:
    repo = SourceRepository(tmp_path / "source", "https://example.com/demo.git", runner=FakeCommandRunner())

    with pytest.raises(ValueError, match="no git steps"):
        asyncio.run(repo._series([]))
