from __future__ import annotations

import json
from pathlib import Path

import pytest

from cin import cli


@pytest.fixture(autouse=True)
def _no_signal_handlers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli.active_builds, "install", lambda *args, **kwargs: True)


@pytest.fixture
def workspace_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("CIN_DEFAULT_BRANCH", "main")
    cli.get_settings.cache_clear()
    yield tmp_path / "ci"
    cli.get_settings.cache_clear()


def _cin(workspace_path: Path, *args: str) -> int:
    return cli.main(["--working-path", str(workspace_path), *args])


def test_help_without_command(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main([]) == 0
    assert "cin continuous integration" in capsys.readouterr().out


def test_commands_require_install(workspace_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _cin(workspace_path, "list") == 1
    assert "not installed" in capsys.readouterr().err


def test_install_add_run_status(
    workspace_path: Path,
    origin_repo: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    assert _cin(workspace_path, "install") == 0
    assert _cin(workspace_path, "install") == 1
    assert (
        _cin(
            workspace_path,
            "add",
            "demo/app",
            "--repository",
            str(origin_repo),
            "--command",
            "bash build.sh",
        )
        == 0
    )
    capsys.readouterr()

    assert _cin(workspace_path, "status", "app", "--json") == 0
    before = json.loads(capsys.readouterr().out)
    assert before == {
        "name": "demo/app@main",
        "ref": "HEAD",
        "running": False,
        "lastRunAt": None,
        "success": False,
    }

    assert _cin(workspace_path, "run", "app") == 0
    assert "demo/app@main passed" in capsys.readouterr().out

    assert _cin(workspace_path, "status", "demo/app@main") == 0
    assert "[passed]" in capsys.readouterr().out

    assert _cin(workspace_path, "log", "app") == 0
    assert "building" in capsys.readouterr().out

    assert _cin(workspace_path, "list", "--json") == 0
    listing = json.loads(capsys.readouterr().out)
    assert listing == [{"name": "demo/app", "alias": "app", "branches": ["main"]}]


def test_failed_build_exit_code(
    workspace_path: Path,
    origin_repo: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _cin(workspace_path, "install")
    _cin(workspace_path, "add", "demo/app", "--repository", str(origin_repo), "--command", "exit 4")
    capsys.readouterr()

    assert _cin(workspace_path, "run", "app") == 1
    assert "demo/app@main failed" in capsys.readouterr().out

    assert _cin(workspace_path, "destroy", "app", "HEAD") == 0
    assert _cin(workspace_path, "destroy", "app", "HEAD") == 1
    assert "doesn't exist" in capsys.readouterr().err


def test_add_reports_checkout_failure(
    workspace_path: Path,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _cin(workspace_path, "install")

    assert _cin(workspace_path, "add", "demo/app", "--repository", str(tmp_path / "nowhere")) == 1
    assert "Unable to check out" in capsys.readouterr().err

    assert _cin(workspace_path, "remove", "demo/app") == 1


def test_invalid_project_name(workspace_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _cin(workspace_path, "install")

    assert _cin(workspace_path, "status", "not a project") == 1
    assert "isn't a valid project name" in capsys.readouterr().err


def test_status_rejects_escaping_ref(
    workspace_path: Path,
    origin_repo: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _cin(workspace_path, "install")
    _cin(workspace_path, "add", "demo/app", "--repository", str(origin_repo))
    capsys.readouterr()

    assert _cin(workspace_path, "status", "app", "../..") == 1
    assert "isn't a valid ref" in capsys.readouterr().err
    assert _cin(workspace_path, "destroy", "app", "../..") == 1
    assert (workspace_path / "projects" / "demo-app" / "main" / "source").is_dir()
