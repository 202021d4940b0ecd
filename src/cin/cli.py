"""cin command line interface."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from . import __version__
from .builds import BuildError, BuildExecutor, active_builds
from .config import get_settings
from .process import CommandRunnerError
from .projects import ProjectCheckoutError, ProjectError, Workspace


def configure_logging(level: str) -> None:
    """Configure root logging for the cin CLI."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def load_workspace(args: argparse.Namespace) -> Workspace:
    return Workspace(getattr(args, "working_path", None) or None)


def _status_payload(build: BuildExecutor) -> dict:
    return {"name": build.name, "ref": build.ref, **build.load_status().to_document()}


def cmd_install(args: argparse.Namespace) -> None:
    workspace = load_workspace(args)
    workspace.install()
    print(f"Installed at {workspace.working_path}")


def cmd_add(args: argparse.Namespace) -> None:
    workspace = load_workspace(args)
    branch = asyncio.run(
        workspace.add(
            args.name,
            repository=args.repository,
            command=args.command,
            alias=args.alias,
        )
    )
    print(f"Added {branch.name}")


def cmd_remove(args: argparse.Namespace) -> None:
    workspace = load_workspace(args)
    workspace.remove(args.name)
    print(f"Removed {args.name}")


def cmd_list(args: argparse.Namespace) -> None:
    workspace = load_workspace(args)
    projects = workspace.projects()
    if args.json:
        payload = [
            {
                "name": project.name,
                "alias": project.load_config().alias,
                "branches": [branch.ref for branch in project.branches()],
            }
            for project in projects
        ]
        print(json.dumps(payload, indent=2))
        return
    for project in projects:
        refs = ", ".join(branch.ref for branch in project.branches()) or "-"
        print(f"{project.name} ({project.load_config().alias}) -> {refs}")


def cmd_status(args: argparse.Namespace) -> None:
    workspace = load_workspace(args)
    build = workspace.build(args.name, args.ref)
    payload = _status_payload(build)
    if args.json:
        print(json.dumps(payload, indent=2))
        return
    if payload["running"]:
        state = "running"
    elif payload["lastRunAt"] is None:
        state = "never run"
    else:
        state = "passed" if payload["success"] else "failed"
    print(f"{build.name} [{state}] last run: {payload['lastRunAt'] or '-'}")


def cmd_run(args: argparse.Namespace) -> None:
    workspace = load_workspace(args)
    build = workspace.build(args.name, args.ref)
    status = asyncio.run(build.run())
    print(f"{build.name} {'passed' if status.success else 'failed'}")
    if not status.success:
        raise SystemExit(1)


def cmd_log(args: argparse.Namespace) -> None:
    workspace = load_workspace(args)
    build = workspace.build(args.name, args.ref)
    build.assert_exists()
    sys.stdout.write(build.read_log())


def cmd_destroy(args: argparse.Namespace) -> None:
    workspace = load_workspace(args)
    build = workspace.build(args.name, args.ref)
    build.destroy()
    print(f"Destroyed {build.name}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cin", description="cin continuous integration")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--working-path", help="Workspace directory (defaults to CIN_WORKING_PATH)")
    sub = parser.add_subparsers(dest="cmd")

    p_install = sub.add_parser("install", help="Create a workspace in the working path")
    p_install.set_defaults(func=cmd_install)

    p_add = sub.add_parser("add", help="Add a project and check out its head branch")
    p_add.add_argument("name", help="owner/repo[@ref] or a GitHub clone URL")
    p_add.add_argument("--repository", help="Clone URL (defaults to the GitHub SSH URL)")
    p_add.add_argument("--command", help="Build command (defaults to 'make test')")
    p_add.add_argument("--alias", help="Short name for the project")
    p_add.set_defaults(func=cmd_add)

    p_remove = sub.add_parser("remove", help="Delete a project and all of its builds")
    p_remove.add_argument("name")
    p_remove.set_defaults(func=cmd_remove)

    p_list = sub.add_parser("list", help="List projects and their branches")
    p_list.add_argument("--json", action="store_true", help="Output JSON")
    p_list.set_defaults(func=cmd_list)

    p_status = sub.add_parser("status", help="Show the status of a build")
    p_status.add_argument("name")
    p_status.add_argument("ref", nargs="?", default=None)
    p_status.add_argument("--json", action="store_true", help="Output JSON")
    p_status.set_defaults(func=cmd_status)

    p_run = sub.add_parser("run", help="Sync the source and run the build command")
    p_run.add_argument("name")
    p_run.add_argument("ref", nargs="?", default=None)
    p_run.set_defaults(func=cmd_run)

    p_log = sub.add_parser("log", help="Print the build log")
    p_log.add_argument("name")
    p_log.add_argument("ref", nargs="?", default=None)
    p_log.set_defaults(func=cmd_log)

    p_destroy = sub.add_parser("destroy", help="Delete a build's status and log")
    p_destroy.add_argument("name")
    p_destroy.add_argument("ref")
    p_destroy.set_defaults(func=cmd_destroy)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``cin`` console script."""

    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    settings = get_settings()
    configure_logging(settings.log_level)
    active_builds.install()

    try:
        args.func(args)
    except ProjectCheckoutError as exc:
        print(f"error: {exc}", file=sys.stderr)
        if exc.result.stderr.strip():
            print(exc.result.stderr.rstrip(), file=sys.stderr)
        return 1
    except (BuildError, ProjectError, CommandRunnerError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except SystemExit as exc:
        return int(exc.code or 0)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
