"""Parsing of project names given on the command line."""

from __future__ import annotations

import re
from pathlib import PurePosixPath

from .errors import InvalidProjectNameError, InvalidRefError

_GITHUB_PREFIX = re.compile(r"^(https://|http://|git://|git@)?github\.com(/|:)")
_GIT_SUFFIX = re.compile(r"\.git$")
_PROJECT_NAME = re.compile(r"^[\w\-]+/[\w\-]+$")


def parse_name(name: str) -> str:
    """Return ``owner/repo`` for ``owner/repo[@ref]`` or a GitHub clone URL."""

    candidate = _GITHUB_PREFIX.sub("", name.strip()).split("@")[0]
    candidate = _GIT_SUFFIX.sub("", candidate)
    if not _PROJECT_NAME.match(candidate):
        raise InvalidProjectNameError(f'"{candidate}" isn\'t a valid project name.')
    return candidate


def parse_head(name: str, default: str = "master") -> str:
    """Return the ref after ``@``, or ``default``."""

    _, _, head = _GITHUB_PREFIX.sub("", name.strip()).partition("@")
    return head or default


def check_ref(ref: str) -> str:
    """Return ``ref`` if it is safe to use as a relative directory path."""

    path = PurePosixPath(ref)
    if not ref or path.is_absolute() or ".." in path.parts or "\\" in ref:
        raise InvalidRefError(f'"{ref}" isn\'t a valid ref.')
    return ref


def directory_name(name: str) -> str:
    return name.replace("/", "-", 1)


def name_from_directory(directory: str) -> str:
    return directory.replace("-", "/", 1)


__all__ = ["check_ref", "directory_name", "name_from_directory", "parse_head", "parse_name"]
