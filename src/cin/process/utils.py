"""Utility helpers for the command runner."""

from __future__ import annotations

import logging
import os
import re
from typing import Mapping

_SANITIZED_VARS = {
    "PYTHONHOME",
    "PYTHONPATH",
    "VIRTUAL_ENV",
    "PIP_RESPECT_VIRTUALENV",
}

_ANSI_ESCAPE = re.compile(r"\x1b\[([0-9;]*m|\w{2})")
_ERROR_NOISE = re.compile(r"Command failed: |error: ", re.IGNORECASE)
_LINE_BREAKS = re.compile(r"[\r\n]+")

output_logger = logging.getLogger("cin.process.output")


def sanitize_environment(additional: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return a sanitized environment suitable for subprocess execution."""

    env = dict(os.environ)
    for key in _SANITIZED_VARS:
        env.pop(key, None)
    if additional:
        env.update({key: str(value) for key, value in additional.items()})
    return env


def strip_ansi(text: str) -> str:
    """Remove terminal colour and cursor escape sequences."""

    return _ANSI_ESCAPE.sub("", text)


def clean_error(stderr: str) -> str:
    """Drop the noisy prefixes git and shells put in front of their diagnostics."""

    return _ERROR_NOISE.sub("", stderr)


def log_output(text: str, logger: logging.Logger | None = None) -> None:
    """Forward process output to the log, one record per non-empty line."""

    sink = logger or output_logger
    for line in _LINE_BREAKS.split(text):
        line = strip_ansi(line.rstrip())
        if line:
            sink.info("> %s", line)


def log_complete_lines(text: str, logger: logging.Logger | None = None) -> str:
    """Log every terminated line of ``text`` and return the unterminated tail."""

    cut = max(text.rfind("\n"), text.rfind("\r")) + 1
    if cut:
        log_output(text[:cut], logger)
    return text[cut:]


__all__ = ["clean_error", "log_complete_lines", "log_output", "output_logger", "sanitize_environment", "strip_ansi"]
