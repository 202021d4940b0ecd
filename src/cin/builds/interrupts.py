"""Process-wide interrupt handling for live builds."""

from __future__ import annotations

import logging
import signal
import threading
from typing import Protocol

logger = logging.getLogger(__name__)


class Stoppable(Protocol):
    def stop(self) -> bool:
        ...


class ActiveBuilds:
    """Registry of executors that currently own a child process.

    :meth:`install` hooks a signal exactly once; the handler stops every
    registered build and then defers to whatever handler was there before.
    """

    def __init__(self) -> None:
        self._executors: dict[int, Stoppable] = {}
        self._lock = threading.RLock()
        self._installed: dict[int, object] = {}

    def register(self, executor: Stoppable) -> None:
        with self._lock:
            self._executors[id(executor)] = executor

    def unregister(self, executor: Stoppable) -> None:
        with self._lock:
            self._executors.pop(id(executor), None)

    def __contains__(self, executor: object) -> bool:
        return id(executor) in self._executors

    def __len__(self) -> int:
        return len(self._executors)

    def interrupt(self) -> int:
        """Stop every registered build, returning how many were signalled."""

        with self._lock:
            executors = list(self._executors.values())
        stopped = 0
        for executor in executors:
            if executor.stop():
                stopped += 1
        return stopped

    @property
    def installed(self) -> bool:
        return bool(self._installed)

    def install(self, signum: int = signal.SIGINT) -> bool:
        """Register the signal handler; later calls are no-ops."""

        if signum in self._installed:
            return False
        self._installed[signum] = signal.signal(signum, self._handle)
        logger.debug("Installed build interrupt handler", extra={"signum": signum})
        return True

    def uninstall(self) -> None:
        for signum, previous in list(self._installed.items()):
            signal.signal(signum, previous if previous is not None else signal.SIG_DFL)  # type: ignore[arg-type]
        self._installed.clear()

    def _handle(self, signum, frame) -> None:
        stopped = self.interrupt()
        if stopped:
            logger.warning("Interrupted running builds", extra={"stopped": stopped})
        previous = self._installed.get(signum)
        if callable(previous):
            previous(signum, frame)


active_builds = ActiveBuilds()


__all__ = ["ActiveBuilds", "Stoppable", "active_builds"]
