"""Deferred one-shot scheduling and the host-process exit-status hook."""
from __future__ import annotations

import asyncio
import atexit
import concurrent.futures.thread  # noqa: F401  executor exit hook must be registered before any flush
import logging
import os
import sys
import threading
from collections.abc import Callable
from typing import Any, NoReturn, Protocol

from tapzero.constants import EXIT_FAILURE

logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    def schedule(self, callback: Callable[[], None]) -> None: ...

    def schedule_at_shutdown(self, callback: Callable[[], None]) -> None: ...


class DeferredScheduler:
    """Calls back on the next turn of a running event loop, else at interpreter shutdown.

    Shutdown callbacks run from threading's exit hooks, which fire before
    ``atexit`` and before the default executor is shut down, so the run can
    still use ``asyncio.to_thread`` and ``run_in_executor``.
    """

    def schedule(self, callback: Callable[[], None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.schedule_at_shutdown(callback)
            return
        logger.debug("deferring %r to the next loop turn", callback)
        loop.call_soon(callback)

    def schedule_at_shutdown(self, callback: Callable[[], None]) -> None:
        logger.debug("deferring %r to interpreter shutdown", callback)
        try:
            threading._register_atexit(callback)  # type: ignore[attr-defined]
        except RuntimeError:
            # threads are already shutting down
            atexit.register(callback)


class ExitHook(Protocol):
    def prepare(self) -> None: ...

    def arrange(self, fail: int) -> None: ...


_ORIGINAL_SYS_EXIT: Any = sys.exit


class ProcessExitHook:
    """Turns a clean exit into status 1 when assertions failed.

    An explicitly requested non-zero status is never overridden. The status is
    forced with ``os._exit``, so ``atexit`` handlers registered before this
    hook (normally: before ``tapzero`` was imported) do not run. Logging is
    shut down explicitly first.
    """

    def __init__(self) -> None:
        self._installed = False
        self._registered = False
        self._failures = 0
        self._requested: int | None = None

    @staticmethod
    def available() -> bool:
        return not hasattr(sys, "ps1") and not sys.flags.interactive

    @property
    def failures(self) -> int:
        return self._failures

    def _record_exit(self, status: Any = None) -> NoReturn:
        if isinstance(status, int):
            self._requested = status
        elif status is not None:
            self._requested = 1
        _ORIGINAL_SYS_EXIT(status)

    def register(self) -> None:
        if self._registered:
            return
        self._registered = True
        atexit.register(self._at_exit)

    def prepare(self) -> None:
        if self._installed or not self.available():
            return
        self._installed = True
        sys.exit = self._record_exit
        self.register()

    def arrange(self, fail: int) -> None:
        if not self.available():
            return
        self.prepare()
        self._failures += fail

    def _at_exit(self) -> None:
        if not self._failures:
            return
        if self._requested not in (None, 0):
            return
        logger.debug("exiting with status %d after %d failure(s)", EXIT_FAILURE, self._failures)
        logging.shutdown()
        sys.stdout.flush()
        sys.stderr.flush()
        os._exit(EXIT_FAILURE)


PROCESS_EXIT_HOOK = ProcessExitHook()
# Registered at import so handlers added later by the host still run first.
PROCESS_EXIT_HOOK.register()


__all__ = [
    "DeferredScheduler",
    "ExitHook",
    "PROCESS_EXIT_HOOK",
    "ProcessExitHook",
    "Scheduler",
]
