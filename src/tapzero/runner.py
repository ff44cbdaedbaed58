from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass

from tapzero.callsite import CallSiteResolver
from tapzero.case import Test, TestFn
from tapzero.config import RunnerSettings
from tapzero.errors import InvalidCallbackError, RegistrationClosedError
from tapzero.scheduling import PROCESS_EXIT_HOOK, DeferredScheduler, ExitHook, Scheduler
from tapzero.tap import bail_out_line, summary_lines, version_line

logger = logging.getLogger(__name__)

Report = Callable[[str], None]


@dataclass(slots=True)
class RunSummary:
    total: int = 0
    success: int = 0
    fail: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"total": self.total, "success": self.success, "fail": self.fail}


FinishCallback = Callable[[RunSummary], None]


def print_line(line: str) -> None:
    print(line, flush=True)


class TestRunner:
    """Registry of tests, run once and in registration order.

    The first ``add()`` schedules a single deferred ``run()``; tests added
    before it fires join the same run. If any exclusive tests exist, only
    they execute.
    """

    __test__ = False

    def __init__(
        self,
        report: Report | None = None,
        *,
        strict: bool = False,
        rethrow_exceptions: bool = True,
        exit_on_failure: bool = True,
        scheduler: Scheduler | None = None,
        exit_hook: ExitHook | None = None,
        resolver: CallSiteResolver | None = None,
    ) -> None:
        self.report: Report = report or print_line
        self.tests: list[Test] = []
        self.only_tests: list[Test] = []
        self.scheduled = False
        self.completed = False
        self.strict = strict
        self.rethrow_exceptions = rethrow_exceptions
        self.exit_on_failure = exit_on_failure
        self.scheduler: Scheduler = scheduler or DeferredScheduler()
        self.exit_hook: ExitHook = exit_hook or PROCESS_EXIT_HOOK
        self.resolver = resolver or CallSiteResolver()
        self._id = 0
        self._started = False
        self._on_finish_callback: FinishCallback | None = None
        self._task: asyncio.Task[RunSummary] | None = None

    @staticmethod
    def from_env(report: Report | None = None) -> TestRunner:
        settings = RunnerSettings.from_env()
        return TestRunner(
            report,
            strict=settings.strict,
            rethrow_exceptions=settings.rethrow_exceptions,
            exit_on_failure=settings.exit_on_failure,
        )

    def next_id(self) -> str:
        self._id += 1
        return str(self._id)

    def add(self, name: str, fn: TestFn, only: bool = False) -> Test:
        if self.completed:
            raise RegistrationClosedError("Cannot add() a test case after tests completed.")
        test = Test(name, fn, self)
        (self.only_tests if only else self.tests).append(test)
        logger.debug("registered %stest %r", "exclusive " if only else "", name)

        if not self.scheduled:
            self.scheduled = True
            if self.exit_on_failure and self._on_finish_callback is None:
                self.exit_hook.prepare()
            self.scheduler.schedule(self.flush)
        return test

    def flush(self) -> None:
        """Start the scheduled run; a runner that already started is left alone."""
        if self._started or self.completed or self._task is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._run_blocking()
            return
        self._task = loop.create_task(self.run())
        self._task.add_done_callback(self._on_task_done)

    def _run_blocking(self) -> None:
        try:
            asyncio.run(self.run())
        except Exception as exc:
            if not self.rethrow_exceptions:
                raise
            self._mark_errored()
            sys.excepthook(type(exc), exc, exc.__traceback__)

    def _on_task_done(self, task: asyncio.Task[RunSummary]) -> None:
        if task.cancelled():
            self._recover_cancelled_run()
            return
        exc = task.exception()
        if exc is None or not self.rethrow_exceptions:
            return
        self._mark_errored()
        task.get_loop().call_soon(_rethrow, exc)

    def _recover_cancelled_run(self) -> None:
        """Handle a run task cancelled by its loop, e.g. when ``asyncio.run`` returns early."""
        if self.completed:
            return
        self._task = None
        if not self._started:
            logger.debug("run task cancelled before it started, deferring to interpreter shutdown")
            self.scheduler.schedule_at_shutdown(self.flush)
            return
        logger.debug("run task cancelled part-way through")
        self.report(bail_out_line("run cancelled before all tests finished"))
        self._mark_errored()

    def _mark_errored(self) -> None:
        if self.exit_on_failure:
            self.exit_hook.arrange(1)

    async def run(self) -> RunSummary:
        self._started = True
        tests = self.only_tests if self.only_tests else self.tests

        self.report(version_line())

        summary = RunSummary()
        for test in tests:
            result = await test.run()
            summary.total += result.passed + result.failed
            summary.success += result.passed
            summary.fail += result.failed

        self.completed = True

        for line in summary_lines(summary.total, summary.success, summary.fail):
            self.report(line)
        logger.debug("run finished: %s", summary.to_dict())

        if self._on_finish_callback is not None:
            self._on_finish_callback(summary)
        elif self.exit_on_failure and summary.fail:
            self.exit_hook.arrange(summary.fail)
        return summary

    def on_finish(self, callback: FinishCallback) -> None:
        if not callable(callback):
            raise InvalidCallbackError("on_finish() expects a function")
        self._on_finish_callback = callback


def _rethrow(exc: BaseException) -> None:
    raise exc


__all__ = ["FinishCallback", "Report", "RunSummary", "TestRunner", "print_line"]
