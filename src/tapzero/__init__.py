"""Tapzero: a small test runner that reports in TAP version 13.

Tests registered with :func:`test` run on a process-wide runner, once, shortly
after the first registration (on the next event-loop turn, or at interpreter
shutdown when no loop is running).
"""
from __future__ import annotations

from tapzero.case import Test, TestFn, TestResult
from tapzero.equality import deep_equal
from tapzero.errors import TapZeroError, UsageError
from tapzero.runner import RunSummary, TestRunner
from tapzero.tap import UNDEFINED

__version__ = "0.1.0"

GLOBAL_TEST_RUNNER = TestRunner.from_env()


def test(name: str, fn: TestFn | None = None) -> None:
    if fn is None:
        return
    GLOBAL_TEST_RUNNER.add(name, fn, False)


def only(name: str, fn: TestFn | None = None) -> None:
    if fn is None:
        return
    GLOBAL_TEST_RUNNER.add(name, fn, True)


def skip(name: str, fn: TestFn | None = None) -> None:
    pass


def set_strict(strict: bool) -> None:
    GLOBAL_TEST_RUNNER.strict = strict


test.only = only  # type: ignore[attr-defined]
test.skip = skip  # type: ignore[attr-defined]
test.__test__ = False  # type: ignore[attr-defined]


__all__ = [
    "GLOBAL_TEST_RUNNER",
    "RunSummary",
    "TapZeroError",
    "Test",
    "TestFn",
    "TestResult",
    "TestRunner",
    "UNDEFINED",
    "UsageError",
    "__version__",
    "deep_equal",
    "only",
    "set_strict",
    "skip",
    "test",
]
