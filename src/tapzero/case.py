from __future__ import annotations

import inspect
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from tapzero.callsite import CallSiteResolver, capture_stack, exception_stack
from tapzero.constants import DEFAULT_DESCRIPTIONS
from tapzero.equality import deep_equal
from tapzero.errors import (
    AssertionAfterDoneError,
    DescriptionRequiredError,
    PlanExceededError,
    PlanUnderrunError,
    UnsupportedExpectationError,
)
from tapzero.tap import comment_line, diagnostic_lines, result_line

if TYPE_CHECKING:
    from tapzero.runner import TestRunner

logger = logging.getLogger(__name__)

TestFn = Callable[["Test"], Union[Awaitable[None], None]]


@dataclass(slots=True)
class TestResult:
    __test__ = False

    passed: int = 0
    failed: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"pass": self.passed, "fail": self.failed}


class Test:
    """One test function and the assertions made through it.

    The function receives the ``Test`` as its only argument and may be a
    coroutine function. Assertions are counted against an optional plan;
    once ``run()`` has finished, further assertions are usage errors.
    """

    __test__ = False

    def __init__(self, name: str, fn: TestFn, runner: TestRunner | None = None) -> None:
        self.name = name
        self.fn = fn
        self.runner = runner
        self._planned: int | None = None
        self._actual: int | None = None
        self._result = TestResult()
        self.done = False
        self.strict = bool(runner and runner.strict)
        self._resolver = runner.resolver if runner is not None else CallSiteResolver()

    @property
    def planned(self) -> int | None:
        return self._planned

    @property
    def actual(self) -> int | None:
        return self._actual

    @property
    def result(self) -> TestResult:
        return self._result

    def comment(self, msg: str) -> None:
        if self.runner is not None:
            self.runner.report(comment_line(msg))

    def plan(self, n: int) -> None:
        """Declare the exact number of assertions. A later call replaces the earlier plan."""
        self._planned = n

    def _require_description(self, msg: str | None) -> None:
        if self.strict and not msg:
            raise DescriptionRequiredError("tapzero msg required")

    def deep_equal(self, actual: Any, expected: Any, msg: str | None = None) -> None:
        self._require_description(msg)
        self._assert(
            deep_equal(actual, expected), actual, expected,
            msg or DEFAULT_DESCRIPTIONS["deepEqual"], "deepEqual",
        )

    def not_deep_equal(self, actual: Any, expected: Any, msg: str | None = None) -> None:
        self._require_description(msg)
        self._assert(
            not deep_equal(actual, expected), actual, expected,
            msg or DEFAULT_DESCRIPTIONS["notDeepEqual"], "notDeepEqual",
        )

    def equal(self, actual: Any, expected: Any, msg: str | None = None) -> None:
        self._require_description(msg)
        self._assert(
            actual == expected, actual, expected,
            msg or DEFAULT_DESCRIPTIONS["equal"], "equal",
        )

    def not_equal(self, actual: Any, expected: Any, msg: str | None = None) -> None:
        self._require_description(msg)
        self._assert(
            actual != expected, actual, expected,
            msg or DEFAULT_DESCRIPTIONS["notEqual"], "notEqual",
        )

    def fail(self, msg: str | None = None) -> None:
        self._require_description(msg)
        self._assert(
            False, "fail called", "fail not called",
            msg or DEFAULT_DESCRIPTIONS["fail"], "fail",
        )

    def ok(self, actual: Any, msg: str | None = None) -> None:
        self._require_description(msg)
        self._assert(
            bool(actual), actual, "truthy value",
            msg or DEFAULT_DESCRIPTIONS["ok"], "ok",
        )

    def if_error(self, err: BaseException | None, msg: str | None = None) -> None:
        self._require_description(msg)
        description = msg or (str(err) if err else DEFAULT_DESCRIPTIONS["ifError"])
        self._assert(not err, err, "no error", description, "ifError")

    def throws(
        self,
        fn: Callable[[], Any],
        expected: re.Pattern[str] | str | None = None,
        message: str | None = None,
    ) -> None:
        if isinstance(expected, str):
            message = expected
            expected = None

        self._require_description(message)

        caught: Exception | None = None
        try:
            fn()
        except Exception as exc:
            caught = exc

        passed = caught is not None
        if isinstance(expected, re.Pattern):
            passed = caught is not None and expected.search(str(caught)) is not None
        elif expected:
            raise UnsupportedExpectationError(
                f"t.throws() not implemented for expected: {type(expected).__name__}"
            )

        self._assert(passed, caught, expected, message or DEFAULT_DESCRIPTIONS["throws"], "throws")

    def _assert(
        self,
        passed: bool,
        actual: Any,
        expected: Any,
        description: str,
        operator: str,
    ) -> None:
        if self.done:
            raise AssertionAfterDoneError(f"assertion occurred after test was finished: {self.name}")

        if self._planned is not None:
            self._actual = (self._actual or 0) + 1
            if self._actual > self._planned:
                raise PlanExceededError(test_name=self.name, planned=self._planned, actual=self._actual)

        if passed:
            self._result.passed += 1
        else:
            self._result.failed += 1

        runner = self.runner
        if runner is None:
            return

        runner.report(result_line(passed, runner.next_id(), description))
        if passed:
            return

        stack = capture_stack(description)
        at = self._resolver.resolve(stack)
        if isinstance(actual, BaseException):
            stack = exception_stack(actual)
            actual = str(actual)

        for line in diagnostic_lines(operator, expected, actual, at, stack):
            runner.report(line)

    async def run(self) -> TestResult:
        if self.runner is not None:
            self.runner.report(comment_line(self.name))
        logger.debug("running test %r", self.name)

        outcome = self.fn(self)
        if inspect.isawaitable(outcome):
            await outcome

        self.done = True

        if self._planned is not None and self._planned > (self._actual or 0):
            raise PlanUnderrunError(test_name=self.name, planned=self._planned, actual=self._actual or 0)

        return self._result


__all__ = ["Test", "TestFn", "TestResult"]
