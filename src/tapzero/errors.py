from __future__ import annotations

from dataclasses import dataclass

ERROR_CODE_REGISTRATION_CLOSED = "REGISTRATION_CLOSED"
ERROR_CODE_ASSERTION_AFTER_DONE = "ASSERTION_AFTER_DONE"
ERROR_CODE_PLAN_EXCEEDED = "PLAN_EXCEEDED"
ERROR_CODE_PLAN_UNDERRUN = "PLAN_UNDERRUN"
ERROR_CODE_DESCRIPTION_REQUIRED = "DESCRIPTION_REQUIRED"
ERROR_CODE_UNSUPPORTED_EXPECTATION = "UNSUPPORTED_EXPECTATION"
ERROR_CODE_INVALID_CALLBACK = "INVALID_CALLBACK"


class TapZeroError(RuntimeError):
    code = "TAPZERO_ERROR"


class UsageError(TapZeroError):
    """A programming error in test-authoring code. Never reported as a failing assertion."""

    code = "USAGE_ERROR"


class RegistrationClosedError(UsageError):
    code = ERROR_CODE_REGISTRATION_CLOSED


class AssertionAfterDoneError(UsageError):
    code = ERROR_CODE_ASSERTION_AFTER_DONE


class DescriptionRequiredError(UsageError):
    code = ERROR_CODE_DESCRIPTION_REQUIRED


class UnsupportedExpectationError(UsageError):
    code = ERROR_CODE_UNSUPPORTED_EXPECTATION


class InvalidCallbackError(UsageError):
    code = ERROR_CODE_INVALID_CALLBACK


@dataclass(slots=True, eq=False)
class PlanExceededError(UsageError):
    test_name: str
    planned: int
    actual: int

    code = ERROR_CODE_PLAN_EXCEEDED

    def to_payload(self) -> dict[str, object]:
        return {
            "code": self.code,
            "test_name": self.test_name,
            "planned": self.planned,
            "actual": self.actual,
        }

    def __str__(self) -> str:
        return f"More tests than planned in TEST *{self.test_name}* (planned: {self.planned})"


@dataclass(slots=True, eq=False)
class PlanUnderrunError(UsageError):
    test_name: str
    planned: int
    actual: int

    code = ERROR_CODE_PLAN_UNDERRUN

    def to_payload(self) -> dict[str, object]:
        return {
            "code": self.code,
            "test_name": self.test_name,
            "planned": self.planned,
            "actual": self.actual,
        }

    def __str__(self) -> str:
        return (
            f"Test ended before the planned number in TEST *{self.test_name}*\n"
            f"  planned: {self.planned}\n"
            f"  actual: {self.actual}"
        )


__all__ = [
    "ERROR_CODE_ASSERTION_AFTER_DONE",
    "ERROR_CODE_DESCRIPTION_REQUIRED",
    "ERROR_CODE_INVALID_CALLBACK",
    "ERROR_CODE_PLAN_EXCEEDED",
    "ERROR_CODE_PLAN_UNDERRUN",
    "ERROR_CODE_REGISTRATION_CLOSED",
    "ERROR_CODE_UNSUPPORTED_EXPECTATION",
    "AssertionAfterDoneError",
    "DescriptionRequiredError",
    "InvalidCallbackError",
    "PlanExceededError",
    "PlanUnderrunError",
    "RegistrationClosedError",
    "TapZeroError",
    "UnsupportedExpectationError",
    "UsageError",
]
