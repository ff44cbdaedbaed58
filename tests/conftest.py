from __future__ import annotations

from collections.abc import Callable

import pytest

from tapzero.runner import TestRunner


class FakeScheduler:
    def __init__(self) -> None:
        self.callbacks: list[Callable[[], None]] = []
        self.shutdown_callbacks: list[Callable[[], None]] = []

    def schedule(self, callback: Callable[[], None]) -> None:
        self.callbacks.append(callback)

    def schedule_at_shutdown(self, callback: Callable[[], None]) -> None:
        self.shutdown_callbacks.append(callback)


class FakeExitHook:
    def __init__(self) -> None:
        self.prepared = 0
        self.arranged: list[int] = []

    def prepare(self) -> None:
        self.prepared += 1

    def arrange(self, fail: int) -> None:
        self.arranged.append(fail)


@pytest.fixture
def lines() -> list[str]:
    return []


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def exit_hook() -> FakeExitHook:
    return FakeExitHook()


@pytest.fixture
def runner(lines: list[str], scheduler: FakeScheduler, exit_hook: FakeExitHook) -> TestRunner:
    return TestRunner(lines.append, scheduler=scheduler, exit_hook=exit_hook)
