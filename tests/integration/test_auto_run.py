"""Auto-run behaviour of the process-wide runner, observed from a real interpreter."""
from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[2] / "src"


def _run_script(tmp_path: Path, body: str, **extra_env: str) -> subprocess.CompletedProcess[str]:
    script = tmp_path / "suite.py"
    script.write_text(body.strip() + "\n", encoding="utf-8")
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC_DIR), env.get("PYTHONPATH")]))
    for name in ("TAPZERO_STRICT", "TAPZERO_RETHROW", "TAPZERO_EXIT_ON_FAILURE"):
        env.pop(name, None)
    env.update(extra_env)
    return subprocess.run(
        [sys.executable, str(script)],
        cwd=tmp_path,
        env=env,
        capture_output=True,
        text=True,
        timeout=60,
        check=False,
    )


def test_tests_run_at_shutdown_and_pass(tmp_path: Path) -> None:
    result = _run_script(
        tmp_path,
        """
from tapzero import test

test("t1", lambda t: t.ok(True))
print("registered")
""",
    )

    assert result.returncode == 0, result.stderr
    assert result.stdout.splitlines() == [
        "registered",
        "TAP version 13",
        "# t1",
        "ok 1 should be truthy",
        "",
        "1..1",
        "# tests 1",
        "# pass  1",
        "",
        "# ok",
    ]


def test_failures_set_exit_status(tmp_path: Path) -> None:
    result = _run_script(
        tmp_path,
        """
from tapzero import test

test("broken", lambda t: t.equal(1, 2))
""",
    )

    assert result.returncode == 1
    assert result.stdout.splitlines()[-1] == "# fail  1"


def test_explicit_exit_status_is_kept(tmp_path: Path) -> None:
    result = _run_script(
        tmp_path,
        """
import sys
from tapzero import test

test("broken", lambda t: t.fail())
sys.exit(3)
""",
    )

    assert result.returncode == 3
    assert "# fail  1" in result.stdout


def test_on_finish_replaces_exit_status(tmp_path: Path) -> None:
    result = _run_script(
        tmp_path,
        """
from tapzero import GLOBAL_TEST_RUNNER, test

GLOBAL_TEST_RUNNER.on_finish(lambda summary: print("finished", summary.to_dict()))
test("broken", lambda t: t.fail())
""",
    )

    assert result.returncode == 0
    assert result.stdout.splitlines()[-1] == "finished {'total': 1, 'success': 0, 'fail': 1}"


def test_tests_registered_inside_a_loop_run_on_the_next_turn(tmp_path: Path) -> None:
    result = _run_script(
        tmp_path,
        """
import asyncio
from tapzero import test


async def check(t):
    await asyncio.sleep(0)
    t.ok(True, "inside loop")


async def main():
    test("looped", check)
    await asyncio.sleep(0.1)
    print("main done")


asyncio.run(main())
""",
    )

    assert result.returncode == 0, result.stderr
    lines = result.stdout.splitlines()
    assert lines.index("ok 1 inside loop") < lines.index("main done")


def test_tests_registered_as_the_loop_closes_still_run(tmp_path: Path) -> None:
    result = _run_script(
        tmp_path,
        """
import asyncio
from tapzero import test


async def main():
    test("inside", lambda t: t.equal(1, 2))


asyncio.run(main())
print("main done")
""",
    )

    assert result.returncode == 1, result.stderr
    lines = result.stdout.splitlines()
    assert lines[:4] == ["main done", "TAP version 13", "# inside", "not ok 1 should be equal"]
    assert lines[-1] == "# fail  1"


def test_tests_at_shutdown_can_use_worker_threads(tmp_path: Path) -> None:
    result = _run_script(
        tmp_path,
        """
import asyncio
from tapzero import test


async def threaded(t):
    t.equal(await asyncio.to_thread(lambda: 42), 42)
    loop = asyncio.get_running_loop()
    t.equal(await loop.run_in_executor(None, sum, [1, 2]), 3)


test("threaded", threaded)
""",
    )

    assert result.returncode == 0, result.stderr
    lines = result.stdout.splitlines()
    assert lines[:4] == ["TAP version 13", "# threaded", "ok 1 should be equal", "ok 2 should be equal"]
    assert lines[-1] == "# ok"


def test_later_atexit_handlers_run_before_a_failing_exit(tmp_path: Path) -> None:
    result = _run_script(
        tmp_path,
        """
import atexit
from tapzero import test

atexit.register(lambda: print("cleanup ran", flush=True))
test("f", lambda t: t.fail())
""",
    )

    assert result.returncode == 1
    lines = result.stdout.splitlines()
    assert lines.index("# fail  1") < lines.index("cleanup ran")


def test_uncaught_test_errors_are_visible(tmp_path: Path) -> None:
    result = _run_script(
        tmp_path,
        """
from tapzero import test


def explode(t):
    raise ValueError("kaboom")


test("explodes", explode)
""",
    )

    assert result.returncode == 1
    assert "ValueError: kaboom" in result.stderr


def test_strict_mode_from_environment(tmp_path: Path) -> None:
    result = _run_script(
        tmp_path,
        """
from tapzero import test

test("vague", lambda t: t.ok(True))
""",
        TAPZERO_STRICT="1",
    )

    assert result.returncode == 1
    assert "tapzero msg required" in result.stderr


def test_set_strict_applies_to_later_registrations(tmp_path: Path) -> None:
    result = _run_script(
        tmp_path,
        """
from tapzero import set_strict, test

test("lenient", lambda t: t.ok(True))
set_strict(True)
test("described", lambda t: t.ok(True, "has a description"))
""",
    )

    assert result.returncode == 0, result.stderr
    assert "ok 2 has a description" in result.stdout
