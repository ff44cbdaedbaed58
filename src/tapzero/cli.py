from __future__ import annotations

import asyncio
import runpy
from pathlib import Path

import typer

import tapzero
from tapzero.constants import EXIT_FAILURE, EXIT_INTERNAL_ERROR, EXIT_SUCCESS
from tapzero.runner import RunSummary


def _ignore_summary(summary: RunSummary) -> None:
    pass


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"tapzero {tapzero.__version__}")
        raise typer.Exit()


app = typer.Typer(add_completion=False, help="Run test files and report in TAP version 13")


@app.callback(invoke_without_command=True)
def _main(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Print version and exit."
    ),
) -> None:
    pass


@app.command()
def run(
    files: list[Path] = typer.Argument(..., help="Test files to execute, in order"),
    strict: bool = typer.Option(False, "--strict", help="Require a description on every assertion."),
) -> None:
    """Execute test files and drive their registered tests to completion."""
    runner = tapzero.GLOBAL_TEST_RUNNER
    if strict:
        runner.strict = True

    # The exit status is decided here rather than by the process exit hook.
    runner.on_finish(_ignore_summary)

    try:
        for path in files:
            if not path.is_file():
                raise FileNotFoundError(f"Test file not found: {path}")
            runpy.run_path(str(path), run_name="__main__")
        summary = asyncio.run(runner.run())
    except Exception as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(EXIT_INTERNAL_ERROR) from exc

    raise typer.Exit(EXIT_FAILURE if summary.fail else EXIT_SUCCESS)


__all__ = ["app"]
