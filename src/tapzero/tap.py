"""TAP13 line rendering."""
from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from typing import Any

from tapzero.constants import (
    LONG_VALUE_WIDTH,
    TAP_VERSION_LINE,
    UNDEFINED_SENTINEL,
    UNDEFINED_TOKEN,
)


class _Undefined:
    """The absence marker. Distinct from ``None``, which serializes as ``null``."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return UNDEFINED_TOKEN

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()

_REGEX_FLAG_LETTERS = (
    (re.ASCII, "a"),
    (re.IGNORECASE, "i"),
    (re.LOCALE, "L"),
    (re.MULTILINE, "m"),
    (re.DOTALL, "s"),
    (re.VERBOSE, "x"),
)


def regex_source(pattern: re.Pattern[Any]) -> str:
    source = pattern.pattern
    if isinstance(source, bytes):
        source = source.decode("utf-8", errors="replace")
    flags = "".join(letter for flag, letter in _REGEX_FLAG_LETTERS if pattern.flags & flag)
    return f"/{source}/{flags}"


def _normalize(value: Any) -> Any:
    if value is UNDEFINED:
        return UNDEFINED_SENTINEL
    if isinstance(value, Mapping):
        return {str(key): _normalize(item) for key, item in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [_normalize(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return [_normalize(item) for item in value]
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, re.Pattern):
        return regex_source(value)
    if isinstance(value, BaseException):
        return str(value)
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return repr(value)


def to_json(value: Any) -> str:
    """Serialize ``value`` with 2-space indentation, keeping ``UNDEFINED`` as a bare token."""
    text = json.dumps(_normalize(value), indent=2, ensure_ascii=False)
    return text.replace(json.dumps(UNDEFINED_SENTINEL), UNDEFINED_TOKEN)


def version_line() -> str:
    return TAP_VERSION_LINE


def comment_line(message: str) -> str:
    return f"# {message}"


def bail_out_line(reason: str) -> str:
    return f"Bail out! {reason}"


def result_line(passed: bool, assertion_id: str, description: str) -> str:
    prefix = "ok" if passed else "not ok"
    return f"{prefix} {assertion_id} {description}"


def _indent_block(text: str) -> list[str]:
    return [f"      {line}" for line in text.split("\n")]


def diagnostic_lines(
    operator: str,
    expected: Any,
    actual: Any,
    at: str,
    stack: str,
) -> list[str]:
    lines = ["  ---", f"    operator: {operator}"]

    ex = to_json(expected)
    ac = to_json(actual)
    if max(len(ex), len(ac)) > LONG_VALUE_WIDTH:
        lines.append("    expected: |-")
        lines.extend(_indent_block(ex))
        lines.append("    actual:   |-")
        lines.extend(_indent_block(ac))
    else:
        lines.append(f"    expected: {ex}")
        lines.append(f"    actual:   {ac}")

    if at:
        lines.append(f"    at:       {at}")

    lines.append("    stack:    |-")
    lines.extend(_indent_block(stack))
    lines.append("  ...")
    return lines


def summary_lines(total: int, success: int, fail: int) -> list[str]:
    lines = ["", f"1..{total}", f"# tests {total}", f"# pass  {success}"]
    if fail:
        lines.append(f"# fail  {fail}")
    else:
        lines.append("")
        lines.append("# ok")
    return lines


__all__ = [
    "UNDEFINED",
    "bail_out_line",
    "comment_line",
    "diagnostic_lines",
    "regex_source",
    "result_line",
    "summary_lines",
    "to_json",
    "version_line",
]
