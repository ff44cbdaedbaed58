"""Best-effort call-site attribution for failing assertions.

A stack trace is parsed frame by frame with a pluggable ``FrameParser`` and
the innermost frame that does not live inside this package is rendered as
``"<name> (<file>:<line>[:<column>])"``. Anything that cannot be parsed
yields an empty string, meaning "location unknown".
"""
from __future__ import annotations

import os
import re
import traceback
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Protocol

ANONYMOUS = "<anonymous>"

_ABSOLUTE_PATH = r"(?:/|[a-zA-Z]:\\)"

_PYTHON_FRAME_REGEX = re.compile(
    r'^\s*File "(?P<file>' + _ABSOLUTE_PATH + r'[^"]+)", line (?P<line>\d+)(?:, in (?P<name>.+?))?\s*$'
)

_V8_FRAME_REGEX = re.compile(
    # "at " with anything glued in front of it
    r"^(?:\S*\s*\bat\s+)"
    # optional call description followed by an opening parenthesis
    r"(?:(?P<name>.*)\s+\()?"
    r"(?P<file>" + _ABSOLUTE_PATH + r"[^:)]+):(?P<line>\d+)(?::(?P<column>\d+))?\)?$"
)


@dataclass(slots=True, frozen=True)
class Frame:
    file: str
    line: int
    name: str | None = None
    column: int | None = None

    def render(self) -> str:
        location = f"{self.file}:{self.line}"
        if self.column is not None:
            location = f"{location}:{self.column}"
        return f"{self.name or ANONYMOUS} ({location})"


class FrameParser(Protocol):
    innermost_first: bool

    def parse(self, line: str) -> Frame | None: ...


class PythonFrameParser:
    """CPython traceback text; frames are listed outermost first."""

    innermost_first = False

    def parse(self, line: str) -> Frame | None:
        match = _PYTHON_FRAME_REGEX.match(line)
        if match is None:
            return None
        return Frame(file=match.group("file"), line=int(match.group("line")), name=match.group("name"))


class V8FrameParser:
    """``at name (/abs/file.js:12:5)`` frames; listed innermost first."""

    innermost_first = True

    def parse(self, line: str) -> Frame | None:
        match = _V8_FRAME_REGEX.match(line.strip())
        if match is None:
            return None
        column = match.group("column")
        return Frame(
            file=match.group("file"),
            line=int(match.group("line")),
            name=match.group("name") or None,
            column=int(column) if column else None,
        )


PYTHON_FRAME_PARSER = PythonFrameParser()

_CACHED_LIBRARY_ROOT: str | None = None


def iter_frames(stack: str, parser: FrameParser) -> Iterator[Frame]:
    """Yield parsed frames innermost first, whatever the parser's native order."""
    lines = stack.split("\n")
    if not parser.innermost_first:
        lines.reverse()
    for line in lines:
        frame = parser.parse(line)
        if frame is not None:
            yield frame


def library_root() -> str:
    global _CACHED_LIBRARY_ROOT
    if _CACHED_LIBRARY_ROOT is not None:
        return _CACHED_LIBRARY_ROOT

    stack = "".join(traceback.format_stack())
    for frame in iter_frames(stack, PYTHON_FRAME_PARSER):
        _CACHED_LIBRARY_ROOT = os.path.dirname(frame.file) + os.sep
        break
    return _CACHED_LIBRARY_ROOT or ""


class CallSiteResolver:
    def __init__(self, parser: FrameParser | None = None, root: str | None = None) -> None:
        self.parser: FrameParser = parser or PYTHON_FRAME_PARSER
        self._root = root

    @property
    def root(self) -> str:
        if self._root is None:
            return library_root()
        return self._root

    def resolve(self, stack: str) -> str:
        root = self.root
        for frame in iter_frames(stack, self.parser):
            if root and frame.file.startswith(root):
                continue
            return frame.render()
        return ""


def capture_stack(message: str) -> str:
    """Traceback text for a fresh ``AssertionError(message)`` raised right here."""
    frames = traceback.extract_stack()[:-1]
    parts = ["Traceback (most recent call last):\n"]
    parts.extend(traceback.format_list(frames))
    parts.extend(traceback.format_exception_only(AssertionError, AssertionError(message)))
    return "".join(parts).rstrip("\n")


def exception_stack(error: BaseException) -> str:
    return "".join(traceback.format_exception(type(error), error, error.__traceback__)).rstrip("\n")


__all__ = [
    "ANONYMOUS",
    "CallSiteResolver",
    "Frame",
    "FrameParser",
    "PYTHON_FRAME_PARSER",
    "PythonFrameParser",
    "V8FrameParser",
    "capture_stack",
    "exception_stack",
    "iter_frames",
    "library_root",
]
