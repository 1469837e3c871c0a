"""Console logging with optional time and source-location prefixes."""

from __future__ import annotations

import enum
import inspect
import os
import sys
from datetime import datetime
from typing import NamedTuple, TextIO


class LogFlags(enum.IntFlag):
    """Which information is prefixed to each message."""

    NONE = 0
    TIME = 1 << 0
    SOURCE_INFO = 1 << 1


class LoggedError(RuntimeError):
    """Raised when an error is logged with throwing requested."""


class _Source(NamedTuple):
    file: str
    line: int
    function: str


_COLOURS = {"INFO": "\033[37m", "WARNING": "\033[33m", "ERROR": "\033[31m"}
_RESET = "\033[0m"

_settings = LogFlags.TIME | LogFlags.SOURCE_INFO


def configure(flags: LogFlags) -> LogFlags:
    """Set the prefix flags and return the previous ones."""
    global _settings
    previous = _settings
    _settings = LogFlags(flags)
    return previous


def format_message(level: str, message: str, source: tuple | None = None) -> str:
    """Build a log line; source is a (file, line, function) tuple or None."""
    parts = []
    if _settings & LogFlags.TIME:
        parts.append(f"[{datetime.now().strftime('%H:%M:%S')}]")
    if _settings & LogFlags.SOURCE_INFO and source is not None:
        file, line, function = source
        parts.append(f"[{file}:{line} {function}]")
    parts.append(f"{level}: {message}")
    return " ".join(parts)


def _caller(depth: int) -> _Source | None:
    frame = inspect.currentframe()
    for _ in range(depth + 1):
        if frame is None:
            return None
        frame = frame.f_back
    if frame is None:
        return None
    code = frame.f_code
    return _Source(os.path.basename(code.co_filename), frame.f_lineno, code.co_name)


def _emit(level: str, message: str, stream: TextIO, source: _Source | None) -> None:
    text = format_message(level, message, source)
    isatty = getattr(stream, "isatty", None)
    if isatty is not None and isatty():
        text = f"{_COLOURS[level]}{text}{_RESET}"
    print(text, file=stream)


def info(message: str) -> None:
    _emit("INFO", message, sys.stdout, _caller(2))


def warning(message: str) -> None:
    _emit("WARNING", message, sys.stderr, _caller(2))


def error(message: str, throw_exception: bool = False) -> None:
    """Log an error, raising LoggedError if throw_exception is set."""
    _emit("ERROR", message, sys.stderr, _caller(2))
    if throw_exception:
        raise LoggedError(message)


def ccx_assert(assertion: bool, message: str) -> None:
    """Log an error and raise LoggedError when the assertion is false."""
    if not assertion:
        _emit("ERROR", message, sys.stderr, _caller(2))
        raise LoggedError(message)