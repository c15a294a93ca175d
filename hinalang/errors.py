"""Compile errors and coloured diagnostics."""

from __future__ import annotations

import sys
from typing import TextIO

RED = "\x1b[31m"
BLUE = "\x1b[34m"
BOLD = "\x1b[1m"
RESET = "\x1b[0m"

NOTE_STYLE = BLUE + BOLD
ERROR_STYLE = RED + BOLD


class CompileError(Exception):
    """A fatal problem found while compiling a program."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


def _format(style: str, label: str, message: str) -> str:
    return f"{style}{label:>10}:{RESET} {message}"


def format_note(message: str) -> str:
    """Return a note line, without the trailing newline."""
    return _format(NOTE_STYLE, "note", message)


def format_error(message: str) -> str:
    """Return an error line, without the trailing newline."""
    return _format(ERROR_STYLE, "error", message)


def note(message: str, stream: TextIO | None = None) -> None:
    """Write a note to *stream* (standard error by default)."""
    out = sys.stderr if stream is None else stream
    out.write(format_note(message) + "\n")


def report(error: BaseException | str, stream: TextIO | None = None) -> None:
    """Write an error message to *stream* (standard error by default)."""
    out = sys.stderr if stream is None else stream
    out.write(format_error(str(error)) + "\n")