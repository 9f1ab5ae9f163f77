"""Opening redirection targets, reading here-documents, and error messages."""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import BinaryIO, TextIO

_FILE_MODE = 0o644


class RedirectError(Exception):
    """A redirection could not be set up; the message is ready to print."""


def format_error(filename: str, error: OSError) -> str:
    """The message printed when ``filename`` cannot be opened."""
    reason = error.strerror or str(error)
    return f"minishell: {filename}: {reason}"


def command_not_found(name: str) -> str:
    """The message printed when no program called ``name`` is found."""
    return f"minishell: {name}: command not found"


def _create(path: str, flags: int) -> int:
    return os.open(path, flags, _FILE_MODE)


def open_input(path: str) -> BinaryIO:
    """Open ``path`` for reading; RedirectError if that fails."""
    try:
        return open(path, "rb")
    except OSError as error:
        raise RedirectError(format_error(path, error)) from error


def open_output(path: str, append: bool = False) -> BinaryIO:
    """Open ``path`` for writing, truncating it unless ``append``; RedirectError on failure."""
    try:
        return open(path, "ab" if append else "wb", opener=_create)
    except OSError as error:
        raise RedirectError(format_error(path, error)) from error


class HeredocReader:
    """Reads here-document bodies line by line until a delimiter.

    ``read_line`` is called with the prompt and returns the next line, or
    None (or raises EOFError) at end of input. Line numbers run on across
    every here-document the reader handles.
    """

    PROMPT = "> "

    def __init__(
        self, read_line: Callable[[str], str | None], stdout: TextIO
    ) -> None:
        self._read_line = read_line
        self._stdout = stdout
        self.line_number = 0

    def _next_line(self) -> str | None:
        try:
            return self._read_line(self.PROMPT)
        except EOFError:
            return None

    def read(self, delimiter: str) -> str:
        """Return the lines up to ``delimiter``, each ending in a newline."""
        lines: list[str] = []
        while True:
            self.line_number += 1
            line = self._next_line()
            if line is None:
                self._stdout.write(
                    f"minishell: warning: here-document at line {self.line_number}"
                    f" delimited by end-of-file (wanted `{delimiter}')\n"
                )
                break
            if line == delimiter:
                break
            lines.append(line + "\n")
        return "".join(lines)