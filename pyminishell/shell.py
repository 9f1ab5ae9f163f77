"""The interactive loop: read a line, tokenize it, run it, repeat."""

from __future__ import annotations

import os
import signal
import sys
from collections.abc import Mapping
from typing import TextIO

from .builtins import ShellExit
from .environment import Environment, ShellState
from .executor import Executor
from .lexer import tokenize
from .redirect import HeredocReader

try:
    import readline as _readline
except ImportError:  # pragma: no cover - platforms without GNU readline
    _readline = None

PROMPT = "minishell> "
UNCLOSED_QUOTE = "minishell: unclosed quote"


def install_signal_handlers() -> None:
    """Let Ctrl-C interrupt the current prompt or command, and ignore Ctrl-\\."""
    signal.signal(signal.SIGINT, signal.default_int_handler)
    signal.signal(signal.SIGQUIT, signal.SIG_IGN)


class Shell:
    """A shell session reading command lines from ``stdin``."""

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        if environ is None:
            environ = os.environ
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stderr = stderr if stderr is not None else sys.stderr
        self.state = ShellState(
            Environment(f"{name}={value}" for name, value in environ.items())
        )
        self._interactive = self._is_terminal()
        self.executing = False
        heredoc = HeredocReader(self._read_line, self.stdout)
        self.executor = Executor(self.state, self.stdout, self.stderr, heredoc.read)

    def _is_terminal(self) -> bool:
        if self.stdin is not sys.stdin or self.stdout is not sys.stdout:
            return False
        try:
            return self.stdin.isatty()
        except (AttributeError, ValueError):
            return False

    def _read_line(self, prompt: str) -> str | None:
        """The next line without its newline, or None at end of input."""
        if self._interactive:
            try:
                return input(prompt)
            except EOFError:
                return None
        self.stdout.write(prompt)
        self.stdout.flush()
        line = self.stdin.readline()
        if not line:
            return None
        return line[:-1] if line.endswith("\n") else line

    def run_line(self, line: str) -> int:
        """Tokenize and run one command line; return the shell's status.

        ShellExit propagates when the line runs ``exit``.
        """
        tokenized = tokenize(line, self.state.environment, self.state.exit_status)
        if tokenized.unclosed_quote:
            self.stderr.write(UNCLOSED_QUOTE + "\n")
            self.state.exit_status = 1
        self.executing = True
        try:
            self.executor.run(tokenized.tokens)
        finally:
            self.executing = False
        return self.state.exit_status

    def loop(self) -> int:
        """Read and run lines until end of input or ``exit``; return the exit code."""
        while True:
            try:
                line = self._read_line(PROMPT)
            except KeyboardInterrupt:
                self.stdout.write("\n")
                continue
            if line is None:
                self.stdout.write("exit\n")
                self.stdout.flush()
                return 0
            if self._interactive and _readline is not None and line:
                _readline.add_history(line)
            try:
                self.run_line(line)
            except ShellExit as request:
                self.stdout.write("exit\n")
                self.stdout.flush()
                return request.code
            except KeyboardInterrupt:
                self.stdout.write("\n")
            self.stdout.flush()


def main(argv: list[str] | None = None) -> int:
    """Start an interactive shell on the process's own streams."""
    del argv
    install_signal_handlers()
    return Shell().loop()


if __name__ == "__main__":
    raise SystemExit(main())