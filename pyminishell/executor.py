"""Running the commands of a line, connected by pipes."""

from __future__ import annotations

import codecs
import copy
import io
import os
import subprocess
import sys
import threading
from collections.abc import Callable, Iterable
from contextlib import closing
from typing import IO, TextIO, Union

from .builtins import ShellExit, is_builtin, run_builtin
from .commands import Command, parse_command
from .environment import Environment, ShellState
from .lexer import Token, TokenType
from .redirect import HeredocReader, command_not_found

# What a stage hands to the next: a pipe to read, bytes already produced, or nothing.
_Upstream = Union[IO[bytes], bytes, None]

_CHUNK = 65536


def find_command_path(name: str, environment: Environment) -> str | None:
    """Where the program ``name`` is: itself if executable, else the first match on PATH."""
    if os.access(name, os.X_OK):
        return name
    search = environment.get("PATH")
    if search is None:
        return None
    for directory in filter(None, search.split(":")):
        candidate = f"{directory}/{name}"
        if os.access(candidate, os.X_OK):
            return candidate
    return None


def _fileno(stream: TextIO) -> int | None:
    try:
        return stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None


def _discard(upstream: _Upstream) -> None:
    if upstream is not None and not isinstance(upstream, bytes):
        upstream.close()


def _feed(stream: IO[bytes], data: bytes) -> None:
    try:
        stream.write(data)
    except BrokenPipeError:
        pass
    finally:
        try:
            stream.close()
        except BrokenPipeError:
            pass


class Executor:
    """Runs tokenized command lines, builtins in the shell, others as child processes."""

    def __init__(
        self,
        state: ShellState,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
        heredoc: Callable[[str], str] | None = None,
    ) -> None:
        self.state = state
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stderr = stderr if stderr is not None else sys.stderr
        self.heredoc = (
            heredoc if heredoc is not None else HeredocReader(input, self.stdout).read
        )
        self._lock = threading.Lock()
        self._processes: list[subprocess.Popen[bytes]] = []
        self._threads: list[threading.Thread] = []

    def run(self, tokens: Iterable[Token]) -> int:
        """Run every stage of ``tokens``; 1 if a command was not found, else 0."""
        tokens = list(tokens)
        self._processes = []
        self._threads = []
        upstream: _Upstream = None
        status = 0
        pos = 0
        try:
            while pos < len(tokens):
                parsed = parse_command(tokens, pos, self.heredoc, self.stderr)
                pos = parsed.end
                piped = pos < len(tokens) and tokens[pos].type is TokenType.PIPE
                if piped:
                    pos += 1
                previous, upstream = upstream, None
                if parsed.command is None:
                    _discard(previous)
                    continue
                with closing(parsed.command) as command:
                    if command.redirects_input:
                        _discard(previous)
                        previous = None
                    found, upstream = self._execute(command, previous, piped)
                if not found:
                    status = 1
                    break
        finally:
            _discard(upstream)
            self._finish()
        return status

    def _execute(
        self, command: Command, previous: _Upstream, piped: bool
    ) -> tuple[bool, _Upstream]:
        name = command.args[0]
        to_pipe = piped and command.output_file is None
        if is_builtin(name):
            if (
                previous is None
                and not command.redirects_input
                and command.output_file is None
                and not to_pipe
            ):
                run_builtin(self.state, command.args, self.stdout, self.stderr)
                return True, None
            return True, self._run_builtin_apart(command, previous, to_pipe)
        path = find_command_path(name, self.state.environment)
        if path is None:
            _discard(previous)
            self._write(self.stderr, command_not_found(name) + "\n")
            return False, None
        return True, self._spawn(command, path, previous, to_pipe)

    def _run_builtin_apart(
        self, command: Command, previous: _Upstream, to_pipe: bool
    ) -> _Upstream:
        """Run a builtin as a child would: on a copy of the state, output captured."""
        _discard(previous)
        buffer = io.StringIO()
        state = copy.deepcopy(self.state)
        try:
            run_builtin(state, command.args, buffer, self.stderr)
        except ShellExit:
            buffer.write("exit\n")
        output = buffer.getvalue()
        if command.output_file is not None:
            command.output_file.write(output.encode())
            return None
        if to_pipe:
            return output.encode()
        self._write(self.stdout, output)
        return None

    def _spawn(
        self, command: Command, path: str, previous: _Upstream, to_pipe: bool
    ) -> _Upstream:
        feed: bytes | None = None
        stdin: object
        if command.input_file is not None:
            stdin = command.input_file
        elif command.input_data is not None:
            stdin, feed = subprocess.PIPE, command.input_data.encode()
        elif isinstance(previous, bytes):
            stdin, feed = subprocess.PIPE, previous
        else:
            stdin = previous

        collect_out = False
        stdout: object
        if command.output_file is not None:
            stdout = command.output_file
        elif to_pipe:
            stdout = subprocess.PIPE
        else:
            stdout = _fileno(self.stdout)
            if stdout is None:
                stdout, collect_out = subprocess.PIPE, True
        stderr: object = _fileno(self.stderr)
        collect_err = stderr is None
        if collect_err:
            stderr = subprocess.PIPE

        self._flush()
        try:
            process = subprocess.Popen(
                command.args,
                executable=path,
                stdin=stdin,
                stdout=stdout,
                stderr=stderr,
                env=self._child_environment(),
            )
        except OSError:
            return b"" if to_pipe else None
        finally:
            _discard(previous)
        self._processes.append(process)
        if feed is not None:
            self._start(_feed, process.stdin, feed)
        if collect_out:
            self._start(self._drain, process.stdout, self.stdout)
        if collect_err:
            self._start(self._drain, process.stderr, self.stderr)
        return process.stdout if to_pipe else None

    def _child_environment(self) -> dict[str, str]:
        return {
            name: value
            for name, _, value in (
                entry.partition("=") for entry in self.state.environment.entries
            )
        }

    def _start(self, target: Callable[..., None], *args: object) -> None:
        thread = threading.Thread(target=target, args=args, daemon=True)
        thread.start()
        self._threads.append(thread)

    def _drain(self, stream: IO[bytes], sink: TextIO) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        with stream:
            while chunk := stream.read1(_CHUNK):
                self._write(sink, decoder.decode(chunk))
        self._write(sink, decoder.decode(b"", final=True))

    def _write(self, sink: TextIO, text: str) -> None:
        if text:
            with self._lock:
                sink.write(text)

    def _flush(self) -> None:
        for stream in (self.stdout, self.stderr):
            try:
                stream.flush()
            except (AttributeError, OSError, ValueError):
                pass

    def _finish(self) -> None:
        for process in self._processes:
            process.wait()
        for thread in self._threads:
            thread.join()
        self._processes = []
        self._threads = []