"""The commands the shell runs itself rather than as child programs."""

from __future__ import annotations

import os
import stat
import string
from collections.abc import Callable, Iterable, Sequence
from typing import TextIO

from .environment import Environment, ShellState

BUILTINS = frozenset({"echo", "cd", "pwd", "export", "unset", "env", "exit"})

_LONG_MAX = 2**63 - 1
_NAME_START = frozenset(string.ascii_letters + "_")
_NAME_CHARS = _NAME_START | frozenset(string.digits)
_DIGITS = frozenset(string.digits)


class ShellExit(Exception):
    """Raised by ``exit``: the shell should stop with ``code``."""

    def __init__(self, code: int) -> None:
        super().__init__(code)
        self.code = code


def is_builtin(name: str | None) -> bool:
    """True if ``name`` is run by the shell itself."""
    return bool(name) and name in BUILTINS


def run_builtin(
    state: ShellState, args: Sequence[str], stdout: TextIO, stderr: TextIO
) -> int:
    """Run the builtin named by ``args[0]`` and record its status in ``state``."""
    if not args or not is_builtin(args[0]):
        raise ValueError(f"not a builtin: {args[0] if args else ''!r}")
    commands: dict[str, Callable[[], int]] = {
        "echo": lambda: echo(args, stdout),
        "pwd": lambda: pwd(stdout),
        "env": lambda: env(state, stdout),
        "cd": lambda: cd(state, args, stderr),
        "export": lambda: export(state, args, stdout, stderr),
        "unset": lambda: unset(state, args),
    }
    if args[0] == "exit":
        exit_builtin(state, args, stderr)
        return state.exit_status
    state.exit_status = commands[args[0]]()
    return state.exit_status


def _is_no_newline_flag(arg: str) -> bool:
    return arg.startswith("-n") and set(arg[1:]) == {"n"}


def echo(args: Sequence[str], stdout: TextIO) -> int:
    """Print the arguments separated by spaces; ``-n``, ``-nnn``... drop the newline."""
    words = list(args[1:])
    newline = True
    while words and _is_no_newline_flag(words[0]):
        newline = False
        words.pop(0)
    stdout.write(" ".join(words))
    if newline:
        stdout.write("\n")
    return 0


def pwd(stdout: TextIO) -> int:
    """Print the working directory; print nothing if it cannot be found."""
    try:
        cwd = os.getcwd()
    except OSError:
        return 0
    stdout.write(cwd + "\n")
    return 0


def env(state: ShellState, stdout: TextIO) -> int:
    """Print every variable that has a value."""
    for entry in state.environment.entries:
        stdout.write(entry + "\n")
    return 0


def _value_in(entries: list[str], name: str) -> str | None:
    prefix = name + "="
    return next(
        (entry[len(prefix):] for entry in entries if entry.startswith(prefix)), None
    )


def _replace_value(entries: list[str], name: str, value: str) -> None:
    """Change the value of ``name`` where it already has one; never add it."""
    prefix = name + "="
    for index, entry in enumerate(entries):
        if entry.startswith(prefix):
            entries[index] = prefix + value
            return


def _record_directory_change(environment: Environment) -> None:
    """Move PWD into OLDPWD and set PWD to the new directory, where they exist."""
    try:
        cwd: str | None = os.getcwd()
    except OSError:
        cwd = None
    for entries in (environment.entries, environment.exports):
        old = _value_in(entries, "PWD")
        if old is not None:
            _replace_value(entries, "OLDPWD", old)
        if cwd is not None:
            _replace_value(entries, "PWD", cwd)


def _cd_home(state: ShellState, stderr: TextIO) -> int:
    home = state.environment.get("HOME")
    if home is None:
        stderr.write("cd: HOME not set\n")
        return 1
    try:
        os.chdir(home)
    except OSError:
        stderr.write(f"cd: {home}: No such file or directory\n")
        return 1
    _record_directory_change(state.environment)
    return 0


def cd(state: ShellState, args: Sequence[str], stderr: TextIO) -> int:
    """Change directory to ``args[1]``, or to HOME when no argument is given."""
    if len(args) > 2:
        stderr.write("cd: too many arguments\n")
        return 1
    if len(args) < 2:
        return _cd_home(state, stderr)
    target = args[1]
    try:
        info = os.stat(target)
    except OSError as error:
        stderr.write(f"cd: {error.strerror}\n")
        return 1
    if not stat.S_ISDIR(info.st_mode):
        stderr.write(f"cd: {target}: Not a directory\n")
        return 1
    try:
        os.chdir(target)
    except OSError as error:
        stderr.write(f"cd: {error.strerror}\n")
        return 1
    _record_directory_change(state.environment)
    return 0


def is_valid_var_name(name: str) -> bool:
    """True if the part of ``name`` before any '=' is a valid identifier."""
    if not name or name[0] not in _NAME_START:
        return False
    return all(char in _NAME_CHARS for char in name.split("=", 1)[0])


def format_exports(entries: Iterable[str]) -> list[str]:
    """The ``declare -x`` lines for ``entries``, in sorted order."""
    lines = []
    for entry in sorted(entries):
        name, sign, value = entry.partition("=")
        lines.append(f'declare -x {name}="{value}"' if sign else f"declare -x {entry}")
    return lines


def export(
    state: ShellState, args: Sequence[str], stdout: TextIO, stderr: TextIO
) -> int:
    """Export variables, or list the exported ones when given no arguments."""
    environment = state.environment
    if len(args) < 2:
        environment.exports.sort()
        for line in format_exports(environment.exports):
            stdout.write(line + "\n")
        return 0
    for arg in args[1:]:
        if not is_valid_var_name(arg):
            stderr.write(f"export: `{arg}': not a valid identifier\n")
            return 1
        if "=" in arg:
            environment.assign(arg)
        else:
            environment.declare(arg)
    return 0


def unset(state: ShellState, args: Sequence[str]) -> int:
    """Remove each named variable from the environment."""
    for name in args[1:]:
        state.environment.unset(name)
    return 0


def is_valid_exit_argument(text: str) -> bool:
    """True if ``text`` is an optional sign followed only by digits."""
    if text[:1] in ("-", "+"):
        text = text[1:]
    return all(char in _DIGITS for char in text)


def exit_code_from(text: str) -> int:
    """The process status for ``exit text``; ValueError if the number is too large."""
    sign = 1
    if text[:1] in ("-", "+"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    digits = ""
    for char in text:
        if char not in _DIGITS:
            break
        digits += char
    number = int(digits) if digits else 0
    if number > _LONG_MAX:
        raise ValueError(f"numeric argument out of range: {text!r}")
    return (sign * number) % 256


def _numeric_required(state: ShellState, arg: str, stderr: TextIO) -> ShellExit:
    stderr.write(f"bash: exit: {arg}: numeric argument required\n")
    state.exit_status = 2
    return ShellExit(2)


def exit_builtin(state: ShellState, args: Sequence[str], stderr: TextIO) -> int:
    """Raise ShellExit with the requested status; with too many arguments return 1."""
    if len(args) < 2:
        raise ShellExit(state.exit_status % 256)
    arg = args[1]
    if not is_valid_exit_argument(arg):
        raise _numeric_required(state, arg, stderr)
    try:
        code = exit_code_from(arg)
    except ValueError:
        raise _numeric_required(state, arg, stderr) from None
    if len(args) > 2:
        stderr.write("bash: exit: too many arguments\n")
        state.exit_status = 1
        return 1
    raise ShellExit(code)