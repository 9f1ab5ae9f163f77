"""Environment variables kept by the shell, and the state shared by its parts."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field


def _name_of(entry: str) -> str:
    return entry.split("=", 1)[0]


def _declares(entry: str, name: str) -> bool:
    """True if ``entry`` is ``name`` alone or ``name=...``."""
    return entry == name or entry.startswith(name + "=")


def _index_of(entries: list[str], name: str) -> int | None:
    return next(
        (index for index, entry in enumerate(entries) if _declares(entry, name)),
        None,
    )


def _replace_or_append(entries: list[str], name: str, entry: str) -> None:
    index = _index_of(entries, name)
    if index is None:
        entries.append(entry)
    else:
        entries[index] = entry


class Environment:
    """Two views of the variables: ``entries`` holds ``NAME=value`` strings
    passed to commands, ``exports`` also holds names declared without a value."""

    def __init__(self, entries: Iterable[str] = ()) -> None:
        self.entries: list[str] = list(entries)
        self.exports: list[str] = list(self.entries)

    def get(self, name: str) -> str | None:
        """Return the value of ``name``, or None if it has none."""
        prefix = name + "="
        for entry in self.entries:
            if entry.startswith(prefix):
                return entry[len(prefix):]
        return None

    def assign(self, entry: str) -> None:
        """Set a variable from a ``NAME=value`` string, in both views."""
        if "=" not in entry:
            raise ValueError(f"assignment without '=': {entry!r}")
        name = _name_of(entry)
        _replace_or_append(self.entries, name, entry)
        _replace_or_append(self.exports, name, entry)

    def declare(self, name: str) -> None:
        """Mark ``name`` as exported without giving it a value."""
        if _index_of(self.exports, name) is None:
            self.exports.append(name)

    def unset(self, name: str) -> None:
        """Remove ``name`` from both views, if present."""
        for entries in (self.entries, self.exports):
            index = _index_of(entries, name)
            if index is not None:
                del entries[index]


@dataclass
class ShellState:
    """What the shell carries from one command line to the next."""

    environment: Environment = field(default_factory=Environment)
    exit_status: int = 0