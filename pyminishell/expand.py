"""Expansion of ``$NAME`` and ``$?`` inside words."""

from __future__ import annotations

import re

from .environment import Environment

_DOLLAR = re.compile(r"\$(?:(\?)|(?=[ \t\n\v\f\r]|\Z)|([A-Za-z0-9_]*))")


def expand_variables(text: str, environment: Environment, exit_status: int = 0) -> str:
    """Replace ``$?`` and ``$NAME`` in ``text``; a lone ``$`` stays as it is."""

    def substitute(match: re.Match[str]) -> str:
        if match.group(1):
            return str(exit_status)
        name = match.group(2)
        if name is None:
            return "$"
        value = environment.get(name)
        return value if value is not None else ""

    return _DOLLAR.sub(substitute, text)