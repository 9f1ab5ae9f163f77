"""Splitting a command line into tokens, with quoting and expansion."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import IntEnum

from .environment import Environment
from .expand import expand_variables


class TokenType(IntEnum):
    WORD = 1
    PIPE = 2
    REDIRECT_IN = 3
    REDIRECT_OUT = 4
    REDIRECT_APPEND = 5
    HEREDOC = 6
    SQUOTE = 7
    DQUOTE = 8
    NO_QUOTE = 9


@dataclass(frozen=True)
class SubToken:
    """One quoted or unquoted piece of a word, after expansion."""

    content: str
    type: TokenType


@dataclass(frozen=True)
class Token:
    value: str
    type: TokenType
    sub_tokens: tuple[SubToken, ...] = ()


@dataclass
class Tokenized:
    """The tokens of a line, and whether a quote was left open."""

    tokens: list[Token] = field(default_factory=list)
    unclosed_quote: bool = False


_SPACES = frozenset(" \t\n\v\f\r")
_QUOTES = "'\""
_WORD_STOPS = frozenset(" |<>")
_OPERATORS = {
    ">>": TokenType.REDIRECT_APPEND,
    "<<": TokenType.HEREDOC,
    ">": TokenType.REDIRECT_OUT,
    "<": TokenType.REDIRECT_IN,
    "|": TokenType.PIPE,
}
_BARE_RUN = re.compile(r"""[^'" |<>]+""")


def is_space(char: str) -> bool:
    return char in _SPACES


def split_sub_tokens(
    word: str, environment: Environment, exit_status: int = 0
) -> list[SubToken]:
    """Split a word into quoted and unquoted pieces, expanding all but single quotes."""
    parts: list[SubToken] = []
    pos = 0
    while pos < len(word):
        char = word[pos]
        if char in _QUOTES:
            close = word.find(char, pos + 1)
            end = len(word) if close == -1 else close
            content = word[pos + 1:end]
            if char == '"':
                parts.append(
                    SubToken(expand_variables(content, environment, exit_status), TokenType.DQUOTE)
                )
            else:
                parts.append(SubToken(content, TokenType.SQUOTE))
            pos = end if close == -1 else end + 1
        else:
            match = _BARE_RUN.match(word, pos)
            if match is None:
                raise ValueError(f"unquoted {char!r} inside word {word!r}")
            parts.append(
                SubToken(
                    expand_variables(match.group(), environment, exit_status),
                    TokenType.NO_QUOTE,
                )
            )
            pos = match.end()
    return parts


def _end_of_word(line: str, pos: int) -> tuple[int, bool]:
    """Return where the word at ``pos`` ends and whether its quotes are closed."""
    while pos < len(line) and line[pos] not in _WORD_STOPS:
        char = line[pos]
        if char in _QUOTES:
            close = line.find(char, pos + 1)
            if close == -1:
                return len(line), False
            pos = close + 1
        else:
            pos += 1
    return pos, True


def tokenize(line: str, environment: Environment, exit_status: int = 0) -> Tokenized:
    """Split ``line`` into word and operator tokens.

    An unclosed quote runs to the end of the line; ``$?`` from that point
    on expands to 1, the status the shell takes on for that error.
    """
    result = Tokenized()
    status = exit_status
    pos = 0
    while pos < len(line):
        while pos < len(line) and is_space(line[pos]):
            pos += 1
        if pos >= len(line):
            break
        if line[pos] in "|<>":
            pair = line[pos:pos + 2]
            operator = pair if pair in (">>", "<<") else line[pos]
            result.tokens.append(Token(operator, _OPERATORS[operator]))
            pos += len(operator)
            continue
        end, closed = _end_of_word(line, pos)
        if not closed:
            result.unclosed_quote = True
            status = 1
        parts = split_sub_tokens(line[pos:end], environment, status)
        result.tokens.append(
            Token("".join(part.content for part in parts), TokenType.WORD, tuple(parts))
        )
        pos = end
    return result