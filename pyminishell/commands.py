"""Gathering the arguments and redirections of one command of a pipeline."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import BinaryIO, TextIO

from .lexer import Token, TokenType
from .redirect import RedirectError, open_input, open_output

SYNTAX_ERROR = "minishell: syntax error near unexpected token `newline'"

_REDIRECTS = frozenset(
    {
        TokenType.REDIRECT_IN,
        TokenType.REDIRECT_OUT,
        TokenType.REDIRECT_APPEND,
        TokenType.HEREDOC,
    }
)


@dataclass
class Command:
    """One command: its arguments and where its input and output go.

    Input comes from at most one of ``input_file`` and ``input_data``
    (a here-document body); the last redirection given wins.
    """

    args: list[str] = field(default_factory=list)
    input_file: BinaryIO | None = None
    input_data: str | None = None
    output_file: BinaryIO | None = None

    @property
    def redirects_input(self) -> bool:
        return self.input_file is not None or self.input_data is not None

    def _replace_input(self, file: BinaryIO | None, data: str | None) -> None:
        if self.input_file is not None:
            self.input_file.close()
        self.input_file = file
        self.input_data = data

    def _replace_output(self, file: BinaryIO) -> None:
        if self.output_file is not None:
            self.output_file.close()
        self.output_file = file

    def close(self) -> None:
        """Close any files the redirections opened."""
        for file in (self.input_file, self.output_file):
            if file is not None:
                file.close()


@dataclass(frozen=True)
class ParsedCommand:
    """The result of parsing one pipeline stage.

    ``command`` is None when the stage failed or has no arguments; ``end``
    is the index of the pipe token that ends the stage, or the token count.
    """

    command: Command | None
    end: int


def _segment_end(tokens: Sequence[Token], pos: int) -> int:
    while pos < len(tokens) and tokens[pos].type is not TokenType.PIPE:
        pos += 1
    return pos


def _apply_redirect(
    command: Command, kind: TokenType, target: str, heredoc: Callable[[str], str]
) -> None:
    if kind is TokenType.REDIRECT_IN:
        command._replace_input(open_input(target), None)
    elif kind is TokenType.REDIRECT_OUT:
        command._replace_output(open_output(target, append=False))
    elif kind is TokenType.REDIRECT_APPEND:
        command._replace_output(open_output(target, append=True))
    else:
        command._replace_input(None, heredoc(target))


def parse_command(
    tokens: Sequence[Token],
    start: int,
    heredoc: Callable[[str], str],
    stderr: TextIO,
) -> ParsedCommand:
    """Parse the stage that begins at ``tokens[start]``, opening its redirections.

    Errors are written to ``stderr``; the stage is then returned without a command.
    """
    command = Command()
    pos = start
    try:
        while pos < len(tokens) and tokens[pos].type is not TokenType.PIPE:
            token = tokens[pos]
            if token.type in _REDIRECTS:
                if pos + 1 >= len(tokens):
                    raise RedirectError(SYNTAX_ERROR)
                _apply_redirect(command, token.type, tokens[pos + 1].value, heredoc)
                pos += 2
            else:
                command.args.append(token.value)
                pos += 1
    except RedirectError as error:
        stderr.write(f"{error}\n")
        command.close()
        return ParsedCommand(None, _segment_end(tokens, pos))
    if not command.args:
        command.close()
        return ParsedCommand(None, pos)
    return ParsedCommand(command, pos)