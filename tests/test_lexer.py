import pytest

from pyminishell.environment import Environment
from pyminishell.lexer import (
    SubToken,
    TokenType,
    is_space,
    split_sub_tokens,
    tokenize,
)


@pytest.fixture
def environment():
    return Environment(["HOME=/home/user"])


def values(result):
    return [item.value for item in result.tokens]


def types(result):
    return [item.type for item in result.tokens]


def test_is_space():
    assert is_space("\t")
    assert is_space(" ")
    assert not is_space("a")


def test_simple_words(environment):
    result = tokenize("echo hello", environment)
    assert values(result) == ["echo", "hello"]
    assert types(result) == [TokenType.WORD, TokenType.WORD]
    assert not result.unclosed_quote


def test_empty_line(environment):
    assert tokenize("   ", environment).tokens == []


def test_operators(environment):
    result = tokenize("a|b>c>>d<e<<f", environment)
    assert values(result) == ["a", "|", "b", ">", "c", ">>", "d", "<", "e", "<<", "f"]
    assert types(result)[1::2] == [
        TokenType.PIPE,
        TokenType.REDIRECT_OUT,
        TokenType.REDIRECT_APPEND,
        TokenType.REDIRECT_IN,
        TokenType.HEREDOC,
    ]


def test_token_type_values_match_format(environment):
    result = tokenize("a | b", environment)
    assert [int(kind) for kind in types(result)] == [1, 2, 1]
    parts = split_sub_tokens("abc", environment)
    assert int(parts[0].type) == 9


def test_single_quotes_not_expanded(environment):
    assert values(tokenize("echo '$HOME'", environment)) == ["echo", "$HOME"]


def test_double_quotes_expanded(environment):
    assert values(tokenize('echo "$HOME"', environment)) == ["echo", "/home/user"]


def test_unquoted_expanded(environment):
    assert values(tokenize("$HOME", environment)) == ["/home/user"]


def test_quotes_join_into_one_word(environment):
    assert values(tokenize('he"ll"o', environment)) == ["hello"]


def test_quoted_operator_is_word(environment):
    result = tokenize("echo '|' \"a b\"", environment)
    assert values(result) == ["echo", "|", "a b"]
    assert set(types(result)) == {TokenType.WORD}


def test_empty_quotes_give_empty_word(environment):
    assert values(tokenize('echo ""', environment)) == ["echo", ""]


def test_tab_inside_word_kept(environment):
    assert values(tokenize("a\tb", environment)) == ["a\tb"]


def test_unclosed_quote(environment):
    result = tokenize('x"abc', environment)
    assert result.unclosed_quote
    assert values(result) == ["x" + "abc"]


def test_unclosed_quote_sets_status_for_expansion(environment):
    result = tokenize('echo "$?', environment, 0)
    assert result.unclosed_quote
    assert values(result)[1] == "1"


def test_sub_tokens(environment):
    parts = split_sub_tokens("a'$HOME'\"$HOME\"", environment)
    assert parts == [
        SubToken("a", TokenType.NO_QUOTE),
        SubToken("$HOME", TokenType.SQUOTE),
        SubToken("/home/user", TokenType.DQUOTE),
    ]


def test_word_token_carries_sub_tokens(environment):
    word = tokenize("a'b'", environment).tokens[0]
    assert "".join(part.content for part in word.sub_tokens) == word.value


def test_split_rejects_unquoted_separator(environment):
    with pytest.raises(ValueError):
        split_sub_tokens("a b", environment)