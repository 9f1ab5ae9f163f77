import pytest

from pyminishell.environment import Environment
from pyminishell.expand import expand_variables


@pytest.fixture
def environment():
    return Environment(["HOME=/home/user", "USER=someone"])


def test_plain_text_unchanged(environment):
    assert expand_variables("hello world", environment) == "hello world"


def test_variable(environment):
    assert expand_variables("$HOME", environment) == "/home/user"


def test_variable_followed_by_text(environment):
    assert expand_variables("$HOME/docs", environment) == "/home/user" + "/docs"


def test_two_variables(environment):
    assert expand_variables("$USER$HOME", environment) == "someone" + "/home/user"


def test_undefined_variable_is_empty(environment):
    assert expand_variables("a$UNDEFINED", environment) == "a"


def test_exit_status(environment):
    assert expand_variables("$?", environment, 42) == "42"
    assert expand_variables("x$?y", environment, 7) == "x7y"


def test_lone_dollar_kept(environment):
    assert expand_variables("$", environment) == "$"
    assert expand_variables("a $ b", environment) == "a $ b"


def test_double_dollar(environment):
    assert expand_variables("$$", environment) == "$"


def test_dollar_before_punctuation_is_dropped(environment):
    assert expand_variables("$-x", environment) == "-x"


def test_no_dollar_invariant(environment):
    text = "just 'some' \"text\" here"
    assert expand_variables(text, environment, 3) == text