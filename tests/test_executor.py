import io
import os

import pytest

from pyminishell.builtins import ShellExit
from pyminishell.environment import Environment, ShellState
from pyminishell.executor import Executor, find_command_path
from pyminishell.lexer import tokenize


@pytest.fixture
def state():
    return ShellState(Environment([f"PATH={os.environ.get('PATH', '/usr/bin:/bin')}"]))


def run_line(state, line, heredoc=None):
    out, err = io.StringIO(), io.StringIO()
    executor = Executor(state, out, err, heredoc or (lambda delimiter: ""))
    tokens = tokenize(line, state.environment, state.exit_status).tokens
    status = executor.run(tokens)
    return status, out.getvalue(), err.getvalue()


def make_tool(directory, name="tool"):
    path = directory / name
    path.write_text("#!/bin/sh\n")
    path.chmod(0o755)
    return path


def test_find_command_path_searches_path(tmp_path):
    make_tool(tmp_path)
    environment = Environment([f"PATH=/nonexistent:{tmp_path}"])
    assert find_command_path("tool", environment) == f"{tmp_path}/tool"


def test_find_command_path_missing(tmp_path):
    environment = Environment([f"PATH={tmp_path}"])
    assert find_command_path("absent_tool", environment) is None


def test_find_command_path_without_path_variable():
    assert find_command_path("absent_tool", Environment()) is None


def test_find_command_path_accepts_executable_path(tmp_path):
    tool = make_tool(tmp_path)
    assert find_command_path(str(tool), Environment()) == str(tool)


def test_builtin_runs_in_shell(state):
    assert run_line(state, "echo hello") == (0, "hello\n", "")


def test_export_in_shell_changes_state(state):
    run_line(state, "export GREETING=hi")
    assert state.environment.get("GREETING") == "hi"


def test_export_in_pipeline_does_not_change_state(state):
    run_line(state, "export GREETING=hi | cat")
    assert state.environment.get("GREETING") is None


def test_builtin_into_external(state):
    status, out, _ = run_line(state, "echo hi | cat")
    assert (status, out) == (0, "hi\n")


def test_three_stage_pipeline(state):
    _, out, _ = run_line(state, "echo a | cat | cat")
    assert out == "a\n"


def test_builtin_output_redirect(state, tmp_path):
    path = tmp_path / "out"
    _, out, _ = run_line(state, f"echo hi > {path}")
    assert out == ""
    assert path.read_text() == "hi\n"


def test_external_output_append(state, tmp_path):
    path = tmp_path / "out"
    path.write_text("start-")
    run_line(state, f"printf abc >> {path}")
    assert path.read_text() == "start-abc"


def test_external_reads_input_file(state, tmp_path):
    path = tmp_path / "in"
    path.write_text("data\n")
    _, out, _ = run_line(state, f"cat < {path}")
    assert out == "data\n"


def test_heredoc_feeds_command(state):
    _, out, _ = run_line(state, "cat << END", heredoc=lambda d: "one\ntwo\n")
    assert out == "one\ntwo\n"


def test_command_not_found(state):
    status, out, err = run_line(state, "no_such_command_here | echo after")
    assert status == 1
    assert out == ""
    assert err == "minishell: no_such_command_here: command not found\n"


def test_failed_redirect_runs_next_stage(state, tmp_path):
    missing = tmp_path / "missing"
    status, out, err = run_line(state, f"cat < {missing} | echo next")
    assert (status, out) == (0, "next\n")
    assert "No such file or directory" in err


def test_external_sees_exported_variables(state):
    run_line(state, "export ZZ=val")
    _, out, _ = run_line(state, "sh -c 'printf %s \"$ZZ\"'")
    assert out == "val"


def test_external_errors_are_collected(state):
    _, _, err = run_line(state, "cat /no/such/file/here")
    assert "/no/such/file/here" in err


def test_exit_in_shell_raises(state):
    with pytest.raises(ShellExit) as info:
        run_line(state, "exit 3")
    assert info.value.code == 3


def test_exit_in_pipeline_does_not_end_shell(state):
    status, out, _ = run_line(state, "exit 3 | cat")
    assert (status, out) == (0, "exit\n")