# pyminishell

pyminishell is a small interactive command shell. It shows a `minishell> `
prompt, reads one line at a time and runs it. It supports:

- pipelines joined with `|`
- the redirections `<`, `>` and `>>`, and here-documents with `<<`
- single quotes, which keep their contents exactly as written, and double
  quotes, which expand variables
- `$NAME` expansion from the shell's environment, and `$?` for the last
  status
- the builtins `echo` (with `-n`), `cd`, `pwd`, `export`, `unset`, `env` and
  `exit`

Any other command is looked up on `PATH`, or used as a path if it is
executable, and runs as a child process.

## Installation

```
pip install .
```

The package has no dependencies outside the standard library.

## Usage

Start the interactive shell:

```
pyminishell
```

Here is an example session:

```
minishell> export GREETING=hello
minishell> echo "$GREETING world" | cat > out.txt
minishell> cat < out.txt
hello world
minishell> cat << END
> first line
> END
first line
minishell> exit
exit
```

To leave the shell, press Ctrl-D at the prompt or run `exit [n]`. Ctrl-C
drops the current line and shows a new prompt. Ctrl-\ is ignored.

## Using it from Python

```python
import sys
from pyminishell.shell import Shell

shell = Shell({"PATH": "/usr/bin:/bin", "HOME": "/tmp"}, sys.stdin, sys.stdout, sys.stderr)
shell.run_line('echo "$HOME"')
```

`Shell.run_line` runs one line and returns the shell's status. When the line
runs `exit`, it raises `pyminishell.builtins.ShellExit`, whose `code` holds
the status to exit with. `Shell.loop` reads lines until end of input or
`exit` and returns the exit code.

You can also use the lower-level parts on their own:

- `pyminishell.lexer.tokenize` turns a line into tokens.
- `pyminishell.expand.expand_variables` expands `$NAME` and `$?` in a string.
- `pyminishell.commands.parse_command` builds one pipeline stage from the
  tokens.
- `pyminishell.executor.Executor` runs tokenized lines.
- `pyminishell.environment.Environment` holds the variables.

## Limits

The shell is small, and it does not do the following:

- There is no `;`, `&&`, `||`, backgrounding, globbing, backslash escaping,
  command substitution or `VAR=value command` prefix.
- There is no redirection of standard error.
- `$?` is set by builtins and by an unclosed quote. The exit status of
  external programs and of a failed command lookup is not recorded in `$?`.
- There is no script or `-c` mode. The `pyminishell` command only reads
  lines from standard input.

## Running the tests

```
pip install ".[test]"
pytest
```