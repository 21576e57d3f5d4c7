"""
Tests for shell command execution.
"""

import logging

import pytest

from cronrun.errors import CommandExecutionError
from cronrun.jobs import CommandExecutor


def test_run_returns_output():
    assert CommandExecutor().run("/bin/echo foo") == "foo\n"


def test_run_combines_stdout_and_stderr():
    output = CommandExecutor().run("echo out; echo err 1>&2")
    assert "out" in output
    assert "err" in output


@pytest.mark.parametrize("command", [
    "/bin/ls --bogus-option-that-does-not-exist",
    "/bin/bogus --bash",
    "false",
])
def test_run_failure(command):
    with pytest.raises(CommandExecutionError) as exc_info:
        CommandExecutor().run(command)
    assert exc_info.value.command == command
    assert exc_info.value.returncode != 0


def test_failure_carries_exit_status_and_output():
    with pytest.raises(CommandExecutionError) as exc_info:
        CommandExecutor().run("echo partial; echo broken 1>&2; exit 3")
    error = exc_info.value
    assert error.returncode == 3
    assert "partial" in error.output
    assert "broken" in error.output
    assert "exit status 3" in str(error)


def test_missing_command_exit_status():
    with pytest.raises(CommandExecutionError) as exc_info:
        CommandExecutor().run("/bin/bogus --bash")
    assert exc_info.value.returncode == 127


def test_missing_shell():
    executor = CommandExecutor(shell="/nonexistent/shell")
    with pytest.raises(CommandExecutionError) as exc_info:
        executor.run("echo foo")
    assert exc_info.value.returncode is None


def test_timeout():
    executor = CommandExecutor(timeout=1)
    with pytest.raises(CommandExecutionError) as exc_info:
        executor.run("echo started; sleep 10")
    assert exc_info.value.returncode is None
    assert "timed out" in str(exc_info.value)


def test_command_is_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger="cronrun.jobs"):
        CommandExecutor().run("echo logged-line", job_name="* * * * *")
    assert "[* * * * *] Executing command: echo logged-line" in caplog.text
    assert "logged-line" in caplog.text


def test_undecodable_output_is_replaced():
    output = CommandExecutor().run(r"printf 'bad \377\376 bytes\n'")
    assert output.startswith("bad ")
    assert output.endswith(" bytes\n")
    assert "\ufffd" in output
