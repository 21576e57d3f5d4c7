"""
Tests for the cronrun command line.
"""

import logging
import os

import pytest

from cronrun import __version__
from cronrun.cli import main


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run each test in an empty directory without CRONRUN_* settings."""
    monkeypatch.chdir(tmp_path)
    for name in ("CRONRUN_SHELL", "CRONRUN_MAX_WORKERS", "CRONRUN_TIMEOUT",
                 "CRONRUN_LOG_LEVEL", "CRONRUN_LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if not type(handler).__module__.startswith("_pytest"):
            root.removeHandler(handler)
            handler.close()


def write_crontab(tmp_path, text):
    path = tmp_path / "crontab"
    path.write_text(text)
    return str(path)


def test_no_arguments_prints_usage(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main([])
    assert exc_info.value.code != 0
    assert "usage: cronrun" in capsys.readouterr().err


def test_too_many_arguments():
    with pytest.raises(SystemExit) as exc_info:
        main(["one", "two"])
    assert exc_info.value.code != 0


def test_version(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["--version"])
    assert exc_info.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_missing_file(tmp_path):
    assert main([str(tmp_path / "missing")]) == 1


def test_malformed_file(tmp_path):
    path = write_crontab(tmp_path, "* * * * * echo ok\n* * * * *\n")
    assert main([path]) == 1


def test_runs_due_jobs(tmp_path):
    path = write_crontab(tmp_path, (
        "# every minute\n"
        "* * * * * echo due > every-minute.txt\n"
        "\n"
        "0 0 31 2 * echo never > never.txt\n"
    ))
    assert main([path]) == 0
    assert (tmp_path / "every-minute.txt").read_text() == "due\n"
    assert not (tmp_path / "never.txt").exists()


def test_job_failures_do_not_fail_invocation(tmp_path, caplog):
    path = write_crontab(tmp_path, (
        "* * * * * echo before-failure; exit 4\n"
        "* * * * Funday echo bad-expression\n"
        "* * * * * touch still-ran\n"
    ))
    assert main([path]) == 0
    assert (tmp_path / "still-ran").exists()
    assert "exit status 4" in caplog.text
    assert "before-failure" in caplog.text
    assert "Funday" in caplog.text


def test_log_file(tmp_path):
    path = write_crontab(tmp_path, "* * * * * echo hi\n")
    log_file = tmp_path / "logs" / "cronrun.log"
    assert main([path, "--log-file", str(log_file)]) == 0
    assert "Executing command: echo hi" in log_file.read_text()


def test_invalid_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("CRONRUN_MAX_WORKERS", "many")
    path = write_crontab(tmp_path, "* * * * * echo hi\n")
    assert main([path]) == 1


def test_dotenv_file_is_loaded(tmp_path):
    (tmp_path / ".env").write_text("CRONRUN_TIMEOUT=0\n")
    path = write_crontab(tmp_path, "* * * * * echo hi\n")
    try:
        # timeout=0 fails validation, proving the .env value was read
        assert main([path]) == 1
    finally:
        os.environ.pop("CRONRUN_TIMEOUT", None)


def test_undecodable_file(tmp_path, caplog):
    path = tmp_path / "crontab"
    path.write_bytes(b"* * * * * echo \xff\n")
    assert main([str(path)]) == 1
    assert "Failed to read" in caplog.text
