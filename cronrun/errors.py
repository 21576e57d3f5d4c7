"""
Exception types raised by cronrun.

MalformedScheduleError aborts parsing of a whole crontab file, while
InvalidExpressionError and CommandExecutionError are isolated to the
job that raised them.
"""

from typing import Optional


class CronrunError(Exception):
    """Base class for all cronrun errors."""
    pass


class MalformedScheduleError(CronrunError):
    """Raised when a crontab line has fewer than six fields."""

    def __init__(self, line: str, lineno: Optional[int] = None):
        self.line = line
        self.lineno = lineno
        where = f"line {lineno}: " if lineno else ""
        super().__init__(f"{where}less than six fields in crontab {line!r}")


class InvalidExpressionError(CronrunError):
    """Raised when a cron time expression cannot be parsed."""

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        self.reason = reason
        super().__init__(f"failed to parse cron expression {expression!r}: {reason}")


class CommandExecutionError(CronrunError):
    """
    Raised when a scheduled command fails.

    Carries the combined stdout/stderr captured before the failure so
    the caller can report it alongside the error.
    """

    def __init__(
        self,
        command: str,
        returncode: Optional[int] = None,
        output: str = "",
        reason: Optional[str] = None
    ):
        self.command = command
        self.returncode = returncode
        self.output = output
        if reason is None:
            reason = f"exit status {returncode}"
        super().__init__(f"failed to run command {command!r}: {reason}")
