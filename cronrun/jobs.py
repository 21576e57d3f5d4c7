"""
Shell command execution for due jobs.

Each command is passed to ``<shell> -c`` with stdout and stderr merged
into one captured stream. There are no retries: whatever invokes cronrun
every minute is responsible for that.
"""

import logging
import subprocess
from typing import Optional

from cronrun.errors import CommandExecutionError

logger = logging.getLogger(__name__)

DEFAULT_SHELL = "/bin/sh"


class CommandExecutor:
    """
    Runs crontab commands through a shell.

    No timeout is applied unless one is configured; a hanging command
    keeps the whole invocation waiting.
    """

    def __init__(self, shell: str = DEFAULT_SHELL, timeout: Optional[int] = None):
        """
        Initialize command executor.

        Args:
            shell: Shell used as ``shell -c command``
            timeout: Timeout in seconds, or None to wait indefinitely
        """
        self.shell = shell
        self.timeout = timeout

    def run(self, command: str, job_name: Optional[str] = None) -> str:
        """
        Execute a shell command.

        Args:
            command: Shell command to execute
            job_name: Name of the job (for logging)

        Returns:
            Combined stdout/stderr of the command

        Raises:
            CommandExecutionError: If the command exits non-zero, times out
                or the shell cannot be started
        """
        log_prefix = f"[{job_name}] " if job_name else ""
        logger.info(f"{log_prefix}Executing command: {command}")

        try:
            process = subprocess.Popen(
                [self.shell, '-c', command],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding='utf-8',
                errors='replace'
            )
        except OSError as e:
            logger.error(f"{log_prefix}Could not start {self.shell}: {e}")
            raise CommandExecutionError(command, reason=str(e)) from e

        try:
            output, _ = process.communicate(timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            process.kill()
            output, _ = process.communicate()
            logger.error(f"{log_prefix}Command timed out after {self.timeout}s: {command}")
            raise CommandExecutionError(
                command,
                output=output or "",
                reason=f"timed out after {self.timeout}s"
            ) from e

        for line in output.splitlines():
            logger.debug(f"{log_prefix}{line}")

        if process.returncode != 0:
            logger.error(
                f"{log_prefix}Command failed with exit code {process.returncode}: {command}"
            )
            raise CommandExecutionError(command, process.returncode, output)

        return output
