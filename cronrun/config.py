"""
Runtime configuration.

Settings come from explicit arguments, then CRONRUN_* environment
variables (a .env file is loaded into the environment by the CLI), then
defaults.
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from cronrun.jobs import DEFAULT_SHELL, CommandExecutor

logger = logging.getLogger(__name__)

ENV_SHELL = "CRONRUN_SHELL"
ENV_MAX_WORKERS = "CRONRUN_MAX_WORKERS"
ENV_TIMEOUT = "CRONRUN_TIMEOUT"
ENV_LOG_LEVEL = "CRONRUN_LOG_LEVEL"
ENV_LOG_FILE = "CRONRUN_LOG_FILE"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None  # console only when unset


@dataclass
class ExecutionConfig:
    """Command execution configuration."""
    shell: str = DEFAULT_SHELL
    max_workers: Optional[int] = None  # one thread per job when unset
    timeout: Optional[int] = None  # seconds; no timeout when unset


def _int_from_env(env: Mapping[str, str], name: str) -> Optional[int]:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


class RunnerConfig:
    """
    Configuration for one cronrun invocation.

    Resolution order (highest to lowest priority):
    1. Explicit constructor arguments
    2. CRONRUN_* environment variables
    3. Defaults
    """

    def __init__(
        self,
        shell: Optional[str] = None,
        max_workers: Optional[int] = None,
        timeout: Optional[int] = None,
        log_level: Optional[str] = None,
        log_file: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None
    ):
        """
        Initialize runner configuration.

        Args:
            environ: Environment to read from (default: os.environ)

        Raises:
            ValueError: If a numeric environment variable is not an integer
        """
        env = os.environ if environ is None else environ

        if max_workers is None:
            max_workers = _int_from_env(env, ENV_MAX_WORKERS)
        if timeout is None:
            timeout = _int_from_env(env, ENV_TIMEOUT)

        self.execution = ExecutionConfig(
            shell=shell or env.get(ENV_SHELL) or DEFAULT_SHELL,
            max_workers=max_workers,
            timeout=timeout
        )
        self.logging = LoggingConfig(
            level=(log_level or env.get(ENV_LOG_LEVEL) or "INFO").upper(),
            file=log_file or env.get(ENV_LOG_FILE) or None
        )

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.execution.shell.strip():
            errors.append("'shell' cannot be empty")
        if self.execution.max_workers is not None and self.execution.max_workers <= 0:
            errors.append("'max_workers' must be positive")
        if self.execution.timeout is not None and self.execution.timeout <= 0:
            errors.append("'timeout' must be positive")
        if self.logging.level not in LOG_LEVELS:
            errors.append(f"'log_level' must be one of {', '.join(LOG_LEVELS)}")

        return errors

    def create_executor(self) -> CommandExecutor:
        return CommandExecutor(
            shell=self.execution.shell,
            timeout=self.execution.timeout
        )

    def __repr__(self):
        return (f"RunnerConfig(shell={self.execution.shell}, "
                f"max_workers={self.execution.max_workers}, "
                f"timeout={self.execution.timeout}, level={self.logging.level})")
