"""
cronrun

Run jobs from a crontab-format file without access to the system
crontab. Called once per minute, it runs every job whose schedule
matches the current minute and exits.

Main Components:
- ScheduleSpec / jobs_from_file: crontab line and file parsing
- is_due / parse_expression: cron expression evaluation
- CommandExecutor: shell command execution
- run_jobs / run_job_if_due: concurrent dispatch of due jobs
"""

__version__ = "0.3.0"

from cronrun.errors import (
    CronrunError,
    MalformedScheduleError,
    InvalidExpressionError,
    CommandExecutionError,
)
from cronrun.expression import CronExpression, parse_expression, is_due
from cronrun.schedule import ScheduleSpec, parse_line, parse_lines, jobs_from_file
from cronrun.jobs import CommandExecutor
from cronrun.dispatch import JobResult, run_job_if_due, run_jobs
from cronrun.config import RunnerConfig

__all__ = [
    # Errors
    "CronrunError",
    "MalformedScheduleError",
    "InvalidExpressionError",
    "CommandExecutionError",
    # Evaluation
    "CronExpression",
    "parse_expression",
    "is_due",
    # Parsing
    "ScheduleSpec",
    "parse_line",
    "parse_lines",
    "jobs_from_file",
    # Execution
    "CommandExecutor",
    "JobResult",
    "run_job_if_due",
    "run_jobs",
    # Configuration
    "RunnerConfig",
]
