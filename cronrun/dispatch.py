"""
Running due jobs.

All jobs from one crontab file are evaluated against the same reference
time and run concurrently, one worker thread per job by default. Every
job's failure is captured in its own JobResult so one bad job never
stops the others.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from cronrun.errors import CommandExecutionError, CronrunError
from cronrun.jobs import CommandExecutor
from cronrun.schedule import ScheduleSpec

logger = logging.getLogger(__name__)


@dataclass
class JobResult:
    """Outcome of one job in a dispatch pass."""
    spec: ScheduleSpec
    due: bool = False
    ran: bool = False
    output: str = ""
    error: Optional[CronrunError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_job_if_due(
    spec: ScheduleSpec,
    reference_time: datetime,
    executor: Optional[CommandExecutor] = None
) -> bool:
    """
    Run the job's command if it is due at reference_time.

    Returns:
        True if the command ran, False if the job was not due

    Raises:
        InvalidExpressionError: If the job's expression cannot be parsed
        CommandExecutionError: If the command fails
    """
    if not spec.due_at(reference_time):
        return False

    executor = executor or CommandExecutor()
    executor.run(spec.command, job_name=spec.expression)
    return True


def _run_job(
    spec: ScheduleSpec,
    reference_time: datetime,
    executor: CommandExecutor
) -> JobResult:
    result = JobResult(spec=spec)
    try:
        result.due = spec.due_at(reference_time)
        if result.due:
            result.ran = True
            result.output = executor.run(spec.command, job_name=spec.expression)
    except CommandExecutionError as e:
        result.error = e
        result.output = e.output
        logger.error(f"{e}\n{e.output}" if e.output else str(e))
    except CronrunError as e:
        result.error = e
        logger.error(str(e))
    except Exception as e:
        result.error = CommandExecutionError(spec.command, reason=str(e))
        result.error.__cause__ = e
        logger.exception(f"Job failed unexpectedly: {spec}")
    return result


def run_jobs(
    specs: Sequence[ScheduleSpec],
    reference_time: datetime,
    executor: Optional[CommandExecutor] = None,
    max_workers: Optional[int] = None
) -> List[JobResult]:
    """
    Evaluate every job against reference_time and run the due ones.

    Waits for all jobs to finish.

    Args:
        specs: Jobs to evaluate
        reference_time: The single "now" shared by all jobs
        executor: Command executor (default: CommandExecutor())
        max_workers: Thread pool size (default: one thread per job)

    Returns:
        One JobResult per spec, in input order
    """
    if not specs:
        return []

    executor = executor or CommandExecutor()
    workers = max_workers or len(specs)

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="cronrun") as pool:
        futures = [
            pool.submit(_run_job, spec, reference_time, executor)
            for spec in specs
        ]
        results = [future.result() for future in futures]

    ran = sum(1 for r in results if r.ran)
    failed = sum(1 for r in results if not r.ok)
    logger.info(f"{len(results)} job(s) evaluated, {ran} ran, {failed} failed")
    return results
