"""
Crontab line parsing.

Splits crontab(5) lines into a cron time expression (the first five
fields) and the command to run (everything after them).
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Union

from cronrun.errors import MalformedScheduleError
from cronrun.expression import is_due

logger = logging.getLogger(__name__)

EXPRESSION_FIELDS = 5


@dataclass(frozen=True)
class ScheduleSpec:
    """
    One parsed crontab line.

    Both parts are whitespace-normalized: fields are rejoined with a
    single space.
    """
    expression: str
    command: str

    def due_at(self, reference_time: datetime) -> bool:
        """True if this job is due in the minute containing reference_time."""
        return is_due(self.expression, reference_time)

    def __str__(self):
        return f"{self.expression} {self.command}"


def is_schedule_line(line: str) -> bool:
    """False for blank lines and '#' comments."""
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith('#')


def parse_line(line: str, lineno: Optional[int] = None) -> ScheduleSpec:
    """
    Parse a crontab line like ``* * * * * /usr/bin/foo``.

    Args:
        line: A single crontab line
        lineno: Line number for error messages

    Returns:
        ScheduleSpec

    Raises:
        MalformedScheduleError: If the line has fewer than six fields
    """
    fields = line.split()
    if len(fields) <= EXPRESSION_FIELDS:
        raise MalformedScheduleError(line, lineno)

    return ScheduleSpec(
        expression=' '.join(fields[:EXPRESSION_FIELDS]),
        command=' '.join(fields[EXPRESSION_FIELDS:])
    )


def parse_lines(lines: Iterable[str]) -> List[ScheduleSpec]:
    """
    Parse every schedule line, skipping blanks and comments.

    Stops at the first malformed line.

    Raises:
        MalformedScheduleError: With the 1-based number of the bad line
    """
    specs = []
    for lineno, line in enumerate(lines, start=1):
        line = line.rstrip('\r\n')
        if not is_schedule_line(line):
            continue
        specs.append(parse_line(line, lineno))
    return specs


def jobs_from_file(path: Union[str, Path]) -> List[ScheduleSpec]:
    """
    Read a crontab-format file.

    Raises:
        OSError: If the file cannot be read
        UnicodeDecodeError: If the file is not valid UTF-8
        MalformedScheduleError: On the first malformed line
    """
    path = Path(path).expanduser()
    with open(path, 'r', encoding='utf-8') as f:
        specs = parse_lines(f)

    logger.debug(f"Loaded {len(specs)} job(s) from {path}")
    return specs
