"""
Cron time expression parsing and due-time evaluation.

An expression has five whitespace-separated fields:

    minute  hour  day-of-month  month  day-of-week

Every field accepts ``*``, a single value, a range ``a-b``, a step
(``*/n``, ``a-b/n`` or ``a/n``) and comma-separated lists of those.
Months accept the names jan..dec and weekdays sun..sat. Weekdays follow
crontab(5): 0 and 7 are both Sunday, 1 is Monday.

Finding the next matching minute is delegated to APScheduler's
CronTrigger. Fields are handed over as explicit value lists, so
APScheduler's own weekday numbering (0 = Monday) never comes into play.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union

from apscheduler.triggers.cron import CronTrigger

from cronrun.errors import InvalidExpressionError

logger = logging.getLogger(__name__)

MONTH_NAMES = ('jan', 'feb', 'mar', 'apr', 'may', 'jun',
               'jul', 'aug', 'sep', 'oct', 'nov', 'dec')
DAY_NAMES = ('sun', 'mon', 'tue', 'wed', 'thu', 'fri', 'sat')
# Longest length of each month, counting leap years
DAYS_IN_MONTH = (31, 29, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)

_TERM_RE = re.compile(
    r'^(?:(?P<star>\*)|(?P<first>[0-9a-z]+)(?:-(?P<last>[0-9a-z]+))?)'
    r'(?:/(?P<step>[0-9]+))?$',
    re.IGNORECASE
)


@dataclass(frozen=True)
class FieldSpec:
    """Name, bounds and accepted names of one cron field."""
    name: str
    low: int
    high: int
    names: Tuple[str, ...] = ()
    name_offset: int = 0

    def to_int(self, token: str) -> int:
        """Convert a number or name token, checking the field bounds."""
        if token.isdigit():
            value = int(token)
        elif token.lower() in self.names:
            value = self.names.index(token.lower()) + self.name_offset
        else:
            raise ValueError(f"invalid {self.name} value {token!r}")

        if not self.low <= value <= self.high:
            raise ValueError(
                f"{self.name} value {value} out of range {self.low}-{self.high}"
            )
        return value

    def full(self) -> FrozenSet[int]:
        return frozenset(range(self.low, self.high + 1))


MINUTE = FieldSpec('minute', 0, 59)
HOUR = FieldSpec('hour', 0, 23)
DAY = FieldSpec('day-of-month', 1, 31)
MONTH = FieldSpec('month', 1, 12, MONTH_NAMES, 1)
DAY_OF_WEEK = FieldSpec('day-of-week', 0, 7, DAY_NAMES)

FIELDS = (MINUTE, HOUR, DAY, MONTH, DAY_OF_WEEK)


@dataclass(frozen=True)
class Wildcard:
    def values(self, spec: FieldSpec) -> FrozenSet[int]:
        return spec.full()


@dataclass(frozen=True)
class Single:
    value: int

    def values(self, spec: FieldSpec) -> FrozenSet[int]:
        return frozenset((self.value,))


@dataclass(frozen=True)
class Range:
    first: int
    last: int

    def values(self, spec: FieldSpec) -> FrozenSet[int]:
        return frozenset(range(self.first, self.last + 1))


@dataclass(frozen=True)
class Step:
    first: int
    last: int
    step: int

    def values(self, spec: FieldSpec) -> FrozenSet[int]:
        return frozenset(range(self.first, self.last + 1, self.step))


@dataclass(frozen=True)
class ListOf:
    terms: Tuple[Union[Wildcard, Single, Range, Step], ...]

    def values(self, spec: FieldSpec) -> FrozenSet[int]:
        result = frozenset()
        for term in self.terms:
            result |= term.values(spec)
        return result


Term = Union[Wildcard, Single, Range, Step, ListOf]


def parse_term(token: str, spec: FieldSpec) -> Term:
    """
    Parse one comma-free term of a field.

    Raises:
        ValueError: If the term is malformed or out of range
    """
    match = _TERM_RE.match(token)
    if not match:
        raise ValueError(f"invalid {spec.name} term {token!r}")

    step = match.group('step')
    if step is not None:
        step = int(step)
        if step < 1:
            raise ValueError(f"{spec.name} step must be at least 1")

    if match.group('star'):
        return Step(spec.low, spec.high, step) if step else Wildcard()

    first = spec.to_int(match.group('first'))
    last = None
    if match.group('last') is not None:
        last = spec.to_int(match.group('last'))
        # "fri-sun" wraps to Sunday spelled as 7
        if spec is DAY_OF_WEEK and last == 0 and first > 0:
            last = 7
        if first > last:
            raise ValueError(f"{spec.name} range {token!r} is reversed")

    if step:
        return Step(first, spec.high if last is None else last, step)
    if last is not None:
        return Range(first, last)
    return Single(first)


@dataclass(frozen=True)
class CronField:
    """One parsed field: its source text, term tree and selected values."""
    spec: FieldSpec
    text: str
    term: Term
    values: FrozenSet[int]

    @property
    def restricted(self) -> bool:
        # Vixie cron rule: a field starting with '*' does not restrict days
        return not self.text.startswith('*')

    def render(self) -> str:
        """Render the field in APScheduler CronTrigger syntax."""
        if self.spec is DAY_OF_WEEK:
            if self.values == frozenset(range(7)):
                return '*'
            return ','.join(DAY_NAMES[v] for v in sorted(self.values))
        if self.values == self.spec.full():
            return '*'
        return ','.join(str(v) for v in sorted(self.values))


def parse_field(text: str, spec: FieldSpec) -> CronField:
    terms = tuple(parse_term(token, spec) for token in text.split(','))
    if len(terms) > 1 and any(isinstance(t, Wildcard) for t in terms):
        raise ValueError(f"'*' cannot appear in a {spec.name} list")
    term = terms[0] if len(terms) == 1 else ListOf(terms)
    values = term.values(spec)
    if spec is DAY_OF_WEEK:
        values = frozenset(v % 7 for v in values)
    return CronField(spec=spec, text=text, term=term, values=values)


@dataclass(frozen=True)
class CronExpression:
    """
    Parsed five-field cron expression.

    When both day-of-month and day-of-week are restricted a day matches
    if either field matches. Otherwise both fields must match, with the
    '*' side matching every day.
    """
    expression: str
    minute: CronField
    hour: CronField
    day: CronField
    month: CronField
    day_of_week: CronField

    def trigger_fields(self) -> List[Dict[str, Any]]:
        """Keyword arguments for the CronTrigger(s) covering this expression."""
        base = {
            'second': '0',
            'minute': self.minute.render(),
            'hour': self.hour.render(),
            'month': self.month.render(),
        }
        day = self.day.render()
        day_of_week = self.day_of_week.render()

        # APScheduler ANDs day and day_of_week, so the OR case needs one
        # trigger per field.
        if self.day.restricted and self.day_of_week.restricted:
            fields = [dict(base, day='*', day_of_week=day_of_week)]
            if self.days_possible():
                fields.insert(0, dict(base, day=day, day_of_week='*'))
            return fields
        return [dict(base, day=day, day_of_week=day_of_week)]

    def days_possible(self) -> bool:
        """False if no selected month has any selected day, e.g. "30 2"."""
        return any(
            day <= DAYS_IN_MONTH[month - 1]
            for month in self.month.values
            for day in self.day.values
        )

    def possible(self) -> bool:
        """False if the expression can never match, e.g. "0 0 30 2 *"."""
        if self.day.restricted and self.day_of_week.restricted:
            return True
        return self.days_possible()

    def next_after(self, instant: datetime) -> Optional[datetime]:
        """
        Return the first whole minute strictly after ``instant`` that the
        expression selects, in the time zone of ``instant``.

        Naive instants are taken as local time. Returns None when the
        expression can never match (e.g. "0 0 31 2 *").
        """
        if not self.possible():
            return None
        if instant.tzinfo is None:
            instant = instant.astimezone()

        start = instant + timedelta(microseconds=1)
        candidates = []
        for fields in self.trigger_fields():
            trigger = CronTrigger(timezone=instant.tzinfo, **fields)
            fire_time = trigger.get_next_fire_time(None, start)
            if fire_time is not None:
                candidates.append(fire_time)

        return min(candidates) if candidates else None

    def __str__(self):
        return self.expression


@lru_cache(maxsize=256)
def parse_expression(expression: str) -> CronExpression:
    """
    Parse a five-field cron expression.

    Args:
        expression: Cron time expression, e.g. "*/5 * * * Mon-Fri"

    Returns:
        CronExpression

    Raises:
        InvalidExpressionError: If the expression is malformed or any
            value is outside its field's range
    """
    parts = expression.split()
    if len(parts) != len(FIELDS):
        raise InvalidExpressionError(
            expression, f"expected {len(FIELDS)} fields, got {len(parts)}"
        )

    try:
        fields = [parse_field(text, spec) for text, spec in zip(parts, FIELDS)]
    except ValueError as e:
        raise InvalidExpressionError(expression, str(e)) from e

    return CronExpression(expression, *fields)


def is_due(expression: str, reference_time: datetime) -> bool:
    """
    Check whether the minute containing ``reference_time`` is selected
    by ``expression``.

    The next match is looked up from one second before the start of the
    minute, so the current minute is itself eligible.

    Args:
        expression: Five-field cron expression
        reference_time: Time to evaluate against; naive values are local time

    Returns:
        True if the job is due in this minute

    Raises:
        InvalidExpressionError: If the expression cannot be parsed
    """
    cron = parse_expression(expression)

    if reference_time.tzinfo is None:
        reference_time = reference_time.astimezone()
    this_minute = reference_time.replace(second=0, microsecond=0)

    next_match = cron.next_after(this_minute - timedelta(seconds=1))
    if next_match is None:
        return False

    due = next_match.replace(second=0, microsecond=0) == this_minute
    logger.debug(f"{expression!r} at {this_minute.isoformat()}: next match "
                 f"{next_match.isoformat()}, due={due}")
    return due
