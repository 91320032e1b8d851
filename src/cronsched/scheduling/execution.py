"""Execution time calculation.

An :class:`ExecutionTime` answers three questions about a schedule,
relative to a reference datetime: when is the next execution, when was the
last one, and does a given datetime match.

Two strategies exist:

- :class:`CronExecutionTime` evaluates a :class:`CronExpression`.
- :class:`RebootExecutionTime` never has an execution time. It stands in
  for schedules that run once at startup instead of on a calendar.

Time zones:
    All arithmetic happens on the wall-clock time of the reference
    datetime's zone. Zones may be ``zoneinfo`` or ``pytz`` objects; naive
    datetimes are evaluated as naive wall-clock times. Wall times skipped
    by a DST transition never match; repeated wall times match their first
    occurrence only.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterator

from cronsched.config import get_config
from cronsched.scheduling.cron import CronExpression
from cronsched.scheduling.grammar import CronFieldType

logger = logging.getLogger(__name__)

_ONE_DAY = timedelta(days=1)


def _localize(wall: datetime, tz: tzinfo | None) -> datetime | None:
    """Attach a zone to a wall-clock time.

    Returns:
        The aware datetime, or None if the wall time does not exist in tz
        or falls outside the supported datetime range.
    """
    if tz is None:
        return wall

    localize = getattr(tz, "localize", None)
    try:
        if localize is not None:
            # pytz zones must be attached with localize(), never replace()
            aware = tz.normalize(localize(wall, is_dst=True))  # type: ignore[attr-defined]
        else:
            aware = wall.replace(tzinfo=tz, fold=0).astimezone(timezone.utc).astimezone(tz)
    except OverflowError:
        return None

    if aware.replace(tzinfo=None) != wall:
        return None
    return aware


def _shift(day: date, delta: timedelta) -> date | None:
    """Add a delta to a date, None when leaving the supported date range."""
    try:
        return day + delta
    except OverflowError:
        return None


def _next_month(day: date) -> date | None:
    first = _shift(day.replace(day=1), timedelta(days=32))
    return first.replace(day=1) if first else None


def _previous_month_end(day: date) -> date | None:
    return _shift(day.replace(day=1), -_ONE_DAY)


# =============================================================================
# Strategy Interface
# =============================================================================


class ExecutionTime(ABC):
    """Provides information when a schedule shall be executed."""

    __slots__ = ()

    @abstractmethod
    def next_execution(self, after: datetime) -> datetime | None:
        """Get the nearest execution strictly after a datetime, or None."""
        pass

    @abstractmethod
    def last_execution(self, before: datetime) -> datetime | None:
        """Get the nearest execution strictly before a datetime, or None."""
        pass

    @abstractmethod
    def is_match(self, dt: datetime) -> bool:
        """Check if a datetime is an execution time."""
        pass

    def time_to_next_execution(self, dt: datetime) -> timedelta | None:
        next_dt = self.next_execution(dt)
        if next_dt is None:
            return None
        return next_dt - dt

    def time_from_last_execution(self, dt: datetime) -> timedelta | None:
        last_dt = self.last_execution(dt)
        if last_dt is None:
            return None
        return dt - last_dt

    @staticmethod
    def for_cron(expression: CronExpression, horizon_days: int | None = None) -> "CronExecutionTime":
        return CronExecutionTime(expression, horizon_days=horizon_days)


# =============================================================================
# Cron Strategy
# =============================================================================


class CronExecutionTime(ExecutionTime):
    """Execution times of a cron expression.

    Candidates are searched day by day up to ``horizon_days`` away from the
    reference date; within a matching day only the hours and minutes
    allowed by the expression are tried. Non-matching months are skipped
    as a whole.

    Example:
        >>> execution_time = CronExecutionTime(CronExpression.parse("0 9 * * 1"))
        >>> execution_time.next_execution(datetime(2024, 1, 17, 10, 0))
        datetime.datetime(2024, 1, 22, 9, 0)
    """

    __slots__ = ("_expression", "_horizon", "_hours", "_minutes")

    def __init__(self, expression: CronExpression, horizon_days: int | None = None) -> None:
        if horizon_days is None:
            horizon_days = get_config().search_horizon_days

        self._expression = expression
        self._horizon = timedelta(days=horizon_days)

        hour_field = expression.get_field(CronFieldType.HOUR)
        minute_field = expression.get_field(CronFieldType.MINUTE)
        self._hours = tuple(h for h in range(24) if hour_field.matches(h))
        self._minutes = tuple(m for m in range(60) if minute_field.matches(m))

    @property
    def expression(self) -> CronExpression:
        return self._expression

    def next_execution(self, after: datetime) -> datetime | None:
        tz = after.tzinfo
        wall = after.replace(tzinfo=None)
        day: date | None = wall.date()
        end = _shift(wall.date(), self._horizon) or date.max
        month = self._expression.get_field(CronFieldType.MONTH)

        while day is not None and day <= end:
            if not month.matches(day.month):
                day = _next_month(day)
                continue

            if self._expression.matches_date(day):
                for hour in self._hours:
                    for minute in self._minutes:
                        if day == wall.date() and (hour, minute) < (wall.hour, wall.minute):
                            continue
                        candidate = _localize(datetime.combine(day, time(hour, minute)), tz)
                        if candidate is not None and candidate > after:
                            return candidate

            day = _shift(day, _ONE_DAY)

        logger.debug("No execution of %r within %s after %s", self._expression, self._horizon, after)
        return None

    def last_execution(self, before: datetime) -> datetime | None:
        tz = before.tzinfo
        wall = before.replace(tzinfo=None)
        day: date | None = wall.date()
        end = _shift(wall.date(), -self._horizon) or date.min
        month = self._expression.get_field(CronFieldType.MONTH)

        while day is not None and day >= end:
            if not month.matches(day.month):
                day = _previous_month_end(day)
                continue

            if self._expression.matches_date(day):
                for hour in reversed(self._hours):
                    for minute in reversed(self._minutes):
                        if day == wall.date() and (hour, minute) > (wall.hour, wall.minute):
                            continue
                        candidate = _localize(datetime.combine(day, time(hour, minute)), tz)
                        if candidate is not None and candidate < before:
                            return candidate

            day = _shift(day, -_ONE_DAY)

        logger.debug("No execution of %r within %s before %s", self._expression, self._horizon, before)
        return None

    def is_match(self, dt: datetime) -> bool:
        return self._expression.matches(dt)

    def upcoming(self, after: datetime, limit: int | None = None) -> "CronIterator":
        """Iterate over successive executions after a datetime."""
        return CronIterator(self, after, limit)

    def __repr__(self) -> str:
        return f"CronExecutionTime({self._expression.expression!r})"


# =============================================================================
# Reboot Strategy
# =============================================================================


class RebootExecutionTime(ExecutionTime):
    """Execution time that cannot calculate any execution times.

    Used for ``@reboot`` schedules, which are run by whoever drives the
    schedules at startup rather than on a calendar.
    """

    __slots__ = ()

    def next_execution(self, after: datetime) -> datetime | None:
        return None

    def last_execution(self, before: datetime) -> datetime | None:
        return None

    def is_match(self, dt: datetime) -> bool:
        return False

    def __repr__(self) -> str:
        return "RebootExecutionTime()"


# =============================================================================
# Iterator
# =============================================================================


class CronIterator(Iterator[datetime]):
    """Iterator over successive execution times.

    Does not store matches; each step searches from the previous one.
    """

    def __init__(
        self,
        execution_time: ExecutionTime,
        after: datetime,
        limit: int | None = None,
    ) -> None:
        self._execution_time = execution_time
        self._current = after
        self._limit = limit
        self._count = 0

    def __iter__(self) -> "CronIterator":
        return self

    def __next__(self) -> datetime:
        if self._limit is not None and self._count >= self._limit:
            raise StopIteration

        next_dt = self._execution_time.next_execution(self._current)
        if next_dt is None:
            raise StopIteration

        self._current = next_dt
        self._count += 1

        return next_dt
