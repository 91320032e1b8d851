"""Schedules using cron syntax for defining time instructions.

A :class:`Schedule` binds an id and the raw time text of a schedule
definition to the execution time strategy resolved from it. Schedules are
built once when definitions are loaded and never change afterwards; a
changed definition means building a new schedule.

Example:
    >>> schedule = Schedule.create("quests.morning", "0 9 * * 1")
    >>> schedule.get_next_execution()
    >>>
    >>> startup = Schedule.create("quests.startup", "@reboot", reboot_supported=True)
    >>> startup.should_run_on_reboot()
    True
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from cronsched.config import get_config
from cronsched.scheduling.cron import CronExpression, CronParser
from cronsched.scheduling.errors import CronParseError
from cronsched.scheduling.execution import ExecutionTime, RebootExecutionTime
from cronsched.scheduling.grammar import DEFAULT_GRAMMAR, CronGrammar

logger = logging.getLogger(__name__)

# Statement that means that the schedule should run on reboot.
REBOOT_ALIAS = "@reboot"


class ScheduleDefinitionError(Exception):
    """Raised when a schedule definition is incomplete."""

    pass


@dataclass(frozen=True)
class ScheduleId:
    """Identifier of a schedule, optionally qualified by its package.

    Attributes:
        package: Package the schedule belongs to, if any.
        name: Name of the schedule inside its package.
    """

    package: str | None
    name: str

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Schedule name must not be empty")

    @classmethod
    def parse(cls, value: str) -> "ScheduleId":
        """Parse ``package.name``; the last dot separates the package."""
        package, _, name = value.strip().rpartition(".")
        return cls(package or None, name)

    def __str__(self) -> str:
        if self.package:
            return f"{self.package}.{self.name}"
        return self.name


@dataclass(frozen=True)
class ScheduleDefinition:
    """Raw definition of a schedule as handed over by the configuration loader.

    Attributes:
        schedule_id: Id of the schedule.
        time: Untrusted time text: a cron expression, an alias or ``@reboot``.
    """

    schedule_id: ScheduleId
    time: str

    @classmethod
    def from_mapping(cls, schedule_id: ScheduleId | str, section: Mapping[str, Any]) -> "ScheduleDefinition":
        """Build a definition from an already loaded configuration section.

        Raises:
            ScheduleDefinitionError: If the section has no usable ``time`` entry.
        """
        if isinstance(schedule_id, str):
            schedule_id = ScheduleId.parse(schedule_id)

        time = section.get("time")
        if time is None:
            raise ScheduleDefinitionError(f"Schedule '{schedule_id}' is missing the 'time' option")
        if not isinstance(time, str):
            raise ScheduleDefinitionError(
                f"Schedule '{schedule_id}' has a non-text 'time' option: {time!r}"
            )
        return cls(schedule_id, time)


class Schedule:
    """A schedule whose execution times are defined by cron syntax.

    If the schedule type supports it, the time ``@reboot`` makes the schedule
    run once on startup instead; such a schedule has no execution times.

    Attributes:
        schedule_id: Id of the schedule.
        time: Raw time text of the definition.
        time_cron: Parsed cron expression, None for reboot schedules.
        execution_time: Strategy providing execution times.
    """

    __slots__ = ("_schedule_id", "_time", "_time_cron", "_runs_on_reboot", "_execution_time")

    def __init__(
        self,
        definition: ScheduleDefinition,
        *,
        grammar: CronGrammar | None = None,
        reboot_supported: bool = False,
    ) -> None:
        """Create a schedule from its definition.

        Args:
            definition: Id and time text of the schedule.
            grammar: Custom cron syntax, defaults to the unix syntax.
            reboot_supported: If ``@reboot`` is supported by this schedule type.

        Raises:
            CronParseError: If the time is no valid cron syntax. The error
                names the offending field and includes the raw time text.
        """
        self._schedule_id = definition.schedule_id
        self._time = definition.time

        if reboot_supported and definition.time.strip().lower() == REBOOT_ALIAS:
            logger.debug("Schedule '%s' runs on reboot", self._schedule_id)
            self._time_cron: CronExpression | None = None
            self._runs_on_reboot = True
            self._execution_time: ExecutionTime = RebootExecutionTime()
            return

        try:
            self._time_cron = CronParser(grammar or DEFAULT_GRAMMAR).parse(definition.time)
        except CronParseError as e:
            e.schedule_id = self._schedule_id
            logger.warning("Could not load schedule '%s': %s", self._schedule_id, e)
            raise

        self._runs_on_reboot = False
        self._execution_time = ExecutionTime.for_cron(self._time_cron)

    @classmethod
    def create(
        cls,
        schedule_id: ScheduleId | str,
        time: str,
        *,
        grammar: CronGrammar | None = None,
        reboot_supported: bool = False,
    ) -> "Schedule":
        if isinstance(schedule_id, str):
            schedule_id = ScheduleId.parse(schedule_id)
        return cls(
            ScheduleDefinition(schedule_id, time),
            grammar=grammar,
            reboot_supported=reboot_supported,
        )

    @property
    def schedule_id(self) -> ScheduleId:
        return self._schedule_id

    @property
    def time(self) -> str:
        return self._time

    @property
    def time_cron(self) -> CronExpression | None:
        return self._time_cron

    @property
    def execution_time(self) -> ExecutionTime:
        return self._execution_time

    def should_run_on_reboot(self) -> bool:
        """Check if the schedule should run on reboot.

        Always False when ``@reboot`` is not supported by the schedule type.
        """
        return self._runs_on_reboot

    def get_next_execution(self, now: datetime | None = None) -> datetime | None:
        """Get the next time of execution.

        Args:
            now: Reference time, defaults to the current time in the
                configured zone.

        Returns:
            Next execution as UTC datetime, None if there is none.
        """
        next_dt = self._execution_time.next_execution(now or _now())
        return next_dt.astimezone(timezone.utc) if next_dt else None

    def get_last_execution(self, now: datetime | None = None) -> datetime | None:
        """Get the last time of execution.

        Returns:
            Last execution as UTC datetime, None if there is none.
        """
        last_dt = self._execution_time.last_execution(now or _now())
        return last_dt.astimezone(timezone.utc) if last_dt else None

    def __repr__(self) -> str:
        return f"Schedule({str(self._schedule_id)!r}, {self._time!r})"


def _now() -> datetime:
    # Without a configured zone, naive local wall-clock time is used; astimezone()
    # applies the system zone rules when converting results.
    tz = get_config().tzinfo()
    if tz is None:
        return datetime.now()
    return datetime.now(tz)
