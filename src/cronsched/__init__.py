"""cronsched - cron based schedule engine with @reboot support."""

from cronsched.schedule import (
    REBOOT_ALIAS,
    Schedule,
    ScheduleDefinition,
    ScheduleDefinitionError,
    ScheduleId,
)
from cronsched.scheduling import (
    DEFAULT_GRAMMAR,
    CronExecutionTime,
    CronExpression,
    CronGrammar,
    CronParseError,
    CronParser,
    ExecutionTime,
    GrammarBuilder,
    GrammarViolation,
    RebootExecutionTime,
    StructuralError,
    define_default,
)

# Version: Single source of truth from pyproject.toml
try:
    from importlib.metadata import version, PackageNotFoundError

    __version__ = version("cronsched")
except PackageNotFoundError:
    # Package not installed (development mode)
    __version__ = "0.0.0.dev"

__all__ = [
    # Schedules
    "REBOOT_ALIAS",
    "Schedule",
    "ScheduleDefinition",
    "ScheduleDefinitionError",
    "ScheduleId",
    # Engine
    "DEFAULT_GRAMMAR",
    "CronExecutionTime",
    "CronExpression",
    "CronGrammar",
    "CronParseError",
    "CronParser",
    "ExecutionTime",
    "GrammarBuilder",
    "GrammarViolation",
    "RebootExecutionTime",
    "StructuralError",
    "define_default",
    "__version__",
]
