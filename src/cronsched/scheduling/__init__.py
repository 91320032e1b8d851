"""Cron scheduling engine.

This module provides a cron expression parser and execution time
calculator for standard five-field cron syntax.

Features:
    - Standard 5-field cron (minute, hour, day, month, weekday)
    - Configurable grammars (ranges, strictness, named values, aliases)
    - Predefined expressions (@yearly, @monthly, @weekly, etc.)
    - Next/last execution calculation in the caller's time zone
    - Reboot execution time for schedules that run once on startup

Syntax Reference:
    Field         Values          Special Characters
    ─────────────────────────────────────────────────
    Minute        0-59            * / , -
    Hour          0-23            * / , -
    Day of Month  1-31            * / , -
    Month         1-12 or JAN-DEC * / , -
    Day of Week   0-7 or MON-SUN  * / , -   (0 and 7 are Sunday)

Usage:
    >>> from cronsched.scheduling import CronExpression, CronExecutionTime
    >>>
    >>> expr = CronExpression.parse("0 9 * * MON-FRI")
    >>> execution_time = CronExecutionTime(expr)
    >>> execution_time.next_execution(datetime.now())
"""

from cronsched.scheduling.errors import (
    CronParseError,
    GrammarViolation,
    StructuralError,
)

from cronsched.scheduling.grammar import (
    # Grammar
    DEFAULT_GRAMMAR,
    CronFieldType,
    CronGrammar,
    FieldSpec,
    GrammarBuilder,
    define_default,
)

from cronsched.scheduling.cron import (
    # Core
    CronExpression,
    CronField,
    # Parser
    CronParser,
    # Validation
    validate_expression,
    is_valid_expression,
)

from cronsched.scheduling.execution import (
    # Execution times
    ExecutionTime,
    CronExecutionTime,
    RebootExecutionTime,
    CronIterator,
)

from cronsched.scheduling.presets import (
    YEARLY,
    ANNUALLY,
    MONTHLY,
    WEEKLY,
    DAILY,
    MIDNIGHT,
    HOURLY,
    get_preset,
    list_presets,
)

__all__ = [
    # Errors
    "CronParseError",
    "GrammarViolation",
    "StructuralError",
    # Grammar
    "DEFAULT_GRAMMAR",
    "CronFieldType",
    "CronGrammar",
    "FieldSpec",
    "GrammarBuilder",
    "define_default",
    # Core
    "CronExpression",
    "CronField",
    "CronParser",
    "validate_expression",
    "is_valid_expression",
    # Execution times
    "ExecutionTime",
    "CronExecutionTime",
    "RebootExecutionTime",
    "CronIterator",
    # Presets
    "YEARLY",
    "ANNUALLY",
    "MONTHLY",
    "WEEKLY",
    "DAILY",
    "MIDNIGHT",
    "HOURLY",
    "get_preset",
    "list_presets",
]
