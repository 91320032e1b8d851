"""Predefined cron expressions.

Every alias of the default grammar is available as a constant, plus a few
common schedules.

Usage:
    >>> from cronsched.scheduling.presets import DAILY, get_preset
    >>> DAILY == get_preset("midnight")
    True
"""

from cronsched.scheduling.cron import CronExpression
from cronsched.scheduling.grammar import DEFAULT_GRAMMAR


# =============================================================================
# Aliases of the default grammar
# =============================================================================

YEARLY = CronExpression.parse("@yearly")
ANNUALLY = CronExpression.parse("@annually")
MONTHLY = CronExpression.parse("@monthly")
WEEKLY = CronExpression.parse("@weekly")
DAILY = CronExpression.parse("@daily")
MIDNIGHT = CronExpression.parse("@midnight")
HOURLY = CronExpression.parse("@hourly")


# =============================================================================
# Common schedules
# =============================================================================

EVERY_MINUTE = CronExpression.parse("* * * * *")
EVERY_15_MIN = CronExpression.parse("*/15 * * * *")
TWICE_DAILY = CronExpression.parse("0 0,12 * * *")
WEEKDAYS_9AM = CronExpression.parse("0 9 * * MON-FRI")
WEEKDAYS_6PM = CronExpression.parse("0 18 * * MON-FRI")
WEEKENDS_NOON = CronExpression.parse("0 12 * * SAT,SUN")
QUARTERLY = CronExpression.parse("0 0 1 JAN,APR,JUL,OCT *")


PRESETS: dict[str, CronExpression] = {
    **{alias.lstrip("@"): CronExpression.parse(alias) for alias in DEFAULT_GRAMMAR.aliases},
    "every_minute": EVERY_MINUTE,
    "every_15_min": EVERY_15_MIN,
    "twice_daily": TWICE_DAILY,
    "weekdays_9am": WEEKDAYS_9AM,
    "weekdays_6pm": WEEKDAYS_6PM,
    "weekends_noon": WEEKENDS_NOON,
    "quarterly": QUARTERLY,
}


def get_preset(name: str) -> CronExpression | None:
    """Get a preset cron expression by name.

    Args:
        name: Preset name (case-insensitive, ``@`` prefix and dashes allowed).

    Returns:
        CronExpression or None if not found.
    """
    return PRESETS.get(name.lower().lstrip("@").replace("-", "_"))


def list_presets() -> list[str]:
    return list(PRESETS.keys())
