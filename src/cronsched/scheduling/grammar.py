"""Cron grammar definitions.

A grammar describes which cron syntax a family of schedules accepts:
the valid range of each of the five fields, whether out-of-range literals
are rejected, named literals, value remaps and the supported aliases.

Grammars are immutable and meant to be shared. Most schedules use
:data:`DEFAULT_GRAMMAR`; schedule types with different needs build their
own with :class:`GrammarBuilder`.

Example:
    >>> grammar = (GrammarBuilder("quartz-like")
    ...     .with_day_of_week(1, 7, monday_value=2)
    ...     .with_standard_aliases()
    ...     .build())
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from types import MappingProxyType
from typing import Mapping

from cronsched.scheduling.errors import GrammarViolation

logger = logging.getLogger(__name__)


# =============================================================================
# Field Types
# =============================================================================


class CronFieldType(Enum):
    """Types of cron fields."""

    MINUTE = auto()
    HOUR = auto()
    DAY_OF_MONTH = auto()
    MONTH = auto()
    DAY_OF_WEEK = auto()

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", "-")


FIVE_FIELD_LAYOUT: tuple[CronFieldType, ...] = (
    CronFieldType.MINUTE,
    CronFieldType.HOUR,
    CronFieldType.DAY_OF_MONTH,
    CronFieldType.MONTH,
    CronFieldType.DAY_OF_WEEK,
)

MONTH_NAMES: tuple[str, ...] = (
    "JAN", "FEB", "MAR", "APR", "MAY", "JUN",
    "JUL", "AUG", "SEP", "OCT", "NOV", "DEC",
)

WEEKDAY_NAMES: tuple[str, ...] = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")

STANDARD_ALIASES: dict[str, str] = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}


# =============================================================================
# Field Specification
# =============================================================================


@dataclass(frozen=True)
class FieldSpec:
    """Definition of a single cron field.

    Attributes:
        field_type: Which of the five fields this spec describes.
        min_value: Smallest accepted literal (inclusive).
        max_value: Largest accepted literal (inclusive).
        strict: Reject out-of-range literals instead of clamping them.
        names: Named literals (upper-case) and their numeric values.
        int_mapping: Values that are replaced by another value after parsing.
        monday_value: Number of Monday in this grammar (day-of-week only).
    """

    field_type: CronFieldType
    min_value: int
    max_value: int
    strict: bool = True
    names: Mapping[str, int] = field(default_factory=dict)
    int_mapping: Mapping[int, int] = field(default_factory=dict)
    monday_value: int | None = None

    def __post_init__(self) -> None:
        if self.min_value > self.max_value:
            raise ValueError(
                f"Invalid range for {self.field_type.label}: "
                f"{self.min_value}-{self.max_value}"
            )
        if self.field_type is CronFieldType.DAY_OF_WEEK and self.monday_value is None:
            raise ValueError("day-of-week field requires a monday_value")
        object.__setattr__(self, "names", MappingProxyType(dict(self.names)))
        object.__setattr__(self, "int_mapping", MappingProxyType(dict(self.int_mapping)))

    def check(self, value: int, expression: str) -> int:
        """Validate a literal against the field range.

        Args:
            value: Parsed literal.
            expression: Original expression, used for diagnostics.

        Returns:
            The value, clamped into range for non-strict fields.

        Raises:
            GrammarViolation: If the field is strict and value is out of range.
        """
        if self.min_value <= value <= self.max_value:
            return value

        if not self.strict:
            return max(self.min_value, min(value, self.max_value))

        raise GrammarViolation(
            f"Value {value} out of range [{self.min_value}-{self.max_value}] "
            f"for {self.field_type.label} field",
            expression,
            field_type=self.field_type,
        )

    def remap(self, value: int) -> int:
        return self.int_mapping.get(value, value)

    def to_iso_weekday(self, value: int) -> int:
        """Convert a day-of-week value to ISO numbering (Monday=1, Sunday=7)."""
        if self.monday_value is None:
            raise ValueError(f"{self.field_type.label} field has no weekday numbering")
        return (value - self.monday_value) % 7 + 1


# =============================================================================
# Grammar
# =============================================================================


@dataclass(frozen=True)
class CronGrammar:
    """Immutable set of field specs plus alias table.

    Attributes:
        fields: One :class:`FieldSpec` per field, in five-field order.
        aliases: Alias name (lower-case, with ``@``) to five-field expression.
        name: Human-readable grammar name.
    """

    fields: tuple[FieldSpec, ...]
    aliases: Mapping[str, str] = field(default_factory=dict)
    name: str = "custom"

    def __post_init__(self) -> None:
        layout = tuple(spec.field_type for spec in self.fields)
        if layout != FIVE_FIELD_LAYOUT:
            raise ValueError(
                "A cron grammar must define exactly the five fields "
                "minute, hour, day-of-month, month, day-of-week in that order"
            )
        object.__setattr__(self, "fields", tuple(self.fields))
        object.__setattr__(
            self,
            "aliases",
            MappingProxyType({k.lower(): v for k, v in self.aliases.items()}),
        )

    def spec_for(self, field_type: CronFieldType) -> FieldSpec:
        return self.fields[FIVE_FIELD_LAYOUT.index(field_type)]

    def resolve_alias(self, text: str) -> str | None:
        """Return the expression an alias stands for, or None."""
        return self.aliases.get(text.strip().lower())


class GrammarBuilder:
    """Fluent builder for cron grammars.

    Unset fields default to the standard unix ranges. All fields are
    strict unless ``strict=False`` is passed.
    """

    def __init__(self, name: str = "custom") -> None:
        self._name = name
        self._specs: dict[CronFieldType, FieldSpec] = {}
        self._aliases: dict[str, str] = {}

    def with_minutes(self, min_value: int = 0, max_value: int = 59, *, strict: bool = True) -> "GrammarBuilder":
        self._specs[CronFieldType.MINUTE] = FieldSpec(
            CronFieldType.MINUTE, min_value, max_value, strict=strict
        )
        return self

    def with_hours(self, min_value: int = 0, max_value: int = 23, *, strict: bool = True) -> "GrammarBuilder":
        self._specs[CronFieldType.HOUR] = FieldSpec(
            CronFieldType.HOUR, min_value, max_value, strict=strict
        )
        return self

    def with_day_of_month(self, min_value: int = 1, max_value: int = 31, *, strict: bool = True) -> "GrammarBuilder":
        self._specs[CronFieldType.DAY_OF_MONTH] = FieldSpec(
            CronFieldType.DAY_OF_MONTH, min_value, max_value, strict=strict
        )
        return self

    def with_month(self, min_value: int = 1, max_value: int = 12, *, strict: bool = True) -> "GrammarBuilder":
        names = {name: number for number, name in enumerate(MONTH_NAMES, start=1)}
        self._specs[CronFieldType.MONTH] = FieldSpec(
            CronFieldType.MONTH, min_value, max_value, strict=strict, names=names
        )
        return self

    def with_day_of_week(
        self,
        min_value: int = 0,
        max_value: int = 7,
        *,
        monday_value: int = 1,
        int_mapping: Mapping[int, int] | None = None,
        strict: bool = True,
    ) -> "GrammarBuilder":
        """Define the day-of-week field.

        Named weekdays are numbered from ``monday_value`` upwards and wrap
        back by a week when they would exceed ``max_value``.
        """
        names = {}
        for offset, day in enumerate(WEEKDAY_NAMES):
            number = monday_value + offset
            if number > max_value:
                number -= 7
            names[day] = number
        self._specs[CronFieldType.DAY_OF_WEEK] = FieldSpec(
            CronFieldType.DAY_OF_WEEK,
            min_value,
            max_value,
            strict=strict,
            names=names,
            int_mapping=int_mapping or {},
            monday_value=monday_value,
        )
        return self

    def with_alias(self, alias: str, expression: str) -> "GrammarBuilder":
        if not alias.startswith("@"):
            alias = f"@{alias}"
        self._aliases[alias.lower()] = expression
        return self

    def with_standard_aliases(self) -> "GrammarBuilder":
        self._aliases.update(STANDARD_ALIASES)
        return self

    def build(self) -> CronGrammar:
        defaults = {
            CronFieldType.MINUTE: self.with_minutes,
            CronFieldType.HOUR: self.with_hours,
            CronFieldType.DAY_OF_MONTH: self.with_day_of_month,
            CronFieldType.MONTH: self.with_month,
            CronFieldType.DAY_OF_WEEK: self.with_day_of_week,
        }
        for field_type, define in defaults.items():
            if field_type not in self._specs:
                define()

        grammar = CronGrammar(
            fields=tuple(self._specs[t] for t in FIVE_FIELD_LAYOUT),
            aliases=dict(self._aliases),
            name=self._name,
        )
        logger.debug("Built cron grammar %r with aliases %s", grammar.name, sorted(grammar.aliases))
        return grammar


# The unix cron syntax, Sunday accepted as both 0 and 7.
DEFAULT_GRAMMAR: CronGrammar = (
    GrammarBuilder("unix")
    .with_minutes(0, 59)
    .with_hours(0, 23)
    .with_day_of_month(1, 31)
    .with_month(1, 12)
    .with_day_of_week(0, 7, monday_value=1, int_mapping={7: 0})
    .with_standard_aliases()
    .build()
)


def define_default() -> CronGrammar:
    """Return the shared default (unix) grammar."""
    return DEFAULT_GRAMMAR
