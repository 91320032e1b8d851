"""Cron expression parser.

Turns raw time text into an immutable :class:`CronExpression` validated
against a :class:`~cronsched.scheduling.grammar.CronGrammar`.

Design Principles:
    1. Immutable expressions: safe to share between threads
    2. Single validation point: construction either succeeds fully or raises
    3. Numbering-agnostic matching: day-of-week values are normalized to
       ISO weekdays while parsing, so matching never looks at the grammar
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import FrozenSet, Iterable

from cronsched.scheduling.errors import CronParseError, GrammarViolation, StructuralError
from cronsched.scheduling.grammar import (
    DEFAULT_GRAMMAR,
    FIVE_FIELD_LAYOUT,
    CronFieldType,
    CronGrammar,
    FieldSpec,
)

logger = logging.getLogger(__name__)

# ASCII digits only
_NUMBER = re.compile(r"[0-9]+")


# =============================================================================
# Cron Field
# =============================================================================


class CronField:
    """Represents a parsed cron field.

    Attributes:
        field_type: The type of field (MINUTE, HOUR, etc.)
        values: Frozen set of matching values. Day-of-week values use ISO
            numbering (Monday=1 ... Sunday=7) whatever the grammar.
        is_any: True if the field is the wildcard ``*``
        original: Field text as written in the expression
    """

    __slots__ = ("_field_type", "_values", "_is_any", "_original")

    def __init__(
        self,
        field_type: CronFieldType,
        values: FrozenSet[int],
        *,
        is_any: bool = False,
        original: str = "",
    ) -> None:
        self._field_type = field_type
        self._values = values
        self._is_any = is_any
        self._original = original

    @property
    def field_type(self) -> CronFieldType:
        return self._field_type

    @property
    def values(self) -> FrozenSet[int]:
        return self._values

    @property
    def is_any(self) -> bool:
        return self._is_any

    @property
    def original(self) -> str:
        return self._original

    def matches(self, value: int) -> bool:
        return self._is_any or value in self._values

    def _key(self) -> tuple[bool, FrozenSet[int]]:
        return (self._is_any, frozenset() if self._is_any else self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CronField):
            return self._field_type is other._field_type and self._key() == other._key()
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self._field_type, self._key()))

    def __repr__(self) -> str:
        return f"CronField({self._field_type.name}, {self._original!r})"


# =============================================================================
# Cron Parser
# =============================================================================


class CronParser:
    """Parser for five-field cron expressions.

    Supports, per field:
        - ``*`` wildcard
        - single values and named values (``JAN``, ``MON``)
        - ranges ``a-b``
        - steps ``*/n``, ``a/n`` and ``a-b/n``
        - comma separated lists of the above

    Aliases such as ``@daily`` are substituted before parsing when the
    grammar defines them.
    """

    def __init__(self, grammar: CronGrammar | None = None) -> None:
        self._grammar = grammar or DEFAULT_GRAMMAR

    @property
    def grammar(self) -> CronGrammar:
        return self._grammar

    def parse(self, expression: str) -> "CronExpression":
        """Parse a cron expression.

        Args:
            expression: Raw time text.

        Returns:
            Parsed CronExpression.

        Raises:
            StructuralError: Wrong number of fields or malformed syntax.
            GrammarViolation: A literal the grammar does not accept.
        """
        text = expression.strip()
        resolved = self._grammar.resolve_alias(text)
        if resolved is not None:
            logger.debug("Resolved cron alias %r to %r", text, resolved)
            text = resolved

        parts = text.split()
        if len(parts) != len(FIVE_FIELD_LAYOUT):
            raise StructuralError(
                f"Wrong number of fields: {len(parts)}, expected {len(FIVE_FIELD_LAYOUT)}",
                expression,
            )

        fields = [
            self._parse_field(part, spec, expression)
            for part, spec in zip(parts, self._grammar.fields)
        ]
        return CronExpression(expression, fields, self._grammar)

    def _parse_field(self, part: str, spec: FieldSpec, expression: str) -> CronField:
        if part == "*":
            return CronField(spec.field_type, frozenset(), is_any=True, original=part)

        values: set[int] = set()
        for segment in part.split(","):
            if not segment:
                raise StructuralError(
                    f"Empty list element in {spec.field_type.label} field: {part!r}",
                    expression,
                    field_type=spec.field_type,
                )
            values.update(self._parse_segment(segment, spec, expression))

        return CronField(
            spec.field_type,
            frozenset(self._normalize(value, spec) for value in values),
            original=part,
        )

    def _parse_segment(self, segment: str, spec: FieldSpec, expression: str) -> Iterable[int]:
        # Step (*/n, a/n or a-b/n)
        if "/" in segment:
            base, _, step_text = segment.partition("/")
            step = self._parse_step(step_text, spec, expression)
            if base == "*":
                return range(spec.min_value, spec.max_value + 1, step)
            if "-" in base:
                return self._parse_range(base, spec, expression)[::step]
            start = self._resolve_value(base, spec, expression)
            return range(start, spec.max_value + 1, step)

        # Range (a-b)
        if "-" in segment:
            return self._parse_range(segment, spec, expression)

        if segment == "*":
            return range(spec.min_value, spec.max_value + 1)

        return (self._resolve_value(segment, spec, expression),)

    def _parse_step(self, text: str, spec: FieldSpec, expression: str) -> int:
        if not _NUMBER.fullmatch(text):
            raise StructuralError(
                f"Invalid step {text!r} in {spec.field_type.label} field",
                expression,
                field_type=spec.field_type,
            )
        step = int(text)
        if step <= 0:
            raise StructuralError(
                f"Step must be positive in {spec.field_type.label} field: {step}",
                expression,
                field_type=spec.field_type,
            )
        return step

    def _parse_range(self, text: str, spec: FieldSpec, expression: str) -> list[int]:
        """Expand a range. Day-of-week ranges may wrap around the week (FRI-MON)."""
        bounds = text.split("-")
        if len(bounds) != 2 or not all(bounds):
            raise StructuralError(
                f"Invalid range {text!r} in {spec.field_type.label} field",
                expression,
                field_type=spec.field_type,
            )

        start = self._resolve_value(bounds[0], spec, expression)
        end = self._resolve_value(bounds[1], spec, expression)
        if start <= end:
            return list(range(start, end + 1))

        if spec.field_type is not CronFieldType.DAY_OF_WEEK:
            raise StructuralError(
                f"Invalid range {text!r} in {spec.field_type.label} field: "
                f"start is greater than end",
                expression,
                field_type=spec.field_type,
            )
        return list(range(start, spec.max_value + 1)) + list(range(spec.min_value, end + 1))

    def _resolve_value(self, text: str, spec: FieldSpec, expression: str) -> int:
        """Resolve a literal (number or name) and check it against the field."""
        token = text.strip().upper()

        if token in spec.names:
            return spec.names[token]

        if not _NUMBER.fullmatch(token):
            raise GrammarViolation(
                f"Invalid value {text!r} for {spec.field_type.label} field",
                expression,
                field_type=spec.field_type,
            )
        return spec.check(int(token), expression)

    def _normalize(self, value: int, spec: FieldSpec) -> int:
        value = spec.remap(value)
        if spec.field_type is CronFieldType.DAY_OF_WEEK:
            return spec.to_iso_weekday(value)
        return value


# =============================================================================
# Cron Expression
# =============================================================================


class CronExpression:
    """Parsed, validated five-field cron expression.

    CronExpression is immutable and thread-safe. Two expressions are equal
    when they come from the same grammar and match the same values, so
    ``CronExpression.parse("@hourly") == CronExpression.parse("0 * * * *")``.

    Day matching follows cron convention: when both day-of-month and
    day-of-week are restricted, a day matches if either matches; otherwise
    both must match.

    Example:
        >>> expr = CronExpression.parse("0 9 * * MON-FRI")
        >>> expr.matches(datetime(2024, 1, 15, 9, 0))  # Monday
        True
    """

    __slots__ = ("_expression", "_grammar", "_fields", "_field_map")

    def __init__(
        self,
        expression: str,
        fields: list[CronField],
        grammar: CronGrammar | None = None,
    ) -> None:
        self._expression = expression
        self._grammar = grammar or DEFAULT_GRAMMAR
        self._fields = tuple(fields)
        self._field_map: dict[CronFieldType, CronField] = {
            f.field_type: f for f in fields
        }

    @classmethod
    def parse(cls, expression: str, grammar: CronGrammar | None = None) -> "CronExpression":
        """Parse a cron expression.

        Raises:
            CronParseError: If expression is invalid.
        """
        return CronParser(grammar).parse(expression)

    @property
    def expression(self) -> str:
        """Get original expression string."""
        return self._expression

    @property
    def grammar(self) -> CronGrammar:
        return self._grammar

    @property
    def fields(self) -> tuple[CronField, ...]:
        return self._fields

    def get_field(self, field_type: CronFieldType) -> CronField:
        return self._field_map[field_type]

    def matches_date(self, day: date) -> bool:
        """Check month and day constraints for a calendar date."""
        if not self._field_map[CronFieldType.MONTH].matches(day.month):
            return False

        dom = self._field_map[CronFieldType.DAY_OF_MONTH]
        dow = self._field_map[CronFieldType.DAY_OF_WEEK]
        dom_ok = dom.matches(day.day)
        dow_ok = dow.matches(day.isoweekday())

        if not dom.is_any and not dow.is_any:
            return dom_ok or dow_ok
        return dom_ok and dow_ok

    def matches_time(self, hour: int, minute: int) -> bool:
        return (
            self._field_map[CronFieldType.HOUR].matches(hour)
            and self._field_map[CronFieldType.MINUTE].matches(minute)
        )

    def matches(self, dt: datetime) -> bool:
        """Check if a datetime matches this expression.

        Only the calendar decomposition is inspected; seconds are ignored.
        """
        return self.matches_date(dt.date()) and self.matches_time(dt.hour, dt.minute)

    def _key(self) -> tuple:
        return (self._grammar.name, tuple(f._key() for f in self._fields))

    def __repr__(self) -> str:
        return f"CronExpression({self._expression!r})"

    def __str__(self) -> str:
        return self._expression

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CronExpression):
            return self._key() == other._key()
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._key())


# =============================================================================
# Validation Functions
# =============================================================================


def validate_expression(expression: str, grammar: CronGrammar | None = None) -> list[str]:
    """Validate a cron expression.

    Returns:
        List of validation errors (empty if valid).
    """
    errors = []

    try:
        CronExpression.parse(expression, grammar)
    except CronParseError as e:
        errors.append(str(e))

    return errors


def is_valid_expression(expression: str, grammar: CronGrammar | None = None) -> bool:
    try:
        CronExpression.parse(expression, grammar)
        return True
    except CronParseError:
        return False
