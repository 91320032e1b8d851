"""Cron parsing errors.

All parse failures derive from :class:`CronParseError`, itself a
``ValueError``. Two kinds are distinguished:

- :class:`GrammarViolation`: a literal or name the grammar does not accept,
  e.g. month ``13``.
- :class:`StructuralError`: the expression has the wrong shape, e.g. four
  fields, ``1-2-3`` or ``*/0``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cronsched.scheduling.grammar import CronFieldType


class CronParseError(ValueError):
    """Raised when cron expression parsing fails.

    Attributes:
        message: What went wrong, without the expression.
        expression: The original, unmodified expression text.
        field_type: The offending field, if the error is field specific.
        schedule_id: Id of the schedule being built, if any.
    """

    def __init__(
        self,
        message: str,
        expression: str = "",
        *,
        field_type: "CronFieldType | None" = None,
    ) -> None:
        self.message = message
        self.expression = expression
        self.field_type = field_type
        self.schedule_id: Any = None
        super().__init__(message)

    def __str__(self) -> str:
        parts = [f"Time is no valid cron syntax: '{self.expression}'", self.message]
        if self.schedule_id is not None:
            parts.insert(0, f"[{self.schedule_id}]")
        return " ".join(parts[:-1]) + f" ({parts[-1]})"


class GrammarViolation(CronParseError):
    """A value or name is outside the syntax accepted by the grammar."""


class StructuralError(CronParseError):
    """The expression or one of its fields is malformed."""
