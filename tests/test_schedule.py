"""Tests for schedules."""

import dataclasses
import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from cronsched import (
    REBOOT_ALIAS,
    CronExecutionTime,
    CronExpression,
    GrammarBuilder,
    GrammarViolation,
    RebootExecutionTime,
    Schedule,
    ScheduleDefinition,
    ScheduleDefinitionError,
    ScheduleId,
    StructuralError,
)
from cronsched.config import EngineConfig, set_config
from cronsched.scheduling import CronFieldType


# =============================================================================
# Schedule Id and Definition Tests
# =============================================================================


class TestScheduleId:
    def test_parse_qualified(self):
        schedule_id = ScheduleId.parse("quests.daily.morning")
        assert schedule_id.package == "quests.daily"
        assert schedule_id.name == "morning"
        assert str(schedule_id) == "quests.daily.morning"

    def test_parse_unqualified(self):
        schedule_id = ScheduleId.parse("morning")
        assert schedule_id.package is None
        assert str(schedule_id) == "morning"

    def test_empty_name(self):
        with pytest.raises(ValueError):
            ScheduleId.parse("quests.")

    def test_is_hashable(self):
        assert ScheduleId.parse("a.b") == ScheduleId("a", "b")
        assert len({ScheduleId.parse("a.b"), ScheduleId("a", "b")}) == 1


class TestScheduleDefinition:
    def test_from_mapping(self):
        definition = ScheduleDefinition.from_mapping("quests.morning", {"time": "0 9 * * *"})
        assert definition.schedule_id == ScheduleId("quests", "morning")
        assert definition.time == "0 9 * * *"

    def test_missing_time(self):
        with pytest.raises(ScheduleDefinitionError) as exc:
            ScheduleDefinition.from_mapping("quests.morning", {"type": "realtime"})
        assert "quests.morning" in str(exc.value)

    def test_non_text_time(self):
        with pytest.raises(ScheduleDefinitionError):
            ScheduleDefinition.from_mapping("quests.morning", {"time": 9})

    def test_is_immutable(self):
        definition = ScheduleDefinition(ScheduleId(None, "morning"), "0 9 * * *")
        with pytest.raises(dataclasses.FrozenInstanceError):
            definition.time = "@daily"  # type: ignore[misc]


# =============================================================================
# Schedule Construction Tests
# =============================================================================


class TestScheduleCreation:
    """Tests for building schedules from time text."""

    def test_cron_schedule(self):
        schedule = Schedule.create("quests.morning", "0 9 * * 1")
        assert schedule.schedule_id == ScheduleId("quests", "morning")
        assert schedule.time == "0 9 * * 1"
        assert schedule.time_cron == CronExpression.parse("0 9 * * 1")
        assert isinstance(schedule.execution_time, CronExecutionTime)
        assert not schedule.should_run_on_reboot()

    def test_from_definition(self):
        definition = ScheduleDefinition.from_mapping("quests.morning", {"time": "@daily"})
        schedule = Schedule(definition)
        assert schedule.time == "@daily"
        assert schedule.time_cron == CronExpression.parse("0 0 * * *")

    @pytest.mark.parametrize("time", ["@reboot", "  @REBOOT ", "@Reboot"])
    def test_reboot_schedule(self, time):
        schedule = Schedule.create("quests.startup", time, reboot_supported=True)
        assert schedule.should_run_on_reboot()
        assert schedule.time_cron is None
        assert isinstance(schedule.execution_time, RebootExecutionTime)
        assert schedule.get_next_execution() is None
        assert schedule.get_last_execution() is None
        assert schedule.time == time

    def test_reboot_not_supported(self):
        with pytest.raises(StructuralError) as exc:
            Schedule.create("quests.startup", REBOOT_ALIAS)
        assert exc.value.schedule_id == ScheduleId("quests", "startup")

    def test_grammar_violation(self):
        with pytest.raises(GrammarViolation) as exc:
            Schedule.create("quests.broken", "0 24 * * *")
        error = exc.value
        assert error.field_type is CronFieldType.HOUR
        assert error.schedule_id == ScheduleId("quests", "broken")
        assert str(error).startswith("[quests.broken] Time is no valid cron syntax: '0 24 * * *'")
        assert "hour" in str(error)

    def test_non_ascii_digit(self, caplog):
        with caplog.at_level(logging.WARNING, logger="cronsched.schedule"):
            with pytest.raises(GrammarViolation) as exc:
                Schedule.create("quests.broken", "² * * * *")
        assert exc.value.field_type is CronFieldType.MINUTE
        assert exc.value.schedule_id == ScheduleId("quests", "broken")
        assert "quests.broken" in caplog.text

    def test_wrong_field_count(self):
        with pytest.raises(StructuralError) as exc:
            Schedule.create("quests.broken", "0 9 * *")
        assert "'0 9 * *'" in str(exc.value)

    def test_failure_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="cronsched.schedule"):
            with pytest.raises(StructuralError):
                Schedule.create("quests.broken", "every day")
        assert "quests.broken" in caplog.text

    def test_custom_grammar(self):
        grammar = GrammarBuilder("sunday-first").with_day_of_week(1, 7, monday_value=2).build()
        schedule = Schedule.create("quests.sunday", "0 12 * * 1", grammar=grammar)
        assert schedule.time_cron.grammar is grammar
        next_dt = schedule.execution_time.next_execution(datetime(2024, 1, 17, 10, 0))
        assert next_dt == datetime(2024, 1, 21, 12, 0)  # Sunday

    def test_lenient_grammar(self):
        grammar = GrammarBuilder("lenient").with_hours(strict=False).build()
        schedule = Schedule.create("quests.late", "0 30 * * *", grammar=grammar)
        assert schedule.time_cron.get_field(CronFieldType.HOUR).values == frozenset([23])

    def test_is_immutable(self):
        schedule = Schedule.create("quests.morning", "0 9 * * *")
        with pytest.raises(AttributeError):
            schedule.time = "@daily"  # type: ignore[misc]
        with pytest.raises(AttributeError):
            schedule.other = 1  # type: ignore[attr-defined]

    def test_repr(self):
        assert repr(Schedule.create("quests.morning", "@daily")) == "Schedule('quests.morning', '@daily')"


# =============================================================================
# Execution Tests
# =============================================================================


class TestScheduleExecutions:
    """Tests for next/last execution of schedules."""

    def test_next_execution_is_utc(self):
        schedule = Schedule.create("quests.morning", "0 9 * * *")
        now = datetime(2024, 7, 1, 10, 0, tzinfo=ZoneInfo("Europe/Berlin"))
        next_dt = schedule.get_next_execution(now)
        assert next_dt == datetime(2024, 7, 2, 7, 0, tzinfo=timezone.utc)
        assert next_dt.tzinfo is timezone.utc

    def test_last_execution_is_utc(self):
        schedule = Schedule.create("quests.morning", "0 9 * * *")
        now = datetime(2024, 7, 1, 10, 0, tzinfo=ZoneInfo("Europe/Berlin"))
        assert schedule.get_last_execution(now) == datetime(2024, 7, 1, 7, 0, tzinfo=timezone.utc)

    def test_no_execution(self):
        schedule = Schedule.create("quests.never", "0 0 30 2 *")
        assert schedule.get_next_execution(datetime(2024, 1, 1, tzinfo=timezone.utc)) is None

    def test_default_now_uses_configured_zone(self):
        set_config(EngineConfig(timezone="Europe/Berlin"))
        schedule = Schedule.create("quests.minutely", "* * * * *")

        before = datetime.now(timezone.utc)
        next_dt = schedule.get_next_execution()
        last_dt = schedule.get_last_execution()

        assert next_dt.tzinfo is timezone.utc
        assert next_dt > before
        assert last_dt <= datetime.now(timezone.utc)
        assert next_dt.second == 0

    def test_default_now_without_zone(self):
        schedule = Schedule.create("quests.minutely", "* * * * *")
        next_dt = schedule.get_next_execution()
        assert next_dt.tzinfo is timezone.utc
        assert next_dt > datetime.now(timezone.utc).replace(second=0, microsecond=0)
