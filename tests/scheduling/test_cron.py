"""Tests for cron expression parsing."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from apscheduler.triggers.cron import CronTrigger

from dbmaint.core.errors import ScheduleError
from dbmaint.scheduling.cron import parse_cron

# Saturday
NOW = datetime(2024, 6, 1, 0, 30, tzinfo=UTC)


def _next(expression: str, now: datetime = NOW) -> datetime:
    return parse_cron(expression).get_next_fire_time(None, now)


def _fields(trigger: CronTrigger) -> dict[str, str]:
    return {field.name: str(field) for field in trigger.fields}


class TestQuartzFormat:
    def test_daily_at_one(self):
        """``0 0 1 * * ?`` fires at 01:00 every day."""
        assert _next("0 0 1 * * ?") == datetime(2024, 6, 1, 1, 0, tzinfo=UTC)

    def test_question_mark_is_wildcard(self):
        fields = _fields(parse_cron("0 0 1 * * ?"))
        assert fields["day_of_week"] == "*"
        assert fields["second"] == "0"

    def test_named_weekday(self):
        assert _next("0 0 3 ? * SUN") == datetime(2024, 6, 2, 3, 0, tzinfo=UTC)

    def test_numeric_weekday_counts_from_sunday(self):
        """Quartz 1 is Sunday."""
        assert _next("0 0 3 ? * 1") == datetime(2024, 6, 2, 3, 0, tzinfo=UTC)
        assert _fields(parse_cron("0 0 3 ? * 2-6"))["day_of_week"] == "mon,tue,wed,thu,fri"

    def test_year_field(self):
        assert _next("0 0 1 * * ? 2030") == datetime(2030, 1, 1, 1, 0, tzinfo=UTC)

    def test_last_day_of_month(self):
        assert _next("0 0 2 L * ?") == datetime(2024, 6, 30, 2, 0, tzinfo=UTC)

    def test_seconds_honoured(self):
        assert _next("30 15 0 * * ?", datetime(2024, 6, 1, 0, 15, tzinfo=UTC)) == datetime(
            2024, 6, 1, 0, 15, 30, tzinfo=UTC
        )


class TestCrontabFormat:
    def test_five_fields(self):
        assert _next("*/15 * * * *", datetime(2024, 6, 1, 0, 31, tzinfo=UTC)) == datetime(
            2024, 6, 1, 0, 45, tzinfo=UTC
        )

    @pytest.mark.parametrize("dow", ["0", "7", "sun"])
    def test_sunday(self, dow):
        """crontab 0 and 7 are Sunday."""
        assert _next(f"30 2 * * {dow}") == datetime(2024, 6, 2, 2, 30, tzinfo=UTC)

    def test_weekday_step_counts_from_sunday(self):
        assert _fields(parse_cron("0 4 * * 1-5/2"))["day_of_week"] == "mon,wed,fri"
        assert _fields(parse_cron("0 4 * * */3"))["day_of_week"] == "sun,wed,sat"

    def test_range_starting_sunday(self):
        """``0-5`` is Sunday to Friday, which APScheduler cannot express as a range."""
        assert _fields(parse_cron("0 4 * * 0-5"))["day_of_week"] == "sun,mon,tue,wed,thu,fri"
        assert _next("0 4 * * 0-5") == datetime(2024, 6, 2, 4, 0, tzinfo=UTC)


class TestInvalid:
    @pytest.mark.parametrize(
        "expression",
        [
            "",
            "nonsense",
            "0 0 25 * * ?",
            "0 61 * * *",
            "0 0 1 * * 6#3",
            "0 0 1 * * 5L",
            "1 2 3 4 5 6 7 8",
            "0 0 1 * * 9",
            "0 4 * * 5-1",
            "0 4 * * funday",
        ],
    )
    def test_rejected(self, expression):
        with pytest.raises(ScheduleError):
            parse_cron(expression)

    def test_error_is_not_retryable(self):
        with pytest.raises(ScheduleError) as exc_info:
            parse_cron("0 0 99 * * ?")
        assert exc_info.value.retryable is False
        assert "0 0 99 * * ?" in str(exc_info.value)
