"""Tests for schedule arithmetic."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from gst_audit.core.period import Period
from gst_audit.scheduling.calculator import due_at, is_due, next_run
from gst_audit.scheduling.config import ScheduleConfig


def _config(day: int = 1, time_of_day: str = "09:00") -> ScheduleConfig:
    return ScheduleConfig.normalized(enabled=True, recipients="a@example.com", day_of_month=day, time_of_day=time_of_day)


class TestNextRun:
    def test_later_this_month(self):
        assert next_run(_config(), datetime(2024, 3, 1, 8, 59)) == datetime(2024, 3, 1, 9, 0)

    def test_exactly_at_instant_moves_to_next_month(self):
        assert next_run(_config(), datetime(2024, 3, 1, 9, 0)) == datetime(2024, 4, 1, 9, 0)

    def test_december_rolls_to_january(self):
        assert next_run(_config(), datetime(2024, 12, 15)) == datetime(2025, 1, 1, 9, 0)

    def test_day_28_in_february(self):
        assert next_run(_config(day=28, time_of_day="23:30"), datetime(2023, 2, 10)) == datetime(2023, 2, 28, 23, 30)

    def test_keeps_timezone(self):
        now = datetime(2024, 3, 5, tzinfo=UTC)
        result = next_run(_config(), now)
        assert result.tzinfo is UTC
        assert result == datetime(2024, 4, 1, 9, 0, tzinfo=UTC)

    @pytest.mark.parametrize("day", [1, 7, 15, 28])
    @pytest.mark.parametrize("hours", [0, 200, 5000, 9000])
    def test_strictly_after_now_and_within_a_month(self, day, hours):
        now = datetime(2023, 11, 20, 9, 0) + timedelta(hours=hours)
        result = next_run(_config(day=day, time_of_day="06:45"), now)
        assert result > now
        assert result - now <= timedelta(days=31)
        assert result.day == day
        assert (result.hour, result.minute) == (6, 45)


class TestDue:
    def test_due_at(self):
        assert due_at(_config(day=5), Period(2024, 3)) == datetime(2024, 3, 5, 9, 0)

    def test_is_due_boundary(self):
        cfg = _config()
        assert not is_due(cfg, datetime(2024, 3, 1, 8, 59, 59))
        assert is_due(cfg, datetime(2024, 3, 1, 9, 0))
        assert is_due(cfg, datetime(2024, 3, 20))
