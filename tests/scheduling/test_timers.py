"""Tests for the interval and single-shot timers."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta

import pytest

from gst_audit.core.errors import ScheduleError
from gst_audit.scheduling.timers import IntervalTimer, SingleShotTimer


class TestIntervalTimer:
    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            IntervalTimer("bad", 0)

    @pytest.mark.slow
    def test_fires_repeatedly_and_stops(self):
        fired = threading.Event()
        calls: list[int] = []

        def callback():
            calls.append(1)
            if len(calls) >= 2:
                fired.set()

        timer = IntervalTimer("fast", 0.02)
        timer.start(callback)
        try:
            assert fired.wait(2.0)
            assert timer.is_running
        finally:
            timer.stop()
        assert not timer.is_running
        health = timer.health()
        assert health["backend"] == "fast"
        assert health["fire_count"] >= 2
        assert health["interval_seconds"] == 0.02

    @pytest.mark.slow
    def test_callback_errors_do_not_kill_thread(self):
        fired = threading.Event()
        calls: list[int] = []

        def callback():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("first tick fails")
            fired.set()

        timer = IntervalTimer("hourly", 0.02)
        timer.start(callback)
        try:
            assert fired.wait(2.0)
        finally:
            timer.stop()

    def test_health_before_start(self):
        health = IntervalTimer("hourly", 3600).get_health()
        assert health.healthy is False
        assert health.last_fired is None


class TestSingleShotTimer:
    def test_arm_requires_start(self):
        with pytest.raises(ScheduleError):
            SingleShotTimer().arm(datetime.now())

    @pytest.mark.slow
    def test_fires_once_then_disarms(self):
        fired = threading.Event()
        timer = SingleShotTimer()
        timer.start(fired.set)
        try:
            timer.arm(datetime.now() + timedelta(milliseconds=50))
            assert fired.wait(2.0)
            assert timer.next_wakeup() is None
            assert timer.get_health().fire_count == 1
        finally:
            timer.stop()

    def test_past_instant_fires_immediately(self):
        fired = threading.Event()
        timer = SingleShotTimer()
        timer.start(fired.set)
        try:
            timer.arm(datetime.now() - timedelta(hours=1))
            assert fired.wait(2.0)
        finally:
            timer.stop()

    def test_rearm_replaces_and_disarm_cancels(self):
        calls: list[int] = []
        now = datetime(2024, 3, 1, 9, 0)
        timer = SingleShotTimer(clock=lambda: now)
        timer.start(lambda: calls.append(1))
        try:
            timer.arm(datetime(2024, 4, 1, 9, 0))
            timer.arm(datetime(2024, 3, 5, 9, 0))
            assert timer.next_wakeup() == datetime(2024, 3, 5, 9, 0)
            assert timer.health()["armed_at"] == "2024-03-05T09:00:00"
            timer.disarm()
            assert timer.next_wakeup() is None
        finally:
            timer.stop()
        assert calls == []
        assert not timer.is_running
