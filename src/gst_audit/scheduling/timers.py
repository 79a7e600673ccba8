"""
Thread-based timers.

:class:`IntervalTimer` fires every ``interval_seconds`` from a daemon
thread; the service runs one hourly and one at sub-5-minute granularity.
:class:`SingleShotTimer` fires once at an armed instant and is re-armed by
the arbiter after every attempt.

Both swallow and log callback exceptions so one bad attempt never kills
the timer thread.

Example:
    >>> hourly = IntervalTimer("hourly", interval_seconds=3600)
    >>> hourly.start(lambda: service.fire("hourly"))
    >>> ...
    >>> hourly.stop()
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from gst_audit.core.errors import ScheduleError

from .protocol import BackendHealth, FireCallback

logger = logging.getLogger(__name__)


class IntervalTimer:
    """Fire a callback every ``interval_seconds`` on a daemon thread."""

    def __init__(self, name: str, interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.name = name
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._fire_count = 0
        self._last_fired: datetime | None = None
        self._started = False
        self._lock = threading.Lock()

    def start(self, callback: FireCallback) -> None:
        """Start the loop in a daemon thread."""
        if self._started:
            logger.warning(f"Timer {self.name} already started")
            return

        self._stop_event.clear()

        def _loop() -> None:
            logger.info(f"Timer {self.name} started (interval={self._interval}s)")
            while not self._stop_event.wait(self._interval):
                with self._lock:
                    self._fire_count += 1
                    self._last_fired = datetime.now(UTC)
                try:
                    callback()
                except Exception as e:
                    logger.exception(f"Timer {self.name} callback failed: {e}")
            logger.info(f"Timer {self.name} stopped")

        self._thread = threading.Thread(target=_loop, daemon=True, name=f"gst-audit-{self.name}")
        self._thread.start()
        self._started = True

    def stop(self) -> None:
        """Stop the loop, waiting up to 5 seconds for an in-flight callback."""
        if not self._started:
            return
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5.0)
            if self._thread.is_alive():
                logger.warning(f"Timer {self.name} thread did not stop cleanly")
        self._started = False

    @property
    def is_running(self) -> bool:
        return self._started and self._thread is not None and self._thread.is_alive()

    def get_health(self) -> BackendHealth:
        return BackendHealth(
            healthy=self.is_running,
            backend=self.name,
            fire_count=self._fire_count,
            last_fired=self._last_fired,
            extra={"interval_seconds": self._interval},
        )

    def health(self) -> dict[str, Any]:
        return self.get_health().to_dict()


class SingleShotTimer:
    """Fire a callback once at an armed instant.

    ``arm`` replaces any pending wake-up.  After firing the timer is
    disarmed until someone arms it again; the arbiter does so at the end of
    every attempt.
    """

    name = "single-shot"

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock
        self._callback: FireCallback | None = None
        self._timer: threading.Timer | None = None
        self._armed_at: datetime | None = None
        self._fire_count = 0
        self._last_fired: datetime | None = None
        self._lock = threading.Lock()

    def start(self, callback: FireCallback) -> None:
        self._callback = callback

    def stop(self) -> None:
        self.disarm()
        self._callback = None

    def next_wakeup(self) -> datetime | None:
        with self._lock:
            return self._armed_at

    def arm(self, at: datetime) -> None:
        """Fire once at *at*.

        Raises:
            ScheduleError: the timer has not been started
        """
        if self._callback is None:
            raise ScheduleError("Single-shot timer is not started")

        delay = max(0.0, (at - self._clock()).total_seconds())
        timer = threading.Timer(delay, self._fire)
        timer.daemon = True
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = timer
            self._armed_at = at
        timer.start()
        logger.debug(f"Single-shot timer armed for {at.isoformat()} (in {delay:.0f}s)")

    def disarm(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._armed_at = None

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
            self._armed_at = None
            self._fire_count += 1
            self._last_fired = datetime.now(UTC)
            callback = self._callback
        if callback is None:
            return
        try:
            callback()
        except Exception as e:
            logger.exception(f"Single-shot timer callback failed: {e}")

    @property
    def is_running(self) -> bool:
        return self._callback is not None

    def get_health(self) -> BackendHealth:
        armed = self.next_wakeup()
        return BackendHealth(
            healthy=self.is_running and armed is not None,
            backend=self.name,
            fire_count=self._fire_count,
            last_fired=self._last_fired,
            extra={"armed_at": armed.isoformat() if armed else None},
        )

    def health(self) -> dict[str, Any]:
        return self.get_health().to_dict()


__all__ = ["IntervalTimer", "SingleShotTimer"]
