"""Trigger service: wires the timers to the arbiter.

Manifesto:
    Redundant trigger paths are independent adapters around one
    idempotent call.  The service owns the timers, counts what they did
    and exposes the status an operator needs to see whether the monthly
    report is on track.

::

    ┌──────────────────────────────────────────────────────────────┐
    │  TriggerService                                              │
    │                                                              │
    │   SingleShotTimer ─┐                                         │
    │   hourly check    ─┤                                         │
    │   fast check      ─┼──► fire(trigger) ──► arbiter.attempt()  │
    │   opportunistic   ─┤                                         │
    │   webhook / CLI   ─┘                                         │
    └──────────────────────────────────────────────────────────────┘

Tags:
    scheduling, orchestrator, timers, redundancy
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from gst_audit.core.logging import get_logger

from .arbiter import AttemptOutcome, AttemptResult, TriggerArbiter
from .config import ScheduleConfig
from .timers import IntervalTimer, SingleShotTimer

logger = get_logger(__name__)


@dataclass
class TriggerStats:
    """Counters across all trigger paths since the service started."""

    attempts: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    last_attempt: datetime | None = None
    last_trigger: str | None = None
    last_outcome: str | None = None
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempts": self.attempts,
            "sent": self.sent,
            "failed": self.failed,
            "skipped": self.skipped,
            "last_attempt": self.last_attempt.isoformat() if self.last_attempt else None,
            "last_trigger": self.last_trigger,
            "last_outcome": self.last_outcome,
            "last_error": self.last_error,
        }


class TriggerService:
    """Own the timers and funnel every trigger into the arbiter.

    Example:
        >>> service = TriggerService(arbiter, hourly_seconds=3600, fast_seconds=240)
        >>> service.start()
        >>> service.fire("webhook")
        >>> service.stop()
    """

    def __init__(
        self,
        arbiter: TriggerArbiter,
        *,
        waker: SingleShotTimer | None = None,
        hourly_seconds: float = 3600.0,
        fast_seconds: float = 240.0,
        opportunistic_min_interval: float = 60.0,
    ) -> None:
        self.arbiter = arbiter
        self.waker = waker or SingleShotTimer(clock=arbiter.now)
        self.interval_timers = [
            IntervalTimer("hourly", hourly_seconds),
            IntervalTimer("fast", fast_seconds),
        ]
        self.opportunistic_min_interval = opportunistic_min_interval

        self._stats = TriggerStats()
        self._stats_lock = threading.Lock()
        self._last_opportunistic = float("-inf")
        self._opportunistic_lock = threading.Lock()
        self._running = False

    # === Lifecycle ===

    def start(self) -> None:
        if self._running:
            logger.warning("trigger_service.already_running")
            return
        self.waker.start(lambda: self.fire("single-shot"))
        for timer in self.interval_timers:
            timer.start(self._make_callback(timer.name))
        self._running = True
        self.arbiter.waker = self.waker
        self.arbiter.rearm()
        logger.info(
            "trigger_service.started",
            timers=[t.name for t in self.interval_timers] + [self.waker.name],
        )

    def stop(self) -> None:
        if not self._running:
            return
        for timer in self.interval_timers:
            timer.stop()
        self.waker.stop()
        self.arbiter.waker = None
        self._running = False
        logger.info("trigger_service.stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    def _make_callback(self, trigger: str) -> Callable[[], AttemptResult]:
        return lambda: self.fire(trigger)

    # === Triggers ===

    def fire(self, trigger: str, now: datetime | None = None) -> AttemptResult:
        """Run one attempt on behalf of *trigger* and record the outcome."""
        result = self.arbiter.attempt(now, trigger=trigger)
        self._record(result)
        return result

    def opportunistic(self) -> bool:
        """Re-arm from unrelated activity (an API request, a CLI command).

        Throttled to once per ``opportunistic_min_interval`` and only acts
        when no future wake-up is armed.  The attempt runs on a background
        thread so the caller is never delayed by a dispatch.

        Returns:
            True when an attempt was started.
        """
        with self._opportunistic_lock:
            mono = time.monotonic()
            if mono - self._last_opportunistic < self.opportunistic_min_interval:
                return False
            self._last_opportunistic = mono

        armed = self.waker.next_wakeup()
        if armed is not None and armed > self.arbiter.now():
            return False

        thread = threading.Thread(
            target=self._run_opportunistic,
            daemon=True,
            name="gst-audit-opportunistic",
        )
        thread.start()
        return True

    def _run_opportunistic(self) -> None:
        try:
            self.fire("opportunistic")
        except Exception:
            logger.exception("trigger.opportunistic_failed")

    def _record(self, result: AttemptResult) -> None:
        with self._stats_lock:
            self._stats.attempts += 1
            self._stats.last_attempt = datetime.now(UTC)
            self._stats.last_trigger = result.trigger
            self._stats.last_outcome = result.outcome.value
            if result.outcome is AttemptOutcome.SENT:
                self._stats.sent += 1
            elif result.outcome is AttemptOutcome.FAILED:
                self._stats.failed += 1
                self._stats.last_error = result.error
            else:
                self._stats.skipped += 1

    # === Configuration ===

    def config(self) -> ScheduleConfig:
        return self.arbiter.config_store.load()

    def update_config(self, **fields: Any) -> ScheduleConfig:
        """Persist a config change and re-arm the wake-up for it."""
        config = self.arbiter.config_store.update(**fields)
        self.arbiter.rearm()
        return config

    # === Status ===

    def get_stats(self) -> TriggerStats:
        with self._stats_lock:
            return TriggerStats(**vars(self._stats))

    def timers_health(self) -> dict[str, dict[str, Any]]:
        health = {timer.name: timer.health() for timer in self.interval_timers}
        health[self.waker.name] = self.waker.health()
        return health

    def status(self) -> dict[str, Any]:
        """Config, marker, next run, timers and last attempt in one dict."""
        config = self.config()
        marker = self.arbiter.markers.state()
        armed = self.waker.next_wakeup()
        recorded = self.arbiter.config_store.next_run()
        next_at = armed or recorded
        return {
            "running": self._running,
            "config": config.to_dict(),
            "active": config.is_active,
            "marker": marker.to_dict(),
            "next_run": next_at.isoformat() if next_at else None,
            "armed": armed is not None,
            "timers": self.timers_health(),
            "stats": self.get_stats().to_dict(),
        }

    def health(self) -> dict[str, Any]:
        from .health import check_trigger_health

        return check_trigger_health(self).to_dict()


__all__ = ["TriggerService", "TriggerStats"]
