"""Trigger health checks.

The single-shot wake-up can silently fail to re-arm; the interval timers
can die with their thread.  Neither stops the report from going out (the
other paths cover it) but both should show up as warnings.

Checks:
    1. service_running: the timers were started
    2. timers_running: every interval timer thread is alive
    3. wakeup_armed: a future wake-up exists while the schedule is active
    4. ticks_recent: each interval timer fired within ~2 intervals
    5. period_on_track: once this month is due, the marker reaches it
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from gst_audit.core.period import Period

from .calculator import is_due

if TYPE_CHECKING:
    from .service import TriggerService


@dataclass
class TriggerHealthReport:
    """Complete trigger health report."""

    healthy: bool
    checks: dict[str, bool] = field(default_factory=dict)
    timers: dict[str, Any] = field(default_factory=dict)
    schedule: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "checks": self.checks,
            "timers": self.timers,
            "schedule": self.schedule,
            "warnings": self.warnings,
            "errors": self.errors,
        }


def check_trigger_health(
    service: TriggerService,
    stale_factor: float = 2.0,
) -> TriggerHealthReport:
    """Inspect the service and flag a missing wake-up or stale timers.

    Args:
        service: TriggerService to check
        stale_factor: An interval timer is stale when its last tick is
            older than ``stale_factor`` intervals

    Returns:
        TriggerHealthReport with all checks
    """
    report = TriggerHealthReport(healthy=True)
    now = service.arbiter.now()
    utc_now = datetime.now(UTC)
    config = service.config()
    stats = service.get_stats()

    report.schedule = {
        "active": config.is_active,
        "sent_period": service.arbiter.markers.sent_period(),
        "attempts": stats.attempts,
        "failed": stats.failed,
        "last_outcome": stats.last_outcome,
    }

    # === Service ===
    report.checks["service_running"] = service.is_running
    if not service.is_running:
        report.warnings.append("Timers are not running; only the webhook and manual triggers are active")

    # === Interval timers ===
    all_running = True
    all_recent = True
    for timer in service.interval_timers:
        health = timer.get_health()
        report.timers[timer.name] = health.to_dict()
        if not health.healthy:
            all_running = False
            if service.is_running:
                report.errors.append(f"Timer {timer.name} is not running")
            continue

        last = health.last_fired
        limit = health.extra.get("interval_seconds", 0) * stale_factor
        if last is not None and (utc_now - last).total_seconds() > limit:
            all_recent = False
            report.warnings.append(f"Timer {timer.name} last fired {(utc_now - last).total_seconds():.0f}s ago")

    report.checks["timers_running"] = all_running
    report.checks["ticks_recent"] = all_recent

    # === Wake-up ===
    armed = service.waker.next_wakeup()
    report.timers[service.waker.name] = service.waker.health()
    wakeup_ok = not config.is_active or not service.is_running or (armed is not None and armed > now)
    report.checks["wakeup_armed"] = wakeup_ok
    if not wakeup_ok:
        report.warnings.append("No future wake-up armed; the next trigger will re-arm it")

    # === Period ===
    on_track = True
    if config.is_active and is_due(config, now):
        on_track = report.schedule["sent_period"] == str(Period.of(now))
        if not on_track:
            report.warnings.append(f"Report for {Period.of(now).previous()} is due but not sent yet")
    report.checks["period_on_track"] = on_track

    if stats.last_outcome == "failed" and stats.last_error:
        report.warnings.append(f"Last attempt failed: {stats.last_error}")

    if report.errors:
        report.healthy = False

    return report


__all__ = ["TriggerHealthReport", "check_trigger_health"]
