"""
Trigger arbiter: the one idempotent entry point behind every trigger path.

Manifesto:
    The host scheduler is unreliable, so the report is driven by several
    overlapping triggers: a single-shot timer at the configured instant,
    an hourly check, a sub-5-minute check, opportunistic re-arming on
    unrelated API traffic and an authenticated webhook.  Any of them may
    fire at any time, in any process, concurrently.  They all call
    :meth:`TriggerArbiter.attempt` and the send marker decides which one
    actually sends.

Architecture:
    ::

        attempt(now, trigger)
          │
          ├─ config inactive?            → DISABLED
          ├─ marker == now's period?     → ALREADY_SENT
          ├─ now < due instant?          → NOT_DUE
          ├─ claim(period) lost?         → IN_PROGRESS / ALREADY_SENT
          │
          ├─ run_with_timeout(build(previous month) → dispatch)
          │     success → confirm(period) → SENT
          │     failure → release(claim)  → FAILED
          │
          └─ finally: arm the next wake-up if none is armed (non-fatal)

Guardrails:
    ❌ DON'T: read the marker and write it later (check-then-set)
    ✅ DO: claim the period with one conditional UPDATE

    ❌ DON'T: retry a failed dispatch inside the same attempt
    ✅ DO: leave the period unsent; the next trigger retries

Tags:
    scheduling, idempotency, compare-and-swap, trigger
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from gst_audit.core.logging import LogContext, get_logger
from gst_audit.core.period import Period
from gst_audit.core.timeout import TimeoutExpired, run_with_timeout
from gst_audit.reporting.aggregator import ReportAggregator
from gst_audit.reporting.dispatcher import DispatchOutcome, ReportDispatcher

from .calculator import due_at, is_due, next_run
from .config import ScheduleConfig, ScheduleConfigStore
from .marker import SendMarkerStore
from .protocol import Waker

logger = get_logger(__name__)


class AttemptOutcome(str, Enum):
    """What a single :meth:`TriggerArbiter.attempt` did."""

    DISABLED = "disabled"
    ALREADY_SENT = "already_sent"
    IN_PROGRESS = "in_progress"
    NOT_DUE = "not_due"
    SENT = "sent"
    FAILED = "failed"


@dataclass
class AttemptResult:
    """Outcome of one attempt.

    ``period`` is the marker period (the month the attempt ran in);
    ``report_period`` is the month the report covers (the one before).
    """

    outcome: AttemptOutcome
    period: str
    trigger: str
    attempt_id: str
    message: str = ""
    report_period: str | None = None
    next_run: datetime | None = None
    error: str | None = None
    dispatch: DispatchOutcome | None = None

    @property
    def success(self) -> bool:
        """Everything but a failed dispatch is a successful attempt."""
        return self.outcome is not AttemptOutcome.FAILED

    @property
    def sent(self) -> bool:
        return self.outcome is AttemptOutcome.SENT

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "outcome": self.outcome.value,
            "success": self.success,
            "period": self.period,
            "report_period": self.report_period,
            "trigger": self.trigger,
            "attempt_id": self.attempt_id,
            "message": self.message,
            "next_run": self.next_run.isoformat() if self.next_run else None,
        }
        if self.error:
            d["error"] = self.error
        if self.dispatch is not None:
            d["dispatch"] = self.dispatch.to_dict()
        return d


class TriggerArbiter:
    """Decide whether an attempt sends the monthly report, and send it."""

    def __init__(
        self,
        config_store: ScheduleConfigStore,
        markers: SendMarkerStore,
        aggregator: ReportAggregator,
        dispatcher: ReportDispatcher,
        waker: Waker | None = None,
        *,
        attempt_timeout_seconds: float = 300.0,
        claim_ttl_seconds: int = 900,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config_store = config_store
        self.markers = markers
        self.aggregator = aggregator
        self.dispatcher = dispatcher
        self.waker = waker
        self.attempt_timeout_seconds = attempt_timeout_seconds
        self.claim_ttl_seconds = claim_ttl_seconds
        self._clock = clock

    def attempt(self, now: datetime | None = None, trigger: str = "manual") -> AttemptResult:
        """Send last month's report if this month's send is due and not done yet.

        Never raises for collaborator failures; they come back as
        ``FAILED`` and the next trigger retries.
        """
        now = now or self._clock()
        attempt_id = uuid4().hex[:12]
        with LogContext(attempt_id=attempt_id, trigger=trigger):
            config = self.config_store.load()
            try:
                result = self._attempt(config, now, trigger, attempt_id)
            finally:
                armed = self._ensure_armed(config, now)
            result.next_run = armed
            logger.info(
                "trigger.attempt",
                outcome=result.outcome.value,
                period=result.period,
                next_run=armed.isoformat() if armed else None,
            )
            return result

    def _attempt(self, config: ScheduleConfig, now: datetime, trigger: str, attempt_id: str) -> AttemptResult:
        period = Period.of(now)
        key = str(period)

        def result(outcome: AttemptOutcome, message: str, **kwargs: Any) -> AttemptResult:
            return AttemptResult(
                outcome=outcome,
                period=key,
                trigger=trigger,
                attempt_id=attempt_id,
                message=message,
                **kwargs,
            )

        if not config.is_active:
            reason = "disabled" if not config.enabled else "no recipients configured"
            return result(AttemptOutcome.DISABLED, f"Schedule inactive: {reason}")

        if self.markers.sent_period() == key:
            return result(AttemptOutcome.ALREADY_SENT, f"Report already sent for {key}")

        if not is_due(config, now):
            return result(
                AttemptOutcome.NOT_DUE,
                f"Not due until {due_at(config, period, now.tzinfo).isoformat()}",
            )

        token = self.markers.claim(key, ttl_seconds=self.claim_ttl_seconds)
        if token is None:
            # Lost the race: either the winner already finished or is still sending
            if self.markers.sent_period() == key:
                return result(AttemptOutcome.ALREADY_SENT, f"Report already sent for {key}")
            return result(AttemptOutcome.IN_PROGRESS, f"Another trigger is sending {key}")

        report_period = period.previous()
        try:
            outcome = run_with_timeout(
                self._build_and_send,
                self.attempt_timeout_seconds,
                operation="report.build_and_send",
                args=(report_period, config.recipients),
            )
        except TimeoutExpired as e:
            self.markers.release(token)
            logger.warning("trigger.timeout", period=key, timeout=e.timeout)
            return result(
                AttemptOutcome.FAILED,
                f"Dispatch timed out after {e.timeout}s",
                report_period=str(report_period),
                error=str(e),
            )
        except Exception as e:
            self.markers.release(token)
            logger.exception("trigger.dispatch_error", period=key)
            return result(
                AttemptOutcome.FAILED,
                f"Dispatch failed: {e}",
                report_period=str(report_period),
                error=str(e),
            )

        if not outcome.success:
            self.markers.release(token)
            logger.warning("trigger.dispatch_failed", period=key, failed=outcome.failed)
            return result(
                AttemptOutcome.FAILED,
                f"Delivery failed for {len(outcome.failed)} recipient(s)",
                report_period=str(report_period),
                error="; ".join(outcome.errors),
                dispatch=outcome,
            )

        self.markers.confirm(key, token)
        logger.info("trigger.sent", period=key, report_period=str(report_period), recipients=len(outcome.delivered))
        return result(
            AttemptOutcome.SENT,
            f"Report for {report_period.label} sent to {len(outcome.delivered)} recipient(s)",
            report_period=str(report_period),
            dispatch=outcome,
        )

    def _build_and_send(self, report_period: Period, recipients: tuple[str, ...]) -> DispatchOutcome:
        table = self.aggregator.build(report_period)
        return self.dispatcher.send(table, recipients)

    def now(self) -> datetime:
        return self._clock()

    def _ensure_armed(self, config: ScheduleConfig, now: datetime) -> datetime | None:
        """Arm the next wake-up unless a future one is already armed.

        Failures are logged and swallowed; the interval checks and the
        webhook cover a wake-up that never got armed.
        """
        if not config.is_active:
            return None
        upcoming = next_run(config, now)
        if self.waker is not None:
            try:
                armed = self.waker.next_wakeup()
                if armed is None or armed <= now:
                    self.waker.arm(upcoming)
                    logger.debug("trigger.armed", at=upcoming.isoformat())
                else:
                    upcoming = armed
            except Exception as e:
                logger.warning("trigger.arm_failed", error=str(e))
        try:
            self.config_store.record_next_run(upcoming)
        except Exception as e:
            logger.warning("trigger.next_run_not_recorded", error=str(e))
        return upcoming

    def rearm(self, now: datetime | None = None) -> datetime | None:
        """Replace the armed wake-up with one computed from the current config."""
        now = now or self._clock()
        config = self.config_store.load()
        if self.waker is not None:
            self.waker.disarm()
        if not config.is_active:
            try:
                self.config_store.record_next_run(None)
            except Exception as e:
                logger.warning("trigger.next_run_not_recorded", error=str(e))
            return None
        return self._ensure_armed(config, now)


__all__ = ["AttemptOutcome", "AttemptResult", "TriggerArbiter"]
