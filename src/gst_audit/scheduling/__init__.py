"""
Scheduling: the monthly send and the triggers that drive it.

Manifesto:
    The report must go out exactly once per month even when the host's
    scheduler is unreliable.  Several redundant triggers call one
    idempotent arbiter; a compare-and-swap on the send marker keeps them
    from double-sending.

Architecture:
    ::

        ScheduleConfigStore ──► calculator (next_run / is_due)
                 │
                 ▼
        TriggerArbiter.attempt() ◄── TriggerService ◄── timers, webhook, CLI
                 │
                 ├── SendMarkerStore (claim / confirm / release)
                 └── ReportAggregator → ReportDispatcher

Tags:
    scheduling, idempotency, timers, compare-and-swap
"""

from .arbiter import AttemptOutcome, AttemptResult, TriggerArbiter
from .calculator import due_at, is_due, next_run
from .config import ScheduleConfig, ScheduleConfigStore, normalize_recipients
from .health import TriggerHealthReport, check_trigger_health
from .marker import MarkerState, SendMarkerStore
from .protocol import BackendHealth, TimerBackend, Waker
from .service import TriggerService, TriggerStats
from .timers import IntervalTimer, SingleShotTimer

__all__ = [
    "AttemptOutcome",
    "AttemptResult",
    "BackendHealth",
    "IntervalTimer",
    "MarkerState",
    "ScheduleConfig",
    "ScheduleConfigStore",
    "SendMarkerStore",
    "SingleShotTimer",
    "TimerBackend",
    "TriggerArbiter",
    "TriggerHealthReport",
    "TriggerService",
    "TriggerStats",
    "Waker",
    "check_trigger_health",
    "due_at",
    "is_due",
    "next_run",
    "normalize_recipients",
]
