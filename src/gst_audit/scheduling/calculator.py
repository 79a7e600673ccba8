"""
Schedule arithmetic.

Pure functions over a :class:`~gst_audit.scheduling.config.ScheduleConfig`
and a reference instant.  Nothing here reads the clock or the database, so
the same inputs always produce the same output.

``day_of_month`` is capped at 28 by the config, so the configured day
exists in every month and no clamping to month length is needed.

Examples:
    >>> from datetime import datetime
    >>> cfg = ScheduleConfig(enabled=True, day_of_month=1, hour=9, minute=0)
    >>> next_run(cfg, datetime(2024, 3, 1, 8, 59))
    datetime.datetime(2024, 3, 1, 9, 0)
    >>> next_run(cfg, datetime(2024, 3, 1, 9, 0))
    datetime.datetime(2024, 4, 1, 9, 0)
    >>> next_run(cfg, datetime(2024, 12, 15))
    datetime.datetime(2025, 1, 1, 9, 0)
"""

from __future__ import annotations

from datetime import datetime

from gst_audit.core.period import Period
from gst_audit.scheduling.config import ScheduleConfig


def due_at(config: ScheduleConfig, period: Period, tzinfo=None) -> datetime:
    """The configured send instant within *period*."""
    return datetime(
        period.year,
        period.month,
        config.day_of_month,
        config.hour,
        config.minute,
        tzinfo=tzinfo,
    )


def is_due(config: ScheduleConfig, now: datetime) -> bool:
    """True once *now* has reached this month's send instant."""
    return now >= due_at(config, Period.of(now), now.tzinfo)


def next_run(config: ScheduleConfig, now: datetime) -> datetime:
    """Next send instant strictly after *now*.

    This month's instant if it is still ahead, otherwise the same day and
    time next month.  The result carries *now*'s tzinfo.
    """
    period = Period.of(now)
    candidate = due_at(config, period, now.tzinfo)
    if candidate <= now:
        candidate = due_at(config, period.next(), now.tzinfo)
    return candidate


__all__ = ["due_at", "is_due", "next_run"]
