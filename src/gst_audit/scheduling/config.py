"""
Schedule configuration.

:class:`ScheduleConfig` is always well-formed: every way of building one
goes through :meth:`ScheduleConfig.normalized`, which clamps bad values to
safe defaults instead of rejecting them.  A scheduler with a nonsense
configuration would otherwise have no defined next run.

Normalization rules:
    - day_of_month outside 1..28 (or not a number) → 1
    - time_of_day not ``HH:MM`` within 00:00..23:59 → 09:00
    - recipients: trimmed, invalid addresses dropped, duplicates
      (case-insensitive) collapsed to their first occurrence
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from gst_audit.core.logging import get_logger
from gst_audit.core.settings_store import SettingsStore

logger = get_logger(__name__)

DEFAULT_DAY = 1
DEFAULT_HOUR = 9
DEFAULT_MINUTE = 0
MAX_DAY = 28

CONFIG_KEY = "schedule_config"
NEXT_RUN_KEY = "schedule_next_run"

_EMAIL_RE = re.compile(r"^[A-Za-z0-9._%+'-]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)+$")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value)) and ".." not in value


def normalize_recipients(value: str | Iterable[str] | None) -> tuple[str, ...]:
    """Split, validate and de-duplicate recipient addresses, keeping order."""
    if value is None:
        return ()
    if isinstance(value, str):
        candidates = re.split(r"[,;\s]+", value)
    else:
        candidates = [str(v) for v in value]

    seen: set[str] = set()
    result: list[str] = []
    for raw in candidates:
        address = raw.strip()
        if not address:
            continue
        if not is_valid_email(address):
            logger.info("schedule.recipient_dropped", address=address)
            continue
        if address.lower() in seen:
            continue
        seen.add(address.lower())
        result.append(address)
    return tuple(result)


def _normalize_enabled(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _normalize_day(value: Any) -> int:
    try:
        day = int(value)
    except (TypeError, ValueError):
        return DEFAULT_DAY
    return day if 1 <= day <= MAX_DAY else DEFAULT_DAY


def _normalize_time(value: Any) -> tuple[int, int]:
    match = _TIME_RE.match(str(value).strip()) if value is not None else None
    if not match:
        return DEFAULT_HOUR, DEFAULT_MINUTE
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return DEFAULT_HOUR, DEFAULT_MINUTE
    return hour, minute


@dataclass(frozen=True)
class ScheduleConfig:
    """When, and to whom, the monthly report is sent."""

    enabled: bool = False
    recipients: tuple[str, ...] = ()
    day_of_month: int = DEFAULT_DAY
    hour: int = DEFAULT_HOUR
    minute: int = DEFAULT_MINUTE

    @classmethod
    def normalized(
        cls,
        *,
        enabled: Any = False,
        recipients: str | Iterable[str] | None = None,
        day_of_month: Any = DEFAULT_DAY,
        time_of_day: Any = "09:00",
    ) -> ScheduleConfig:
        """Build a config, clamping invalid values to the defaults."""
        hour, minute = _normalize_time(time_of_day)
        return cls(
            enabled=_normalize_enabled(enabled),
            recipients=normalize_recipients(recipients),
            day_of_month=_normalize_day(day_of_month),
            hour=hour,
            minute=minute,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ScheduleConfig:
        data = data or {}
        return cls.normalized(
            enabled=data.get("enabled", False),
            recipients=data.get("recipients"),
            day_of_month=data.get("day_of_month", DEFAULT_DAY),
            time_of_day=data.get("time_of_day", "09:00"),
        )

    @property
    def time_of_day(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"

    @property
    def is_active(self) -> bool:
        """Enabled and has somewhere to send the report."""
        return self.enabled and bool(self.recipients)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["recipients"] = list(self.recipients)
        d.pop("hour")
        d.pop("minute")
        d["time_of_day"] = self.time_of_day
        return d


class ScheduleConfigStore:
    """Load and update the persisted :class:`ScheduleConfig`."""

    def __init__(self, settings: SettingsStore):
        self._settings = settings

    def load(self) -> ScheduleConfig:
        return ScheduleConfig.from_dict(self._settings.get(CONFIG_KEY))

    def update(
        self,
        *,
        enabled: bool | None = None,
        recipients: str | Iterable[str] | None = None,
        day_of_month: Any = None,
        time_of_day: Any = None,
    ) -> ScheduleConfig:
        """Merge the given fields into the stored config and persist it.

        Fields left as ``None`` keep their current value.
        """
        current = self.load().to_dict()
        if enabled is not None:
            current["enabled"] = enabled
        if recipients is not None:
            current["recipients"] = recipients
        if day_of_month is not None:
            current["day_of_month"] = day_of_month
        if time_of_day is not None:
            current["time_of_day"] = time_of_day

        config = ScheduleConfig.from_dict(current)
        self._settings.set(CONFIG_KEY, config.to_dict())
        logger.info(
            "schedule.config_updated",
            enabled=config.enabled,
            recipients=len(config.recipients),
            day_of_month=config.day_of_month,
            time_of_day=config.time_of_day,
        )
        return config

    def next_run(self) -> datetime | None:
        """The last wake-up instant recorded by the arbiter."""
        value = self._settings.get(NEXT_RUN_KEY)
        if not value:
            return None
        try:
            return datetime.fromisoformat(value)
        except (TypeError, ValueError):
            return None

    def record_next_run(self, at: datetime | None) -> None:
        if at is None:
            self._settings.delete(NEXT_RUN_KEY)
        else:
            self._settings.set(NEXT_RUN_KEY, at.isoformat())


__all__ = [
    "ScheduleConfig",
    "ScheduleConfigStore",
    "normalize_recipients",
    "is_valid_email",
]
