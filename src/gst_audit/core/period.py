"""Calendar-month reporting periods ("YYYY-MM")."""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime

from gst_audit.core.errors import ValidationError

_PERIOD_RE = re.compile(r"^(\d{4})-(\d{2})$")


@dataclass(frozen=True, order=True)
class Period:
    """A calendar month, the unit of reporting and of send idempotency."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValidationError(f"Invalid month: {self.month}", field="period")

    @classmethod
    def parse(cls, value: str) -> Period:
        """Parse ``"YYYY-MM"``.

        Raises:
            ValidationError: malformed value or month out of range
        """
        match = _PERIOD_RE.match(value.strip()) if isinstance(value, str) else None
        if not match:
            raise ValidationError(f"Invalid period {value!r}, expected YYYY-MM", field="period")
        return cls(int(match.group(1)), int(match.group(2)))

    @classmethod
    def of(cls, moment: date | datetime) -> Period:
        return cls(moment.year, moment.month)

    def previous(self) -> Period:
        if self.month == 1:
            return Period(self.year - 1, 12)
        return Period(self.year, self.month - 1)

    def next(self) -> Period:
        if self.month == 12:
            return Period(self.year + 1, 1)
        return Period(self.year, self.month + 1)

    @property
    def days(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    def start(self) -> datetime:
        """First instant of the month (``YYYY-MM-01 00:00:00``)."""
        return datetime(self.year, self.month, 1, 0, 0, 0)

    def end(self) -> datetime:
        """Last whole second of the month (``YYYY-MM-<last> 23:59:59``)."""
        return datetime(self.year, self.month, self.days, 23, 59, 59)

    @property
    def label(self) -> str:
        """Human label, e.g. ``"March 2024"``."""
        return f"{calendar.month_name[self.month]} {self.year}"

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


__all__ = ["Period"]
