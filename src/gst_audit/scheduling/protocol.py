"""Timer protocols.

Two roles:

- :class:`TimerBackend`: something that calls a callback on its own
  schedule (the interval health checks).
- :class:`Waker`: something that can be asked to fire once at a given
  instant (the single-shot timer the arbiter re-arms after every attempt).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

FireCallback = Callable[[], Any]
"""Callback invoked when a timer fires. Exceptions are logged by the timer."""


@runtime_checkable
class TimerBackend(Protocol):
    """A timer that calls back on its own schedule."""

    name: str

    def start(self, callback: FireCallback) -> None:
        """Begin firing *callback*. Must not block."""
        ...

    def stop(self) -> None:
        """Stop firing. Waits briefly for an in-flight callback."""
        ...

    def health(self) -> dict[str, Any]:
        """Return a JSON-serialisable health snapshot."""
        ...


@runtime_checkable
class Waker(Protocol):
    """A one-shot wake-up that can be (re)armed."""

    def next_wakeup(self) -> datetime | None:
        """The armed instant, or ``None`` when nothing is armed."""
        ...

    def arm(self, at: datetime) -> None:
        """Fire once at *at*, replacing any armed wake-up."""
        ...

    def disarm(self) -> None:
        """Cancel the armed wake-up, if any."""
        ...


@dataclass
class BackendHealth:
    """Structured timer health."""

    healthy: bool
    backend: str
    fire_count: int = 0
    last_fired: datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "backend": self.backend,
            "fire_count": self.fire_count,
            "last_fired": self.last_fired.isoformat() if self.last_fired else None,
            **self.extra,
        }


__all__ = ["FireCallback", "TimerBackend", "Waker", "BackendHealth"]
