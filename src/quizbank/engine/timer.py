"""Countdown clock that ends an exam when time runs out.

The timer does not own a thread. It remembers the clock reading of its last
tick while running, and :meth:`CountdownTimer.poll` converts the whole seconds
elapsed since then into ticks. Render layers call ``poll`` on every event, so
all mutations stay on the caller's thread. Stopping the timer drops the anchor,
which cancels any further ticks instead of ignoring them.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

__all__ = [
    "DEFAULT_TIME_LIMIT_MINUTES",
    "CountdownTimer",
    "ExpiryListener",
    "format_clock",
    "resolve_time_limit",
]

logger = logging.getLogger(__name__)

DEFAULT_TIME_LIMIT_MINUTES = 10

Clock = Callable[[], float]
ExpiryListener = Callable[[], None]


def resolve_time_limit(minutes: object) -> int:
    """Convert a user-entered minute count into seconds.

    Anything that is not a positive whole number falls back to
    :data:`DEFAULT_TIME_LIMIT_MINUTES`.
    """

    value: Optional[int] = None
    if isinstance(minutes, bool):
        value = None
    elif isinstance(minutes, int):
        value = minutes
    elif isinstance(minutes, float) and minutes.is_integer():
        value = int(minutes)
    elif isinstance(minutes, str) and minutes.strip().isdigit():
        value = int(minutes.strip())
    if value is None or value <= 0:
        logger.warning(
            "Invalid time limit; using default",
            extra={
                "requested": repr(minutes),
                "default_minutes": DEFAULT_TIME_LIMIT_MINUTES,
            },
        )
        value = DEFAULT_TIME_LIMIT_MINUTES
    return value * 60


def format_clock(seconds: int) -> str:
    """Render a second count as ``HH:MM:SS``."""

    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class CountdownTimer:
    """One-tick-per-second countdown with a single expiry signal."""

    def __init__(
        self,
        time_limit_seconds: int,
        *,
        clock: Clock = time.monotonic,
    ) -> None:
        if time_limit_seconds <= 0:
            raise ValueError("time_limit_seconds must be positive")
        self.time_limit_seconds = int(time_limit_seconds)
        self._remaining = self.time_limit_seconds
        self._clock = clock
        self._anchor: Optional[float] = None
        self._expired = False
        self._listeners: List[ExpiryListener] = []

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    @property
    def elapsed_seconds(self) -> int:
        return self.time_limit_seconds - self._remaining

    @property
    def running(self) -> bool:
        return self._anchor is not None

    @property
    def expired(self) -> bool:
        return self._expired

    def subscribe(self, listener: ExpiryListener) -> None:
        self._listeners.append(listener)

    def start(self) -> None:
        if self.running or self._remaining <= 0:
            return
        self._anchor = self._clock()

    def stop(self) -> None:
        self._anchor = None

    def reset(self) -> None:
        self.stop()
        self._remaining = 0

    def tick(self) -> None:
        """Count down one second; expire when the counter reaches zero."""

        if not self.running:
            return
        self._remaining -= 1
        if self._remaining <= 0:
            self._remaining = 0
            self.stop()
            self._fire_expiry()

    def poll(self) -> int:
        """Apply one tick per whole second elapsed since the last tick."""

        if self._anchor is None:
            return 0
        applied = 0
        now = self._clock()
        while self._anchor is not None and now - self._anchor >= 1.0:
            self._anchor += 1.0
            self.tick()
            applied += 1
        return applied

    def _fire_expiry(self) -> None:
        if self._expired:
            return
        self._expired = True
        logger.info(
            "Timer expired",
            extra={"time_limit_seconds": self.time_limit_seconds},
        )
        for listener in list(self._listeners):
            listener()
