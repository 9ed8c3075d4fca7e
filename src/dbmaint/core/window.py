"""Maintenance window gate.

A :class:`TimeWindow` is a daily ``[start, end)`` interval of UTC
time-of-day during which destructive operations may run. The gate is
consulted twice for cleanup runs: once when the trigger fires (veto) and
again at the top of every batch iteration (stop condition). The two
checks sample the clock independently.

Windows never wrap past midnight: ``start`` must be strictly before
``end`` on the same day.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, time

from dbmaint.core.errors import InvalidConfigError
from dbmaint.core.timestamps import Clock


def parse_time_of_day(value: str, *, key: str = "time") -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS`` into a naive :class:`datetime.time`.

    Raises:
        InvalidConfigError: if *value* is not a valid time of day.
    """
    text = value.strip() if isinstance(value, str) else value
    if not isinstance(text, str) or text.count(":") not in (1, 2):
        raise InvalidConfigError(key, value, "expected HH:MM or HH:MM:SS")
    try:
        parsed = time.fromisoformat(text)
    except ValueError as e:
        raise InvalidConfigError(key, value, "expected HH:MM or HH:MM:SS", cause=e) from e
    if parsed.tzinfo is not None:
        raise InvalidConfigError(key, value, "time zone offsets are not supported, windows are UTC")
    return parsed


@dataclass(frozen=True)
class TimeWindow:
    """Daily ``[start, end)`` interval in UTC."""

    start: time
    end: time

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise InvalidConfigError(
                "window",
                f"{self.start.isoformat()}-{self.end.isoformat()}",
                "start must be before end, windows cannot wrap midnight",
            )

    @classmethod
    def parse(cls, start: str, end: str) -> TimeWindow:
        """Build a window from configuration strings such as ``"01:00"``."""
        return cls(
            start=parse_time_of_day(start, key="start_time"),
            end=parse_time_of_day(end, key="end_time"),
        )

    def contains(self, now: time) -> bool:
        return allows(now, self)

    def is_open(self, clock: Clock) -> bool:
        """Sample *clock* and check the current UTC time of day."""
        return allows(time_of_day(clock.now()), self)

    def __str__(self) -> str:
        return f"{self.start.strftime('%H:%M:%S')}-{self.end.strftime('%H:%M:%S')}"


def allows(now: time, window: TimeWindow) -> bool:
    """Return True iff ``window.start <= now < window.end``."""
    return window.start <= now < window.end


def time_of_day(instant: datetime) -> time:
    """Naive UTC time of day of an aware or naive-UTC datetime."""
    if instant.tzinfo is not None:
        instant = instant.astimezone(UTC)
    return instant.time().replace(tzinfo=None)


__all__ = [
    "TimeWindow",
    "allows",
    "parse_time_of_day",
    "time_of_day",
]
