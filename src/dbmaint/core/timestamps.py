"""
Clock and identifier utilities (stdlib-only).

Every component that needs "now" takes a :class:`Clock` so that tests
can drive the time of day deterministically. Production code uses
:class:`SystemClock`, which always reports UTC.

STDLIB ONLY.
"""

from __future__ import annotations

import random
import time
from datetime import UTC, datetime
from typing import Protocol, runtime_checkable


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


@runtime_checkable
class Clock(Protocol):
    """Source of the current instant."""

    def now(self) -> datetime:
        """Return a timezone-aware UTC datetime."""
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return utc_now()


def generate_run_id() -> str:
    """
    Generate a ULID-like run identifier.

    Format: 26 characters, Crockford base32, time-sortable.
    """
    timestamp_ms = int(time.time() * 1000)
    timestamp_chars = _encode_base32(timestamp_ms, 10)
    random_part = "".join(random.choices(_ENCODING, k=16))
    return timestamp_chars + random_part


_ENCODING = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_ENCODING_LEN = len(_ENCODING)


def _encode_base32(value: int, length: int) -> str:
    chars = []
    for _ in range(length):
        chars.append(_ENCODING[value % _ENCODING_LEN])
        value //= _ENCODING_LEN
    return "".join(reversed(chars))


__all__ = [
    "Clock",
    "SystemClock",
    "utc_now",
    "generate_run_id",
]
