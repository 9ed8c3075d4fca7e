"""Periodic trigger port.

┌──────────────────────────────────────────────────────────────────────────────┐
│  PERIODIC TRIGGER PORT                                                        │
│                                                                               │
│  The trigger decides WHEN a job fires. The scheduler facade decides WHAT      │
│  happens on each fire and owns every listener callback.                       │
│                                                                               │
│   register(job_id, schedule, on_fire, veto=None)                              │
│                                                                               │
│   cron tick ──► veto()? ── False ──► listeners.on_vetoed(job_id)              │
│                   │                                                           │
│                   └── True / absent ──► on_fire()                             │
│                                           ├── ok     ──► on_executed(job_id)  │
│                                           └── raises ──► on_error(job_id, e)  │
│                                                                               │
│   fired late / skipped ──► on_missed(job_id, scheduled_at)                    │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

FireCallback = Callable[[], Any]
VetoPredicate = Callable[[], bool]
"""Returns ``False`` to skip a fire."""


def _ignore(*args: Any) -> None:
    return None


@dataclass
class TriggerListeners:
    """Callbacks the trigger reports to. Unset hooks are no-ops."""

    on_executed: Callable[[str], None] = _ignore
    on_error: Callable[[str, BaseException], None] = _ignore
    on_missed: Callable[[str, datetime | None], None] = _ignore
    on_vetoed: Callable[[str], None] = _ignore


@runtime_checkable
class PeriodicTrigger(Protocol):
    """Minimal contract for the component that fires jobs on a schedule."""

    name: str
    listeners: TriggerListeners

    def register(
        self,
        job_id: str,
        schedule: str,
        on_fire: FireCallback,
        veto: VetoPredicate | None = None,
    ) -> None:
        """Register *on_fire* to run on *schedule*.

        Raises:
            ScheduleError: If *schedule* cannot be parsed.
        """
        ...

    def start(self) -> None:
        ...

    def stop(self) -> None:
        """Stop firing and wait for in-flight jobs to finish."""
        ...

    def job_ids(self) -> list[str]:
        ...


__all__ = [
    "FireCallback",
    "VetoPredicate",
    "TriggerListeners",
    "PeriodicTrigger",
]
