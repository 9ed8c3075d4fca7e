"""Maintenance scheduler facade.

Manifesto:
    The facade turns configuration into registered jobs and owns every
    callback the trigger reports to. The trigger only decides WHEN; the
    facade decides WHAT runs, whether the window allows it, and how the
    outcome is logged.

┌──────────────────────────────────────────────────────────────────────────────┐
│  MAINTENANCE SCHEDULER                                                        │
│                                                                               │
│   settings ──► build_descriptor(kind) ──► JobDescriptor per enabled job       │
│                     │ bad window / bad cron ──► job.config_invalid (skipped)  │
│                     ▼                                                         │
│   add_job(job, cron, window?) ──► trigger.register(id, cron, on_fire, veto)   │
│                                                                               │
│   on_fire ──► execute_run(job, notifier, reporter)                            │
│                                                                               │
│   Listeners (owned here):                                                     │
│   ├── on_vetoed   ──► info   job.skipped_outside_window                       │
│   ├── on_executed ──► info   job.executed                                     │
│   ├── on_error    ──► error  job.failed                                       │
│   └── on_missed   ──► warning job.misfired                                    │
└──────────────────────────────────────────────────────────────────────────────┘

Tags:
    db-maintenance, scheduling, facade, apscheduler
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from dbmaint.core.adapters.protocol import StoreGateway
from dbmaint.core.config.settings import MaintenanceSettings
from dbmaint.core.errors import ConfigError, MaintenanceError, ScheduleError, error_details
from dbmaint.core.logging import get_logger
from dbmaint.core.models import JobDescriptor, JobKind
from dbmaint.core.timestamps import Clock, SystemClock
from dbmaint.core.window import TimeWindow, time_of_day
from dbmaint.framework.notify.protocol import Notifier
from dbmaint.maintenance.base import MaintenanceJob
from dbmaint.maintenance.cleanup import CleanupJob
from dbmaint.maintenance.lifecycle import RunOutcome, RunState, execute_run
from dbmaint.maintenance.reindex import ReindexJob
from dbmaint.maintenance.report import RunReporter
from dbmaint.maintenance.vacuum import VacuumJob
from dbmaint.scheduling.apscheduler_backend import APSchedulerTrigger
from dbmaint.scheduling.protocol import PeriodicTrigger, TriggerListeners

logger = get_logger(__name__)


@dataclass
class SchedulerStats:
    """Counters for the lifetime of one scheduler."""

    runs_completed: int = 0
    runs_failed: int = 0
    runs_vetoed: int = 0
    misfires: int = 0


@dataclass(frozen=True)
class _Registration:
    job: MaintenanceJob
    schedule: str
    window: TimeWindow | None


class MaintenanceScheduler:
    """Registers maintenance jobs on a periodic trigger and observes them.

    Example:
        >>> scheduler = MaintenanceScheduler(APSchedulerTrigger(), notifier)
        >>> scheduler.add_job(VacuumJob(store), "0 0 3 * * ?")
        >>> scheduler.start()
        >>> # Later...
        >>> scheduler.stop()
    """

    def __init__(
        self,
        trigger: PeriodicTrigger,
        notifier: Notifier,
        reporter: RunReporter | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        self.trigger = trigger
        self.notifier = notifier
        self.reporter = reporter or RunReporter()
        self.clock = clock or SystemClock()

        self.trigger.listeners = TriggerListeners(
            on_executed=self._on_executed,
            on_error=self._on_error,
            on_missed=self._on_missed,
            on_vetoed=self._on_vetoed,
        )

        self._registrations: dict[str, _Registration] = {}
        self._states: dict[str, RunState] = {}
        self._config_errors: dict[str, str] = {}
        self._stats = SchedulerStats()
        self._lock = threading.Lock()
        self._running = False

    # === Registration ===

    def add_job(self, job: MaintenanceJob, schedule: str, *, window: TimeWindow | None = None) -> bool:
        """Register *job* on *schedule*, vetoed outside *window* if given.

        A job whose schedule cannot be parsed is logged and left out;
        returns ``False`` in that case.
        """
        veto = None
        if window is not None:
            veto = lambda: self._window_allows(window)  # noqa: E731

        try:
            self.trigger.register(job.id, schedule, lambda: self._run(job.id), veto)
        except MaintenanceError as e:
            self.record_config_error(job.id, e)
            return False

        self._registrations[job.id] = _Registration(job, schedule, window)
        self._states[job.id] = RunState.SCHEDULED
        logger.info("job.scheduled", job=job.id, kind=job.kind.value, schedule=schedule, window=str(window) if window else None)
        return True

    def record_config_error(self, job_id: str, error: MaintenanceError) -> None:
        """Log a configuration failure that keeps *job_id* from being scheduled."""
        self._config_errors[job_id] = str(error)
        logger.error("job.config_invalid", job=job_id, **error_details(error))

    @property
    def job_ids(self) -> list[str]:
        return list(self._registrations)

    @property
    def config_errors(self) -> dict[str, str]:
        return dict(self._config_errors)

    # === Lifecycle ===

    def start(self) -> None:
        if self._running:
            logger.warning("scheduler.already_running")
            return
        self.trigger.start()
        self._running = True
        logger.info("scheduler.started", jobs=self.job_ids, skipped=sorted(self._config_errors))

    def stop(self) -> None:
        """Stop the trigger; in-flight runs finish first."""
        if not self._running:
            return
        logger.info("scheduler.stopping")
        self.trigger.stop()
        self._running = False
        logger.info("scheduler.stopped", **self.stats())

    @property
    def is_running(self) -> bool:
        return self._running

    # === Manual fire ===

    def fire(self, job_id: str) -> RunOutcome | None:
        """Run *job_id* now, through the same veto and lifecycle.

        Returns ``None`` when the window vetoes the run. Job failures are
        raised to the caller.
        """
        registration = self._registrations.get(job_id)
        if registration is None:
            raise ScheduleError(f"Unknown job: {job_id!r}").with_context(job=job_id)

        if registration.window is not None and not self._window_allows(registration.window):
            self._on_vetoed(job_id)
            return None
        try:
            outcome = self._run(job_id)
        except Exception as e:
            self._on_error(job_id, e)
            raise
        self._on_executed(job_id)
        return outcome

    # === Observation ===

    def state(self, job_id: str) -> RunState | None:
        return self._states.get(job_id)

    def stats(self) -> dict[str, Any]:
        return {
            "runs_completed": self._stats.runs_completed,
            "runs_failed": self._stats.runs_failed,
            "runs_vetoed": self._stats.runs_vetoed,
            "misfires": self._stats.misfires,
        }

    # === Internals ===

    def _run(self, job_id: str) -> RunOutcome:
        registration = self._registrations[job_id]
        return execute_run(
            registration.job,
            self.notifier,
            self.reporter,
            on_state=self._set_state,
        )

    def _window_allows(self, window: TimeWindow) -> bool:
        return window.is_open(self.clock)

    def _set_state(self, job_id: str, state: RunState) -> None:
        with self._lock:
            self._states[job_id] = state

    def _on_vetoed(self, job_id: str) -> None:
        registration = self._registrations.get(job_id)
        window = registration.window if registration else None
        self._set_state(job_id, RunState.VETOED)
        with self._lock:
            self._stats.runs_vetoed += 1
        logger.info(
            "job.skipped_outside_window",
            job=job_id,
            time=time_of_day(self.clock.now()).isoformat(timespec="seconds"),
            window=str(window) if window else None,
        )

    def _on_executed(self, job_id: str) -> None:
        with self._lock:
            self._stats.runs_completed += 1
        logger.info("job.executed", job=job_id)

    def _on_error(self, job_id: str, error: BaseException) -> None:
        with self._lock:
            self._stats.runs_failed += 1
        logger.error("job.failed", job=job_id, **error_details(error))

    def _on_missed(self, job_id: str, scheduled_at: datetime | None) -> None:
        with self._lock:
            self._stats.misfires += 1
        logger.warning(
            "job.misfired",
            job=job_id,
            scheduled_at=scheduled_at.isoformat() if scheduled_at else None,
        )


# =============================================================================
# Construction from settings
# =============================================================================


def build_descriptor(kind: JobKind, settings: MaintenanceSettings) -> JobDescriptor:
    """Descriptor for *kind* from *settings*.

    Raises:
        ConfigError: If the cleanup window is unparseable or inverted.
    """
    if kind is JobKind.VACUUM:
        section = settings.vacuum
        return JobDescriptor(id="vacuum", kind=kind, cron_expression=section.schedule, enabled=section.enabled)
    if kind is JobKind.REINDEX:
        section = settings.reindex
        return JobDescriptor(
            id="reindex",
            kind=kind,
            cron_expression=section.schedule,
            enabled=section.enabled,
            tables=tuple(section.tables),
        )

    section = settings.cleanup
    window = TimeWindow.parse(section.start_time, section.end_time)
    return JobDescriptor(
        id="cleanup",
        kind=kind,
        cron_expression=section.schedule,
        enabled=section.enabled,
        retention_months=section.retention_months,
        batch_size=section.batch_size,
        window=window,
    )


def build_job(descriptor: JobDescriptor, store: StoreGateway, clock: Clock | None = None) -> MaintenanceJob:
    if descriptor.kind is JobKind.VACUUM:
        return VacuumJob(store, clock=clock, job_id=descriptor.id)
    if descriptor.kind is JobKind.REINDEX:
        return ReindexJob(store, descriptor.tables, clock=clock, job_id=descriptor.id)
    if descriptor.window is None or descriptor.retention_months is None:
        raise ConfigError("Cleanup job requires a window and a retention period").with_context(job=descriptor.id)
    return CleanupJob(
        store,
        descriptor.window,
        retention_months=descriptor.retention_months,
        clock=clock,
        job_id=descriptor.id,
    )


def create_scheduler(
    settings: MaintenanceSettings,
    store: StoreGateway,
    notifier: Notifier,
    *,
    trigger: PeriodicTrigger | None = None,
    clock: Clock | None = None,
) -> MaintenanceScheduler:
    """Build a :class:`MaintenanceScheduler` with every enabled job registered.

    A configuration failure disables only the affected job.
    """
    clock = clock or SystemClock()
    if trigger is None:
        trigger = APSchedulerTrigger(
            max_workers=settings.scheduler.max_workers,
            misfire_grace_seconds=settings.scheduler.misfire_grace_seconds,
            start_delay_seconds=settings.scheduler.start_delay_seconds,
            timezone=settings.scheduler.timezone,
            clock=clock,
        )
    scheduler = MaintenanceScheduler(trigger, notifier, clock=clock)

    for kind in JobKind:
        if not getattr(settings, kind.value).enabled:
            logger.info("job.disabled", job=kind.value)
            continue

        try:
            descriptor = build_descriptor(kind, settings)
        except MaintenanceError as e:
            scheduler.record_config_error(kind.value, e)
            continue

        try:
            job = build_job(descriptor, store, clock)
        except MaintenanceError as e:
            scheduler.record_config_error(descriptor.id, e)
            continue
        scheduler.add_job(job, descriptor.cron_expression, window=descriptor.window)

    return scheduler


__all__ = [
    "MaintenanceScheduler",
    "SchedulerStats",
    "build_descriptor",
    "build_job",
    "create_scheduler",
]
