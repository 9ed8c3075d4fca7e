"""APScheduler-based periodic trigger.

Wraps APScheduler 3.x ``BackgroundScheduler`` to provide the
``PeriodicTrigger`` port. Each registered job becomes one APScheduler
cron job running on a shared thread pool:

* ``max_instances=1``: a job never overlaps itself; an overlapping fire
  is reported as missed
* ``coalesce=True``: several late fires collapse into one run; APScheduler
  emits no missed event for the collapsed ones, so they are not logged
* ``misfire_grace_time``: fires later than this are dropped and reported
  through ``on_missed``

Scheduler events are translated into :class:`TriggerListeners` calls so
the scheduler facade never deals with APScheduler types.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from apscheduler.events import (
    EVENT_JOB_ERROR,
    EVENT_JOB_EXECUTED,
    EVENT_JOB_MAX_INSTANCES,
    EVENT_JOB_MISSED,
    JobEvent,
)
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler

from dbmaint.core.logging import get_logger
from dbmaint.core.timestamps import Clock, SystemClock
from dbmaint.scheduling.cron import parse_cron
from dbmaint.scheduling.protocol import FireCallback, TriggerListeners, VetoPredicate

logger = get_logger(__name__)

_VETOED = object()


class APSchedulerTrigger:
    """``PeriodicTrigger`` backed by an APScheduler ``BackgroundScheduler``.

    Example::

        >>> trigger = APSchedulerTrigger(TriggerListeners(on_error=log_failure))
        >>> trigger.register("vacuum", "0 0 3 * * ?", run_vacuum)
        >>> trigger.start()
        >>> # … later …
        >>> trigger.stop()
    """

    name: str = "apscheduler"

    def __init__(
        self,
        listeners: TriggerListeners | None = None,
        *,
        max_workers: int = 10,
        misfire_grace_seconds: int = 60,
        start_delay_seconds: float = 5,
        timezone: str = "UTC",
        clock: Clock | None = None,
        scheduler: Any = None,
    ) -> None:
        self.listeners = listeners or TriggerListeners()
        self.timezone = timezone
        self.start_delay = timedelta(seconds=start_delay_seconds)
        self.clock = clock or SystemClock()

        if scheduler is None:
            scheduler = BackgroundScheduler(
                executors={"default": ThreadPoolExecutor(max_workers)},
                job_defaults={
                    "coalesce": True,
                    "max_instances": 1,
                    "misfire_grace_time": misfire_grace_seconds,
                },
                timezone=timezone,
            )
        self._scheduler = scheduler
        self._scheduler.add_listener(
            self._on_event,
            EVENT_JOB_EXECUTED | EVENT_JOB_ERROR | EVENT_JOB_MISSED | EVENT_JOB_MAX_INSTANCES,
        )

    # ------------------------------------------------------------------
    # PeriodicTrigger port
    # ------------------------------------------------------------------

    def register(
        self,
        job_id: str,
        schedule: str,
        on_fire: FireCallback,
        veto: VetoPredicate | None = None,
    ) -> None:
        """Register *on_fire* as a cron job.

        The first fire happens no earlier than ``start_delay_seconds``
        after registration.

        Raises:
            ScheduleError: If *schedule* is not a valid cron expression.
        """
        trigger = parse_cron(
            schedule,
            timezone=self.timezone,
            start_date=self.clock.now() + self.start_delay,
        )
        self._scheduler.add_job(
            self._runner(job_id, on_fire, veto),
            trigger=trigger,
            id=job_id,
            name=job_id,
            replace_existing=True,
        )
        logger.info("trigger.registered", job=job_id, schedule=schedule, vetoed_by_window=veto is not None)

    def start(self) -> None:
        self._scheduler.start()
        logger.info("trigger.started", backend=self.name, jobs=self.job_ids())

    def stop(self) -> None:
        """Stop the scheduler, waiting for running jobs to finish."""
        if self._scheduler.running:
            self._scheduler.shutdown(wait=True)
            logger.info("trigger.stopped", backend=self.name)

    def job_ids(self) -> list[str]:
        return [job.id for job in self._scheduler.get_jobs()]

    def health(self) -> dict[str, Any]:
        running = bool(getattr(self._scheduler, "running", False))
        return {
            "healthy": running,
            "backend": self.name,
            "scheduled_jobs": len(self._scheduler.get_jobs()),
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _runner(self, job_id: str, on_fire: FireCallback, veto: VetoPredicate | None) -> FireCallback:
        def run() -> Any:
            if veto is not None and not veto():
                self.listeners.on_vetoed(job_id)
                return _VETOED
            return on_fire()

        return run

    def _on_event(self, event: JobEvent) -> None:
        if event.code == EVENT_JOB_EXECUTED:
            if getattr(event, "retval", None) is not _VETOED:
                self.listeners.on_executed(event.job_id)
        elif event.code == EVENT_JOB_ERROR:
            self.listeners.on_error(event.job_id, event.exception)
        elif event.code in (EVENT_JOB_MISSED, EVENT_JOB_MAX_INSTANCES):
            scheduled = getattr(event, "scheduled_run_time", None)
            if scheduled is None:
                run_times = getattr(event, "scheduled_run_times", None) or [None]
                scheduled = run_times[0]
            self.listeners.on_missed(event.job_id, scheduled)


__all__ = ["APSchedulerTrigger"]
