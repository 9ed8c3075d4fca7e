"""Job scheduling: cron parsing, APScheduler trigger and the scheduler facade."""

from dbmaint.scheduling.apscheduler_backend import APSchedulerTrigger
from dbmaint.scheduling.cron import parse_cron
from dbmaint.scheduling.protocol import PeriodicTrigger, TriggerListeners
from dbmaint.scheduling.service import (
    MaintenanceScheduler,
    SchedulerStats,
    build_descriptor,
    build_job,
    create_scheduler,
)

__all__ = [
    "PeriodicTrigger",
    "TriggerListeners",
    "APSchedulerTrigger",
    "parse_cron",
    "MaintenanceScheduler",
    "SchedulerStats",
    "build_descriptor",
    "build_job",
    "create_scheduler",
]
