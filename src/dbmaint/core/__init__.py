"""Core primitives: errors, logging, clock, window gate, models, store adapters."""

from dbmaint.core.errors import (
    ConfigError,
    DatabaseConnectionError,
    DatabaseError,
    InvalidConfigError,
    MaintenanceError,
    NotifierError,
    ScheduleError,
)
from dbmaint.core.models import (
    CleanupStat,
    JobDescriptor,
    JobKind,
    MaintenanceRun,
    ReindexStat,
    StopReason,
    VacuumStat,
)
from dbmaint.core.timestamps import Clock, SystemClock, utc_now
from dbmaint.core.window import TimeWindow, allows, parse_time_of_day

__all__ = [
    # Errors
    "MaintenanceError",
    "ConfigError",
    "InvalidConfigError",
    "DatabaseError",
    "DatabaseConnectionError",
    "NotifierError",
    "ScheduleError",
    # Models
    "JobKind",
    "JobDescriptor",
    "MaintenanceRun",
    "VacuumStat",
    "ReindexStat",
    "CleanupStat",
    "StopReason",
    # Time
    "Clock",
    "SystemClock",
    "utc_now",
    "TimeWindow",
    "allows",
    "parse_time_of_day",
]
