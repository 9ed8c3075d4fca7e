"""Configuration for db-maintenance."""

from .loader import CONFIG_ENV_VAR, load_settings
from .settings import (
    CleanupSettings,
    DatabaseSettings,
    MaintenanceSettings,
    ReindexSettings,
    SchedulerSettings,
    TelegramSettings,
    VacuumSettings,
)

__all__ = [
    "CONFIG_ENV_VAR",
    "load_settings",
    "MaintenanceSettings",
    "DatabaseSettings",
    "TelegramSettings",
    "SchedulerSettings",
    "VacuumSettings",
    "ReindexSettings",
    "CleanupSettings",
]
