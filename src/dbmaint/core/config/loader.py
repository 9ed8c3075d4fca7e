"""
Settings file loading.

Reads an optional TOML file and feeds it to :class:`MaintenanceSettings`
as initial values; ``DBMAINT_*`` environment variables and ``.env``
entries still override it.

Example ``maintenance.toml``::

    log_level = "INFO"

    [database]
    dsn = "postgresql://maint@db:5432/app"

    [reindex]
    schedule = "0 0 3 ? * SUN"
    tables = ["orders", "events"]

    [cleanup]
    table = "waypoints"
    start_time = "01:00"
    end_time = "05:00"
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from dbmaint.core.errors import ConfigError

from .settings import MaintenanceSettings

CONFIG_ENV_VAR = "DBMAINT_CONFIG"


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path* as TOML.

    Raises:
        ConfigError: if the file is missing or not valid TOML.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}", cause=e) from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}", cause=e) from e


def resolve_config_path(path: Path | str | None = None) -> Path | None:
    """Explicit *path*, else ``$DBMAINT_CONFIG``, else no file."""
    if path:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    return Path(env_path) if env_path else None


def load_settings(path: Path | str | None = None) -> MaintenanceSettings:
    """Load and validate settings.

    Raises:
        ConfigError: if the file cannot be read or values fail validation.
    """
    config_path = resolve_config_path(path)
    values = read_toml(config_path) if config_path else {}
    try:
        return MaintenanceSettings(**values)
    except ValidationError as e:
        source = str(config_path) if config_path else "environment"
        raise ConfigError(f"Invalid configuration ({source}): {e}", cause=e) from e


__all__ = [
    "CONFIG_ENV_VAR",
    "load_settings",
    "read_toml",
    "resolve_config_path",
]
