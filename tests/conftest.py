"""
Shared pytest fixtures and configuration for db-maintenance tests.

This module provides:
- A controllable clock, a scripted store and a recording notifier
- A default cleanup window (01:00-05:00 UTC)
- Environment isolation for settings (no DBMAINT_* variables, no .env)
- structlog reset between tests so log capture stays reliable

Usage:
    Fixtures are auto-discovered by pytest. Simply use them as function
    arguments.
"""

import os
import sys
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

# Ensure dbmaint package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dbmaint.core.logging import clear_context  # noqa: E402
from dbmaint.core.window import TimeWindow  # noqa: E402
from dbmaint.maintenance.report import RunReporter  # noqa: E402
from tests._support.fakes import FakeClock, FakeStore, RecordingNotifier  # noqa: E402


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo any ``configure_logging`` call made by a test."""
    yield
    structlog.reset_defaults()
    clear_context()


@pytest.fixture
def isolated_env(monkeypatch, tmp_path) -> Path:
    """No DBMAINT_* variables and no stray .env file."""
    for key in list(os.environ):
        if key.startswith("DBMAINT_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def clock() -> FakeClock:
    """Clock inside the default window (02:00 UTC)."""
    return FakeClock.at(2, 0)


@pytest.fixture
def window() -> TimeWindow:
    return TimeWindow.parse("01:00", "05:00")


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def reporter() -> RunReporter:
    return RunReporter()


@pytest.fixture
def store() -> FakeStore:
    """Store with nothing to do."""
    return FakeStore()
