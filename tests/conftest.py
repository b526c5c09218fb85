"""Shared fixtures for lift-cycle tests."""

from datetime import datetime

import pytest

from lift_cycle.io.cache import QueryCache
from lift_cycle.io.seed import seed_workbook
from lift_cycle.io.workbook import Workbook
from lift_cycle.logging_setup import reset_logging
from lift_cycle.service import WorkoutService

FIXED_NOW = datetime(2026, 3, 2, 18, 30, 0)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Keep the package logger propagating so caplog sees records."""
    reset_logging()
    yield
    reset_logging()


class FakeClock:
    """Settable time source for QueryCache (seconds since epoch)."""

    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def workbook(tmp_path):
    """Empty workbook (all sheets, headers only) with a memory cache."""
    wb = Workbook(tmp_path / "workbook", QueryCache(ttl_seconds=300))
    wb.init()
    return wb


@pytest.fixture
def sample_workbook(workbook):
    """Workbook holding the sample template and models."""
    seed_workbook(workbook)
    return workbook


@pytest.fixture
def now():
    """The service clock's fixed "now"."""
    return FIXED_NOW


@pytest.fixture
def service(sample_workbook, now):
    return WorkoutService(sample_workbook, user_id="alex", clock=lambda: now)
