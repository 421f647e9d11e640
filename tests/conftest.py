"""Shared test fixtures and configuration.

Provides in-memory stores, a controllable clock and config isolation so tests
never touch real platform directories.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from unittest.mock import patch

import pytest

from taskit_cli.models.config_models import PomodoroConfig
from taskit_cli.models.focus.engine import TimerEngine
from taskit_cli.models.focus.scheduler import TickScheduler
from taskit_cli.models.focus.store import MemoryStore


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeConfigStore:
    """In-memory Pomodoro configuration store."""

    def __init__(self, config: PomodoroConfig | None = None):
        self.config = config or PomodoroConfig()
        self.writes = 0

    def get(self) -> PomodoroConfig:
        return self.config

    def set(self, config: PomodoroConfig) -> None:
        self.config = config
        self.writes += 1


FIXED_NOW = datetime(2026, 10, 19, 9, 0, 0, tzinfo=UTC)


def fixed_now() -> datetime:
    return FIXED_NOW


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def state_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def config_store() -> FakeConfigStore:
    return FakeConfigStore(
        PomodoroConfig(
            total_duration_minutes=70,
            focus_minutes=25,
            short_break_minutes=5,
            long_break_minutes=15,
            long_break_interval=2,
        )
    )


@pytest.fixture()
def make_engine(state_store, config_store, clock):
    """Factory building engines that share the same stores and clock."""

    def _make(**kwargs) -> TimerEngine:
        kwargs.setdefault("state_store", state_store)
        kwargs.setdefault("config_store", config_store)
        kwargs.setdefault("scheduler", TickScheduler(clock=clock))
        kwargs.setdefault("now", fixed_now)
        return TimerEngine(**kwargs)

    return _make


@pytest.fixture()
def engine(make_engine) -> TimerEngine:
    return make_engine()


@pytest.fixture()
def tmp_config(tmp_path):
    """Provide a real ConfigService backed by a temporary directory.

    Patches platform dirs so config/data files land in *tmp_path* only.
    Also clears the lru_cache so each test gets a fresh service instance.
    """
    from taskit_cli.services.config_service import get_config_service

    tmpdir = str(tmp_path)
    get_config_service.cache_clear()
    with patch("taskit_cli.services.config_service.user_config_dir", return_value=tmpdir):
        with patch("taskit_cli.services.config_service.user_data_dir", return_value=tmpdir):
            yield get_config_service()
    get_config_service.cache_clear()


@pytest.fixture(autouse=True)
def isolate_logger(tmp_path):
    """Send the application log file to tmp_path."""
    import taskit_cli.utils.logger as logger_mod

    logger_mod._logger = None
    logging.getLogger("taskit_cli").handlers.clear()
    with patch("taskit_cli.utils.logger.user_log_dir", return_value=str(tmp_path / "logs")):
        yield
    logger_mod._logger = None
    logging.getLogger("taskit_cli").handlers.clear()
    logging.getLogger("taskit_cli").propagate = True
    logging.getLogger("taskit_cli.models.focus").setLevel(logging.NOTSET)
