"""
Pytest configuration and shared fixtures for DailyHabit tests.
"""

import asyncio
from datetime import date, datetime
from pathlib import Path
import sys

import pytest
import pytz


# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dailyhabit.config import load_config  # noqa: E402
from dailyhabit.core.models import DailyMetrics, Habit  # noqa: E402
from dailyhabit.services.document_store import InMemoryDocumentStore  # noqa: E402
from dailyhabit.services.sync_service import SyncGateway  # noqa: E402
from dailyhabit.services.tracker_service import HabitTracker  # noqa: E402


FIXED_NOW = datetime(2024, 6, 15, 9, 30, tzinfo=pytz.utc)


async def _settle(rounds: int = 10):
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def settle():
    """Coroutine function that lets background tasks (writes, subscription pumps) run"""
    return _settle


@pytest.fixture
def env(tmp_path):
    """Environment mapping that keeps every directory inside tmp_path"""
    return {
        "DATA_DIR": str(tmp_path / "data"),
        "EXPORT_DIR": str(tmp_path / "exports"),
        "LOG_DIR": str(tmp_path / "logs"),
    }


@pytest.fixture
def config(env):
    return load_config(env)


@pytest.fixture
def memory_store():
    return InMemoryDocumentStore()


@pytest.fixture
def gateway(memory_store, config):
    return SyncGateway(memory_store, config.sync)


@pytest.fixture
def tracker(config, gateway):
    """Tracker on an in-memory backend with the clock pinned to 2024-06-15"""
    return HabitTracker(config, gateway=gateway, clock=lambda: FIXED_NOW)


@pytest.fixture
def local_tracker(config):
    """Tracker without any sync backend"""
    return HabitTracker(config, clock=lambda: FIXED_NOW)


@pytest.fixture
def sample_habits():
    return [
        Habit(id=1, name="Read", goal=100, completions={"2024-06-01", "2024-06-02"}),
        Habit(id=2, name="Run", goal=80, completions={"2024-06-01"}),
        Habit(id="abc", name="Meditate", goal=50),
    ]


@pytest.fixture
def sample_metrics():
    return {
        "2024-06-01": DailyMetrics(mood=4, sleep_hours=6),
        "2024-06-02": DailyMetrics(sleep_hours=8),
        "2024-06-03": DailyMetrics(mood=2, sleep_hours=0),
    }


@pytest.fixture
def june_2024():
    return date(2024, 6, 15)
