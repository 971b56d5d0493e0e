import random
from datetime import datetime, timezone

import pytest

from mnemos.domain.scheduling.config import SchedulerConfig

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    """A clock frozen at NOW."""
    return lambda: NOW


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def no_fuzz_config():
    """Scheduler tuning with the interval fuzz pinned to 1.0."""
    return SchedulerConfig(fuzz_range=(1.0, 1.0))


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config files
    monkeypatch.setenv("HOME", str(home))
    for key in ("MNEMOS_LOG_LEVEL", "MNEMOS_SEED", "MNEMOS_LEECH_THRESHOLD", "MNEMOS_PORT"):
        monkeypatch.delenv(key, raising=False)
    return home
