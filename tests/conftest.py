"""Pytest configuration and shared fixtures for energy accumulator tests."""
import pytest

from energy_accumulator.core.config import EnergySettings, StorageSettings
from energy_accumulator.energy.accumulator import EnergyAccumulator
from energy_accumulator.storage.store import RecordStore

# 2023-11-14T22:13:20Z, well clear of the zero-timestamp sentinel
START_MS = 1_700_000_000_000
HOUR_MS = 3_600_000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start_ms: int = START_MS):
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int = 0, hours: float = 0):
        self.now += ms + int(hours * HOUR_MS)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def storage_settings(data_dir):
    return StorageSettings(data_dir=str(data_dir), sync_write=True, create_dir=True)


@pytest.fixture
def energy_settings():
    return EnergySettings(
        precision=0.01,
        enable_stats=True,
        max_calculation_time=5.0,
        negative_power_allowed=True,
    )


@pytest.fixture
def store(storage_settings, clock):
    return RecordStore(storage_settings, clock=clock)


@pytest.fixture
def accumulator(store, energy_settings, clock):
    return EnergyAccumulator(store, energy_settings, clock=clock)


@pytest.fixture
def make_accumulator():
    """Build an accumulator over an arbitrary directory with energy setting overrides."""

    def _factory(directory, clock, **energy_overrides):
        energy = {
            "precision": 0.01,
            "enable_stats": True,
            "max_calculation_time": 5.0,
            "negative_power_allowed": True,
        }
        energy.update(energy_overrides)
        store = RecordStore(StorageSettings(data_dir=str(directory)), clock=clock)
        return EnergyAccumulator(store, EnergySettings(**energy), clock=clock)

    return _factory
