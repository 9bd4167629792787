"""Factories that wire settings, store and accumulator together."""

from typing import Callable, Optional

from .core.config import EnergySettings, StorageSettings
from .energy.accumulator import EnergyAccumulator
from .storage.store import RecordStore


def create_record_store(settings: Optional[StorageSettings] = None,
                        clock: Optional[Callable[[], int]] = None) -> RecordStore:
    """Build a RecordStore, reading ``STORAGE_*`` environment variables when no settings are given."""
    return RecordStore(settings if settings is not None else StorageSettings(), clock=clock)


def create_accumulator(storage_settings: Optional[StorageSettings] = None,
                       energy_settings: Optional[EnergySettings] = None,
                       clock: Optional[Callable[[], int]] = None) -> EnergyAccumulator:
    """
    Build an EnergyAccumulator over a fresh RecordStore.

    Args:
        storage_settings: Storage settings (default: from environment)
        energy_settings: Energy settings (default: from environment)
        clock: Millisecond clock shared by store and accumulator

    Returns:
        Ready-to-use accumulator
    """
    store = create_record_store(storage_settings, clock=clock)
    return EnergyAccumulator(
        store,
        energy_settings if energy_settings is not None else EnergySettings(),
        clock=clock,
    )
