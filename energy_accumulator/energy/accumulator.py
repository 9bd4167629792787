"""
Energy Accumulator

Turns successive instantaneous power readings into a persisted running
energy total per device.

Each calculation integrates the new reading over the time elapsed since the
device's previous record:

    energy_wh = previous_wh + power_w * (now_ms - previous_ms) / 3_600_000

The first reading for a device only establishes a baseline of 0 Wh. Readings
stamped at or before the previous record leave the total unchanged and write
nothing.

All calculations across all devices are serialized behind one writer lock;
reads share the reader side and wait for any in-flight calculation.
"""

import logging
import math
import numbers
import time
from decimal import Decimal
from typing import Callable, Optional

from ..core.config import EnergySettings
from ..exceptions import (CalculationTimeoutError, InvalidValueError,
                          NegativeValueNotAllowedError)
from ..storage.data_types import PowerRecord, now_ms
from ..storage.paths import validate_device_id
from ..storage.store import RecordStore
from .rwlock import ReadWriteLock
from .stats import CalculationStats, StatsTracker

MS_PER_HOUR = 3_600_000


def round_to_precision(value: float, precision: float) -> float:
    """
    Round half-up to the nearest multiple of ``precision``.

    Raises:
        InvalidValueError: If the value cannot be represented at this precision
    """
    scaled = value / precision
    if not math.isfinite(scaled):
        raise InvalidValueError(f"energy value {value} is out of range")
    steps = math.floor(scaled + 0.5)
    # Multiply in decimal so 0.01 steps come back as the shortest float, e.g. 123.45
    return float(Decimal(steps) * Decimal(repr(precision)))


def integrate_energy(previous_wh: float, power_w: float, elapsed_ms: int) -> float:
    """Energy after holding ``power_w`` for ``elapsed_ms`` on top of ``previous_wh``."""
    return previous_wh + power_w * (elapsed_ms / MS_PER_HOUR)


class EnergyAccumulator:
    """
    Stateful energy calculation service backed by a RecordStore.

    The accumulator owns its lock and statistics; all persistent state lives
    in the store, so a new instance over the same data directory picks up
    where a previous one left off.
    """

    def __init__(self, store: RecordStore, settings: Optional[EnergySettings] = None,
                 clock: Optional[Callable[[], int]] = None):
        """
        Initialize the accumulator.

        Args:
            store: Record store used for persistence
            settings: Energy settings (default: loaded from environment)
            clock: Millisecond clock (default: wall clock)
        """
        if store is None:
            raise ValueError("record store cannot be None")

        self.logger = logging.getLogger(__name__)
        self._store = store
        self._settings = settings if settings is not None else EnergySettings()
        self._clock = clock or now_ms
        self._lock = ReadWriteLock()
        self._stats = StatsTracker(enabled=self._settings.enable_stats)

        self.logger.info(f"Energy accumulator ready: {self._settings}")

    @property
    def settings(self) -> EnergySettings:
        return self._settings

    @property
    def store(self) -> RecordStore:
        return self._store

    def calculate(self, device_id: str, power: float) -> float:
        """
        Integrate a power reading into the device's running total and persist it.

        Args:
            device_id: Device identifier
            power: Instantaneous power in watts

        Returns:
            New accumulated energy in Wh

        Raises:
            InvalidIdentifierError: If the identifier is unsafe
            InvalidValueError: If the power is not a finite number
            NegativeValueNotAllowedError: If the power is negative and the
                settings forbid it
            InvalidDataError: If the new total fails record validation
            CalculationTimeoutError: If the time budget is exhausted before
                the record is written
            StorageError: If the record cannot be read or written
        """
        start = time.perf_counter()
        self.logger.debug(f"Starting energy calculation for {device_id} (power={power}W)")

        try:
            total = self._calculate(device_id, power, start)
        except Exception as e:
            self._stats.record(False, time.perf_counter() - start)
            self.logger.error(f"Energy calculation failed for {device_id} (power={power}W): {e}")
            raise

        duration = time.perf_counter() - start
        self._stats.record(True, duration)
        self.logger.info(
            f"Energy calculation completed for {device_id}: total={total}Wh "
            f"(power={power}W, duration={duration * 1000:.2f}ms)"
        )
        return total

    def _calculate(self, device_id: str, power: float, start: float) -> float:
        validate_device_id(device_id)
        power = self._validate_power(power)
        budget = self._settings.max_calculation_time

        with self._lock.write_locked(timeout=budget):
            previous = self._store.read(device_id)
            now = self._clock()

            if previous.is_zero():
                # First reading establishes the baseline
                total = 0.0
            else:
                elapsed_ms = now - previous.timestamp
                if elapsed_ms <= 0:
                    self.logger.warning(
                        f"Clock did not advance for {device_id} "
                        f"(previous={previous.timestamp}, now={now}); keeping {previous.energy_wh}Wh"
                    )
                    return previous.energy_wh
                total = round_to_precision(
                    integrate_energy(previous.energy_wh, power, elapsed_ms),
                    self._settings.precision,
                )

            elapsed = time.perf_counter() - start
            if elapsed > budget:
                raise CalculationTimeoutError(
                    f"calculation for {device_id} took {elapsed:.3f}s, budget is {budget}s"
                )

            self._store.write(device_id, PowerRecord(timestamp=now, energy_wh=total))

        return total

    def _validate_power(self, power: float) -> float:
        if isinstance(power, bool) or not isinstance(power, numbers.Real):
            raise InvalidValueError(f"power must be a real number, got {power!r}")
        power = float(power)
        if not math.isfinite(power):
            raise InvalidValueError(f"power must be finite, got {power}")
        if power < 0 and not self._settings.negative_power_allowed:
            raise NegativeValueNotAllowedError(f"negative power not allowed: {power}")
        return power

    def get(self, device_id: str) -> float:
        """
        Get the latest accumulated energy for a device.

        Returns:
            Accumulated energy in Wh; 0.0 for a device with no data yet

        Raises:
            InvalidIdentifierError: If the identifier is unsafe
            InvalidFormatError: If the stored record is corrupt
            InvalidDataError: If the stored record is invalid
            StorageError: If the record cannot be read
        """
        validate_device_id(device_id)
        with self._lock.read_locked():
            record = self._store.read(device_id)
        return record.energy_wh

    def get_stats(self) -> CalculationStats:
        """Get a snapshot of calculation statistics."""
        return self._stats.snapshot()
