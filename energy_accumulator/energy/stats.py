"""
Calculation statistics.

Purely observational counters; nothing here feeds back into results.
"""

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Weight of the newest latency sample in the moving average
EMA_SAMPLE_WEIGHT = 0.1


@dataclass(frozen=True)
class CalculationStats:
    """Point-in-time copy of the accumulator counters."""
    total_calculations: int = 0
    total_errors: int = 0
    last_update_time: Optional[datetime] = None
    avg_calculation_time: float = 0.0  # seconds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_calculations": self.total_calculations,
            "total_errors": self.total_errors,
            "last_update_time": self.last_update_time.isoformat() if self.last_update_time else None,
            "avg_calculation_time": self.avg_calculation_time,
        }


class StatsTracker:
    """
    Thread-safe calculation counters with an exponentially weighted latency average.

    Guarded by its own lock, independent of the accumulator lock. When
    ``enabled`` is False every update is a no-op and snapshots are all zeros.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._lock = threading.Lock()
        self._total_calculations = 0
        self._total_errors = 0
        self._last_update_time: Optional[datetime] = None
        self._avg_calculation_time = 0.0

    def record(self, success: bool, duration: float) -> None:
        """
        Record one calculation attempt.

        Args:
            success: Whether the attempt succeeded
            duration: Wall-clock latency in seconds
        """
        if not self.enabled:
            return

        with self._lock:
            self._total_calculations += 1
            if not success:
                self._total_errors += 1

            if self._avg_calculation_time == 0:
                self._avg_calculation_time = duration
            else:
                self._avg_calculation_time = (
                    (1 - EMA_SAMPLE_WEIGHT) * self._avg_calculation_time
                    + EMA_SAMPLE_WEIGHT * duration
                )

            if success:
                self._last_update_time = datetime.now(timezone.utc)

    def snapshot(self) -> CalculationStats:
        if not self.enabled:
            return CalculationStats()

        with self._lock:
            return CalculationStats(
                total_calculations=self._total_calculations,
                total_errors=self._total_errors,
                last_update_time=self._last_update_time,
                avg_calculation_time=self._avg_calculation_time,
            )

    def reset(self) -> None:
        with self._lock:
            self._total_calculations = 0
            self._total_errors = 0
            self._last_update_time = None
            self._avg_calculation_time = 0.0
