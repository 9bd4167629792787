"""
Energy Accumulation Module

Integrates power readings over time into per-device running energy totals.
"""

from .accumulator import EnergyAccumulator, integrate_energy, round_to_precision
from .rwlock import ReadWriteLock
from .stats import CalculationStats, StatsTracker

__all__ = [
    "EnergyAccumulator",
    "integrate_energy",
    "round_to_precision",
    "ReadWriteLock",
    "CalculationStats",
    "StatsTracker",
]
