"""
Energy Accumulator

Persistent per-device energy totals integrated from instantaneous power
readings, stored as crash-safe two-line text records.
"""

__version__ = "0.1.0"

from .core.config import EnergySettings, StorageSettings
from .energy import CalculationStats, EnergyAccumulator, StatsTracker
from .exceptions import (
    CalculationTimeoutError,
    DiskFullError,
    EnergyAccumulatorError,
    InvalidDataError,
    InvalidFormatError,
    InvalidIdentifierError,
    InvalidValueError,
    NegativeValueNotAllowedError,
    PermissionDeniedError,
    RecordNotFoundError,
    StorageError,
    ValidationError,
)
from .service import create_accumulator, create_record_store
from .storage import PowerRecord, RecordStore

__all__ = [
    "EnergySettings",
    "StorageSettings",
    "CalculationStats",
    "EnergyAccumulator",
    "StatsTracker",
    "CalculationTimeoutError",
    "DiskFullError",
    "EnergyAccumulatorError",
    "InvalidDataError",
    "InvalidFormatError",
    "InvalidIdentifierError",
    "InvalidValueError",
    "NegativeValueNotAllowedError",
    "PermissionDeniedError",
    "RecordNotFoundError",
    "StorageError",
    "ValidationError",
    "create_accumulator",
    "create_record_store",
    "PowerRecord",
    "RecordStore",
]
