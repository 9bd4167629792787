"""
Energy Accumulator Exceptions

Custom exceptions for record storage and energy accumulation.
"""

from typing import Optional


class EnergyAccumulatorError(Exception):
    """Base exception for energy accumulator operations."""
    pass


class ValidationError(EnergyAccumulatorError, ValueError):
    """Raised when an input is rejected before any side effect happens."""
    pass


class InvalidIdentifierError(ValidationError):
    """Raised when a device identifier is empty or could escape the data directory."""
    pass


class InvalidValueError(ValidationError):
    """Raised when a power or energy value is not a finite number."""
    pass


class NegativeValueNotAllowedError(ValidationError):
    """Raised when a negative power reading is supplied but not permitted."""
    pass


class InvalidFormatError(ValidationError):
    """Raised when a record file is not two parseable lines."""
    pass


class InvalidDataError(ValidationError):
    """Raised when a record parses but violates the record invariants."""
    pass


class StorageError(EnergyAccumulatorError):
    """
    Raised when a filesystem operation on a record fails.

    Carries the operation name, device identifier and path so that the
    message alone is enough to locate the failing file.
    """

    def __init__(self, operation: str, device_id: str = "", path: str = "",
                 message: Optional[str] = None):
        self.operation = operation
        self.device_id = device_id
        self.path = str(path) if path else ""
        self.message = message or ""
        super().__init__(str(self))

    def __str__(self) -> str:
        detail = self.message
        if not detail and self.__cause__ is not None:
            detail = str(self.__cause__)
        if self.path:
            return f"storage {self.operation} failed for {self.path}: {detail}"
        return f"storage {self.operation} failed: {detail}"


class PermissionDeniedError(StorageError):
    """Raised when the filesystem refuses access to a record or the data directory."""
    pass


class DiskFullError(StorageError):
    """Raised when a write fails because the device or quota is out of space."""
    pass


class RecordNotFoundError(StorageError):
    """Raised when no record file exists for a device."""
    pass


class CalculationTimeoutError(EnergyAccumulatorError):
    """Raised when a calculation exceeds the configured time budget."""
    pass
