"""
Data Types for Record Storage

Defines the persisted power record and its two-line text encoding.
"""

import math
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..exceptions import InvalidDataError, InvalidFormatError, InvalidValueError

# Records may be stamped at most this far ahead of the validating clock
MAX_FUTURE_SKEW_MS = 24 * 60 * 60 * 1000

# Fractional digits written for the energy line
VALUE_DECIMALS = 6


def now_ms() -> int:
    """Wall-clock time in milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class PowerRecord:
    """
    Accumulated energy for one device at one instant.

    ``timestamp`` is the write instant in milliseconds since the epoch and
    ``energy_wh`` the running total in watt-hours. ``PowerRecord(0, 0.0)``
    stands for a device that has never been written.
    """
    timestamp: int = 0
    energy_wh: float = 0.0

    def is_zero(self) -> bool:
        """True for the never-written sentinel."""
        return self.timestamp == 0 and self.energy_wh == 0

    def validate(self, now: Optional[int] = None) -> None:
        """
        Check the record invariants.

        Args:
            now: Reference time in ms for the future-skew check (default: wall clock)

        Raises:
            InvalidDataError: If the timestamp is negative or too far ahead,
                or the energy value is negative
            InvalidValueError: If the energy value is NaN or infinite
        """
        if isinstance(self.timestamp, bool) or not isinstance(self.timestamp, int):
            raise InvalidDataError(f"timestamp must be an integer, got {self.timestamp!r}")
        if self.timestamp < 0:
            raise InvalidDataError("timestamp cannot be negative")

        reference = now_ms() if now is None else now
        if self.timestamp > reference + MAX_FUTURE_SKEW_MS:
            raise InvalidDataError("timestamp is too far in the future")

        if math.isnan(self.energy_wh) or math.isinf(self.energy_wh):
            raise InvalidValueError("energy value must be finite")
        if self.energy_wh < 0:
            raise InvalidDataError("energy value cannot be negative")

    def to_dict(self) -> Dict[str, Any]:
        """Convert record to dictionary format."""
        return {
            "timestamp": self.timestamp,
            "energy_wh": self.energy_wh,
        }


def format_record(record: PowerRecord) -> str:
    """Render a record as its on-disk text: timestamp line, then energy line."""
    return f"{record.timestamp}\n{record.energy_wh:.{VALUE_DECIMALS}f}\n"


def parse_record(content: str) -> PowerRecord:
    """
    Parse on-disk text into a record without validating its invariants.

    Raises:
        InvalidFormatError: If the content is not two non-empty lines holding
            an integer and a float
    """
    stripped = content.strip()
    if not stripped:
        raise InvalidFormatError("record file is empty")

    lines = stripped.split("\n")
    if len(lines) != 2:
        raise InvalidFormatError(f"expected 2 lines, got {len(lines)}")

    timestamp_text = lines[0].strip()
    energy_text = lines[1].strip()
    if not timestamp_text or not energy_text:
        raise InvalidFormatError("record lines cannot be blank")

    try:
        timestamp = int(timestamp_text)
    except ValueError as e:
        raise InvalidFormatError(f"invalid timestamp format: {timestamp_text!r}") from e

    try:
        energy_wh = float(energy_text)
    except ValueError as e:
        raise InvalidFormatError(f"invalid energy value format: {energy_text!r}") from e

    return PowerRecord(timestamp=timestamp, energy_wh=energy_wh)
