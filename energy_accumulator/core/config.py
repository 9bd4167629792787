from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

MAX_DATA_DIR_LENGTH = 4096
MAX_CALCULATION_TIME_LIMIT_S = 10.0


def parse_file_mode(value: str | int) -> int:
    """Parse permission bits given as an int or an octal string such as ``"0644"``."""

    if isinstance(value, bool):
        raise ValueError(f"invalid file mode {value!r}")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.lower().startswith("0o"):
        text = text[2:]
    if not text:
        raise ValueError("empty file mode string")
    if any(ch not in "01234567" for ch in text):
        raise ValueError(f"invalid file mode {value!r}: contains non-octal characters")
    return int(text, 8)


class StorageSettings(BaseSettings):
    """Record storage configuration loaded from ``STORAGE_*`` environment variables."""

    data_dir: str = Field("./data")
    file_permissions: int = Field(0o644)
    dir_permissions: int = Field(0o755)
    sync_write: bool = Field(True)
    create_dir: bool = Field(True)

    model_config = {
        "env_prefix": "STORAGE_",
        "case_sensitive": False,
        "extra": "ignore",
        "frozen": True,
    }

    @field_validator("data_dir")
    @classmethod
    def _check_data_dir(cls, value: str) -> str:
        if not value:
            raise ValueError("data_dir is required")
        if len(value) > MAX_DATA_DIR_LENGTH:
            raise ValueError(f"data_dir path too long (max {MAX_DATA_DIR_LENGTH} characters)")
        if any(ord(ch) < 0x20 for ch in value):
            raise ValueError("data_dir contains invalid control characters")
        return value

    @field_validator("file_permissions", "dir_permissions", mode="before")
    @classmethod
    def _parse_mode(cls, value: str | int) -> int:
        return parse_file_mode(value)

    @field_validator("file_permissions", "dir_permissions")
    @classmethod
    def _check_mode_range(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("permissions must be specified")
        if value > 0o777:
            raise ValueError("permissions too permissive (max 0777)")
        return value

    @field_validator("dir_permissions")
    @classmethod
    def _check_dir_readable(cls, value: int) -> int:
        if not value & 0o400:
            raise ValueError("dir_permissions must allow read access for owner")
        return value

    def __str__(self) -> str:
        return (
            f"StorageSettings(data_dir={self.data_dir}, "
            f"file_permissions={self.file_permissions:o}, "
            f"dir_permissions={self.dir_permissions:o}, "
            f"sync_write={self.sync_write}, create_dir={self.create_dir})"
        )


class EnergySettings(BaseSettings):
    """Energy calculation configuration loaded from ``ENERGY_*`` environment variables."""

    # Rounding granularity for accumulated totals, in Wh
    precision: float = Field(0.01)
    enable_stats: bool = Field(True)
    # Seconds; bounds both lock acquisition and time spent before persisting
    max_calculation_time: float = Field(1.0)
    # Negative readings represent energy fed back to the grid
    negative_power_allowed: bool = Field(True)

    model_config = {
        "env_prefix": "ENERGY_",
        "case_sensitive": False,
        "extra": "ignore",
        "frozen": True,
    }

    @field_validator("precision")
    @classmethod
    def _check_precision(cls, value: float) -> float:
        if not value > 0:
            raise ValueError(f"precision must be positive, got: {value}")
        return value

    @field_validator("max_calculation_time")
    @classmethod
    def _check_max_calculation_time(cls, value: float) -> float:
        if not value > 0:
            raise ValueError(f"max calculation time must be positive, got: {value}")
        if value > MAX_CALCULATION_TIME_LIMIT_S:
            raise ValueError(
                f"max calculation time should not exceed {MAX_CALCULATION_TIME_LIMIT_S:g} seconds, got: {value}"
            )
        return value

    def __str__(self) -> str:
        return (
            f"EnergySettings(precision={self.precision:.4f}, enable_stats={self.enable_stats}, "
            f"max_calculation_time={self.max_calculation_time}s, "
            f"negative_power_allowed={self.negative_power_allowed})"
        )
