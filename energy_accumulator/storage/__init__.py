"""
Record Storage Module

Durable, crash-safe persistence of one accumulated energy record per device
as a human-readable two-line text file.
"""

from .data_types import PowerRecord, format_record, parse_record
from .paths import build_file_path, validate_device_id
from .store import RecordStore
from .health import check_storage_health, get_storage_info, validate_data_directory

__all__ = [
    "PowerRecord",
    "format_record",
    "parse_record",
    "build_file_path",
    "validate_device_id",
    "RecordStore",
    "check_storage_health",
    "get_storage_info",
    "validate_data_directory",
]
