"""
Record Store

Persists one two-line text record per device under a storage root.

Features:
- Path-safe device identifiers
- Atomic writes (temp file, optional fsync, rename over the final path)
- Tolerant reads: a missing record reads as the zero record
- No cached state; every call goes to the filesystem
"""

import errno
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, List, Optional

from ..core.config import StorageSettings
from ..exceptions import (DiskFullError, InvalidDataError, InvalidFormatError,
                          PermissionDeniedError, RecordNotFoundError, StorageError,
                          ValidationError)
from .data_types import PowerRecord, format_record, now_ms, parse_record
from .paths import RECORD_SUFFIX, build_file_path, validate_device_id

# Temp names stay short regardless of device ID length
TEMP_PREFIX = ".rec."
TEMP_SUFFIX = ".tmp"

_PERMISSION_ERRNOS = {errno.EACCES, errno.EPERM}
_DISK_FULL_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


def wrap_os_error(operation: str, device_id: str, path, error: OSError) -> StorageError:
    """Translate an ``OSError`` into the matching ``StorageError`` subclass."""
    if error.errno in _PERMISSION_ERRNOS:
        error_class = PermissionDeniedError
    elif error.errno in _DISK_FULL_ERRNOS:
        error_class = DiskFullError
    elif error.errno == errno.ENOENT and operation == "read":
        error_class = RecordNotFoundError
    else:
        error_class = StorageError
    return error_class(operation, device_id, path, str(error))


class RecordStore:
    """
    File-backed store for per-device energy records.

    Each device owns ``<data_dir>/<device_id>.txt`` containing the write
    timestamp (ms) on the first line and the accumulated energy (Wh) on the
    second. A record on disk is always either the complete old version or the
    complete new version.
    """

    def __init__(self, settings: Optional[StorageSettings] = None,
                 clock: Optional[Callable[[], int]] = None):
        """
        Initialize the record store.

        Args:
            settings: Storage settings (default: loaded from environment)
            clock: Millisecond clock used for record validation (default: wall clock)

        Raises:
            StorageError: If the data directory is missing and may not be
                created, or exists but is not a directory
        """
        self.logger = logging.getLogger(__name__)
        self._settings = settings if settings is not None else StorageSettings()
        self._data_dir = Path(self._settings.data_dir)
        self._clock = clock or now_ms

        self._initialize_data_dir()
        self.logger.info(f"Record store ready: {self._settings}")

    @property
    def settings(self) -> StorageSettings:
        return self._settings

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _initialize_data_dir(self):
        """Create the data directory or confirm it exists, failing fast otherwise."""
        path = self._data_dir
        if self._settings.create_dir:
            try:
                os.makedirs(path, mode=self._settings.dir_permissions, exist_ok=True)
            except OSError as e:
                raise wrap_os_error("initialize", "", path, e) from e
        elif not path.exists():
            raise StorageError(
                "initialize", path=path,
                message="data directory does not exist and create_dir is disabled",
            )

        if not path.is_dir():
            raise StorageError("initialize", path=path, message="path exists but is not a directory")

    def _ensure_data_dir(self, device_id: str):
        """Re-check the data directory before a write; it may have been removed underneath us."""
        if self._data_dir.is_dir():
            return
        if not self._settings.create_dir:
            raise StorageError(
                "write", device_id, self._data_dir,
                message="data directory does not exist and create_dir is disabled",
            )
        try:
            os.makedirs(self._data_dir, mode=self._settings.dir_permissions, exist_ok=True)
        except OSError as e:
            raise wrap_os_error("write", device_id, self._data_dir, e) from e

    def get_device_file_path(self, device_id: str) -> Path:
        """
        Get the record path for a device.

        Raises:
            InvalidIdentifierError: If the identifier is unsafe
        """
        return build_file_path(self._data_dir, device_id)

    def write(self, device_id: str, record: PowerRecord) -> None:
        """
        Atomically persist a record for a device.

        Args:
            device_id: Device identifier
            record: Record to persist

        Raises:
            InvalidIdentifierError: If the identifier is unsafe
            InvalidDataError: If the record violates the record invariants
            InvalidValueError: If the energy value is not finite
            StorageError: If the filesystem operation fails; the previous
                record is left untouched
        """
        file_path = build_file_path(self._data_dir, device_id)
        if not isinstance(record, PowerRecord):
            raise InvalidDataError(f"record must be a PowerRecord, got {type(record).__name__}")
        record.validate(now=self._clock())

        self._ensure_data_dir(device_id)
        content = format_record(record)

        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=self._data_dir, prefix=TEMP_PREFIX, suffix=TEMP_SUFFIX
            )
        except OSError as e:
            raise wrap_os_error("write", device_id, file_path, e) from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                f.write(content)
                f.flush()
                if self._settings.sync_write:
                    os.fsync(f.fileno())
            os.chmod(tmp_path, self._settings.file_permissions)
            os.replace(tmp_path, file_path)
        except Exception as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            if isinstance(e, OSError):
                raise wrap_os_error("write", device_id, file_path, e) from e
            raise

        self.logger.debug(
            f"Wrote record for {device_id}: timestamp={record.timestamp} energy_wh={record.energy_wh}"
        )

    def read(self, device_id: str) -> PowerRecord:
        """
        Read the record for a device.

        Args:
            device_id: Device identifier

        Returns:
            The stored record, or ``PowerRecord(0, 0.0)`` if the device has
            never been written

        Raises:
            InvalidIdentifierError: If the identifier is unsafe
            InvalidFormatError: If the file is not two parseable lines
            InvalidDataError: If the parsed record violates the record invariants
            StorageError: If the filesystem operation fails
        """
        file_path = build_file_path(self._data_dir, device_id)

        try:
            present = file_path.exists()
        except OSError as e:
            raise wrap_os_error("read", device_id, file_path, e) from e

        if not present:
            self.logger.debug(f"No record for {device_id}, returning zero record")
            return PowerRecord()

        try:
            content = file_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            # Removed between the existence check and the read
            self.logger.debug(f"Record for {device_id} disappeared, returning zero record")
            return PowerRecord()
        except UnicodeDecodeError as e:
            raise InvalidFormatError(f"record for {device_id} at {file_path} is not valid text") from e
        except OSError as e:
            raise wrap_os_error("read", device_id, file_path, e) from e

        try:
            record = parse_record(content)
        except InvalidFormatError as e:
            raise InvalidFormatError(f"record for {device_id} at {file_path}: {e}") from e

        try:
            record.validate(now=self._clock())
        except ValidationError as e:
            raise InvalidDataError(f"record for {device_id} at {file_path} failed validation: {e}") from e

        return record

    def read_raw(self, device_id: str) -> bytes:
        """
        Read the raw bytes of a device record, for inspection and debugging.

        Raises:
            InvalidIdentifierError: If the identifier is unsafe
            RecordNotFoundError: If no record exists for the device
            StorageError: If the filesystem operation fails
        """
        file_path = build_file_path(self._data_dir, device_id)
        if not file_path.exists():
            raise RecordNotFoundError("read", device_id, file_path, "device file not found")
        try:
            return file_path.read_bytes()
        except OSError as e:
            raise wrap_os_error("read", device_id, file_path, e) from e

    def file_exists(self, device_id: str) -> bool:
        """Check whether a record file exists for the device."""
        return build_file_path(self._data_dir, device_id).exists()

    def validate_device_data(self, device_id: str) -> None:
        """
        Check that an existing record is readable and valid.

        Does nothing when the device has no record yet.
        """
        if not self.file_exists(device_id):
            return
        self.read(device_id)

    def list_device_ids(self) -> List[str]:
        """
        List devices with a valid record under the data directory.

        Temporary files, directories, unsafe names and corrupt records are
        skipped.

        Returns:
            Sorted list of device identifiers
        """
        try:
            entries = list(os.scandir(self._data_dir))
        except OSError as e:
            raise wrap_os_error("list", "", self._data_dir, e) from e

        device_ids = []
        for entry in entries:
            if not entry.is_file() or not entry.name.endswith(RECORD_SUFFIX):
                continue
            device_id = entry.name[:-len(RECORD_SUFFIX)]
            try:
                validate_device_id(device_id)
                self.read(device_id)
            except ValidationError as e:
                self.logger.warning(f"Skipping record file {entry.path}: {e}")
                continue
            device_ids.append(device_id)

        return sorted(device_ids)
