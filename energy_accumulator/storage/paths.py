"""
Device identifier validation and record path construction.
"""

import os
from pathlib import Path
from typing import Union

from ..exceptions import InvalidIdentifierError

RECORD_SUFFIX = ".txt"
# Common filesystem limit on a single name component, in bytes
MAX_FILENAME_BYTES = 255
MAX_DEVICE_ID_BYTES = MAX_FILENAME_BYTES - len(RECORD_SUFFIX)


def validate_device_id(device_id: str) -> None:
    """
    Reject identifiers that are unsafe as a filename component.

    Raises:
        InvalidIdentifierError: If the identifier is empty or too long,
            contains a path separator or control character, is ``.``/``..``
            or starts with a dot
    """
    if not isinstance(device_id, str):
        raise InvalidIdentifierError(f"device ID must be a string, got {type(device_id).__name__}")
    if device_id == "":
        raise InvalidIdentifierError("device ID cannot be empty")
    if any(ord(ch) < 0x20 or ch == "\x7f" for ch in device_id):
        raise InvalidIdentifierError("device ID cannot contain control characters")
    try:
        encoded = os.fsencode(device_id)
    except UnicodeEncodeError as e:
        raise InvalidIdentifierError("device ID is not encodable as a filename") from e
    if len(encoded) > MAX_DEVICE_ID_BYTES:
        raise InvalidIdentifierError(
            f"device ID too long ({len(encoded)} bytes, max {MAX_DEVICE_ID_BYTES})"
        )
    if "/" in device_id or "\\" in device_id:
        raise InvalidIdentifierError("device ID cannot contain path separators")
    if device_id in (".", ".."):
        raise InvalidIdentifierError("device ID cannot be a relative path component")
    if device_id.startswith("."):
        raise InvalidIdentifierError("device ID cannot start with a dot")


def build_file_path(data_dir: Union[str, Path], device_id: str) -> Path:
    """
    Build the record path for a device and confirm it stays inside ``data_dir``.

    Args:
        data_dir: Storage root
        device_id: Device identifier

    Returns:
        Absolute, normalised path of ``<data_dir>/<device_id>.txt``

    Raises:
        InvalidIdentifierError: If the identifier is unsafe or the resulting
            path would land outside the storage root
    """
    validate_device_id(device_id)

    root = os.path.normpath(os.path.abspath(os.fspath(data_dir)))
    file_path = os.path.normpath(os.path.join(root, device_id + RECORD_SUFFIX))

    try:
        rel_path = os.path.relpath(file_path, root)
    except ValueError as e:
        # Different drives on Windows
        raise InvalidIdentifierError("failed to validate file path") from e

    if rel_path == os.pardir or rel_path.startswith(os.pardir + os.sep) or os.path.isabs(rel_path):
        raise InvalidIdentifierError("device ID would escape data directory")
    if os.sep in rel_path:
        raise InvalidIdentifierError("device ID would create a nested path")

    return Path(file_path)
