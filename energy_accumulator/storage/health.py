"""
Storage health checks and diagnostics.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..exceptions import StorageError
from .store import RecordStore, wrap_os_error

logger = logging.getLogger(__name__)

WRITE_TEST_FILENAME = ".write_test"


def validate_data_directory(data_dir: Union[str, Path]) -> None:
    """
    Confirm the data directory exists, is a directory and is writable.

    Raises:
        StorageError: If any of the checks fail
    """
    if not str(data_dir):
        raise StorageError("validate", message="data directory path is empty")

    path = Path(data_dir)
    if not path.exists():
        raise StorageError("validate", path=path, message="data directory does not exist")
    if not path.is_dir():
        raise StorageError("validate", path=path, message="path exists but is not a directory")

    probe = path / WRITE_TEST_FILENAME
    try:
        with open(probe, "w", encoding="utf-8") as f:
            f.write("ok")
        os.unlink(probe)
    except OSError as e:
        raise wrap_os_error("validate", "", path, e) from e


def check_storage_health(store: Optional[RecordStore]) -> None:
    """
    Check that a store's data directory is usable.

    Raises:
        StorageError: If the store is missing or its directory fails validation
    """
    if store is None:
        raise StorageError("health", message="record store is not initialized")

    validate_data_directory(store.data_dir)
    logger.debug(f"Storage health check passed for {store.data_dir}")


def get_storage_info(store: Optional[RecordStore]) -> Dict[str, Any]:
    """
    Describe a store's configuration for diagnostics.

    Returns:
        Dictionary with settings and module version
    """
    from .. import __version__

    if store is None:
        return {
            "initialized": False,
            "error": "record store is not initialized",
        }

    settings = store.settings
    return {
        "initialized": True,
        "data_dir": str(store.data_dir),
        "sync_write": settings.sync_write,
        "create_dir": settings.create_dir,
        "file_permissions": f"{settings.file_permissions:#o}",
        "dir_permissions": f"{settings.dir_permissions:#o}",
        "module_version": __version__,
    }
