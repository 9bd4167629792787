"""
Reader/writer lock built on ``threading.Condition``.

Any number of readers may hold the lock together; a writer holds it alone.
Writers are preferred: once a writer is waiting, new readers queue behind it
so a steady stream of reads cannot starve a calculation.
"""

import threading
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from ..exceptions import CalculationTimeoutError


class ReadWriteLock:
    """Writer-preferring reader/writer lock."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._active_readers = 0
        self._writer_active = False
        self._waiting_writers = 0

    def _wait_until(self, predicate, timeout: Optional[float]) -> bool:
        # Caller holds self._cond
        if timeout is None:
            while not predicate():
                self._cond.wait()
            return True
        deadline = time.monotonic() + timeout
        while not predicate():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            self._cond.wait(remaining)
        return True

    def acquire_read(self, timeout: Optional[float] = None) -> bool:
        """Acquire the shared side. Returns False if ``timeout`` elapsed first."""
        with self._cond:
            acquired = self._wait_until(
                lambda: not self._writer_active and self._waiting_writers == 0, timeout
            )
            if acquired:
                self._active_readers += 1
            return acquired

    def release_read(self):
        with self._cond:
            if self._active_readers <= 0:
                raise RuntimeError("release_read called without a matching acquire_read")
            self._active_readers -= 1
            if self._active_readers == 0:
                self._cond.notify_all()

    def acquire_write(self, timeout: Optional[float] = None) -> bool:
        """Acquire the exclusive side. Returns False if ``timeout`` elapsed first."""
        with self._cond:
            self._waiting_writers += 1
            try:
                acquired = self._wait_until(
                    lambda: not self._writer_active and self._active_readers == 0, timeout
                )
            finally:
                self._waiting_writers -= 1
            if acquired:
                self._writer_active = True
            else:
                # Readers queued behind this writer may proceed now
                self._cond.notify_all()
            return acquired

    def release_write(self):
        with self._cond:
            if not self._writer_active:
                raise RuntimeError("release_write called without a matching acquire_write")
            self._writer_active = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self, timeout: Optional[float] = None) -> Iterator[None]:
        """Hold the shared side for the duration of a ``with`` block."""
        if not self.acquire_read(timeout):
            raise CalculationTimeoutError(f"timed out after {timeout}s waiting for read lock")
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self, timeout: Optional[float] = None) -> Iterator[None]:
        """Hold the exclusive side for the duration of a ``with`` block."""
        if not self.acquire_write(timeout):
            raise CalculationTimeoutError(f"timed out after {timeout}s waiting for write lock")
        try:
            yield
        finally:
            self.release_write()

    @property
    def readers(self) -> int:
        with self._cond:
            return self._active_readers

    @property
    def writer_active(self) -> bool:
        with self._cond:
            return self._writer_active
