"""Tests for the writer-preferring reader/writer lock."""
import threading

import pytest

from energy_accumulator.energy.rwlock import ReadWriteLock
from energy_accumulator.exceptions import CalculationTimeoutError


def test_readers_share_the_lock():
    lock = ReadWriteLock()
    assert lock.acquire_read(timeout=0.1)
    assert lock.acquire_read(timeout=0.1)
    assert lock.readers == 2
    lock.release_read()
    lock.release_read()
    assert lock.readers == 0


def test_writer_excludes_readers_and_writers():
    lock = ReadWriteLock()
    assert lock.acquire_write()
    assert lock.writer_active is True
    assert lock.acquire_read(timeout=0.05) is False
    assert lock.acquire_write(timeout=0.05) is False
    lock.release_write()
    assert lock.acquire_read(timeout=0.05) is True
    lock.release_read()


def test_reader_blocks_writer():
    lock = ReadWriteLock()
    lock.acquire_read()
    assert lock.acquire_write(timeout=0.05) is False
    lock.release_read()
    assert lock.acquire_write(timeout=0.05) is True
    lock.release_write()


def test_waiting_writer_blocks_new_readers():
    lock = ReadWriteLock()
    lock.acquire_read()

    writer_done = threading.Event()

    def writer():
        with lock.write_locked(timeout=5):
            pass
        writer_done.set()

    t = threading.Thread(target=writer)
    t.start()
    # Give the writer time to start waiting
    writer_done.wait(timeout=0.1)
    assert lock.acquire_read(timeout=0.05) is False

    lock.release_read()
    t.join(timeout=5)
    assert writer_done.is_set()
    assert lock.acquire_read(timeout=0.05) is True
    lock.release_read()


def test_timed_out_writer_releases_queued_readers():
    lock = ReadWriteLock()
    lock.acquire_read()
    assert lock.acquire_write(timeout=0.05) is False
    # No writer is waiting any more, so readers may join
    assert lock.acquire_read(timeout=0.05) is True
    lock.release_read()
    lock.release_read()


def test_write_locked_times_out():
    lock = ReadWriteLock()
    lock.acquire_read()
    with pytest.raises(CalculationTimeoutError):
        with lock.write_locked(timeout=0.05):
            pass
    lock.release_read()


def test_read_locked_times_out():
    lock = ReadWriteLock()
    lock.acquire_write()
    with pytest.raises(CalculationTimeoutError):
        with lock.read_locked(timeout=0.05):
            pass
    lock.release_write()


def test_context_managers_release_on_error():
    lock = ReadWriteLock()
    with pytest.raises(KeyError):
        with lock.write_locked():
            raise KeyError("boom")
    assert lock.writer_active is False

    with pytest.raises(KeyError):
        with lock.read_locked():
            raise KeyError("boom")
    assert lock.readers == 0


def test_unmatched_release_raises():
    lock = ReadWriteLock()
    with pytest.raises(RuntimeError):
        lock.release_read()
    with pytest.raises(RuntimeError):
        lock.release_write()


def test_writers_are_mutually_exclusive():
    lock = ReadWriteLock()
    counter = {"value": 0, "inside": 0, "max_inside": 0}

    def worker():
        for _ in range(200):
            with lock.write_locked():
                counter["inside"] += 1
                counter["max_inside"] = max(counter["max_inside"], counter["inside"])
                counter["value"] += 1
                counter["inside"] -= 1

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert counter["value"] == 1200
    assert counter["max_inside"] == 1
