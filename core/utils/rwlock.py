"""
Reader/Writer Lock

Shared/exclusive lock used by the in-memory caches and the symbol mapper.
Each cache instance owns one lock; there is no global lock.

- Any number of readers may hold the lock at the same time.
- A writer waits until all readers have left and blocks new readers
  while it is waiting (writer preference, so refreshes are not starved).

The lock is built on `threading.Condition`, so it is safe to use from
worker threads and from asyncio tasks alike, as long as it is never
held across an `await`.

Usage:
    lock = ReadWriteLock()

    with lock.read_lock():
        value = store.get(key)

    with lock.write_lock():
        store[key] = value
"""

import threading
from contextlib import contextmanager
from typing import Iterator


class ReadWriteLock:
    """Writer-preferring reader/writer lock."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer_active = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer_active or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer_active or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer_active = True

    def release_write(self) -> None:
        with self._cond:
            self._writer_active = False
            self._cond.notify_all()

    @contextmanager
    def read_lock(self) -> Iterator[None]:
        """Hold the lock in shared mode for the duration of the block."""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_lock(self) -> Iterator[None]:
        """Hold the lock in exclusive mode for the duration of the block."""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()
