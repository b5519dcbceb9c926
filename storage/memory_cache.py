"""
Generic in-memory cache with explicit expiry timestamps.

Entries are stored as CacheEntry(value, expires_at) and never leave the
cache: `get` returns the value only, and the internal dict is not exposed.
Reads take the shared side of the cache's own reader/writer lock, writes
take the exclusive side. No lock is ever held while the caller fetches a
missing value remotely.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

from core.utils.rwlock import ReadWriteLock
from core.utils.time import current_utc_ms


T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    value: T
    expires_at: int  # milliseconds since epoch


class MemoryCache(Generic[T]):
    """
    Keyed store of values with absolute expiry times.

    Args:
        clock: Returns "now" in milliseconds (injectable for tests)
    """

    def __init__(self, clock: Callable[[], int] = current_utc_ms):
        self._clock = clock
        self._entries: Dict[Hashable, CacheEntry[T]] = {}
        self._lock = ReadWriteLock()

    def now(self) -> int:
        return self._clock()

    def get(self, key: Hashable) -> Optional[T]:
        """Return the cached value, or None if missing or expired (now >= expires_at)."""
        with self._lock.read_lock():
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() < entry.expires_at:
                return entry.value

        # Expired: evict under the exclusive lock, unless a writer replaced it meanwhile
        with self._lock.write_lock():
            current = self._entries.get(key)
            if current is not None and self._clock() >= current.expires_at:
                del self._entries[key]
        return None

    def put(self, key: Hashable, value: T, expires_at: int) -> None:
        with self._lock.write_lock():
            self._entries[key] = CacheEntry(value=value, expires_at=expires_at)

    def expires_at(self, key: Hashable) -> Optional[int]:
        """Expiry of a stored entry (expired or not), None if absent."""
        with self._lock.read_lock():
            entry = self._entries.get(key)
            return entry.expires_at if entry else None

    def clear(self) -> None:
        with self._lock.write_lock():
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock.read_lock():
            return len(self._entries)
