"""
Context Cache

Fixed-TTL cache (default 10s) of context signals per venue coin. One record
holds funding rate, open interest and mark price together; a fetch that only
refreshes one of them stores the others as 0.

Neutral defaults are cached like real values, so a venue that cannot supply
a signal is not asked again on every call.
"""

from typing import Callable, Optional

from core.logging import log_cache_event
from core.schemas import ContextRecord
from core.utils.time import current_utc_ms
from storage.memory_cache import MemoryCache


DEFAULT_CONTEXT_TTL = 10.0


class ContextCache:
    """
    Args:
        ttl: Seconds a record stays valid after it is stored
        clock: Returns "now" in milliseconds (injectable for tests)
    """

    def __init__(self, ttl: float = DEFAULT_CONTEXT_TTL, clock: Callable[[], int] = current_utc_ms):
        self.ttl = ttl
        self._store: MemoryCache[ContextRecord] = MemoryCache(clock=clock)

    def get(self, coin: str) -> Optional[ContextRecord]:
        record = self._store.get(coin)
        log_cache_event("context", "hit" if record is not None else "miss", coin)
        return record

    def put(self, coin: str, record: ContextRecord) -> None:
        expires_at = self._store.now() + int(self.ttl * 1000)
        self._store.put(coin, record, expires_at)
        log_cache_event("context", "store", coin, f"{record}")

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
