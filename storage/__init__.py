"""
Storage Package

In-memory caches shared by the venue providers.

- memory_cache: Generic keyed store of CacheEntry(value, expires_at)
  behind a per-instance reader/writer lock
- candle_cache: Candle batches that expire at the next aligned interval
  boundary, plus the boundary-alignment helpers
- context_cache: Fixed-TTL funding rate / open interest / mark price records

Nothing is persisted beyond the in-memory cache window.
"""

from storage.memory_cache import CacheEntry, MemoryCache
from storage.candle_cache import CandleCache, align_to_boundaries, calculate_next_boundary
from storage.context_cache import ContextCache

__all__ = [
    "CacheEntry",
    "MemoryCache",
    "CandleCache",
    "ContextCache",
    "align_to_boundaries",
    "calculate_next_boundary",
]
