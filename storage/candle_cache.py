"""
Candle Cache and Boundary Alignment

Fetched candle batches are cached per (venue coin, interval, limit). Distinct
limits are distinct entries; overlapping windows are never merged.

Expiry is not "now + fixed duration" but the next aligned boundary of the
interval: a cached batch is reused for the remaining lifetime of the candle
that is currently forming and is evicted exactly when a new candle closes.

    3m: next minute that is a multiple of 3
    4h: next hour that is a multiple of 4 (rolls into the next UTC day)
    other intervals: now + 1 minute

Fetched batches are also aligned: if the last candle has not closed yet it is
dropped, because it is still forming. Only 3m and 4h are aligned; batches of
other intervals are returned unmodified.

Concurrency:
    Reads take the shared lock, writes the exclusive lock. The remote fetch
    on a miss happens outside any lock, so concurrent requests for the same
    missing key may both fetch (no request coalescing).
"""

from typing import Callable, List, Optional, Sequence, Tuple

from core.logging import log_cache_event
from core.schemas import Candle
from core.utils.time import HOUR_MS, MINUTE_MS, current_utc_ms
from storage.memory_cache import MemoryCache


# Intervals whose cache expiry and completeness check are grid-aligned
ALIGNED_INTERVALS = {
    "3m": 3 * MINUTE_MS,
    "4h": 4 * HOUR_MS,
}

DEFAULT_EXPIRY_MS = MINUTE_MS

CandleKey = Tuple[str, str, int]


def calculate_next_boundary(interval: str, now_ms: int) -> int:
    """
    Next aligned boundary of `interval` strictly after `now_ms`.

    Args:
        interval: Candle interval ("3m", "4h", ...)
        now_ms: Current wall-clock time in milliseconds (UTC)

    Returns:
        Boundary timestamp in milliseconds

    Example:
        >>> calculate_next_boundary("3m", 1700000000000)
        1700000100000
        >>> calculate_next_boundary("4h", 1700000000000)
        1700006400000

    Notes:
        Both grids divide a UTC day evenly and the epoch starts at midnight,
        so flooring on the epoch offset gives the same boundary as rounding
        the wall-clock minute/hour (including the roll into the next day).
    """
    interval_ms = ALIGNED_INTERVALS.get(interval)
    if interval_ms is None:
        return now_ms + DEFAULT_EXPIRY_MS

    return (now_ms // interval_ms + 1) * interval_ms


def align_to_boundaries(candles: Sequence[Candle], interval: str, now_ms: int) -> List[Candle]:
    """
    Drop the last candle if it is still forming.

    The expected close of the last candle is its open time floored to the
    interval grid plus one interval. If that moment is still in the future
    the candle is incomplete and is removed.

    Args:
        candles: Batch ordered oldest first
        interval: Candle interval
        now_ms: Current wall-clock time in milliseconds

    Returns:
        The aligned batch (unmodified for empty input and unrecognized intervals)
    """
    interval_ms = ALIGNED_INTERVALS.get(interval)
    if not candles or interval_ms is None:
        return list(candles)

    last = candles[-1]
    expected_close = (last.open_time // interval_ms) * interval_ms + interval_ms

    if now_ms < expected_close:
        return list(candles[:-1])

    return list(candles)


class CandleCache:
    """
    Cache of candle batches keyed by (coin, interval, limit).

    Example:
        >>> cache = CandleCache()
        >>> key = CandleCache.make_key("BTC", "3m", 40)
        >>> cache.put(key, candles, calculate_next_boundary("3m", cache.now()))
        >>> cache.get(key) == candles
        True
    """

    def __init__(self, clock: Callable[[], int] = current_utc_ms):
        self._store: MemoryCache[Tuple[Candle, ...]] = MemoryCache(clock=clock)

    @staticmethod
    def make_key(coin: str, interval: str, limit: int) -> CandleKey:
        return (coin, interval, limit)

    def now(self) -> int:
        return self._store.now()

    def get(self, key: CandleKey) -> Optional[List[Candle]]:
        """Cached batch for `key`, or None when missing or past its boundary."""
        batch = self._store.get(key)
        if batch is None:
            log_cache_event("candles", "miss", key)
            return None

        log_cache_event("candles", "hit", key, f"{len(batch)} candles")
        return list(batch)

    def put(self, key: CandleKey, candles: Sequence[Candle], expires_at: int) -> None:
        self._store.put(key, tuple(candles), expires_at)
        log_cache_event("candles", "store", key, f"{len(candles)} candles, expires_at={expires_at}")

    def expires_at(self, key: CandleKey) -> Optional[int]:
        return self._store.expires_at(key)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
