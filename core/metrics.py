"""
Provider Metrics

Per-instance request, error and cache counters. Every provider owns its own
ProviderMetrics object, so counters are never shared between providers and
tests can observe one provider in isolation.

Usage:
    metrics = ProviderMetrics("hyperliquid")
    metrics.record_request()
    metrics.record_cache_hit()
    snapshot = metrics.snapshot()
    print(snapshot.cache_hit_ratio)
"""

import threading

from core.schemas import ProviderMetricsSnapshot


class ProviderMetrics:
    """Thread-safe counters for one provider instance."""

    def __init__(self, provider: str):
        self.provider = provider
        self._lock = threading.Lock()
        self._requests_total = 0
        self._errors_total = 0
        self._cache_hits = 0
        self._cache_misses = 0

    def record_request(self) -> None:
        with self._lock:
            self._requests_total += 1

    def record_error(self) -> None:
        with self._lock:
            self._errors_total += 1

    def record_cache_hit(self) -> None:
        with self._lock:
            self._cache_hits += 1

    def record_cache_miss(self) -> None:
        with self._lock:
            self._cache_misses += 1

    def snapshot(self) -> ProviderMetricsSnapshot:
        """
        Get the current counters.

        Returns:
            ProviderMetricsSnapshot with cache_hit_ratio = hits / (hits + misses),
            or 0 when the caches have not been accessed yet
        """
        with self._lock:
            total_cache_access = self._cache_hits + self._cache_misses
            ratio = self._cache_hits / total_cache_access if total_cache_access else 0.0
            return ProviderMetricsSnapshot(
                provider=self.provider,
                requests_total=self._requests_total,
                errors_total=self._errors_total,
                cache_hits=self._cache_hits,
                cache_misses=self._cache_misses,
                cache_hit_ratio=ratio,
            )

    def reset(self) -> None:
        with self._lock:
            self._requests_total = 0
            self._errors_total = 0
            self._cache_hits = 0
            self._cache_misses = 0
