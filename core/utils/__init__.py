"""
Core Utilities Package

This package contains utility functions and helpers used throughout the application.

Modules:
    - time: Timestamp conversion and interval helpers
    - rwlock: Reader/writer lock shared by the caches and the symbol mapper
"""

from core.utils.time import current_utc_ms, interval_to_ms
from core.utils.rwlock import ReadWriteLock

__all__ = ["current_utc_ms", "interval_to_ms", "ReadWriteLock"]
