"""
Time Utilities

This module provides utilities for handling timestamps and candle intervals.

Different venues return timestamps in different formats:
- Binance: milliseconds since epoch (e.g., 1704110400000)
- Hyperliquid: milliseconds since epoch inside candle payloads
- Cache expiry and boundary alignment work on integer milliseconds (UTC)

The utilities in this module normalize timestamps and translate interval
strings ("3m", "4h", ...) into their length in milliseconds.
"""

from datetime import datetime, timezone
from typing import Optional


MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

# Interval string -> length in milliseconds
INTERVAL_MS = {
    "1m": MINUTE_MS,
    "3m": 3 * MINUTE_MS,
    "5m": 5 * MINUTE_MS,
    "15m": 15 * MINUTE_MS,
    "30m": 30 * MINUTE_MS,
    "1h": HOUR_MS,
    "2h": 2 * HOUR_MS,
    "4h": 4 * HOUR_MS,
    "8h": 8 * HOUR_MS,
    "12h": 12 * HOUR_MS,
    "1d": DAY_MS,
}


def datetime_to_timestamp(dt: datetime, milliseconds: bool = False) -> int:
    """
    Convert a datetime object to Unix timestamp.

    Args:
        dt: Datetime object (can be naive or timezone-aware)
        milliseconds: If True, return milliseconds; if False, return seconds

    Returns:
        int: Unix timestamp in seconds or milliseconds

    Examples:
        >>> dt = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        >>> datetime_to_timestamp(dt)
        1704110400

        >>> datetime_to_timestamp(dt, milliseconds=True)
        1704110400000

    Notes:
        - If datetime is naive (no timezone), UTC is assumed
        - Millisecond precision is kept when milliseconds=True
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    if milliseconds:
        return int(dt.timestamp() * 1000)

    return int(dt.timestamp())


def current_utc_timestamp(milliseconds: bool = False) -> int:
    """
    Get current UTC timestamp.

    Args:
        milliseconds: If True, return milliseconds; if False, return seconds

    Returns:
        int: Current Unix timestamp

    Examples:
        >>> current_utc_timestamp()
        1704110400

        >>> current_utc_timestamp(milliseconds=True)
        1704110400000
    """
    return datetime_to_timestamp(datetime.now(timezone.utc), milliseconds)


def current_utc_ms() -> int:
    """Current wall-clock time in integer milliseconds (default clock for caches)."""
    return current_utc_timestamp(milliseconds=True)


def interval_to_ms(interval: str, default: Optional[int] = None) -> Optional[int]:
    """
    Translate an interval string into milliseconds.

    Args:
        interval: Candle interval (e.g., "3m", "4h")
        default: Value returned for unknown intervals

    Returns:
        Interval length in milliseconds, or `default` if the interval is unknown

    Example:
        >>> interval_to_ms("3m")
        180000
        >>> interval_to_ms("7m", default=MINUTE_MS)
        60000
    """
    return INTERVAL_MS.get(interval, default)
