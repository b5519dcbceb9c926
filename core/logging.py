"""
Unified Logging Configuration

This module sets up a centralized logging system for the entire application.
All modules should import and use the logger from this module instead of
using print() statements.

Usage:
    from core.logging import logger, get_logger

    logger.info("General informational messages")

    log = get_logger(__name__)
    log.warning("Symbol XYZUSDT not in mapping, using fallback: XYZ")

Log Levels used across the facade:
    DEBUG    - Cache hits/misses, request payloads, response timings
    INFO     - Provider lifecycle, mapping refreshes, fetched batch sizes
    WARNING  - Fallbacks and recovered failures (mapping fallback, signal defaults)
    ERROR    - Failed remote fetches that surface to the caller

Configuration:
    Log level is controlled by the LOG_LEVEL setting in .env file.
"""

import logging
import sys
from typing import Optional


ROOT_LOGGER_NAME = "marketfacade"


def setup_logging(
    log_level: str = "INFO",
    log_format: Optional[str] = None,
    include_timestamp: bool = True,
    include_module: bool = True
) -> logging.Logger:
    """
    Configure and return the application logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string (uses default if None)
        include_timestamp: Include timestamp in log messages
        include_module: Include module name in log messages

    Returns:
        logging.Logger: Configured logger instance

    Example:
        >>> logger = setup_logging(log_level="DEBUG")
        >>> logger.info("Application started")
        2024-01-01 12:00:00 [INFO] marketfacade: Application started
    """
    if log_format is None:
        format_parts = []

        if include_timestamp:
            format_parts.append("%(asctime)s")

        format_parts.append("[%(levelname)s]")

        if include_module:
            format_parts.append("%(name)s")

        format_parts.append("%(message)s")

        log_format = " ".join(format_parts)

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=log_format,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True
    )

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    return logger


# ============================================
# Initialize Logger with Settings
# ============================================

try:
    from core.config import settings
    log_level = settings.log_level if hasattr(settings, 'log_level') else "INFO"
except ImportError:
    log_level = "INFO"

logger = setup_logging(log_level=log_level)


# ============================================
# Convenience Functions
# ============================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module or component.

    Args:
        name: Name for the logger (typically __name__)

    Returns:
        logging.Logger: Logger instance for the specified name

    Example:
        # In exchanges/hyperliquid/api_client.py:
        from core.logging import get_logger
        logger = get_logger(__name__)  # "marketfacade.exchanges.hyperliquid.api_client"
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


# ============================================
# Log Helper Functions
# ============================================

def log_api_request(exchange: str, endpoint: str, params: dict = None) -> None:
    """
    Log an API request with consistent formatting.

    Example:
        >>> log_api_request("binance", "/fapi/v1/klines", {"symbol": "BTCUSDT", "interval": "3m"})
        [DEBUG] API Request: binance /fapi/v1/klines | Params: {'symbol': 'BTCUSDT', 'interval': '3m'}
    """
    if params:
        logger.debug(f"API Request: {exchange} {endpoint} | Params: {params}")
    else:
        logger.debug(f"API Request: {exchange} {endpoint}")


def log_api_response(exchange: str, endpoint: str, status: int, response_time: float = None) -> None:
    """
    Log an API response with status and timing information.

    Example:
        >>> log_api_response("binance", "/fapi/v1/klines", 200, 0.342)
        [DEBUG] API Response: binance /fapi/v1/klines | Status: 200 | Time: 0.342s
    """
    time_str = f" | Time: {response_time:.3f}s" if response_time else ""
    logger.debug(f"API Response: {exchange} {endpoint} | Status: {status}{time_str}")


def log_cache_event(cache: str, event: str, key: object, details: str = None) -> None:
    """
    Log a cache event (hit, miss, store, expired) with consistent formatting.

    Example:
        >>> log_cache_event("candles", "hit", ("BTC", "3m", 40))
        [DEBUG] Cache: candles hit | Key: ('BTC', '3m', 40)
    """
    details_str = f" | {details}" if details else ""
    logger.debug(f"Cache: {cache} {event} | Key: {key}{details_str}")


logger.debug("Logging system initialized")
