"""
Binance REST API Client

This module provides an async HTTP client for the Binance USD-M Futures REST API.
It handles:
- HTTP requests with retry logic
- Rate limit handling (429, 418, 503 errors)
- Error handling and logging
- Data normalization to our schemas

API Documentation:
    https://binance-docs.github.io/apidocs/futures/en/

Rate Limits:
    - Weight-based system (each endpoint has a weight)
    - 2400 weight per minute limit
    - This client retries rate-limited requests with a growing delay

Usage:
    async with BinanceAPIClient() as client:
        candles = await client.get_klines("BTCUSDT", "3m", limit=40)
        oi = await client.get_open_interest("BTCUSDT")
"""

import aiohttp
import asyncio
import time
from typing import Any, Dict, List, Optional

from core.config import settings
from core.logging import get_logger, log_api_request, log_api_response
from core.schemas import Candle, PremiumIndex


# Maximum klines Binance returns per request
MAX_KLINES_LIMIT = 1500

RETRY_STATUSES = (418, 429, 503)


class BinanceAPIClient:
    """
    Async HTTP client for Binance Futures REST API

    Attributes:
        base_url: Binance Futures API base URL
        api_key: Optional API key for authenticated endpoints
        session: aiohttp ClientSession for HTTP requests
        logger: Logger instance for debugging

    Example:
        >>> async with BinanceAPIClient() as client:
        ...     candles = await client.get_klines("BTCUSDT", "4h", limit=60)
        ...     print(f"Fetched {len(candles)} candles")

    Notes:
        - Uses context manager for automatic session cleanup
        - No API key needed for public endpoints
    """

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None):
        """
        Args:
            base_url: Override of BINANCE_BASE_URL
            api_key: Optional Binance API key (not needed for public endpoints)
        """
        self.base_url = (base_url or settings.binance_base_url).rstrip("/")
        self.api_key = api_key
        self.logger = get_logger(__name__)
        self.session: Optional[aiohttp.ClientSession] = None

    # ============================================
    # Context Manager for Session Management
    # ============================================

    async def __aenter__(self):
        self.session = aiohttp.ClientSession()
        self.logger.debug("BinanceAPIClient session created")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.debug("BinanceAPIClient session closed")

    # ============================================
    # HTTP Request Handler with Retry Logic
    # ============================================

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Make GET request to Binance API with retry logic.

        Args:
            path: API endpoint path (e.g., "/fapi/v1/klines")
            params: Optional query parameters

        Returns:
            JSON response from API

        Raises:
            RuntimeError: If request fails after all retries

        Rate Limit Handling:
            - 429: Too many requests
            - 418: IP banned (temporary)
            - 503: Service unavailable

            Retry delay: 1.5s * (attempt + 1)
        """
        if not self.session:
            raise RuntimeError("Client session not initialized. Use 'async with' statement.")

        url = f"{self.base_url}{path}"
        attempts = max(1, settings.max_retries)

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-MBX-APIKEY"] = self.api_key

        log_api_request("binance", path, params)

        for attempt in range(attempts):
            started = time.monotonic()
            try:
                async with self.session.get(
                    url,
                    params=params,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=settings.request_timeout)
                ) as resp:
                    log_api_response("binance", path, resp.status, time.monotonic() - started)

                    if resp.status == 200:
                        return await resp.json()

                    elif resp.status in RETRY_STATUSES:
                        delay = 1.5 * (attempt + 1)
                        self.logger.warning(
                            f"Rate limited (HTTP {resp.status}) on {path}. "
                            f"Retrying in {delay:.1f}s... (attempt {attempt + 1}/{attempts})"
                        )
                        await asyncio.sleep(delay)
                        continue

                    else:
                        text = await resp.text()
                        self.logger.error(f"HTTP {resp.status} on {path}: {text}")
                        break

            except asyncio.TimeoutError:
                self.logger.error(f"Timeout on {path} (attempt {attempt + 1}/{attempts})")
                await asyncio.sleep(1.0 * (attempt + 1))

            except aiohttp.ClientError as e:
                self.logger.error(f"Request failed on {path}: {e} (attempt {attempt + 1}/{attempts})")
                await asyncio.sleep(1.0 * (attempt + 1))

        raise RuntimeError(f"Failed to fetch {url} after {attempts} attempts")

    # ============================================
    # API Methods
    # ============================================

    async def get_klines(self, symbol: str, interval: str, limit: int = 500) -> List[Candle]:
        """
        Fetch the most recent candles for a symbol.

        Args:
            symbol: Trading pair (e.g., "BTCUSDT")
            interval: Candlestick interval (e.g., "3m", "4h")
            limit: Number of candles (capped at 1500)

        Returns:
            List of Candle objects ordered oldest first

        Binance Endpoint:
            GET /fapi/v1/klines

        Response Format:
            [
              [
                1499040000000,      // Open time
                "0.01634790",       // Open
                "0.80000000",       // High
                "0.01575800",       // Low
                "0.01577100",       // Close
                "148976.11427815",  // Volume
                1499644799999,      // Close time
                ...
              ]
            ]
        """
        params = {
            "symbol": symbol.upper(),
            "interval": interval,
            "limit": min(limit, MAX_KLINES_LIMIT)
        }

        data = await self._get("/fapi/v1/klines", params)
        if not isinstance(data, list):
            raise ValueError(f"Unexpected klines response for {symbol}: {data!r}")

        candles = [
            Candle(
                open_time=int(item[0]),
                open=float(item[1]),
                high=float(item[2]),
                low=float(item[3]),
                close=float(item[4]),
                volume=float(item[5]),
                close_time=int(item[6]),
            )
            for item in data
        ]

        self.logger.debug(f"Fetched {len(candles)} {interval} candles for {symbol}")
        return candles

    async def get_premium_index(self, symbol: str) -> PremiumIndex:
        """
        Fetch mark price and last funding rate for a symbol.

        Binance Endpoint:
            GET /fapi/v1/premiumIndex

        Response Format:
            {
              "symbol": "BTCUSDT",
              "markPrice": "11793.63104562",
              "indexPrice": "11781.80495970",
              "lastFundingRate": "0.00038246",
              "nextFundingTime": 1597392000000,
              ...
            }
        """
        data = await self._get("/fapi/v1/premiumIndex", {"symbol": symbol.upper()})

        return PremiumIndex(
            symbol=data.get("symbol", symbol.upper()),
            mark_price=float(data.get("markPrice") or 0),
            index_price=float(data.get("indexPrice") or 0),
            last_funding_rate=float(data.get("lastFundingRate") or 0),
            next_funding_time=int(data.get("nextFundingTime") or 0),
        )

    async def get_open_interest(self, symbol: str) -> float:
        """
        Fetch current open interest for a symbol (base asset units).

        Binance Endpoint:
            GET /fapi/v1/openInterest

        Response Format:
            {"openInterest": "10659.509", "symbol": "BTCUSDT", "time": 1589437530011}
        """
        data = await self._get("/fapi/v1/openInterest", {"symbol": symbol.upper()})
        return float(data.get("openInterest") or 0)
