"""
Hyperliquid REST API Client

This module provides an async HTTP client for the Hyperliquid /info endpoint.
It handles:
- HTTP POST requests with retry logic
- Rate limit handling
- Error handling and logging
- Data normalization to our schemas

API Documentation:
    https://hyperliquid.gitbook.io/hyperliquid-docs/for-developers/api

Every request is a POST with a JSON body whose "type" selects the query:
    - candleSnapshot: OHLCV candles for one coin
    - meta: instrument universe (listed coins)
    - metaAndAssetCtxs: universe plus per-coin funding, open interest, mark price

Usage:
    async with HyperliquidAPIClient() as client:
        candles = await client.get_candles("BTC", "3m", start_time, end_time)
        coins = await client.get_universe()
"""

import aiohttp
import asyncio
import time
from typing import Any, Dict, List, Optional

from core.config import settings
from core.logging import get_logger, log_api_request, log_api_response
from core.schemas import AssetContext, Candle
from core.utils.time import interval_to_ms


# HTTP statuses that are retried with backoff
RETRY_STATUSES = (418, 429, 503)


class HyperliquidAPIClient:
    """
    Async HTTP client for the Hyperliquid info API.

    Attributes:
        url: Full URL of the /info endpoint
        session: aiohttp ClientSession for HTTP requests
        logger: Logger instance for debugging

    Example:
        >>> async with HyperliquidAPIClient() as client:
        ...     candles = await client.get_candles("BTC", "3m", 1700000000000, 1700007200000)
        ...     print(f"Fetched {len(candles)} candles")

    Notes:
        - Uses context manager for automatic session cleanup
        - Implements retry logic for rate limits
        - Timestamps stay in milliseconds
    """

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.hyperliquid_info_url
        self.logger = get_logger(__name__)
        self.session: Optional[aiohttp.ClientSession] = None

    # ============================================
    # Context Manager for Session Management
    # ============================================

    async def __aenter__(self):
        self.session = aiohttp.ClientSession()
        self.logger.debug("HyperliquidAPIClient session created")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.debug("HyperliquidAPIClient session closed")

    # ============================================
    # HTTP Request Handler with Retry Logic
    # ============================================

    async def _post(self, payload: Dict[str, Any]) -> Any:
        """
        Make POST request to the info endpoint with retry logic.

        Args:
            payload: JSON payload for the POST request

        Returns:
            JSON response from API

        Raises:
            RuntimeError: If request fails after all retries

        Rate Limit Handling:
            - 429: Too many requests
            - 418: IP banned for repeated violations
            - 503: Service unavailable
            Retry delay: 1.5s * (attempt + 1)
        """
        if not self.session:
            raise RuntimeError("Client session not initialized. Use 'async with' statement.")

        request_type = payload.get("type", "unknown")
        attempts = max(1, settings.max_retries)
        log_api_request("hyperliquid", request_type, payload.get("req"))

        for attempt in range(attempts):
            started = time.monotonic()
            try:
                async with self.session.post(
                    self.url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                    timeout=aiohttp.ClientTimeout(total=settings.request_timeout)
                ) as resp:
                    log_api_response("hyperliquid", request_type, resp.status, time.monotonic() - started)

                    if resp.status == 200:
                        return await resp.json()

                    elif resp.status in RETRY_STATUSES:
                        delay = 1.5 * (attempt + 1)
                        self.logger.warning(
                            f"Rate limited (HTTP {resp.status}) on {request_type}. "
                            f"Retrying in {delay:.1f}s... (attempt {attempt + 1}/{attempts})"
                        )
                        await asyncio.sleep(delay)
                        continue

                    else:
                        text = await resp.text()
                        self.logger.error(f"HTTP {resp.status} on {request_type}: {text}")
                        break

            except asyncio.TimeoutError:
                self.logger.error(f"Timeout on {request_type} (attempt {attempt + 1}/{attempts})")
                await asyncio.sleep(1.0 * (attempt + 1))

            except aiohttp.ClientError as e:
                self.logger.error(f"Request failed on {request_type}: {e} (attempt {attempt + 1}/{attempts})")
                await asyncio.sleep(1.0 * (attempt + 1))

        raise RuntimeError(f"Failed to fetch {request_type} from {self.url} after {attempts} attempts")

    # ============================================
    # API Methods
    # ============================================

    async def get_candles(
        self,
        coin: str,
        interval: str,
        start_time: int,
        end_time: int
    ) -> List[Candle]:
        """
        Fetch candles for a coin between two timestamps.

        Args:
            coin: Venue coin (e.g., "BTC")
            interval: Candle interval (e.g., "3m", "4h")
            start_time: Window start in milliseconds
            end_time: Window end in milliseconds

        Returns:
            List of Candle objects ordered oldest first

        Raises:
            RuntimeError: If the request fails
            ValueError: If the response cannot be parsed

        Hyperliquid Endpoint:
            POST /info with {"type": "candleSnapshot", "req": {...}}

        Response Format:
            [
              {"t": 1700000000000, "T": 1700000179999, "s": "BTC", "i": "3m",
               "o": "37000.0", "h": "37010.0", "l": "36990.0", "c": "37005.0",
               "v": "12.5", "n": 120}
            ]

        Notes:
            close_time is derived as open time + interval - 1 rather than read
            from "T", so it is consistent for every interval.
        """
        payload = {
            "type": "candleSnapshot",
            "req": {
                "coin": coin,
                "interval": interval,
                "startTime": start_time,
                "endTime": end_time
            }
        }

        data = await self._post(payload)
        if not isinstance(data, list):
            raise ValueError(f"Unexpected candleSnapshot response for {coin}: {data!r}")

        interval_ms = interval_to_ms(interval, default=60_000)
        candles = [
            Candle(
                open_time=int(item["t"]),
                close_time=int(item["t"]) + interval_ms - 1,
                open=float(item["o"]),
                high=float(item["h"]),
                low=float(item["l"]),
                close=float(item["c"]),
                volume=float(item["v"]),
            )
            for item in data
        ]

        self.logger.debug(f"Fetched {len(candles)} {interval} candles for {coin}")
        return candles

    async def get_universe(self) -> List[str]:
        """
        Fetch the names of every coin listed on the venue.

        Hyperliquid Endpoint:
            POST /info with {"type": "meta"}

        Response Format:
            {"universe": [{"name": "BTC", "szDecimals": 5, "maxLeverage": 50}, ...]}
        """
        data = await self._post({"type": "meta"})
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected meta response: {data!r}")

        return [asset["name"] for asset in data.get("universe", []) if asset.get("name")]

    async def get_asset_context(self, coin: str) -> Optional[AssetContext]:
        """
        Fetch funding rate, open interest and mark price for one coin.

        Returns:
            AssetContext, or None if the coin is not in the universe

        Hyperliquid Endpoint:
            POST /info with {"type": "metaAndAssetCtxs"}

        Response Format:
            [
              {"universe": [{"name": "BTC", ...}, ...]},
              [{"funding": "0.0000125", "openInterest": "1234.5", "markPx": "37000.0", ...}, ...]
            ]

            The two lists are aligned by index.
        """
        data = await self._post({"type": "metaAndAssetCtxs"})

        if not isinstance(data, list) or len(data) < 2:
            raise ValueError(f"Unexpected metaAndAssetCtxs response: {data!r}")

        universe = data[0].get("universe", [])
        asset_ctxs = data[1]

        for idx, asset in enumerate(universe):
            if asset.get("name", "").upper() != coin.upper():
                continue
            if idx >= len(asset_ctxs):
                break

            ctx = asset_ctxs[idx]
            return AssetContext(
                coin=coin,
                funding_rate=float(ctx.get("funding") or 0),
                open_interest=float(ctx.get("openInterest") or 0),
                mark_price=float(ctx.get("markPx") or 0),
            )

        self.logger.warning(f"No asset context found for {coin}")
        return None
