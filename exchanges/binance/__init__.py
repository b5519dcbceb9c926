"""
Binance Data Provider

This module implements the DataProvider interface for Binance Futures (USD-M).

Binance lists markets under the canonical pair itself ("BTCUSDT"), so no
symbol mapping is needed, and its responses are served without a local cache.

API Documentation:
    https://binance-docs.github.io/apidocs/futures/en/

Endpoints Used:
    - GET /fapi/v1/klines - Candlestick data
    - GET /fapi/v1/premiumIndex - Mark price and last funding rate
    - GET /fapi/v1/openInterest - Current open interest

Structure:
    exchanges/binance/
    ├── __init__.py          # This file (BinanceProvider class)
    └── api_client.py        # REST API client with aiohttp
"""

from typing import List, Optional

from core.exceptions import CandleFetchError, SignalUnavailableError
from core.logging import get_logger
from core.metrics import ProviderMetrics
from core.provider_interface import DataProvider
from core.schemas import Candle, PremiumIndex
from core.symbol_map import normalize_symbol
from .api_client import BinanceAPIClient


class BinanceProvider(DataProvider):
    """
    Binance Futures Data Provider

    Example:
        >>> provider = BinanceProvider()
        >>> await provider.initialize()
        >>> candles = await provider.get_klines("BTCUSDT", "3m", 40)
        >>> rate = await provider.get_funding_rate("BTCUSDT")
        >>> await provider.shutdown()

    Notes:
        - Candle fetch failures raise CandleFetchError
        - Funding, open interest and mark price failures raise
          SignalUnavailableError, which the market data assembler recovers as 0
    """

    name = "binance"

    capabilities = {
        "klines": True,
        "funding_rate": True,
        "open_interest": True,
        "mark_price": True
    }

    def __init__(self, client: Optional[BinanceAPIClient] = None):
        """
        Args:
            client: REST client; when given, its session lifecycle is left to the caller
        """
        self.logger = get_logger(__name__)
        self.client = client
        self._owns_client = client is None
        self.metrics = ProviderMetrics(self.name)

    # ============================================
    # Lifecycle
    # ============================================

    async def initialize(self) -> None:
        self.logger.info("Initializing Binance data provider...")

        if self.client is None:
            self.client = BinanceAPIClient()
            await self.client.__aenter__()
            self._owns_client = True

        self.logger.info("✓ Binance data provider initialized")

    async def shutdown(self) -> None:
        self.logger.info("Shutting down Binance data provider...")

        if self.client and self._owns_client:
            await self.client.__aexit__(None, None, None)
            self.client = None

        self.logger.info("✓ Binance data provider shut down")

    async def health_check(self) -> bool:
        """True if a single BTCUSDT candle can be fetched."""
        try:
            if self.client:
                candles = await self.client.get_klines("BTCUSDT", "1m", limit=1)
                return len(candles) > 0
            return False
        except Exception as e:
            self.logger.error(f"Binance health check failed: {e}")
            return False

    # ============================================
    # REST API Methods
    # ============================================

    async def get_klines(self, symbol: str, interval: str, limit: int) -> List[Candle]:
        """
        Raises:
            CandleFetchError: If the request fails
        """
        self.metrics.record_request()
        symbol = normalize_symbol(symbol)

        try:
            return await self._require_client().get_klines(symbol, interval, limit)
        except Exception as e:
            self.metrics.record_error()
            self.logger.error(f"Failed to fetch {interval} klines for {symbol}: {e}")
            raise CandleFetchError(f"binance klines failed for {symbol} {interval}: {e}") from e

    async def get_funding_rate(self, symbol: str) -> float:
        premium = await self._get_premium_index(symbol)
        return premium.last_funding_rate

    async def get_mark_price(self, symbol: str) -> float:
        premium = await self._get_premium_index(symbol)
        return premium.mark_price

    async def get_open_interest(self, symbol: str) -> float:
        self.metrics.record_request()
        symbol = normalize_symbol(symbol)

        try:
            return await self._require_client().get_open_interest(symbol)
        except Exception as e:
            self.metrics.record_error()
            raise SignalUnavailableError(f"binance open interest unavailable for {symbol}: {e}") from e

    # ============================================
    # Helpers
    # ============================================

    async def _get_premium_index(self, symbol: str) -> PremiumIndex:
        self.metrics.record_request()
        symbol = normalize_symbol(symbol)

        try:
            return await self._require_client().get_premium_index(symbol)
        except Exception as e:
            self.metrics.record_error()
            raise SignalUnavailableError(f"binance premium index unavailable for {symbol}: {e}") from e

    def _require_client(self) -> BinanceAPIClient:
        if self.client is None:
            raise RuntimeError("BinanceProvider not initialized. Call initialize() first.")
        return self.client


__all__ = ["BinanceProvider", "BinanceAPIClient"]
