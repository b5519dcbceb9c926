"""
Hyperliquid Data Provider

This module implements the DataProvider interface for Hyperliquid.

Hyperliquid is a decentralized perpetual futures exchange. Its API identifies
markets by coin ("BTC") instead of by pair ("BTCUSDT"), so this provider owns
a SymbolMapper that translates canonical pairs into venue coins.

API Documentation:
    https://hyperliquid.gitbook.io/hyperliquid-docs/for-developers/api

Endpoints Used (POST to https://api.hyperliquid.xyz/info):
    - {"type": "candleSnapshot"} - Candles for one coin
    - {"type": "meta"} - Instrument universe for the symbol mapping
    - {"type": "metaAndAssetCtxs"} - Funding rate, open interest and mark price

Caching:
    - Candles: per (coin, interval, limit) until the next interval boundary
    - Context signals: per coin for CONTEXT_CACHE_TTL seconds (default 10)
    - Symbol mapping: refreshed when older than SYMBOL_MAP_TTL seconds

Structure:
    exchanges/hyperliquid/
    ├── __init__.py          # This file (HyperliquidProvider class)
    └── api_client.py        # REST API client with aiohttp
"""

from typing import Callable, List, Optional

from core.config import settings
from core.exceptions import CandleFetchError, SymbolMappingError
from core.logging import get_logger
from core.metrics import ProviderMetrics
from core.provider_interface import DataProvider
from core.schemas import Candle, ContextRecord
from core.symbol_map import SymbolMapper, normalize_symbol
from core.utils.time import MINUTE_MS, interval_to_ms
from storage.candle_cache import CandleCache, align_to_boundaries, calculate_next_boundary
from storage.context_cache import ContextCache
from .api_client import HyperliquidAPIClient


# Candles requested for the mark price fallback; the newest may still be
# forming and get dropped by alignment
MARK_PRICE_FALLBACK_INTERVAL = "3m"
MARK_PRICE_FALLBACK_LIMIT = 2


class HyperliquidProvider(DataProvider):
    """
    Hyperliquid Data Provider

    Attributes:
        name: Provider identifier ("hyperliquid")
        capabilities: Dictionary of supported features
        client: REST client (created in initialize() unless injected)
        mapper: Pair <-> coin mapping
        candle_cache: Boundary-aligned candle cache
        context_cache: Fixed-TTL funding / open interest / mark price cache
        metrics: Request, error and cache counters

    Example:
        >>> provider = HyperliquidProvider()
        >>> await provider.initialize()
        >>> candles = await provider.get_klines("BTCUSDT", "3m", 40)
        >>> data = await provider.get_market_data("BTCUSDT")
        >>> await provider.shutdown()

    Notes:
        - Every component can be injected, so tests run without the network
        - Funding and open interest failures resolve to 0 and are cached
    """

    name = "hyperliquid"

    capabilities = {
        "klines": True,
        "funding_rate": True,
        "open_interest": True,
        "mark_price": True
    }

    def __init__(
        self,
        client: Optional[HyperliquidAPIClient] = None,
        mapper: Optional[SymbolMapper] = None,
        candle_cache: Optional[CandleCache] = None,
        context_cache: Optional[ContextCache] = None,
        clock: Optional[Callable[[], int]] = None
    ):
        """
        Args:
            client: REST client; when given, its session lifecycle is left to the caller
            mapper: Symbol mapper; defaults to one backed by client.get_universe
            candle_cache: Candle cache; defaults to a new CandleCache
            context_cache: Context cache; defaults to one with CONTEXT_CACHE_TTL
            clock: "now" in milliseconds, shared by the default caches
        """
        self.logger = get_logger(__name__)

        self.client = client
        self._owns_client = client is None

        cache_kwargs = {"clock": clock} if clock is not None else {}
        self.candle_cache = candle_cache or CandleCache(**cache_kwargs)
        self.context_cache = context_cache or ContextCache(ttl=settings.context_cache_ttl, **cache_kwargs)
        self.mapper = mapper or SymbolMapper(
            self._fetch_universe,
            ttl=settings.symbol_map_ttl,
            quote_asset=settings.quote_asset
        )
        self.metrics = ProviderMetrics(self.name)

        self.logger.debug(f"HyperliquidProvider created (url={settings.hyperliquid_info_url})")

    # ============================================
    # Lifecycle
    # ============================================

    async def initialize(self) -> None:
        """
        Open the HTTP session and load the initial symbol mapping.

        A failed mapping refresh is logged; lookups retry it once the
        mapping is stale.
        """
        self.logger.info("Initializing Hyperliquid data provider...")

        if self.client is None:
            self.client = HyperliquidAPIClient()
            await self.client.__aenter__()
            self._owns_client = True

        try:
            await self.mapper.refresh_mapping()
        except SymbolMappingError as e:
            self.logger.warning(f"Initial symbol mapping failed: {e}")

        self.logger.info(f"✓ Hyperliquid data provider initialized ({len(self.mapper)} coins)")

    async def shutdown(self) -> None:
        self.logger.info("Shutting down Hyperliquid data provider...")

        if self.client and self._owns_client:
            await self.client.__aexit__(None, None, None)
            self.client = None

        self.logger.info("✓ Hyperliquid data provider shut down")

    async def health_check(self) -> bool:
        """True if the instrument universe can be fetched and is non-empty."""
        try:
            if self.client:
                return len(await self.client.get_universe()) > 0
            return False
        except Exception as e:
            self.logger.error(f"Hyperliquid health check failed: {e}")
            return False

    # ============================================
    # Candles
    # ============================================

    async def get_klines(self, symbol: str, interval: str, limit: int) -> List[Candle]:
        """
        Fetch the most recent candles for a canonical pair.

        Flow:
            pair -> coin -> candle cache -> candleSnapshot over
            [now - limit * interval, now] -> trim to limit -> align -> cache

        Raises:
            SymbolMappingError: If the pair cannot be mapped
            CandleFetchError: If the remote fetch fails
        """
        self.metrics.record_request()
        coin = await self._to_coin(symbol)

        key = CandleCache.make_key(coin, interval, limit)
        cached = self.candle_cache.get(key)
        if cached is not None:
            self.metrics.record_cache_hit()
            return cached
        self.metrics.record_cache_miss()

        now = self.candle_cache.now()
        interval_ms = interval_to_ms(interval, default=MINUTE_MS)
        start_time = now - limit * interval_ms

        try:
            candles = await self._require_client().get_candles(coin, interval, start_time, now)
        except Exception as e:
            self.metrics.record_error()
            self.logger.error(f"Failed to fetch {interval} candles for {coin}: {e}")
            raise CandleFetchError(f"hyperliquid candleSnapshot failed for {coin} {interval}: {e}") from e

        if len(candles) > limit:
            candles = candles[-limit:]

        candles = align_to_boundaries(candles, interval, now)
        self.candle_cache.put(key, candles, calculate_next_boundary(interval, now))

        return candles

    # ============================================
    # Context Signals
    # ============================================

    async def get_funding_rate(self, symbol: str) -> float:
        self.metrics.record_request()
        coin = await self._to_coin(symbol)
        record = await self._get_context(coin)
        return record.funding_rate

    async def get_open_interest(self, symbol: str) -> float:
        self.metrics.record_request()
        coin = await self._to_coin(symbol)
        record = await self._get_context(coin)
        return record.open_interest

    async def get_mark_price(self, symbol: str) -> float:
        """
        Mark price from the context cache, else from the asset context, else
        the close of the latest completed 3m candle. 0 if none is available.
        """
        self.metrics.record_request()
        coin = await self._to_coin(symbol)

        cached = self.context_cache.get(coin)
        if cached is not None:
            self.metrics.record_cache_hit()
            return cached.mark_price
        self.metrics.record_cache_miss()

        record = await self._fetch_context(coin)
        if record.mark_price > 0:
            self.context_cache.put(coin, record)
            return record.mark_price

        mark_price = 0.0
        try:
            candles = await self.get_klines(symbol, MARK_PRICE_FALLBACK_INTERVAL, MARK_PRICE_FALLBACK_LIMIT)
            if candles:
                mark_price = candles[-1].close
        except CandleFetchError as e:
            self.logger.warning(f"Mark price not available for {coin}: {e}")

        self.context_cache.put(coin, record.model_copy(update={"mark_price": mark_price}))
        return mark_price

    async def _get_context(self, coin: str) -> ContextRecord:
        cached = self.context_cache.get(coin)
        if cached is not None:
            self.metrics.record_cache_hit()
            return cached
        self.metrics.record_cache_miss()

        record = await self._fetch_context(coin)
        self.context_cache.put(coin, record)
        return record

    async def _fetch_context(self, coin: str) -> ContextRecord:
        """Remote asset context as a ContextRecord; a zero record on failure or unknown coin."""
        try:
            ctx = await self._require_client().get_asset_context(coin)
        except Exception as e:
            self.metrics.record_error()
            self.logger.warning(f"Asset context not available for {coin}, using 0: {e}")
            return ContextRecord()

        if ctx is None:
            return ContextRecord()

        return ContextRecord(
            funding_rate=ctx.funding_rate,
            open_interest=ctx.open_interest,
            mark_price=ctx.mark_price
        )

    # ============================================
    # Helpers
    # ============================================

    async def _to_coin(self, symbol: str) -> str:
        try:
            return await self.mapper.pair_to_coin(normalize_symbol(symbol, self.mapper.quote_asset))
        except SymbolMappingError:
            self.metrics.record_error()
            raise

    async def _fetch_universe(self) -> List[str]:
        return await self._require_client().get_universe()

    def _require_client(self) -> HyperliquidAPIClient:
        if self.client is None:
            raise RuntimeError("HyperliquidProvider not initialized. Call initialize() first.")
        return self.client


__all__ = ["HyperliquidProvider", "HyperliquidAPIClient"]
