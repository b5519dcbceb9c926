"""
Symbol Mapper

Bidirectional, refreshable translation between canonical trading pairs
(e.g., "BTCUSDT") and venue-native coin identifiers (e.g., "BTC").

Lifecycle:
    - Empty at construction
    - Populated on the first refresh
    - Replaced wholesale on every later refresh (coins that left the venue
      universe are dropped, nothing is merged incrementally)

Staleness:
    Before every lookup the mapper checks whether the last successful refresh
    is older than its TTL (default 10s). If so it refreshes first. A failed
    refresh is logged and the lookup continues with the mapping it already
    holds (possibly empty or stale).

Fallbacks:
    - pair_to_coin: an unknown pair ending with the quote suffix ("USDT") maps
      to the pair without the suffix; anything else raises SymbolMappingError
    - coin_to_pair: an unknown coin maps to coin + "USDT"

Usage:
    mapper = SymbolMapper(client.get_universe, ttl=10.0)
    await mapper.refresh_mapping()
    coin = await mapper.pair_to_coin("BTCUSDT")   # "BTC"
"""

import asyncio
import time
from typing import Awaitable, Callable, Dict, Iterable, Optional, Set

from core.exceptions import SymbolMappingError
from core.logging import get_logger
from core.utils.rwlock import ReadWriteLock


DEFAULT_QUOTE_ASSET = "USDT"
DEFAULT_MAPPING_TTL = 10.0

logger = get_logger(__name__)


def normalize_symbol(symbol: str, quote_asset: str = DEFAULT_QUOTE_ASSET) -> str:
    """
    Normalize a user-supplied symbol into a canonical trading pair.

    Example:
        >>> normalize_symbol(" btc ")
        'BTCUSDT'
        >>> normalize_symbol("ethusdt")
        'ETHUSDT'
    """
    symbol = symbol.strip().upper()
    if not symbol.endswith(quote_asset):
        symbol += quote_asset
    return symbol


class SymbolMapper:
    """
    Coin <-> pair mapping built from a venue's instrument universe.

    Args:
        fetch_universe: Async callable returning every coin listed on the venue
        ttl: Seconds before the mapping is considered stale
        quote_asset: Canonical quote currency suffix
        clock: Monotonic clock in seconds (injectable for tests)
    """

    def __init__(
        self,
        fetch_universe: Callable[[], Awaitable[Iterable[str]]],
        ttl: float = DEFAULT_MAPPING_TTL,
        quote_asset: str = DEFAULT_QUOTE_ASSET,
        clock: Callable[[], float] = time.monotonic
    ):
        self._fetch_universe = fetch_universe
        self.ttl = ttl if ttl > 0 else DEFAULT_MAPPING_TTL
        self.quote_asset = quote_asset
        self._clock = clock

        self._coin_to_pair: Dict[str, str] = {}
        self._pair_to_coin: Dict[str, str] = {}
        self._last_update: Optional[float] = None
        self._lock = ReadWriteLock()
        self._refresh_lock: Optional[asyncio.Lock] = None

    # ============================================
    # Refresh
    # ============================================

    async def refresh_mapping(self) -> None:
        """
        Rebuild both directional maps from the venue universe.

        Refreshes are serialized: fetch, build and swap all happen under the
        refresh lock, so an older universe never replaces a newer one. Both
        maps are swapped in together under the exclusive lock, so readers see
        either the old mapping or the new one, never a mix.

        Raises:
            SymbolMappingError: If the universe cannot be fetched
        """
        async with self._get_refresh_lock():
            await self._rebuild()

    def _get_refresh_lock(self) -> asyncio.Lock:
        # bound to the loop of the first refresh
        if self._refresh_lock is None:
            self._refresh_lock = asyncio.Lock()
        return self._refresh_lock

    async def _rebuild(self) -> None:
        try:
            coins = await self._fetch_universe()
        except Exception as e:
            raise SymbolMappingError(f"failed to fetch instrument universe: {e}") from e

        coin_to_pair: Dict[str, str] = {}
        pair_to_coin: Dict[str, str] = {}
        for coin in coins:
            pair = f"{coin}{self.quote_asset}"
            coin_to_pair[coin] = pair
            pair_to_coin[pair] = coin

        with self._lock.write_lock():
            self._coin_to_pair = coin_to_pair
            self._pair_to_coin = pair_to_coin
            self._last_update = self._clock()

        logger.info(f"Symbol mapping refreshed: {len(coin_to_pair)} coins")

    def load_mapping(self, coins: Iterable[str]) -> None:
        """Replace the mapping from a known coin list without a remote fetch."""
        coin_to_pair = {coin: f"{coin}{self.quote_asset}" for coin in coins}
        pair_to_coin = {pair: coin for coin, pair in coin_to_pair.items()}

        with self._lock.write_lock():
            self._coin_to_pair = coin_to_pair
            self._pair_to_coin = pair_to_coin
            self._last_update = self._clock()

    def is_stale(self) -> bool:
        with self._lock.read_lock():
            if self._last_update is None:
                return True
            return self._clock() - self._last_update > self.ttl

    async def _refresh_if_stale(self) -> None:
        if not self.is_stale():
            return
        async with self._get_refresh_lock():
            # another lookup may have refreshed while we waited
            if not self.is_stale():
                return
            try:
                await self._rebuild()
            except SymbolMappingError as e:
                logger.warning(f"Failed to refresh symbol mapping: {e}")

    # ============================================
    # Lookups
    # ============================================

    async def pair_to_coin(self, pair: str) -> str:
        """
        Translate a canonical pair into the venue coin.

        Raises:
            SymbolMappingError: If the pair is unknown and has no quote suffix
        """
        await self._refresh_if_stale()

        with self._lock.read_lock():
            coin = self._pair_to_coin.get(pair)
        if coin is not None:
            return coin

        if pair.endswith(self.quote_asset) and len(pair) > len(self.quote_asset):
            coin = pair[:-len(self.quote_asset)]
            logger.warning(f"Symbol {pair} not in mapping, using fallback: {coin}")
            return coin

        raise SymbolMappingError(f"cannot map pair {pair} to a venue coin")

    async def coin_to_pair(self, coin: str) -> str:
        """Translate a venue coin into the canonical pair (falls back to coin + quote)."""
        await self._refresh_if_stale()

        with self._lock.read_lock():
            pair = self._coin_to_pair.get(coin)
        if pair is not None:
            return pair

        pair = f"{coin}{self.quote_asset}"
        logger.warning(f"Coin {coin} not in mapping, using fallback: {pair}")
        return pair

    def all_coins(self) -> Set[str]:
        """Every coin in the current mapping (no refresh is triggered)."""
        with self._lock.read_lock():
            return set(self._coin_to_pair)

    def __len__(self) -> int:
        with self._lock.read_lock():
            return len(self._coin_to_pair)
