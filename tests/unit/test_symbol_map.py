"""
Unit Tests for the Symbol Mapper

These tests verify that:
- Known coins map both ways (BTC <-> BTCUSDT)
- Unknown pairs with the quote suffix fall back to the stripped coin
- Unknown coins fall back to coin + "USDT"
- A refresh replaces the mapping wholesale (delisted coins disappear)
- A failed refresh keeps the mapping that was already loaded
- Overlapping refreshes are serialized (the newest universe wins)

Run with:
    pytest tests/unit/test_symbol_map.py -v
"""

import asyncio

import pytest

from core.exceptions import SymbolMappingError
from core.symbol_map import SymbolMapper, normalize_symbol


class FakeUniverse:
    """Async universe fetcher returning `coins`, or raising `error` when set."""

    def __init__(self, coins):
        self.coins = list(coins)
        self.error = None
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return list(self.coins)


@pytest.fixture
def universe():
    return FakeUniverse(["BTC", "ETH", "SOL"])


@pytest.fixture
def seconds_clock(clock):
    clock.now = 1000.0
    return clock


class TestNormalizeSymbol:

    def test_appends_quote_suffix(self):
        assert normalize_symbol("btc") == "BTCUSDT"

    def test_keeps_existing_suffix(self):
        assert normalize_symbol(" ethusdt ") == "ETHUSDT"


class TestLookups:

    @pytest.mark.asyncio
    async def test_pair_to_coin(self, universe):
        mapper = SymbolMapper(universe)
        assert await mapper.pair_to_coin("BTCUSDT") == "BTC"

    @pytest.mark.asyncio
    async def test_coin_to_pair(self, universe):
        mapper = SymbolMapper(universe)
        assert await mapper.coin_to_pair("BTC") == "BTCUSDT"

    @pytest.mark.asyncio
    async def test_unknown_pair_falls_back_to_stripped_coin(self, universe):
        mapper = SymbolMapper(universe)
        assert await mapper.pair_to_coin("XYZUSDT") == "XYZ"

    @pytest.mark.asyncio
    async def test_unknown_coin_falls_back_to_pair(self, universe):
        mapper = SymbolMapper(universe)
        assert await mapper.coin_to_pair("XYZ") == "XYZUSDT"

    @pytest.mark.asyncio
    async def test_pair_without_suffix_raises(self, universe):
        mapper = SymbolMapper(universe)
        with pytest.raises(SymbolMappingError):
            await mapper.pair_to_coin("XYZ")

    @pytest.mark.asyncio
    async def test_bare_quote_asset_raises(self, universe):
        mapper = SymbolMapper(universe)
        with pytest.raises(SymbolMappingError):
            await mapper.pair_to_coin("USDT")

    @pytest.mark.asyncio
    async def test_fresh_mapping_is_not_refetched(self, universe, seconds_clock):
        mapper = SymbolMapper(universe, ttl=10.0, clock=seconds_clock)

        await mapper.pair_to_coin("BTCUSDT")
        seconds_clock.advance(5)
        await mapper.pair_to_coin("ETHUSDT")

        assert universe.calls == 1


class TestRefresh:

    @pytest.mark.asyncio
    async def test_refresh_drops_delisted_coins(self, universe, seconds_clock):
        mapper = SymbolMapper(universe, ttl=10.0, clock=seconds_clock)
        await mapper.refresh_mapping()
        assert "SOL" in mapper.all_coins()

        universe.coins = ["BTC", "ETH"]
        await mapper.refresh_mapping()

        assert mapper.all_coins() == {"BTC", "ETH"}

    @pytest.mark.asyncio
    async def test_stale_mapping_is_refreshed_on_lookup(self, universe, seconds_clock):
        mapper = SymbolMapper(universe, ttl=10.0, clock=seconds_clock)
        await mapper.refresh_mapping()

        universe.coins = ["BTC", "ETH", "SOL", "HYPE"]
        seconds_clock.advance(11)

        assert await mapper.coin_to_pair("HYPE") == "HYPEUSDT"
        assert "HYPE" in mapper.all_coins()
        assert universe.calls == 2

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_old_mapping(self, universe, seconds_clock):
        mapper = SymbolMapper(universe, ttl=10.0, clock=seconds_clock)
        await mapper.refresh_mapping()

        universe.error = RuntimeError("venue down")
        seconds_clock.advance(11)

        assert await mapper.pair_to_coin("ETHUSDT") == "ETH"
        assert len(mapper) == 3

    @pytest.mark.asyncio
    async def test_refresh_failure_raises_mapping_error(self, universe):
        universe.error = RuntimeError("venue down")
        mapper = SymbolMapper(universe)

        with pytest.raises(SymbolMappingError):
            await mapper.refresh_mapping()

    @pytest.mark.asyncio
    async def test_overlapping_refreshes_keep_newest_universe(self):
        responses = [["BTC", "OLD"], ["BTC", "NEW"]]

        async def slow_then_fast():
            coins = responses.pop(0)
            if "OLD" in coins:
                await asyncio.sleep(0.05)
            return coins

        mapper = SymbolMapper(slow_then_fast)

        first = asyncio.create_task(mapper.refresh_mapping())
        await asyncio.sleep(0)
        second = asyncio.create_task(mapper.refresh_mapping())
        await asyncio.gather(first, second)

        assert mapper.all_coins() == {"BTC", "NEW"}

    @pytest.mark.asyncio
    async def test_concurrent_stale_lookups_fetch_once(self, universe, seconds_clock):
        mapper = SymbolMapper(universe, ttl=10.0, clock=seconds_clock)

        coins = await asyncio.gather(
            mapper.pair_to_coin("BTCUSDT"),
            mapper.pair_to_coin("ETHUSDT"),
            mapper.pair_to_coin("SOLUSDT"),
        )

        assert coins == ["BTC", "ETH", "SOL"]
        assert universe.calls == 1

    def test_load_mapping_without_fetch(self, universe):
        mapper = SymbolMapper(universe)
        mapper.load_mapping(["BTC"])

        assert mapper.all_coins() == {"BTC"}
        assert not mapper.is_stale()
        assert universe.calls == 0
