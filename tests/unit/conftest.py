"""
Shared fixtures for unit tests.

Provides:
- FakeClock: settable millisecond clock for caches and providers
- make_candles: candle factory over a list of closes
- FakeProvider: in-memory DataProvider with configurable failures
"""

from typing import Dict, List, Optional, Sequence

import pytest

from core.exceptions import SymbolMappingError
from core.metrics import ProviderMetrics
from core.provider_interface import DataProvider
from core.schemas import Candle


NOW_MS = 1700000100000  # aligned to both the 3m grid and the minute


class FakeClock:
    """Callable clock returning `now` (milliseconds or seconds, as the test needs)."""

    def __init__(self, now=NOW_MS):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, delta):
        self.now += delta


def build_candles(
    closes: Sequence[float],
    interval_ms: int = 180_000,
    end_open_time: int = NOW_MS - 180_000,
    volume: float = 10.0
) -> List[Candle]:
    """Candles with the given closes, the last one opening at `end_open_time`."""
    first_open = end_open_time - (len(closes) - 1) * interval_ms
    candles = []
    for i, close in enumerate(closes):
        open_time = first_open + i * interval_ms
        candles.append(Candle(
            open_time=open_time,
            close_time=open_time + interval_ms - 1,
            open=close,
            high=close + 1.0,
            low=max(close - 1.0, 0.0),
            close=close,
            volume=volume + i,
        ))
    return candles


class FakeProvider(DataProvider):
    """
    DataProvider serving fixed candle batches per interval.

    Setting `*_error` to an exception makes the matching method raise it.
    """

    capabilities = {
        "klines": True,
        "funding_rate": True,
        "open_interest": True,
        "mark_price": True
    }

    def __init__(
        self,
        name: str = "fake",
        candles: Optional[Dict[str, List[Candle]]] = None,
        funding_rate: float = 0.0001,
        open_interest: float = 1000.0,
        mark_price: float = 100.0
    ):
        self.name = name
        self.candles = candles or {}
        self.funding_rate = funding_rate
        self.open_interest = open_interest
        self.mark_price = mark_price
        self.klines_error: Optional[Exception] = None
        self.funding_error: Optional[Exception] = None
        self.oi_error: Optional[Exception] = None
        self.metrics = ProviderMetrics(name)
        self.klines_calls = []
        self.initialized = False
        self.shut_down = False

    async def get_klines(self, symbol, interval, limit):
        self.metrics.record_request()
        self.klines_calls.append((symbol, interval, limit))
        if symbol.startswith("BADPAIR"):
            raise SymbolMappingError(f"cannot map pair {symbol}")
        if self.klines_error is not None:
            raise self.klines_error
        return list(self.candles.get(interval, []))[-limit:]

    async def get_funding_rate(self, symbol):
        if self.funding_error is not None:
            raise self.funding_error
        return self.funding_rate

    async def get_open_interest(self, symbol):
        if self.oi_error is not None:
            raise self.oi_error
        return self.open_interest

    async def get_mark_price(self, symbol):
        return self.mark_price

    async def initialize(self):
        self.initialized = True

    async def shutdown(self):
        self.shut_down = True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_candles():
    """Factory: make_candles(closes, interval_ms=180000, end_open_time=..., volume=10.0)"""
    return build_candles


@pytest.fixture
def rising_closes():
    """Strictly rising closes 100, 101, ..."""
    def _closes(count: int) -> List[float]:
        return [100.0 + i for i in range(count)]
    return _closes


@pytest.fixture
def fake_provider():
    """A FakeProvider with 40 x 3m and 60 x 4h rising candles."""
    intraday = build_candles([100.0 + i for i in range(40)])
    context = build_candles([100.0 + i * 2 for i in range(60)], interval_ms=14_400_000,
                            end_open_time=NOW_MS - 14_400_000 - 100_000)
    return FakeProvider(candles={"3m": intraday, "4h": context})


@pytest.fixture
def provider_factory():
    """The FakeProvider class, for tests that need several instances."""
    return FakeProvider
