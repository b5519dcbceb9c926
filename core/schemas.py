"""
Normalized Data Schemas

This module defines Pydantic models for all market data types handled by the facade.

Key Principle:
    Regardless of which venue the data comes from (Binance, Hyperliquid, ...),
    it gets normalized into these standardized schemas. Indicator computation,
    caching and the assembled market data result all work on these models.

Models:
    - Candle: OHLCV candlestick with open/close time in milliseconds
    - IndicatorSnapshot: Current EMA20 / MACD / RSI7
    - IntradaySeries: Short-horizon indicator columns (last 10 candles)
    - ContextSeries: Longer-horizon indicator columns and scalars
    - OpenInterestData: Latest and average open interest
    - MarketData: Fully assembled, immutable result for one symbol
    - ContextRecord: Cached funding rate / open interest / mark price
    - ProviderMetricsSnapshot: Per-provider request / error / cache counters
    - PremiumIndex: Binance mark price and funding information
    - AssetContext: Hyperliquid per-coin funding, open interest and mark price
"""

from typing import List
from pydantic import BaseModel, ConfigDict, Field, model_validator


# ============================================
# Candle Schema
# ============================================

class Candle(BaseModel):
    """
    Open-High-Low-Close-Volume candle (kline).

    Attributes:
        open_time: Candle opening time in milliseconds since epoch (UTC)
        close_time: Candle closing time in milliseconds since epoch (UTC)
        open: Opening price
        high: Highest price during the interval
        low: Lowest price during the interval
        close: Closing price
        volume: Traded volume in base asset

    Invariants (validated on construction):
        - high >= low
        - close > 0
        - volume >= 0
        - open_time < close_time

    Example:
        >>> Candle(
        ...     open_time=1700000000000,
        ...     close_time=1700000179999,
        ...     open=100.0, high=101.0, low=99.0, close=100.5, volume=1000.0
        ... )

    Notes:
        Sequences of candles are ordered oldest first (strictly increasing open_time).
        Gaps between candles are not validated here.
    """

    open_time: int = Field(..., ge=0, description="Open time in milliseconds")
    close_time: int = Field(..., ge=0, description="Close time in milliseconds")

    open: float = Field(..., ge=0, description="Opening price")
    high: float = Field(..., ge=0, description="Highest price")
    low: float = Field(..., ge=0, description="Lowest price")
    close: float = Field(..., gt=0, description="Closing price")
    volume: float = Field(..., ge=0, description="Volume in base asset")

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "open_time": 1700000000000,
                "close_time": 1700000179999,
                "open": 100.0,
                "high": 101.0,
                "low": 99.0,
                "close": 100.5,
                "volume": 1000.0
            }
        }
    )

    @model_validator(mode="after")
    def check_consistency(self) -> "Candle":
        """Reject candles whose range or time span is inverted."""
        if self.high < self.low:
            raise ValueError(f"High ({self.high}) cannot be less than Low ({self.low})")
        if self.open_time >= self.close_time:
            raise ValueError(
                f"open_time ({self.open_time}) must be before close_time ({self.close_time})"
            )
        return self


# ============================================
# Indicator Schemas
# ============================================

class IndicatorSnapshot(BaseModel):
    """
    Current indicator values over the most recent candle batch.

    A value of 0 means there was not enough history to compute the indicator.
    """

    ema20: float = Field(0.0, description="EMA over 20 closes")
    macd: float = Field(0.0, description="EMA12 - EMA26")
    rsi7: float = Field(0.0, description="Wilder RSI over 7 deltas")

    model_config = ConfigDict(frozen=True)


class IntradaySeries(BaseModel):
    """
    Short-horizon indicator columns over the trailing window (at most 10 candles).

    Each column is appended independently: a column only receives values for
    rows where the full input history is long enough for that indicator, so
    columns can have different lengths when the input is short.
    """

    mid_prices: List[float] = Field(default_factory=list)
    ema20_values: List[float] = Field(default_factory=list)
    macd_values: List[float] = Field(default_factory=list)
    rsi7_values: List[float] = Field(default_factory=list)
    rsi14_values: List[float] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class ContextSeries(IntradaySeries):
    """
    Longer-horizon context: the same indicator columns as IntradaySeries
    plus scalars computed over the whole batch.
    """

    ema20: float = 0.0
    ema50: float = 0.0
    atr3: float = 0.0
    atr14: float = 0.0
    current_volume: float = 0.0
    average_volume: float = 0.0


# ============================================
# Assembled Market Data
# ============================================

class OpenInterestData(BaseModel):
    """Open interest summary (latest value and its average)."""

    latest: float = 0.0
    average: float = 0.0

    model_config = ConfigDict(frozen=True)


class MarketData(BaseModel):
    """
    Fully assembled market data for one canonical symbol.

    Constructed fresh per request and immutable once returned.

    Attributes:
        symbol: Canonical trading pair (e.g., "BTCUSDT")
        current_price: Close of the most recent intraday candle
        price_change_1h: Percent change against the intraday candle 20 bars back
        price_change_4h: Percent change against the previous context candle
        snapshot: Current EMA20 / MACD / RSI7 on the intraday batch
        open_interest: Latest and average open interest (0 when unavailable)
        funding_rate: Current funding rate (0 when unavailable)
        intraday_series: Short-horizon indicator columns
        context_series: Longer-horizon indicator columns and scalars
    """

    symbol: str
    current_price: float
    price_change_1h: float = 0.0
    price_change_4h: float = 0.0
    snapshot: IndicatorSnapshot
    open_interest: OpenInterestData
    funding_rate: float = 0.0
    intraday_series: IntradaySeries
    context_series: ContextSeries

    model_config = ConfigDict(frozen=True)


# ============================================
# Cache and Metrics Models
# ============================================

class ContextRecord(BaseModel):
    """
    Cached context signals for one venue coin.

    A fetch that refreshes only one field stores the others as 0.
    """

    funding_rate: float = 0.0
    open_interest: float = 0.0
    mark_price: float = 0.0

    model_config = ConfigDict(frozen=True)


class ProviderMetricsSnapshot(BaseModel):
    """Point-in-time view of a provider's counters."""

    provider: str
    requests_total: int = 0
    errors_total: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    cache_hit_ratio: float = 0.0


# ============================================
# Venue Transport Models
# ============================================

class PremiumIndex(BaseModel):
    """
    Binance premium index entry (mark price and funding).

    Binance Endpoint:
        GET /fapi/v1/premiumIndex
    """

    symbol: str
    mark_price: float = 0.0
    index_price: float = 0.0
    last_funding_rate: float = 0.0
    next_funding_time: int = 0


class AssetContext(BaseModel):
    """
    Hyperliquid per-coin asset context.

    Hyperliquid Endpoint:
        POST /info with {"type": "metaAndAssetCtxs"}
    """

    coin: str
    funding_rate: float = 0.0
    open_interest: float = 0.0
    mark_price: float = 0.0
