"""
Indicator Engine

Pure functions over ordered candle sequences (oldest first).

Indicators:
    - calculate_ema: Exponential moving average of closes
    - calculate_macd: EMA12 - EMA26
    - calculate_rsi: Wilder's smoothed relative strength index
    - calculate_atr: Wilder's smoothed average true range

Series builders:
    - calculate_intraday_series: short-horizon columns over the last 10 candles
    - calculate_context_series: longer-horizon columns plus whole-batch scalars

Insufficient history is not an error: every indicator returns 0 when the
sequence is too short for its lookback.
"""

from typing import List, Sequence

from core.schemas import Candle, ContextSeries, IndicatorSnapshot, IntradaySeries


SERIES_WINDOW = 10

EMA_PERIOD = 20
MACD_FAST = 12
MACD_SLOW = 26


def calculate_ema(candles: Sequence[Candle], period: int) -> float:
    """
    Exponential moving average of closing prices.

    Seeded with the simple average of the first `period` closes, then smoothed
    with multiplier 2 / (period + 1) over the remaining closes.

    Returns:
        EMA value, or 0 if fewer than `period` candles are available

    Example:
        >>> calculate_ema(candles, 20)
        101.37
    """
    if len(candles) < period:
        return 0.0

    ema = sum(c.close for c in candles[:period]) / period

    multiplier = 2.0 / (period + 1)
    for candle in candles[period:]:
        ema = (candle.close - ema) * multiplier + ema

    return ema


def calculate_macd(candles: Sequence[Candle]) -> float:
    """MACD line (EMA12 - EMA26). Returns 0 with fewer than 26 candles."""
    if len(candles) < MACD_SLOW:
        return 0.0

    return calculate_ema(candles, MACD_FAST) - calculate_ema(candles, MACD_SLOW)


def calculate_rsi(candles: Sequence[Candle], period: int) -> float:
    """
    Relative strength index using Wilder's smoothing.

    The first `period` close-to-close deltas seed the average gain and loss
    (simple mean). Each later delta updates both averages as
    avg = (avg * (period - 1) + contribution) / period, where the side the
    delta does not contribute to gets 0 added.

    Returns:
        RSI in [0, 100]; 100 when the smoothed average loss is exactly 0;
        0 if fewer than `period + 1` candles are available
    """
    if len(candles) <= period:
        return 0.0

    gains = 0.0
    losses = 0.0
    for i in range(1, period + 1):
        change = candles[i].close - candles[i - 1].close
        if change > 0:
            gains += change
        else:
            losses -= change

    avg_gain = gains / period
    avg_loss = losses / period

    for i in range(period + 1, len(candles)):
        change = candles[i].close - candles[i - 1].close
        if change > 0:
            avg_gain = (avg_gain * (period - 1) + change) / period
            avg_loss = (avg_loss * (period - 1)) / period
        else:
            avg_gain = (avg_gain * (period - 1)) / period
            avg_loss = (avg_loss * (period - 1) - change) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def calculate_atr(candles: Sequence[Candle], period: int) -> float:
    """
    Average true range using Wilder's smoothing.

    True range of candle i (i >= 1) is
    max(high - low, |high - prev_close|, |low - prev_close|).
    The mean of true ranges 1..period seeds the average.

    Returns:
        ATR value, or 0 if fewer than `period + 1` candles are available
    """
    if len(candles) <= period:
        return 0.0

    true_ranges = [0.0] * len(candles)
    for i in range(1, len(candles)):
        high = candles[i].high
        low = candles[i].low
        prev_close = candles[i - 1].close
        true_ranges[i] = max(high - low, abs(high - prev_close), abs(low - prev_close))

    atr = sum(true_ranges[1:period + 1]) / period

    for i in range(period + 1, len(candles)):
        atr = (atr * (period - 1) + true_ranges[i]) / period

    return atr


def calculate_snapshot(candles: Sequence[Candle]) -> IndicatorSnapshot:
    """Current EMA20, MACD and RSI7 over the whole batch."""
    return IndicatorSnapshot(
        ema20=calculate_ema(candles, EMA_PERIOD),
        macd=calculate_macd(candles),
        rsi7=calculate_rsi(candles, 7),
    )


def _series_columns(candles: Sequence[Candle]) -> dict:
    # Row i is computed over candles[:i + 1]; a column only starts once the
    # full history (not the window) satisfies that indicator's lookback.
    prices: List[float] = []
    ema20_values: List[float] = []
    macd_values: List[float] = []
    rsi7_values: List[float] = []
    rsi14_values: List[float] = []

    start = max(len(candles) - SERIES_WINDOW, 0)
    for i in range(start, len(candles)):
        history = candles[:i + 1]
        prices.append(candles[i].close)

        if i >= EMA_PERIOD - 1:
            ema20_values.append(calculate_ema(history, EMA_PERIOD))
        if i >= MACD_SLOW - 1:
            macd_values.append(calculate_macd(history))
        if i >= 7:
            rsi7_values.append(calculate_rsi(history, 7))
        if i >= 14:
            rsi14_values.append(calculate_rsi(history, 14))

    return {
        "mid_prices": prices,
        "ema20_values": ema20_values,
        "macd_values": macd_values,
        "rsi7_values": rsi7_values,
        "rsi14_values": rsi14_values,
    }


def calculate_intraday_series(candles: Sequence[Candle]) -> IntradaySeries:
    """
    Build the short-horizon series over the most recent 10 candles.

    The price column always has min(len(candles), 10) entries. EMA20 needs
    index >= 19 in the full sequence, MACD >= 25, RSI7 >= 7, RSI14 >= 14,
    so with short input some columns are shorter than the price column.
    Callers must not assume the columns are zip-aligned.
    """
    return IntradaySeries(**_series_columns(candles))


def calculate_context_series(candles: Sequence[Candle]) -> ContextSeries:
    """
    Build the longer-horizon context series.

    Same lazy columns as the intraday series, plus EMA20, EMA50, ATR3, ATR14,
    the last candle's volume and the mean volume over the whole batch.
    """
    current_volume = 0.0
    average_volume = 0.0
    if candles:
        current_volume = candles[-1].volume
        average_volume = sum(c.volume for c in candles) / len(candles)

    return ContextSeries(
        ema20=calculate_ema(candles, EMA_PERIOD),
        ema50=calculate_ema(candles, 50),
        atr3=calculate_atr(candles, 3),
        atr14=calculate_atr(candles, 14),
        current_volume=current_volume,
        average_volume=average_volume,
        **_series_columns(candles),
    )
