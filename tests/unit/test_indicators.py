"""
Unit Tests for the Indicator Engine

These tests verify that:
- Every indicator returns 0 when history is too short
- EMA is seeded with the simple average and smoothed afterwards
- RSI stays in [0, 100] and is 100 when there are no losses
- ATR uses the true range including gaps to the previous close
- Series builders fill each column only once its lookback is satisfied

Run with:
    pytest tests/unit/test_indicators.py -v
"""

import pytest

from core.indicators import (
    calculate_atr,
    calculate_context_series,
    calculate_ema,
    calculate_intraday_series,
    calculate_macd,
    calculate_rsi,
    calculate_snapshot,
)


class TestEMA:

    def test_returns_zero_below_period(self, make_candles, rising_closes):
        assert calculate_ema(make_candles(rising_closes(19)), 20) == 0.0

    def test_seed_is_simple_average(self, make_candles):
        candles = make_candles([float(i) for i in range(1, 21)])
        assert calculate_ema(candles, 20) == pytest.approx(10.5)

    def test_smoothing_after_seed(self, make_candles):
        # seed 10.5, then (31.5 - 10.5) * 2/21 + 10.5
        candles = make_candles([float(i) for i in range(1, 21)] + [31.5])
        assert calculate_ema(candles, 20) == pytest.approx(12.5)

    def test_constant_prices(self, make_candles):
        assert calculate_ema(make_candles([50.0] * 30), 20) == pytest.approx(50.0)


class TestMACD:

    def test_returns_zero_below_26_candles(self, make_candles, rising_closes):
        assert calculate_macd(make_candles(rising_closes(25))) == 0.0

    def test_constant_prices_give_zero(self, make_candles):
        assert calculate_macd(make_candles([50.0] * 40)) == pytest.approx(0.0)

    def test_rising_prices_give_positive_macd(self, make_candles, rising_closes):
        assert calculate_macd(make_candles(rising_closes(40))) > 0


class TestRSI:

    def test_returns_zero_when_not_enough_deltas(self, make_candles, rising_closes):
        assert calculate_rsi(make_candles(rising_closes(7)), 7) == 0.0

    def test_only_gains_gives_100(self, make_candles, rising_closes):
        assert calculate_rsi(make_candles(rising_closes(20)), 7) == 100.0

    def test_constant_prices_give_100(self, make_candles):
        # No losses at all: average loss is exactly 0
        assert calculate_rsi(make_candles([100.0] * 20), 14) == 100.0

    def test_only_losses_gives_zero(self, make_candles):
        candles = make_candles([200.0 - i for i in range(20)])
        assert calculate_rsi(candles, 7) == pytest.approx(0.0)

    def test_mixed_prices_stay_in_bounds(self, make_candles):
        closes = [100, 102, 101, 105, 103, 104, 99, 98, 101, 107, 106, 103, 108, 110, 104, 102]
        value = calculate_rsi(make_candles([float(c) for c in closes]), 7)
        assert 0.0 < value < 100.0

    def test_wilder_smoothing_after_seed(self, make_candles):
        # deltas +2 -1 +3 -1 +3 -1 +3 seed avg_gain 11/7, avg_loss 3/7
        # then -1 +3 -1:
        #   avg_gain 66/49 -> 543/343 -> 3258/2401
        #   avg_loss 25/49 -> 150/343 -> 1243/2401
        closes = [100, 102, 101, 104, 103, 106, 105, 108, 107, 110, 109]
        value = calculate_rsi(make_candles([float(c) for c in closes]), 7)
        assert value == pytest.approx(100.0 * 3258 / (3258 + 1243))


class TestATR:

    def test_returns_zero_when_not_enough_candles(self, make_candles, rising_closes):
        assert calculate_atr(make_candles(rising_closes(3)), 3) == 0.0

    def test_constant_range(self, make_candles):
        # high - low is 2 on every candle and dominates the close-to-close gaps
        assert calculate_atr(make_candles([100.0] * 20), 14) == pytest.approx(2.0)

    def test_gap_to_previous_close_counts(self, make_candles):
        candles = make_candles([100.0, 100.0, 100.0, 110.0])
        # last true range: |111 - 100| = 11; seed (2 + 2 + 11) / 3
        assert calculate_atr(candles, 3) == pytest.approx(5.0)

    def test_wilder_smoothing_after_seed(self, make_candles):
        # true ranges 2, 4, 2 seed 8/3; then 6 -> 34/9, then 2 -> 86/27
        candles = make_candles([100.0, 101.0, 104.0, 104.0, 99.0, 99.0])
        assert calculate_atr(candles, 3) == pytest.approx(86 / 27)


class TestSnapshot:

    def test_snapshot_over_40_candles(self, make_candles, rising_closes):
        snapshot = calculate_snapshot(make_candles(rising_closes(40)))
        assert snapshot.ema20 > 0
        assert snapshot.macd > 0
        assert snapshot.rsi7 == 100.0

    def test_snapshot_of_short_history_is_all_zero(self, make_candles, rising_closes):
        snapshot = calculate_snapshot(make_candles(rising_closes(5)))
        assert snapshot.ema20 == 0.0
        assert snapshot.macd == 0.0
        assert snapshot.rsi7 == 0.0


class TestIntradaySeries:

    def test_full_window_with_40_candles(self, make_candles, rising_closes):
        series = calculate_intraday_series(make_candles(rising_closes(40)))

        assert len(series.mid_prices) == 10
        assert series.mid_prices[-1] == 139.0
        assert len(series.ema20_values) == 10
        assert len(series.macd_values) == 10
        assert len(series.rsi7_values) == 10
        assert len(series.rsi14_values) == 10

    def test_columns_shorter_with_25_candles(self, make_candles, rising_closes):
        # Window covers indices 15..24: EMA20 from 19, MACD needs 25
        series = calculate_intraday_series(make_candles(rising_closes(25)))

        assert len(series.mid_prices) == 10
        assert len(series.ema20_values) == 6
        assert series.macd_values == []
        assert len(series.rsi7_values) == 10
        assert len(series.rsi14_values) == 10

    def test_ema20_column_shorter_than_prices_under_30_candles(self, make_candles, rising_closes):
        # Window covers indices 18..27: index 18 has no EMA20 yet
        series = calculate_intraday_series(make_candles(rising_closes(28)))
        assert len(series.mid_prices) == 10
        assert len(series.ema20_values) == 9
        assert len(series.macd_values) == 3

    def test_short_input(self, make_candles, rising_closes):
        series = calculate_intraday_series(make_candles(rising_closes(5)))

        assert series.mid_prices == [100.0, 101.0, 102.0, 103.0, 104.0]
        assert series.ema20_values == []
        assert series.rsi7_values == []

    def test_empty_input(self):
        series = calculate_intraday_series([])
        assert series.mid_prices == []


class TestContextSeries:

    def test_scalars_over_60_candles(self, make_candles, rising_closes):
        candles = make_candles(rising_closes(60))
        series = calculate_context_series(candles)

        assert series.ema20 > 0
        assert series.ema50 > 0
        assert series.atr3 > 0
        assert series.atr14 > 0
        assert series.current_volume == candles[-1].volume
        assert series.average_volume == pytest.approx(sum(c.volume for c in candles) / 60)
        assert len(series.mid_prices) == 10

    def test_empty_batch(self):
        series = calculate_context_series([])

        assert series.current_volume == 0.0
        assert series.average_volume == 0.0
        assert series.ema50 == 0.0
