"""
Market Data Assembler

Orchestrates one provider's capabilities into a MarketData result:

    normalize symbol
      -> intraday candles (3m x 40) and context candles (4h x 60)
      -> indicator snapshot on the intraday batch
      -> 1h / 4h price change
      -> open interest (0 on failure) and funding rate (0 on failure)
      -> intraday and context series
      -> frozen MarketData

Failures fetching either candle batch are fatal: there is no partial result
without primary price data. Failures fetching context signals never are.

The assembler depends only on the DataProvider interface.
"""

from typing import List

from core.exceptions import CandleFetchError, SymbolMappingError
from core.indicators import calculate_context_series, calculate_intraday_series, calculate_snapshot
from core.logging import get_logger
from core.provider_interface import DataProvider
from core.schemas import Candle, IndicatorSnapshot, MarketData, OpenInterestData
from core.symbol_map import normalize_symbol


INTRADAY_INTERVAL = "3m"
INTRADAY_LIMIT = 40
CONTEXT_INTERVAL = "4h"
CONTEXT_LIMIT = 60

# 20 intraday bars of 3m = 1h back, plus the current bar
PRICE_CHANGE_1H_LOOKBACK = 21
PRICE_CHANGE_4H_LOOKBACK = 2

# Open interest history is not fetched; the average is approximated from the latest value
OI_AVERAGE_FACTOR = 0.999


def calculate_price_change(current_price: float, candles: List[Candle], lookback: int) -> float:
    """
    Percent change of `current_price` against the close `lookback` bars from the end.

    Returns:
        0 if fewer than `lookback` candles exist or the reference price is not positive

    Example:
        >>> calculate_price_change(110.0, candles, 2)   # candles[-2].close == 100.0
        10.0
    """
    if len(candles) < lookback:
        return 0.0

    reference = candles[-lookback].close
    if reference <= 0:
        return 0.0

    return (current_price - reference) / reference * 100


class MarketDataAssembler:
    """
    Builds MarketData for a single provider.

    Example:
        >>> assembler = MarketDataAssembler(provider)
        >>> data = await assembler.get_market_data("btc")
        >>> data.symbol
        'BTCUSDT'
    """

    def __init__(self, provider: DataProvider):
        self.provider = provider
        self.logger = get_logger(__name__)

    # ============================================
    # Lower-level accessors
    # ============================================

    async def get_candles(self, symbol: str, interval: str, limit: int) -> List[Candle]:
        """
        Fetch a candle batch through the provider.

        Raises:
            SymbolMappingError: If the symbol cannot be translated
            CandleFetchError: If the fetch fails
        """
        try:
            return await self.provider.get_klines(symbol, interval, limit)
        except (SymbolMappingError, CandleFetchError):
            raise
        except Exception as e:
            raise CandleFetchError(
                f"failed to get {interval} klines for {symbol} from {self.provider.name}: {e}"
            ) from e

    async def get_indicator_snapshot(self, symbol: str, interval: str, limit: int) -> IndicatorSnapshot:
        """Current EMA20 / MACD / RSI7 over a fresh (or cached) candle batch."""
        candles = await self.get_candles(normalize_symbol(symbol), interval, limit)
        return calculate_snapshot(candles)

    async def get_open_interest_data(self, symbol: str) -> OpenInterestData:
        """Open interest summary; any failure is replaced by 0."""
        try:
            latest = await self.provider.get_open_interest(symbol)
        except Exception as e:
            self.logger.warning(f"Open interest unavailable for {symbol} ({self.provider.name}): {e}")
            latest = 0.0

        return OpenInterestData(latest=latest, average=latest * OI_AVERAGE_FACTOR)

    async def get_funding_rate(self, symbol: str) -> float:
        """Funding rate; any failure is replaced by 0."""
        try:
            return await self.provider.get_funding_rate(symbol)
        except Exception as e:
            self.logger.debug(f"Funding rate unavailable for {symbol} ({self.provider.name}): {e}")
            return 0.0

    # ============================================
    # Assembly
    # ============================================

    async def get_market_data(self, symbol: str) -> MarketData:
        """
        Assemble the full MarketData result.

        Raises:
            SymbolMappingError: If the symbol cannot be translated
            CandleFetchError: If either candle batch cannot be fetched or
                              the intraday batch is empty
        """
        symbol = normalize_symbol(symbol)

        intraday = await self.get_candles(symbol, INTRADAY_INTERVAL, INTRADAY_LIMIT)
        context = await self.get_candles(symbol, CONTEXT_INTERVAL, CONTEXT_LIMIT)

        if not intraday:
            raise CandleFetchError(f"no {INTRADAY_INTERVAL} candles available for {symbol}")

        current_price = intraday[-1].close

        data = MarketData(
            symbol=symbol,
            current_price=current_price,
            price_change_1h=calculate_price_change(current_price, intraday, PRICE_CHANGE_1H_LOOKBACK),
            price_change_4h=calculate_price_change(current_price, context, PRICE_CHANGE_4H_LOOKBACK),
            snapshot=calculate_snapshot(intraday),
            open_interest=await self.get_open_interest_data(symbol),
            funding_rate=await self.get_funding_rate(symbol),
            intraday_series=calculate_intraday_series(intraday),
            context_series=calculate_context_series(context),
        )

        self.logger.info(
            f"Market data assembled for {symbol} via {self.provider.name}: "
            f"price={current_price} ({len(intraday)}x{INTRADAY_INTERVAL}, {len(context)}x{CONTEXT_INTERVAL})"
        )
        return data
