"""
Domain Exceptions

Error kinds raised by the market data facade:

    MarketDataError
    ├── SymbolMappingError      - a canonical pair cannot be translated to a venue coin
    │                             and no fallback rule applies (fatal to the caller)
    ├── CandleFetchError        - a remote candle fetch failed (fatal to get_market_data)
    └── SignalUnavailableError  - funding rate / open interest / mark price could not be
                                  fetched (recovered locally, never surfaced to callers)

Insufficient history for an indicator is NOT an error: indicators return
the sentinel value 0 instead.
"""


class MarketDataError(Exception):
    """Base class for all market data facade errors."""


class SymbolMappingError(MarketDataError):
    """Raised when a symbol cannot be mapped between canonical pair and venue coin."""


class CandleFetchError(MarketDataError):
    """Raised when candles cannot be fetched from a venue."""


class SignalUnavailableError(MarketDataError):
    """Raised when an optional context signal (funding, OI, mark price) is unavailable."""
