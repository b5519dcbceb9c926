"""
Core Package

Contains the venue-agnostic core logic including:
- DataProvider: Abstract base class every venue provider implements
- ProviderManager: Registry and selection of data providers
- Schemas: Pydantic models for candles, indicators and assembled market data
- Indicators: EMA, MACD, RSI and ATR over candle batches
- SymbolMapper: Canonical pair <-> venue coin translation

Consumers depend only on this layer, so venues can be swapped without changing them.
"""
