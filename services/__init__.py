"""
Services Package

Orchestration built on top of the DataProvider interface:
- market_data: assembles price, indicators and context signals into MarketData
"""
