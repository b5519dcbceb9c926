"""
Test Suite

Structure:
- tests/unit/: Tests for individual components (indicators, caches, symbol
  mapping, venue clients, providers, the assembler and the HTTP app)

Venue HTTP traffic is mocked; nothing here reaches a live exchange.
Uses pytest with pytest-asyncio for testing async functionality.
"""
