"""
Venue Providers Package

Each venue (Binance, Hyperliquid) has its own subfolder with:
- api_client.py: REST API logic
- __init__.py: Provider class implementing DataProvider

Adding a venue means adding a subfolder and registering it in ProviderManager.
"""
