"""
Data Provider Interface — Abstract Contract for All Venues

This module defines the abstract base class that every venue data provider
must implement. The market data assembler, the provider manager and the API
routes work with DataProvider only, never with a concrete venue class.

Design Philosophy:
    "Program to an interface, not an implementation"

Example:
    class BinanceProvider(DataProvider):
        name = "binance"

        async def get_klines(self, symbol, interval, limit):
            # Binance-specific implementation
            ...

    provider = manager.get_provider("binance")   # or "hyperliquid"
    data = await provider.get_market_data("BTCUSDT")

Capabilities System:
    Each provider declares which context signals it can actually supply.
    Signals a venue does not expose are reported as the neutral default 0.

    Example:
        capabilities = {
            "klines": True,
            "funding_rate": True,
            "open_interest": True,
            "mark_price": True,
        }
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from core.metrics import ProviderMetrics
from core.schemas import Candle, MarketData, ProviderMetricsSnapshot


class DataProvider(ABC):
    """
    Abstract Base Class for venue data providers.

    Class Attributes:
        name: Unique identifier for the provider (lowercase, e.g., "binance", "hyperliquid")
        capabilities: Dictionary indicating which signals this provider supplies

    Abstract Methods (MUST be implemented by all providers):
        - get_klines: Fetch an ordered candle batch
        - get_funding_rate: Current funding rate
        - get_open_interest: Current open interest
        - get_mark_price: Current mark price

    Provided Methods:
        - get_market_data: Assemble the full MarketData result
        - get_metrics: Snapshot of request / error / cache counters
        - initialize / shutdown / health_check: Lifecycle hooks
    """

    name: str
    """Unique provider identifier (lowercase). Example: "binance", "hyperliquid" """

    capabilities: Dict[str, bool] = {
        "klines": False,
        "funding_rate": False,
        "open_interest": False,
        "mark_price": False
    }
    """Dictionary indicating which features this provider supports"""

    metrics: Optional[ProviderMetrics] = None

    # ============================================
    # REST Capabilities
    # ============================================

    @abstractmethod
    async def get_klines(self, symbol: str, interval: str, limit: int) -> List[Candle]:
        """
        Fetch the most recent candles for a canonical symbol.

        Args:
            symbol: Canonical trading pair in uppercase (e.g., "BTCUSDT")
            interval: Candle interval (e.g., "3m", "4h")
            limit: Number of candles requested

        Returns:
            List[Candle]: Candles ordered oldest first

        Raises:
            SymbolMappingError: If the symbol cannot be translated for this venue
            CandleFetchError: If the remote fetch fails
        """
        ...

    @abstractmethod
    async def get_funding_rate(self, symbol: str) -> float:
        """
        Get the current funding rate for a perpetual symbol.

        Returns:
            float: Funding rate as decimal (0.0001 = 0.01%); 0 if the venue
                   does not expose it
        """
        ...

    @abstractmethod
    async def get_open_interest(self, symbol: str) -> float:
        """
        Get current open interest for a perpetual symbol (base asset units).

        Returns:
            float: Open interest; 0 if the venue does not expose it
        """
        ...

    @abstractmethod
    async def get_mark_price(self, symbol: str) -> float:
        """
        Get the current mark price for a perpetual symbol.

        Returns:
            float: Mark price; 0 if unavailable
        """
        ...

    # ============================================
    # Assembled Data
    # ============================================

    async def get_market_data(self, symbol: str) -> MarketData:
        """
        Assemble price, indicators and context signals for one symbol.

        Raises:
            SymbolMappingError: If the symbol cannot be translated
            CandleFetchError: If either candle batch cannot be fetched
        """
        # services imports core, so import here to avoid circular imports
        from services.market_data import MarketDataAssembler

        return await MarketDataAssembler(self).get_market_data(symbol)

    def get_metrics(self) -> ProviderMetricsSnapshot:
        """Current request / error / cache counters of this provider."""
        if self.metrics is None:
            return ProviderMetricsSnapshot(provider=self.name)
        return self.metrics.snapshot()

    # ============================================
    # Optional Lifecycle Methods
    # ============================================

    async def initialize(self) -> None:
        """
        Initialize the provider (HTTP session, initial symbol mapping, ...).

        Notes:
            - Default implementation does nothing
            - Called automatically by ProviderManager
            - Should be idempotent (safe to call multiple times)
        """
        pass

    async def shutdown(self) -> None:
        """
        Close sessions and release resources.

        Notes:
            - Default implementation does nothing
            - Should handle errors gracefully (don't raise exceptions)
        """
        pass

    async def health_check(self) -> bool:
        """
        Check if the venue API is accessible.

        Returns:
            bool: True if reachable; never raises
        """
        return True

    # ============================================
    # Helper Methods
    # ============================================

    def supports(self, feature: str) -> bool:
        """
        Check if this provider supports a specific feature.

        Example:
            >>> provider.supports("funding_rate")
            True
        """
        return self.capabilities.get(feature, False)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name='{self.name}')>"
