"""
Provider Manager — Central Registry and Selection of Data Providers

The ProviderManager is a registry of DataProvider instances. API routes and
trading consumers request providers by name, or ask the manager to pick one
for the exchange they trade on.

Selection Order:
    1. Per-caller override (e.g., ?provider=hl)
    2. DATA_PROVIDER from the environment / .env
    3. "auto"

Selection Rules:
    binance           -> binance
    hyperliquid, hl   -> hyperliquid
    auto              -> hyperliquid if the trader exchange is hyperliquid,
                         binance otherwise (aster and unknown exchanges
                         fall back to binance data)
    anything else     -> ValueError

Example Usage:
    manager = ProviderManager()
    await manager.initialize_all()

    provider = manager.select_provider(trader_exchange="hyperliquid")
    data = await provider.get_market_data("BTCUSDT")
"""

from typing import Dict, List, Optional

from core.config import settings
from core.logging import logger
from core.provider_interface import DataProvider
from core.schemas import ProviderMetricsSnapshot


PROVIDER_ALIASES = {
    "binance": "binance",
    "hyperliquid": "hyperliquid",
    "hl": "hyperliquid",
}


def resolve_provider_name(override: Optional[str] = None, env_value: Optional[str] = None) -> str:
    """
    Pick the requested provider name: override, else DATA_PROVIDER, else "auto".

    Args:
        override: Per-caller override; empty means unset
        env_value: Configured provider; None reads settings.data_provider

    Example:
        >>> resolve_provider_name("hl", "binance")
        'hl'
        >>> resolve_provider_name(None, "")
        'auto'
    """
    if override:
        logger.debug(f"Using provider override: {override}")
        return override.strip().lower()

    if env_value is None:
        env_value = settings.data_provider

    if env_value:
        return env_value.strip().lower()

    return "auto"


def select_provider_name(provider_name: str, trader_exchange: Optional[str] = None) -> str:
    """
    Resolve a requested provider name to a registered provider.

    Raises:
        ValueError: If the name is not a known provider or "auto"

    Example:
        >>> select_provider_name("auto", "hyperliquid")
        'hyperliquid'
        >>> select_provider_name("auto", "aster")
        'binance'
    """
    name = provider_name.strip().lower()

    if name in PROVIDER_ALIASES:
        return PROVIDER_ALIASES[name]

    if name != "auto":
        raise ValueError(f"Unknown data provider: {provider_name}")

    exchange = (trader_exchange or "").strip().lower()
    if exchange == "hyperliquid":
        logger.info("AUTO selected: hyperliquid provider (trader uses Hyperliquid)")
        return "hyperliquid"

    if exchange == "binance":
        logger.info("AUTO selected: binance provider (trader uses Binance)")
    else:
        logger.info(f"AUTO selected: binance provider (trader exchange '{exchange}', fallback to Binance data)")
    return "binance"


class ProviderManager:
    """
    Central Manager for Data Providers

    Attributes:
        providers: Dictionary mapping provider names to provider instances
                   Example: {"binance": BinanceProvider(), "hyperliquid": HyperliquidProvider()}

    Example:
        >>> manager = ProviderManager()
        >>> await manager.initialize_all()
        >>> provider = manager.get_provider("hl")
        >>> print(manager.list_providers())
        ['binance', 'hyperliquid']
        >>> await manager.shutdown_all()
    """

    def __init__(self, providers: Optional[Dict[str, DataProvider]] = None):
        """
        Args:
            providers: Registry to use instead of the built-in venues (tests inject fakes here)

        Note:
            Provider instances are created but not initialized here.
            Call initialize_all() to open sessions and load symbol mappings.
        """
        if providers is None:
            # Each provider module imports from core, so we can't import at module level
            from exchanges.binance import BinanceProvider
            from exchanges.hyperliquid import HyperliquidProvider

            providers = {
                "binance": BinanceProvider(),
                "hyperliquid": HyperliquidProvider(),
            }

        self.providers: Dict[str, DataProvider] = dict(providers)

        logger.info(f"ProviderManager initialized with {len(self.providers)} provider(s): {', '.join(self.providers.keys())}")

    # ============================================
    # Provider Retrieval Methods
    # ============================================

    def get_provider(self, name: str) -> DataProvider:
        """
        Get a provider by name ("hl" is accepted for hyperliquid).

        Raises:
            ValueError: If the provider is not registered
        """
        key = name.lower()
        key = PROVIDER_ALIASES.get(key, key)

        if key not in self.providers:
            available = ", ".join(self.providers.keys())
            logger.error(f"Provider '{name}' not found. Available: {available}")
            raise ValueError(
                f"Provider '{name}' is not supported. "
                f"Available providers: {available}"
            )

        return self.providers[key]

    def has_provider(self, name: str) -> bool:
        key = name.lower()
        return PROVIDER_ALIASES.get(key, key) in self.providers

    def list_providers(self) -> List[str]:
        return list(self.providers.keys())

    def select_provider(
        self,
        trader_exchange: Optional[str] = None,
        override: Optional[str] = None
    ) -> DataProvider:
        """
        Pick the provider for a trading consumer.

        Args:
            trader_exchange: Exchange the consumer trades on (defaults to TRADER_EXCHANGE)
            override: Per-caller provider override

        Raises:
            ValueError: If the resolved provider name is unknown

        Example:
            >>> manager.select_provider(trader_exchange="hyperliquid").name
            'hyperliquid'
        """
        requested = resolve_provider_name(override)
        if trader_exchange is None:
            trader_exchange = settings.trader_exchange

        name = select_provider_name(requested, trader_exchange)
        logger.info(f"Data provider: {name} (requested: {requested}, trader exchange: {trader_exchange})")
        return self.get_provider(name)

    # ============================================
    # Lifecycle Management
    # ============================================

    async def initialize_all(self) -> None:
        """
        Initialize all registered providers.

        A provider that fails to initialize is logged and skipped; the others
        are still initialized.
        """
        logger.info("Initializing all providers...")

        for name, provider in self.providers.items():
            try:
                await provider.initialize()
                logger.info(f"✓ {name.capitalize()} initialized successfully")
            except Exception as e:
                logger.error(f"✗ Failed to initialize {name}: {e}")

        logger.info("All providers initialized")

    async def shutdown_all(self) -> None:
        logger.info("Shutting down all providers...")

        for name, provider in self.providers.items():
            try:
                await provider.shutdown()
                logger.info(f"✓ {name.capitalize()} shut down successfully")
            except Exception as e:
                logger.error(f"✗ Error shutting down {name}: {e}")

        logger.info("All providers shut down")

    # ============================================
    # Health and Metrics
    # ============================================

    async def health_check_all(self) -> Dict[str, bool]:
        """
        Returns:
            Dict[str, bool]: Provider name -> reachable
        """
        health_status = {}
        for name, provider in self.providers.items():
            try:
                health_status[name] = await provider.health_check()
            except Exception as e:
                logger.error(f"Health check failed for {name}: {e}")
                health_status[name] = False

        return health_status

    def get_all_metrics(self) -> Dict[str, ProviderMetricsSnapshot]:
        return {name: provider.get_metrics() for name, provider in self.providers.items()}

    def get_provider_capabilities(self, name: str) -> Dict[str, bool]:
        """
        Raises:
            ValueError: If the provider is not registered
        """
        return self.get_provider(name).capabilities.copy()

    # ============================================
    # Utility Methods
    # ============================================

    def __repr__(self) -> str:
        return f"<ProviderManager(providers={list(self.providers.keys())})>"

    def __len__(self) -> int:
        return len(self.providers)


# ============================================
# Global Manager Instance
# ============================================

_manager: Optional[ProviderManager] = None


def get_manager() -> ProviderManager:
    """
    Get the global ProviderManager instance (singleton pattern).

    Example:
        >>> from core.provider_manager import get_manager
        >>> provider = get_manager().get_provider("binance")
    """
    global _manager
    if _manager is None:
        _manager = ProviderManager()
        logger.debug("Created global ProviderManager instance")
    return _manager
