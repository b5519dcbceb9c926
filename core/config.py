"""
Configuration Management Module

This module handles loading, validating, and providing access to application configuration
from environment variables (.env file).

Uses Pydantic Settings for automatic validation and type conversion.

Key Features:
- Loads configuration from .env file
- Provider selection (DATA_PROVIDER, TRADER_EXCHANGE)
- Cache lifetimes for the symbol map and the context cache
- HTTP transport timeouts and retry counts

Usage:
    from core.config import settings

    print(settings.hyperliquid_api_url)
    print(settings.symbol_map_ttl)
"""

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


VALID_PROVIDERS = ["auto", "binance", "hyperliquid", "hl"]


class Settings(BaseSettings):
    """
    Application Settings

    Values are automatically loaded from environment variables or .env file.

    Attributes:
        binance_base_url: Base URL for Binance Futures API
        hyperliquid_api_url: Base URL for Hyperliquid API (the /info endpoint is appended)
        data_provider: Forced data provider ("auto", "binance", "hyperliquid", "hl")
        trader_exchange: Exchange the trading consumer runs on (drives AUTO selection)
        quote_asset: Canonical quote currency suffix of trading pairs
        symbol_map_ttl: Seconds before the coin/pair mapping is considered stale
        context_cache_ttl: Seconds a funding/OI/mark price record stays cached
        request_timeout: Timeout for HTTP requests in seconds
        max_retries: Attempts per HTTP request before giving up
        app_host: Host address for FastAPI server
        app_port: Port number for FastAPI server
        environment: Current environment (development, production)
        debug: Enable debug mode
        log_level: Logging level
        cors_origins: Comma-separated allowed CORS origins
    """

    # ============================================
    # Venue API Configuration
    # ============================================

    binance_base_url: str = Field(
        default="https://fapi.binance.com",
        description="Binance Futures API base URL"
    )

    hyperliquid_api_url: str = Field(
        default="https://api.hyperliquid.xyz",
        description="Hyperliquid API base URL"
    )

    # ============================================
    # Provider Selection
    # ============================================

    data_provider: str = Field(
        default="auto",
        description="Data provider override (auto, binance, hyperliquid, hl)"
    )

    trader_exchange: str = Field(
        default="binance",
        description="Exchange used by the trading consumer (drives AUTO selection)"
    )

    quote_asset: str = Field(
        default="USDT",
        description="Canonical quote currency suffix"
    )

    # ============================================
    # Caching Configuration
    # ============================================

    symbol_map_ttl: float = Field(
        default=10.0,
        description="Symbol mapping staleness TTL in seconds"
    )

    context_cache_ttl: float = Field(
        default=10.0,
        description="Funding rate / open interest / mark price cache TTL in seconds"
    )

    # ============================================
    # HTTP Transport
    # ============================================

    request_timeout: int = Field(
        default=10,
        description="HTTP request timeout in seconds"
    )

    max_retries: int = Field(
        default=3,
        description="Maximum attempts per HTTP request"
    )

    # ============================================
    # Application Configuration
    # ============================================

    app_host: str = Field(
        default="0.0.0.0",
        description="FastAPI server host address"
    )

    app_port: int = Field(
        default=8000,
        description="FastAPI server port"
    )

    environment: str = Field(
        default="development",
        description="Application environment (development, production)"
    )

    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Convert comma-separated CORS origins string to a list.

        Example:
            >>> settings.cors_origins_list
            ['http://localhost:3000', 'http://localhost:5173']
        """
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def hyperliquid_info_url(self) -> str:
        """Full URL of the Hyperliquid /info endpoint."""
        return f"{self.hyperliquid_api_url.rstrip('/')}/info"


# ============================================
# Global Settings Instance
# ============================================

settings = Settings()


# ============================================
# Configuration Validation
# ============================================

def validate_configuration() -> None:
    """
    Validate critical configuration settings on application startup.

    Raises:
        ValueError: If required configuration is missing or invalid
    """
    # logging.py imports config.py, so we can't import at module level
    from core.logging import logger

    if settings.data_provider.lower() not in VALID_PROVIDERS:
        raise ValueError(
            f"Invalid DATA_PROVIDER: '{settings.data_provider}'. "
            f"Must be one of: {', '.join(VALID_PROVIDERS)}"
        )

    if not settings.quote_asset or not settings.quote_asset.isupper():
        raise ValueError(f"QUOTE_ASSET must be a non-empty uppercase string, got '{settings.quote_asset}'")

    if settings.symbol_map_ttl <= 0:
        raise ValueError(f"SYMBOL_MAP_TTL must be positive, got {settings.symbol_map_ttl}")

    if settings.context_cache_ttl <= 0:
        raise ValueError(f"CONTEXT_CACHE_TTL must be positive, got {settings.context_cache_ttl}")

    if settings.request_timeout <= 0:
        raise ValueError(f"REQUEST_TIMEOUT must be positive, got {settings.request_timeout}")

    if settings.max_retries < 1:
        raise ValueError(f"MAX_RETRIES must be at least 1, got {settings.max_retries}")

    if not (1 <= settings.app_port <= 65535):
        raise ValueError(f"Invalid port number: {settings.app_port}. Must be between 1 and 65535")

    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if settings.log_level.upper() not in valid_log_levels:
        raise ValueError(
            f"Invalid LOG_LEVEL: '{settings.log_level}'. "
            f"Must be one of: {', '.join(valid_log_levels)}"
        )

    logger.info("Configuration validated successfully")
    logger.info(f"Data provider: {settings.data_provider} (trader exchange: {settings.trader_exchange})")
    logger.info(f"Binance API: {settings.binance_base_url}")
    logger.info(f"Hyperliquid API: {settings.hyperliquid_api_url}")
    logger.info(f"Symbol map TTL: {settings.symbol_map_ttl}s | Context cache TTL: {settings.context_cache_ttl}s")
    logger.info(f"Server: {settings.app_host}:{settings.app_port}")
    logger.info(f"Log level: {settings.log_level.upper()}")
