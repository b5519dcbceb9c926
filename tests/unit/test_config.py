"""
Unit Tests for Configuration Module

These tests verify that the configuration system works correctly:
- Default values are applied when needed
- Validation catches invalid configurations
- Property methods work as expected

Run with:
    pytest tests/unit/test_config.py -v
"""

import pytest
from core.config import Settings, VALID_PROVIDERS, settings, validate_configuration


class TestConfigurationLoading:
    """Test that configuration loads correctly"""

    def test_binance_base_url_loaded(self):
        """Verify Binance API URL is set"""
        assert "binance" in settings.binance_base_url.lower()
        assert settings.binance_base_url.startswith("http")

    def test_hyperliquid_info_url(self):
        """Verify the /info endpoint is derived from the base URL"""
        assert settings.hyperliquid_info_url == f"{settings.hyperliquid_api_url.rstrip('/')}/info"

    def test_app_port_is_valid_integer(self):
        assert isinstance(settings.app_port, int)
        assert 1 <= settings.app_port <= 65535

    def test_data_provider_is_valid(self):
        assert settings.data_provider.lower() in VALID_PROVIDERS


class TestDefaults:
    """Defaults of a Settings instance built without .env"""

    def test_cache_and_transport_defaults(self):
        defaults = Settings(_env_file=None)

        assert defaults.symbol_map_ttl == 10.0
        assert defaults.context_cache_ttl == 10.0
        assert defaults.request_timeout == 10
        assert defaults.max_retries == 3
        assert defaults.quote_asset == "USDT"
        assert defaults.data_provider == "auto"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("DATA_PROVIDER", "hl")
        monkeypatch.setenv("SYMBOL_MAP_TTL", "30")

        overridden = Settings(_env_file=None)

        assert overridden.data_provider == "hl"
        assert overridden.symbol_map_ttl == 30.0


class TestCorsOrigins:

    def test_cors_origins_list_strips_whitespace(self, monkeypatch):
        monkeypatch.setattr(settings, "cors_origins", "http://a.test, http://b.test ,")
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]


class TestConfigurationValidation:
    """Test that configuration validation works"""

    def test_validate_configuration_passes(self, monkeypatch):
        monkeypatch.setattr(settings, "data_provider", "auto")
        monkeypatch.setattr(settings, "log_level", "INFO")
        validate_configuration()

    def test_invalid_data_provider(self, monkeypatch):
        monkeypatch.setattr(settings, "data_provider", "kraken")

        with pytest.raises(ValueError, match="DATA_PROVIDER"):
            validate_configuration()

    def test_invalid_ttl(self, monkeypatch):
        monkeypatch.setattr(settings, "data_provider", "auto")
        monkeypatch.setattr(settings, "symbol_map_ttl", 0)

        with pytest.raises(ValueError, match="SYMBOL_MAP_TTL"):
            validate_configuration()

    def test_invalid_max_retries(self, monkeypatch):
        monkeypatch.setattr(settings, "data_provider", "auto")
        monkeypatch.setattr(settings, "max_retries", 0)

        with pytest.raises(ValueError, match="MAX_RETRIES"):
            validate_configuration()

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setattr(settings, "data_provider", "auto")
        monkeypatch.setattr(settings, "log_level", "VERBOSE")

        with pytest.raises(ValueError, match="LOG_LEVEL"):
            validate_configuration()
