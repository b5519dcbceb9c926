"""
Unit Tests for Hyperliquid API Client

These tests verify that the HyperliquidAPIClient:
- Correctly formats API requests (POST with JSON payloads)
- Normalizes Hyperliquid responses to our schemas
- Handles errors and retries appropriately
- Works with mocked HTTP responses

Run with:
    pytest tests/unit/test_hyperliquid_api_client.py -v
"""

import asyncio

import pytest
import pytest_asyncio

from exchanges.hyperliquid.api_client import HyperliquidAPIClient
from core.schemas import AssetContext, Candle


# ============================================
# Fixtures
# ============================================

@pytest_asyncio.fixture
async def api_client():
    """Create a HyperliquidAPIClient instance for testing"""
    async with HyperliquidAPIClient() as client:
        yield client


META_AND_CTXS = [
    {
        "universe": [
            {"name": "BTC", "szDecimals": 5, "maxLeverage": 50},
            {"name": "ETH", "szDecimals": 4, "maxLeverage": 50},
        ]
    },
    [
        {"funding": "0.0000125", "openInterest": "1234.5", "markPx": "37000.0", "oraclePx": "36990.0"},
        {"funding": "-0.00001", "openInterest": "56789.0", "markPx": "2000.5", "oraclePx": "2000.0"},
    ]
]


# ============================================
# Tests for Candles
# ============================================

class TestGetCandles:
    """Tests for get_candles method"""

    @pytest.mark.asyncio
    async def test_get_candles_returns_candles(self, api_client, monkeypatch):
        """Verify get_candles returns normalized Candle objects"""
        mock_response = [
            {
                "t": 1700000000000,
                "T": 1700000179999,
                "s": "BTC",
                "i": "3m",
                "o": "37000.0",
                "h": "37010.0",
                "l": "36990.0",
                "c": "37005.0",
                "v": "12.5",
                "n": 120
            }
        ]

        async def mock_post(payload):
            return mock_response

        monkeypatch.setattr(api_client, "_post", mock_post)

        result = await api_client.get_candles("BTC", "3m", 1699999820000, 1700000180000)

        assert len(result) == 1
        assert isinstance(result[0], Candle)
        assert result[0].open_time == 1700000000000
        assert result[0].close_time == 1700000000000 + 180_000 - 1
        assert result[0].open == 37000.0
        assert result[0].high == 37010.0
        assert result[0].low == 36990.0
        assert result[0].close == 37005.0
        assert result[0].volume == 12.5

    @pytest.mark.asyncio
    async def test_get_candles_payload(self, api_client, monkeypatch):
        """Verify candleSnapshot request body"""
        captured = {}

        async def mock_post(payload):
            captured.update(payload)
            return []

        monkeypatch.setattr(api_client, "_post", mock_post)

        await api_client.get_candles("ETH", "4h", 1000, 2000)

        assert captured == {
            "type": "candleSnapshot",
            "req": {"coin": "ETH", "interval": "4h", "startTime": 1000, "endTime": 2000}
        }

    @pytest.mark.asyncio
    async def test_get_candles_4h_close_time(self, api_client, monkeypatch):
        async def mock_post(payload):
            return [{"t": 1699992000000, "o": "1", "h": "2", "l": "0.5", "c": "1.5", "v": "3"}]

        monkeypatch.setattr(api_client, "_post", mock_post)

        result = await api_client.get_candles("ETH", "4h", 0, 1)

        assert result[0].close_time == 1699992000000 + 14_400_000 - 1

    @pytest.mark.asyncio
    async def test_get_candles_rejects_unexpected_response(self, api_client, monkeypatch):
        async def mock_post(payload):
            return None

        monkeypatch.setattr(api_client, "_post", mock_post)

        with pytest.raises(ValueError):
            await api_client.get_candles("BTC", "3m", 0, 1)


# ============================================
# Tests for Universe and Asset Contexts
# ============================================

class TestGetUniverse:

    @pytest.mark.asyncio
    async def test_get_universe_returns_coin_names(self, api_client, monkeypatch):
        async def mock_post(payload):
            assert payload == {"type": "meta"}
            return {"universe": [{"name": "BTC"}, {"name": "ETH"}, {"name": "HYPE"}]}

        monkeypatch.setattr(api_client, "_post", mock_post)

        assert await api_client.get_universe() == ["BTC", "ETH", "HYPE"]


class TestGetAssetContext:

    @pytest.mark.asyncio
    async def test_matches_context_by_universe_index(self, api_client, monkeypatch):
        async def mock_post(payload):
            assert payload == {"type": "metaAndAssetCtxs"}
            return META_AND_CTXS

        monkeypatch.setattr(api_client, "_post", mock_post)

        result = await api_client.get_asset_context("ETH")

        assert isinstance(result, AssetContext)
        assert result.funding_rate == pytest.approx(-0.00001)
        assert result.open_interest == pytest.approx(56789.0)
        assert result.mark_price == pytest.approx(2000.5)

    @pytest.mark.asyncio
    async def test_unknown_coin_returns_none(self, api_client, monkeypatch):
        async def mock_post(payload):
            return META_AND_CTXS

        monkeypatch.setattr(api_client, "_post", mock_post)

        assert await api_client.get_asset_context("DOGE") is None

    @pytest.mark.asyncio
    async def test_malformed_response_raises(self, api_client, monkeypatch):
        async def mock_post(payload):
            return [{"universe": []}]

        monkeypatch.setattr(api_client, "_post", mock_post)

        with pytest.raises(ValueError):
            await api_client.get_asset_context("BTC")


# ============================================
# Tests for Transport
# ============================================

class MockResponse:
    def __init__(self, status, json_data=None):
        self.status = status
        self._json_data = json_data

    async def json(self):
        return self._json_data

    async def text(self):
        return "error"

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass


class TestTransport:

    @pytest.mark.asyncio
    async def test_post_requires_session(self):
        client = HyperliquidAPIClient()

        with pytest.raises(RuntimeError, match="not initialized"):
            await client._post({"type": "meta"})

    @pytest.mark.asyncio
    async def test_post_retries_on_rate_limit(self, api_client, monkeypatch):
        async def fake_sleep(delay):
            return None

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)
        statuses = [429, 503, 200]

        def mock_post(url, json=None, headers=None, timeout=None):
            return MockResponse(statuses.pop(0), {"universe": []})

        api_client.session.post = mock_post

        assert await api_client._post({"type": "meta"}) == {"universe": []}
        assert statuses == []

    def test_url_defaults_to_info_endpoint(self):
        assert HyperliquidAPIClient().url.endswith("/info")
