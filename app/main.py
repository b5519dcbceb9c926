"""
FastAPI Application - Multi-Venue Market Data API

Provides unified REST access to assembled market data for trading consumers.

Supported Providers:
    - Binance Futures (USD-M)
    - Hyperliquid

Features:
    - Assembled market data (price, price change, indicators, open interest, funding)
    - Candles and indicator snapshots per provider
    - Per-provider request / error / cache metrics

Usage:
    uvicorn app.main:app --reload --host 0.0.0.0 --port 8000

Docs:
    - Swagger: http://localhost:8000/docs
    - ReDoc: http://localhost:8000/redoc
"""

from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import settings, validate_configuration
from core.exceptions import CandleFetchError, SymbolMappingError
from core.logging import logger
from core.provider_interface import DataProvider
from core.provider_manager import ProviderManager
from core.schemas import Candle, IndicatorSnapshot, MarketData, ProviderMetricsSnapshot
from core.symbol_map import normalize_symbol
from services.market_data import MarketDataAssembler


# ============================================
# Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    logger.info(f"=== Application Starting ({settings.environment}) ===")
    try:
        validate_configuration()
        await manager.initialize_all()
        logger.info("=== Started Successfully ===")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    yield

    logger.info("=== Shutting Down ===")
    try:
        await manager.shutdown_all()
        logger.info("=== Shutdown Complete ===")
    except Exception as e:
        logger.error(f"Shutdown error: {e}")


# ============================================
# FastAPI Application
# ============================================

app = FastAPI(
    title="Market Facade API",
    description=(
        "Unified market data for trading consumers, independent of the venue it comes from.\n\n"
        "**Supported Providers:** Binance Futures (USD-M), Hyperliquid\n\n"
        "## REST Endpoints\n"
        "- `GET /market/{symbol}` - Assembled market data (optional `?provider=` and `?exchange=`)\n"
        "- `GET /{provider}/klines/{symbol}/{interval}` - Candles\n"
        "- `GET /{provider}/indicators/{symbol}/{interval}` - EMA20 / MACD / RSI7 snapshot\n"
        "- `GET /{provider}/metrics` - Request, error and cache counters\n"
        "- `GET /providers` - List providers and capabilities\n"
        "- `GET /health` - Health check\n"
    ),
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.debug,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

manager = ProviderManager()  # Global provider manager


def _get_provider(name: str) -> DataProvider:
    try:
        return manager.get_provider(name)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


# ============================================
# System Endpoints
# ============================================

@app.get("/", tags=["System"])
async def root():
    """API information and available providers."""
    return {
        "name": "Market Facade API",
        "version": "1.0.0",
        "status": "operational",
        "environment": settings.environment,
        "docs": "/docs",
        "providers": manager.list_providers()
    }


@app.get("/health", tags=["System"])
async def health_check():
    """Health check - tests connectivity to all providers."""
    health = await manager.health_check_all()
    return {
        "status": "healthy" if all(health.values()) else "degraded",
        "providers": health
    }


@app.get("/providers", tags=["System"])
async def list_providers():
    """List all registered providers and their capabilities."""
    return {
        "providers": [
            {
                "name": name,
                "capabilities": manager.get_provider_capabilities(name)
            }
            for name in manager.list_providers()
        ]
    }


# ============================================
# Assembled Market Data
# NOTE: must be defined BEFORE generic '/{provider}/...' routes
#       to avoid being captured by the dynamic path.
# ============================================

@app.get("/market/{symbol}", response_model=MarketData, tags=["Market Data"])
async def get_market_data(
    symbol: str,
    provider: Optional[str] = Query(default=None, description="Provider override (binance, hyperliquid, hl, auto)"),
    exchange: Optional[str] = Query(default=None, description="Exchange the caller trades on (drives auto selection)")
):
    """
    Assembled market data for one symbol.

    Examples:
        GET /market/BTCUSDT
        GET /market/eth?provider=hl
        GET /market/SOLUSDT?exchange=hyperliquid
    """
    try:
        selected = manager.select_provider(trader_exchange=exchange, override=provider)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))

    try:
        return await selected.get_market_data(symbol)
    except SymbolMappingError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CandleFetchError as e:
        logger.error(f"Market data error {selected.name}/{symbol}: {e}")
        raise HTTPException(status_code=502, detail=str(e))


# ============================================
# Per-Provider Endpoints
# ============================================

@app.get("/{provider}/klines/{symbol}/{interval}", response_model=List[Candle], tags=["Market Data"])
async def get_klines(
    provider: str,
    symbol: str,
    interval: str,
    limit: int = Query(default=40, ge=1, le=1500, description="Number of candles")
):
    """
    Get the most recent candles.

    Examples:
        GET /binance/klines/BTCUSDT/3m?limit=40
        GET /hyperliquid/klines/ETHUSDT/4h?limit=60
    """
    data_provider = _get_provider(provider)

    try:
        return await MarketDataAssembler(data_provider).get_candles(normalize_symbol(symbol), interval, limit)
    except SymbolMappingError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CandleFetchError as e:
        logger.error(f"Klines error {provider}/{symbol}/{interval}: {e}")
        raise HTTPException(status_code=502, detail=str(e))


@app.get("/{provider}/indicators/{symbol}/{interval}", response_model=IndicatorSnapshot, tags=["Market Data"])
async def get_indicators(
    provider: str,
    symbol: str,
    interval: str,
    limit: int = Query(default=40, ge=1, le=1500, description="Number of candles to compute over")
):
    """
    Current EMA20 / MACD / RSI7 over the most recent candles.

    A value of 0 means there were not enough candles for that indicator.
    """
    data_provider = _get_provider(provider)

    try:
        return await MarketDataAssembler(data_provider).get_indicator_snapshot(symbol, interval, limit)
    except SymbolMappingError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CandleFetchError as e:
        logger.error(f"Indicator error {provider}/{symbol}/{interval}: {e}")
        raise HTTPException(status_code=502, detail=str(e))


@app.get("/{provider}/metrics", response_model=ProviderMetricsSnapshot, tags=["System"])
async def get_metrics(provider: str):
    """Request, error and cache counters of one provider."""
    return _get_provider(provider).get_metrics()


# ============================================
# Error Handlers
# ============================================

@app.exception_handler(404)
async def not_found_handler(request, exc):
    """Handle 404 errors."""
    detail = getattr(exc, "detail", None) or "Not found"
    return JSONResponse(status_code=404, content={"detail": detail, "path": str(request.url)})


@app.exception_handler(500)
async def internal_error_handler(request, exc):
    """Handle 500 errors."""
    logger.error(f"Internal error: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
