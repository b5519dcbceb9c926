"""
FastAPI Application Package

This package contains the FastAPI application that exposes assembled market
data, candles, indicator snapshots and provider metrics over REST.
"""
