"""
Pytest configuration and fixtures for the x402 discovery server tests.

Upstream HTTP resources are simulated with httpx.MockTransport injected
into the ProxyInvoker's shared client, so no network is needed.

Usage:
    def test_something(write_catalog):
        catalog = write_catalog([WEATHER_RESOURCE])

    @pytest.mark.asyncio
    async def test_proxy(make_invoker):
        invoker, calls = make_invoker(lambda request: httpx.Response(200))
"""

import copy
import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from x402_discovery_mcp.catalog import CatalogLoader
from x402_discovery_mcp.proxy import ProxyInvoker


WEATHER_RESOURCE: Dict[str, Any] = {
    "resource": "http://x/weather",
    "type": "http",
    "x402Version": 1,
    "lastUpdated": "2025-11-20T18:04:11Z",
    "accepts": [
        {
            "scheme": "exact",
            "network": "base-sepolia",
            "maxAmountRequired": "10000",
            "asset": "0xAAA",
            "payTo": "0xBBB",
            "maxTimeoutSeconds": 300,
            "description": "Get weather",
        }
    ],
}

FORECAST_RESOURCE: Dict[str, Any] = {
    "resource": "https://api.example.com/weather/forecast?units=metric",
    "type": "http",
    "x402Version": 2,
    "lastUpdated": "2025-11-21T09:30:00Z",
    "accepts": [
        {
            "scheme": "exact",
            "network": "eip155:84532",
            "maxAmountRequired": "25000",
            "asset": "0x036CbD53842c5426634e7929541eC2318f3dCF7e",
            "payTo": "0x209693Bc6afc0C5328bA36FaF03C514EF312287C",
            "maxTimeoutSeconds": 60,
            "mimeType": "application/json",
            "description": "Multi-day forecast",
            "extra": {"name": "USDC", "version": "2"},
            "outputSchema": {
                "input": {
                    "type": "http",
                    "method": "get",
                    "queryParams": {"city": "City name", "days": None},
                    "headers": {"X-Units": "metric or imperial"},
                }
            },
        }
    ],
}

STOCK_RESOURCE: Dict[str, Any] = {
    "resource": "https://api.example.com/STOCK/quote",
    "type": "http",
    "x402Version": 1,
    "lastUpdated": "2025-11-18T08:15:00Z",
    "accepts": [],
}

MCP_RESOURCE: Dict[str, Any] = {
    "resource": "mcp://tool/weather_summary",
    "type": "mcp",
    "x402Version": 2,
    "lastUpdated": "2025-11-18T08:15:00Z",
}

V2_CREDENTIAL: Dict[str, Any] = {
    "x402Version": 2,
    "resource": {"url": "tool://x402_http_x_weather", "description": "Get weather"},
    "accepted": {"scheme": "exact", "network": "eip155:84532", "amount": "10000"},
    "payload": {"signature": "0xdeadbeef", "authorization": {"nonce": "0x01"}},
}

V1_CREDENTIAL: Dict[str, Any] = {
    "x402Version": 1,
    "scheme": "exact",
    "network": "base-sepolia",
    "payload": {"signature": "0xdeadbeef"},
}


@pytest.fixture
def write_catalog(tmp_path) -> Callable[[List[Dict[str, Any]]], CatalogLoader]:
    """Write items to a fixture file and return a fresh loader for it."""
    def _write(items: List[Dict[str, Any]]) -> CatalogLoader:
        path = tmp_path / "x402-endpoints.json"
        path.write_text(json.dumps({"items": copy.deepcopy(items)}), encoding="utf-8")
        return CatalogLoader(path)
    return _write


@pytest.fixture
def catalog(write_catalog) -> CatalogLoader:
    """Catalog with weather, forecast, stock and a non-HTTP resource."""
    return write_catalog([WEATHER_RESOURCE, FORECAST_RESOURCE, STOCK_RESOURCE, MCP_RESOURCE])


@pytest.fixture
def make_invoker(catalog):
    """
    Build a ProxyInvoker whose upstream is answered by ``handler``.

    Returns (invoker, calls) where calls collects every httpx.Request sent.
    """
    def _make(handler: Callable[[httpx.Request], httpx.Response], **kwargs):
        calls: List[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        return ProxyInvoker(catalog, client=client, **kwargs), calls
    return _make


@pytest.fixture(autouse=True)
def reset_catalog_singleton():
    yield
    CatalogLoader.reset_instance()
