import asyncio
import inspect

import pytest
from fastapi.testclient import TestClient
from fastmcp.exceptions import ToolError as MCPToolError

from conftest import TEST_CONFIG, CountingPoolFactory
from pricetools.mcp_server import _make_mcp_tool, create_app
from pricetools.plugin import PricingPlugin


def _client(pool_factory, **kwargs):
    plugin = PricingPlugin(TEST_CONFIG, pool_factory=pool_factory)
    return TestClient(create_app(plugin, enable_mcp=False, **kwargs))


def test_health_and_tools(pool_factory):
    client = _client(pool_factory)
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "bridge": "UNINITIALIZED", "tools": 2}
    r2 = client.get("/tools")
    assert [t["name"] for t in r2.json()["tools"]] == ["get_product_price", "search_products"]


def test_predict_ok(pool_factory):
    client = _client(pool_factory)
    r = client.post("/predict", json={"tool_id": "get_product_price", "request": {"product_id": 3}})
    assert r.status_code == 200
    assert r.json()["data"]["product"]["name"] == "Super Widget XL"
    assert client.get("/health").json()["bridge"] == "READY"


def test_predict_error_statuses(pool_factory):
    client = _client(pool_factory)
    r = client.post("/predict", json={"tool_id": "get_product_price", "request": {"product_id": 999999}})
    assert r.status_code == 404
    assert r.json()["detail"] == "Product 999999 not found"
    r = client.post("/predict", json={"tool_id": "get_product_price", "request": {}})
    assert r.status_code == 400
    r = client.post("/predict", json={"tool_id": "nope", "request": {}})
    assert r.status_code == 404


def test_predict_startup_failure_is_503():
    client = _client(CountingPoolFactory(error=OSError("connection refused")))
    r = client.post("/predict", json={"tool_id": "search_products", "request": {"query": "x"}})
    assert r.status_code == 503
    assert r.json()["detail"] == "connection refused"
    r = client.post("/admin/init")
    assert r.status_code == 503


def test_metrics_and_config_schema(pool_factory):
    client = _client(pool_factory)
    client.post("/predict", json={"tool_id": "search_products", "request": {"query": "w"}})
    m = client.get("/metrics", params={"tool_id": "search_products"}).json()
    assert m["call_count"] == 1
    schema = client.get("/admin/config_schema").json()
    assert "max_connections" in schema["properties"]


def test_init_on_startup(pool_factory):
    client = _client(pool_factory, init_on_startup=True)
    assert client.get("/health").json()["bridge"] == "READY"
    assert pool_factory.calls == 1


def test_mcp_enabled_registers_tools(pool_factory):
    plugin = PricingPlugin(TEST_CONFIG, pool_factory=pool_factory)
    app = create_app(plugin, enable_mcp=True)
    assert app.state.fastmcp is not None
    assert any(getattr(r, "path", None) == "/mcp" for r in app.routes)
    # building the app does not start the bridge
    assert plugin.bridge.state == "UNINITIALIZED"


def test_mcp_tool_wrapper_runs_through_manager(pool_factory):
    plugin = PricingPlugin(TEST_CONFIG, pool_factory=pool_factory)
    tool = _make_mcp_tool(plugin, plugin.registry.get("get_product_price"))
    assert tool.__name__ == "get_product_price"
    assert list(inspect.signature(tool).parameters) == ["product_id"]

    result = asyncio.run(tool(product_id=1))
    assert result["product"]["name"] == "Widget"
    with pytest.raises(MCPToolError, match="Product 999 not found"):
        asyncio.run(tool(product_id=999))
    assert plugin.manager.get_metrics("get_product_price")["call_count"] == 2


def test_mcp_tool_wrapper_drops_none_arguments(pool_factory):
    plugin = PricingPlugin(TEST_CONFIG, pool_factory=pool_factory)
    tool = _make_mcp_tool(plugin, plugin.registry.get("search_products"))
    # a None argument is treated as missing, so the handler rejects it
    with pytest.raises(MCPToolError, match="Missing or invalid query parameter"):
        asyncio.run(tool(query=None))
    assert asyncio.run(tool(query="gadget"))["count"] == 1
