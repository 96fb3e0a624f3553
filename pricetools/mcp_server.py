"""MCP Server (FastAPI) wrapping a PricingPlugin.

Every endpoint is a plain ``def``, so FastAPI runs it on its thread pool and
each request is an ordinary blocking caller of the bridge. The optional
fastmcp app exposes the same registry tools over streamable HTTP.

Environment variables:
  PRICETOOLS_MCP_MOUNT_PATH=/mcp    (override the MCP mount point)
  PRICETOOLS_INIT_ON_STARTUP=1      (start the bridge when the app is built)
"""
from __future__ import annotations
from fastapi import FastAPI, HTTPException, Query
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError as MCPToolError
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool
from typing import Any, Callable, Dict, Optional
import inspect
import os

from .core.errors import (
    NotFoundError,
    StartupError,
    ToolError,
    ToolNotFoundError,
    TransportError,
    ValidationError,
)
from .core.logging import core_logger
from .core.registry import ToolMeta
from .plugin import PricingPlugin

PY_TYPES = {"integer": int, "number": float, "string": str, "boolean": bool, "array": list, "object": dict}


class PredictRequest(BaseModel):
    tool_id: str
    request: Dict[str, Any] = {}


def _status_for(error: ToolError) -> int:
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, (NotFoundError, ToolNotFoundError)):
        return 404
    if isinstance(error, (StartupError, TransportError)):
        return 503
    return 500


def _make_mcp_tool(plugin: PricingPlugin, meta: ToolMeta) -> Callable:
    """Build an async function whose signature mirrors the tool's params."""
    tool_id = meta.id

    async def _tool(**kwargs):
        args = {k: v for k, v in kwargs.items() if v is not None}
        try:
            return await run_in_threadpool(plugin.manager.call, tool_id, args)
        except ToolError as e:
            raise MCPToolError(str(e)) from e

    params = []
    annotations: Dict[str, Any] = {}
    for p in meta.params:
        py_type = PY_TYPES[p.type]
        annotation = py_type if p.required else Optional[py_type]
        default = inspect.Parameter.empty if p.required else None
        params.append(inspect.Parameter(p.name, inspect.Parameter.KEYWORD_ONLY, default=default, annotation=annotation))
        annotations[p.name] = annotation
    annotations["return"] = Dict[str, Any]
    _tool.__signature__ = inspect.Signature(params, return_annotation=Dict[str, Any])  # type: ignore[attr-defined]
    _tool.__annotations__ = annotations
    _tool.__name__ = tool_id
    _tool.__doc__ = meta.description
    return _tool


def _setup_mcp(plugin: PricingPlugin) -> FastMCP:
    mcp_instance = FastMCP("pricetools")
    for meta in plugin.registry.list():
        try:
            mcp_instance.tool(name=meta.id, description=meta.description)(_make_mcp_tool(plugin, meta))
        except Exception as e:  # noqa: BLE001
            core_logger.warning("[MCP] failed to register tool id=%s error=%s", meta.id, e)
    core_logger.info(
        "[MCP] available tools (count=%d): %s",
        len(plugin.registry.list()),
        ", ".join(sorted(m.id for m in plugin.registry.list())),
    )
    return mcp_instance


def create_app(
    plugin: Optional[PricingPlugin] = None,
    enable_mcp: bool = True,
    mcp_mount_path: str = "/mcp",
    init_on_startup: bool = False,
) -> FastAPI:
    plugin = plugin or PricingPlugin()
    mount_env = os.getenv("PRICETOOLS_MCP_MOUNT_PATH")
    if mount_env:
        mcp_mount_path = mount_env if mount_env.startswith("/") else "/" + mount_env
    if mcp_mount_path != "/" and mcp_mount_path.endswith("/"):
        mcp_mount_path = mcp_mount_path[:-1]

    mcp_instance = None
    mcp_app = None
    if enable_mcp:
        mcp_instance = _setup_mcp(plugin)
        mcp_app = mcp_instance.http_app(path="/")

    app = FastAPI(title="pricetools-mcp", version="0.1.0", lifespan=mcp_app.lifespan if mcp_app else None)
    if mcp_app is not None:
        app.mount(mcp_mount_path, mcp_app)
        core_logger.info("[MCP] mounted at %s", mcp_mount_path)

    @app.get("/health")
    def health():
        return {"status": "ok", "bridge": plugin.bridge.state, "tools": len(plugin.registry.list())}

    @app.get("/tools")
    def list_tools():
        return {"tools": plugin.list_tools()}

    @app.post("/predict")
    def predict(req: PredictRequest):
        try:
            data = plugin.manager.call(req.tool_id, req.request)
        except ToolError as e:
            raise HTTPException(status_code=_status_for(e), detail=str(e))
        return {"tool_id": req.tool_id, "data": data}

    @app.get("/metrics")
    def metrics(tool_id: Optional[str] = Query(None)):
        return plugin.manager.get_metrics(tool_id=tool_id)

    @app.post("/admin/init")
    def admin_init():
        result = plugin.init()
        if not result["ok"]:
            raise HTTPException(status_code=503, detail=result["error"])
        return {"bridge": plugin.bridge.state}

    @app.get("/admin/config_schema")
    def admin_config_schema():
        return plugin.get_config_schema()

    if init_on_startup or os.getenv("PRICETOOLS_INIT_ON_STARTUP") == "1":
        result = plugin.init()
        if not result["ok"]:
            core_logger.error("bridge init on startup failed: %s", result["error"])

    app.state.plugin = plugin
    app.state.fastmcp = mcp_instance
    return app


__all__ = ["create_app"]
