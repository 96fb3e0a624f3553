"""Host-facing plugin surface.

A synchronous host drives the plugin in this order::

    configure(config) -> init() -> list_tools() / execute_tool(name, args)...

Each PricingPlugin owns one Bridge, built lazily from the configured source.
The module-level functions delegate to a process-wide default instance.
"""
from __future__ import annotations

import json
import threading
from typing import Any, Dict, List, Mapping, Optional, Union

from .core.bridge import Bridge
from .core.config_loader import ConfigSource, config_schema, load_config
from .core.errors import ConfigError, ToolError, ValidationError
from .core.logging import get_logger
from .core.registry import ToolRegistry, default_registry
from .core.tool_manager import ToolManager
from .core.worker import Handler, PoolFactory
from .core.protocol import CommandKind

logger = get_logger("pricetools.plugin")


class PricingPlugin:
    def __init__(
        self,
        config: ConfigSource = None,
        registry: Optional[ToolRegistry] = None,
        pool_factory: Optional[PoolFactory] = None,
        handlers: Optional[Mapping[CommandKind, Handler]] = None,
    ):
        self._config = config
        self._registry = registry or default_registry()
        self._pool_factory = pool_factory
        self._handlers = handlers
        self._lock = threading.Lock()
        self._manager: Optional[ToolManager] = None

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def manager(self) -> ToolManager:
        with self._lock:
            if self._manager is None:
                bridge = Bridge(self._config, pool_factory=self._pool_factory, handlers=self._handlers)
                self._manager = ToolManager(self._registry, bridge)
            return self._manager

    @property
    def bridge(self) -> Bridge:
        return self.manager.bridge

    def configure(self, config: ConfigSource) -> None:
        """Set the configuration. Validated eagerly; rejected once the bridge exists."""
        with self._lock:
            if self._manager is not None:
                raise ConfigError("Plugin already initialized; configuration is fixed")
            self._config = load_config(config)
        logger.info("plugin configured")

    def init(self) -> Dict[str, Any]:
        try:
            self.bridge.ensure_ready()
        except ToolError as e:
            logger.error("plugin init failed: %s", e)
            return {"ok": False, "error": str(e)}
        return {"ok": True}

    def list_tools(self) -> List[Dict[str, Any]]:
        return [meta.to_payload() for meta in self._registry.list()]

    def execute_tool(self, name: str, args: Union[Mapping[str, Any], str, None] = None) -> Dict[str, Any]:
        if isinstance(args, str):
            try:
                args = json.loads(args) if args.strip() else {}
            except json.JSONDecodeError as e:
                err = ValidationError(f"Invalid arguments JSON: {e}")
                return {"ok": False, "error": str(err), "kind": err.kind}
        return self.manager.execute(name, args)

    def get_config_schema(self) -> Dict[str, Any]:
        return config_schema()


_default_plugin = PricingPlugin()


def default_plugin() -> PricingPlugin:
    return _default_plugin


def configure(config: ConfigSource) -> None:
    _default_plugin.configure(config)


def init() -> Dict[str, Any]:
    return _default_plugin.init()


def list_tools() -> List[Dict[str, Any]]:
    return _default_plugin.list_tools()


def execute_tool(name: str, args: Union[Mapping[str, Any], str, None] = None) -> Dict[str, Any]:
    return _default_plugin.execute_tool(name, args)


def get_config_schema() -> Dict[str, Any]:
    return _default_plugin.get_config_schema()


__all__ = [
    "PricingPlugin",
    "default_plugin",
    "configure",
    "init",
    "list_tools",
    "execute_tool",
    "get_config_schema",
]
