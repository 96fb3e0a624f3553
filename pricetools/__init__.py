"""
pricetools

Product pricing tools for synchronous hosts. Blocking callers are bridged onto
a single background asyncio worker that owns the PostgreSQL pool.
"""

from .core.bridge import Bridge
from .core.config_loader import PluginConfig, load_config
from .core.registry import ToolRegistry
from .plugin import PricingPlugin

__all__ = [
    "Bridge",
    "PluginConfig",
    "load_config",
    "ToolRegistry",
    "PricingPlugin",
]
