"""Core framework components for pricetools.

Modules:
  config_loader: Parse/validate plugin configuration (mapping, JSON, YAML, env).
  registry: In-memory registry of tool metadata.
  protocol: Command kinds, commands and single-use response slots.
  worker: Dedicated worker thread hosting the asyncio loop + command channel.
  bridge: Exactly-once startup and blocking call adapter over the worker.
  pool: asyncpg-backed resource pool.
  tool_manager: Dispatch-by-name, flat error conversion, metrics.
"""

from .registry import ToolRegistry  # noqa: F401
from .bridge import Bridge  # noqa: F401
