"""Shared asyncpg connection pool.

Created once inside the worker thread and handed by reference to every
per-command task. Connection limits and the acquire timeout come from
PluginConfig; pooling itself is asyncpg's.
"""
from __future__ import annotations

from typing import Any, List, Optional

import asyncpg

from .config_loader import PluginConfig
from .logging import core_logger


class ResourcePool:
    """Thin query facade over ``asyncpg.Pool`` honouring the acquire timeout."""

    def __init__(self, pool: asyncpg.Pool, acquire_timeout: float):
        self._pool = pool
        self.acquire_timeout = acquire_timeout

    async def fetchrow(self, query: str, *args: Any) -> Optional[asyncpg.Record]:
        async with self._pool.acquire(timeout=self.acquire_timeout) as conn:
            return await conn.fetchrow(query, *args)

    async def fetch(self, query: str, *args: Any) -> List[asyncpg.Record]:
        async with self._pool.acquire(timeout=self.acquire_timeout) as conn:
            return await conn.fetch(query, *args)


async def create_pool(config: PluginConfig) -> ResourcePool:
    """Open the pool; fails when the database is unreachable."""
    core_logger.info(
        "opening database pool max_connections=%d timeout_s=%d",
        config.max_connections,
        config.timeout_seconds,
    )
    pool = await asyncpg.create_pool(
        dsn=config.database_url,
        min_size=1,
        max_size=config.max_connections,
        timeout=config.timeout_seconds,
    )
    return ResourcePool(pool, acquire_timeout=float(config.timeout_seconds))


__all__ = ["ResourcePool", "create_pool"]
