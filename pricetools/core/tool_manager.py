"""ToolManager: dispatch-by-name onto the bridge + per-tool metrics.

``execute`` is the tool boundary: every ToolError raised below it becomes a
flat ``{"ok": False, "error": msg, "kind": ErrorClass}`` response.
"""
from __future__ import annotations
from typing import Any, Dict, Mapping, Optional
import threading
import time

from .bridge import Bridge
from .errors import ToolError, ToolNotFoundError
from .logging import core_logger, summarize_for_log
from .registry import ToolRegistry


class ToolManager:
    def __init__(self, registry: ToolRegistry, bridge: Bridge):
        self.registry = registry
        self.bridge = bridge
        self._metrics: Dict[str, Dict[str, Any]] = {}
        self._metrics_lock = threading.Lock()

    def call(self, tool_id: str, args: Optional[Mapping[str, Any]] = None) -> Any:
        """Run a tool and return its data; raises ToolError subclasses."""
        meta = self.registry.get(tool_id)
        if not meta:
            raise ToolNotFoundError(f"Tool {tool_id} not found")
        start = time.time()
        ok = False
        try:
            result = self.bridge.call_blocking(meta.command, args)
            ok = True
            return result
        finally:
            self._record(tool_id, (time.time() - start) * 1000.0, ok)

    def execute(self, tool_id: str, args: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        try:
            data = self.call(tool_id, args)
        except ToolError as e:
            core_logger.info("tool failed tool_id=%s kind=%s error=%s", tool_id, e.kind, e)
            return {"ok": False, "error": str(e), "kind": e.kind}
        core_logger.debug("tool ok tool_id=%s data=%s", tool_id, summarize_for_log(data))
        return {"ok": True, "data": data}

    def _record(self, tool_id: str, latency: float, ok: bool) -> None:
        with self._metrics_lock:
            m = self._metrics.setdefault(
                tool_id, {"call_count": 0, "error_count": 0, "total_latency_ms": 0.0, "last_latency_ms": 0.0}
            )
            m["call_count"] += 1
            if not ok:
                m["error_count"] += 1
            m["total_latency_ms"] += latency
            m["last_latency_ms"] = latency
            m["avg_latency_ms"] = m["total_latency_ms"] / m["call_count"]

    def get_metrics(self, tool_id: str | None = None):
        """Return metrics for a single tool or all tools.
        If tool_id is None returns dict of all metrics plus aggregate summary under key '__aggregate__'."""
        with self._metrics_lock:
            if tool_id:
                return self._metrics.get(tool_id, {}).copy()
            aggregate = {"tools": len(self._metrics), "call_total": 0, "error_total": 0, "avg_latency_ms": 0.0}
            total_latency = 0.0
            for m in self._metrics.values():
                aggregate["call_total"] += m.get("call_count", 0)
                aggregate["error_total"] += m.get("error_count", 0)
                total_latency += m.get("total_latency_ms", 0.0)
            if aggregate["call_total"]:
                aggregate["avg_latency_ms"] = total_latency / aggregate["call_total"]
            all_metrics = {tid: data.copy() for tid, data in self._metrics.items()}
        all_metrics["__aggregate__"] = aggregate
        return all_metrics


__all__ = ["ToolManager"]
