"""In-memory tool registry."""
from __future__ import annotations
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
import threading

from .errors import RegistrationError
from .protocol import CommandKind

JSON_TYPES = {"integer", "number", "string", "boolean", "array", "object"}


@dataclass
class ToolParam:
    name: str
    type: str
    description: str = ""
    required: bool = True

    def __post_init__(self):
        if self.type not in JSON_TYPES:
            raise RegistrationError(f"Unsupported param type {self.type!r} for {self.name}")


@dataclass
class ToolMeta:
    id: str
    description: str
    command: CommandKind
    params: List[ToolParam] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)

    def input_schema(self) -> Dict[str, Any]:
        props = {p.name: {"type": p.type, "description": p.description} for p in self.params}
        required = [p.name for p in self.params if p.required]
        return {"type": "object", "properties": props, "required": required}

    def to_payload(self) -> Dict[str, Any]:
        return {"name": self.id, "description": self.description, "inputSchema": self.input_schema()}


class ToolRegistry:
    def __init__(self):
        self._lock = threading.RLock()
        self._tools: Dict[str, ToolMeta] = {}

    def register(self, meta: ToolMeta):
        with self._lock:
            if meta.id in self._tools:
                raise RegistrationError(f"Duplicate tool id: {meta.id}")
            self._tools[meta.id] = meta

    def get(self, tool_id: str) -> Optional[ToolMeta]:
        return self._tools.get(tool_id)

    def list(self) -> List[ToolMeta]:
        return list(self._tools.values())

    def remove(self, tool_id: str):
        with self._lock:
            self._tools.pop(tool_id, None)

    def clear(self):
        with self._lock:
            self._tools.clear()


def default_registry() -> ToolRegistry:
    """Registry holding the two product tools."""
    registry = ToolRegistry()
    registry.register(
        ToolMeta(
            id="get_product_price",
            description="Get the price of a product by ID",
            command=CommandKind.GET_PRODUCT_PRICE,
            params=[ToolParam("product_id", "integer", "The ID of the product")],
            tags=["products"],
        )
    )
    registry.register(
        ToolMeta(
            id="search_products",
            description="Search for products by name pattern",
            command=CommandKind.SEARCH_PRODUCTS,
            params=[ToolParam("query", "string", "The search query (SQL LIKE pattern)")],
            tags=["products"],
        )
    )
    return registry


__all__ = ["ToolRegistry", "ToolMeta", "ToolParam", "default_registry"]
