"""Product pricing handlers.

Both handlers run on the worker's event loop and receive the shared pool plus
the caller's payload. Input is validated before the pool is touched.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

from .core.errors import DatabaseError, NotFoundError, ValidationError
from .core.protocol import CommandKind

GET_PRODUCT_SQL = "SELECT id, name, price, description FROM products WHERE id = $1"
SEARCH_PRODUCTS_SQL = "SELECT id, name, price, description FROM products WHERE name ILIKE $1"

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


@dataclass
class Product:
    id: int
    name: str
    price: float
    description: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Product":
        price = row["price"]
        return cls(
            id=int(row["id"]),
            name=row["name"],
            price=float(price) if price is not None else 0.0,
            description=row["description"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _product_id(payload: Mapping[str, Any]) -> int:
    value = payload.get("product_id")
    # bool is an int subclass; JSON true is not an id
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("Missing or invalid product_id parameter")
    if not INT32_MIN <= value <= INT32_MAX:
        raise ValidationError(f"product_id out of range: {value}")
    return value


def _query(payload: Mapping[str, Any]) -> str:
    value = payload.get("query")
    if not isinstance(value, str):
        raise ValidationError("Missing or invalid query parameter")
    return value


async def get_product_price(pool, payload: Mapping[str, Any]) -> Dict[str, Any]:
    product_id = _product_id(payload)
    try:
        row = await pool.fetchrow(GET_PRODUCT_SQL, product_id)
    except Exception as e:  # noqa: BLE001
        raise DatabaseError(f"Database error: {e}") from e
    if row is None:
        raise NotFoundError(f"Product {product_id} not found")
    return {"product": Product.from_row(row).to_dict()}


async def search_products(pool, payload: Mapping[str, Any]) -> Dict[str, Any]:
    query = _query(payload)
    try:
        rows = await pool.fetch(SEARCH_PRODUCTS_SQL, f"%{query}%")
    except Exception as e:  # noqa: BLE001
        raise DatabaseError(f"Database error: {e}") from e
    products = [Product.from_row(r).to_dict() for r in rows]
    return {"products": products, "count": len(products)}


HANDLERS = {
    CommandKind.GET_PRODUCT_PRICE: get_product_price,
    CommandKind.SEARCH_PRODUCTS: search_products,
}

__all__ = ["Product", "get_product_price", "search_products", "HANDLERS"]
