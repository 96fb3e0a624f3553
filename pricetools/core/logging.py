"""Logging setup for the pricetools framework.

PRICETOOLS_LOG_LEVEL sets the level (default INFO); PRICETOOLS_LOG_DIR, when
set, mirrors every record into <dir>/pricetools.log.

``summarize_for_log`` shrinks command payloads and query results (dicts,
asyncpg records, row lists) to their shape so that product rows never end up
in the logs verbatim.
"""
from __future__ import annotations
import logging
import os
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_FILE = "pricetools.log"


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def _is_row(obj: Any) -> bool:
    # dicts and asyncpg.Record both expose keys() and item access
    return hasattr(obj, "keys") and hasattr(obj, "__getitem__")


def summarize_for_log(obj: Any, *, max_items: int = 8, max_level: int = 2) -> Any:
    """Return a compact, JSON-serializable summary suitable for logging.

    Scalars come back as-is (Decimal as its string form). Strings are clipped.
    Rows report their column names and value types, not the values. Sequences
    report their length and summarize at most ``max_items`` elements, down to
    ``max_level`` levels of nesting.
    """
    if obj is None or isinstance(obj, (bool, int, float)):
        return obj
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, str):
        return {"type": "str", "len": len(obj), "preview": _clip(obj, 200)}
    if isinstance(obj, (bytes, bytearray)):
        return {"type": type(obj).__name__, "len": len(obj)}
    if _is_row(obj):
        keys = [str(k) for k in list(obj.keys())[:max_items]]
        row: Dict[str, Any] = {"type": type(obj).__name__, "len": len(obj), "keys": keys}
        if max_level > 0:
            row["value_types"] = {k: type(obj[k]).__name__ for k in keys}
        return row
    if isinstance(obj, (list, tuple, set, frozenset)):
        seq: Dict[str, Any] = {"type": type(obj).__name__, "len": len(obj)}
        if max_level > 0:
            head = list(obj)[:max_items]
            seq["preview"] = [
                summarize_for_log(item, max_items=max_items, max_level=max_level - 1) for item in head
            ]
        return seq
    return {"type": type(obj).__name__}


def _file_handler(log_dir: str) -> Optional[logging.Handler]:
    path = Path(log_dir)
    try:
        path.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(path / LOG_FILE, encoding="utf-8")
    except OSError as e:
        logging.getLogger("pricetools").warning("file logging disabled dir=%s error=%s", log_dir, e)
        return None


def get_logger(name: str = "pricetools") -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    handlers = [logging.StreamHandler()]
    log_dir = os.getenv("PRICETOOLS_LOG_DIR")
    if log_dir:
        fh = _file_handler(log_dir)
        if fh is not None:
            handlers.append(fh)
    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(os.getenv("PRICETOOLS_LOG_LEVEL", "INFO").upper())
    logger.propagate = False
    return logger


core_logger = get_logger("pricetools.core")

__all__ = ["get_logger", "core_logger", "summarize_for_log", "LOG_FORMAT"]
