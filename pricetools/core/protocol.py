"""Command protocol between synchronous callers and the worker runtime.

A caller builds a :class:`Command` (one of the closed set of
:class:`CommandKind` values, a payload, and a fresh :class:`ResponseSlot`)
and sends it on the command channel. The worker writes exactly one outcome
into the slot; the caller blocks on ``slot.wait()``.

Slot states:
  unresolved -> resolved (result or error)
  unresolved -> dropped  (worker task aborted; waiter sees TransportError)
  unresolved -> abandoned (caller gave up; later writes are discarded)
"""
from __future__ import annotations

import copy
from concurrent.futures import CancelledError, Future, InvalidStateError
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .errors import TransportError, ValidationError
from .logging import core_logger


class CommandKind(str, Enum):
    GET_PRODUCT_PRICE = "get_product_price"
    SEARCH_PRODUCTS = "search_products"


class ResponseSlot:
    """Single-use response channel pairing one command with its result."""

    def __init__(self):
        self._future: Future = Future()

    def resolve(self, value: Any) -> bool:
        return self._settle(self._future.set_result, value)

    def fail(self, error: BaseException) -> bool:
        return self._settle(self._future.set_exception, error)

    def drop(self, reason: str = "worker task aborted") -> bool:
        return self._settle(
            self._future.set_exception,
            TransportError(f"Response dropped before resolution: {reason}"),
        )

    def abandon(self) -> bool:
        """Caller side: stop waiting. Returns False if already resolved."""
        return self._future.cancel()

    def done(self) -> bool:
        return self._future.done()

    def wait(self, timeout: Optional[float] = None) -> Any:
        """Block the calling thread until the slot resolves.

        Raises the stored error, TransportError if dropped or abandoned, and
        concurrent.futures.TimeoutError if ``timeout`` elapses.
        """
        try:
            return self._future.result(timeout)
        except CancelledError:
            raise TransportError("Response slot was abandoned") from None

    def _settle(self, setter, value) -> bool:
        try:
            setter(value)
        except InvalidStateError:
            # abandoned by the caller or already written
            core_logger.debug("discarding late response cancelled=%s", self._future.cancelled())
            return False
        return True


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    payload: Dict[str, Any]
    responder: ResponseSlot = field(default_factory=ResponseSlot, compare=False)

    @classmethod
    def build(cls, kind: CommandKind | str, payload: Mapping[str, Any] | None) -> "Command":
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValidationError(f"Arguments must be an object, got {type(payload).__name__}")
        return cls(kind=CommandKind(kind), payload=copy.deepcopy(dict(payload)))


__all__ = ["CommandKind", "ResponseSlot", "Command"]
