"""Synchronous-to-asyncio bridge.

Blocking callers on any thread go through :class:`Bridge`. The first call to
``ensure_ready()`` validates the configuration and starts the single worker
runtime; every concurrent caller blocks on the same one-shot startup future
instead of racing to start another one. After that, ``call_blocking()`` just
queues a command and waits on its response slot.

State (derived, never reset):
    UNINITIALIZED -> INITIALIZING -> READY
    UNINITIALIZED -> INITIALIZING -> FAILED

A FAILED bridge is not retried: every later call raises the same StartupError.
Build a new Bridge to try again. There is no shutdown; the worker is a daemon
thread that lives as long as the process.
"""
from __future__ import annotations

import threading
from concurrent.futures import Future
from typing import Any, Literal, Mapping, Optional

from .config_loader import ConfigSource, load_config
from .errors import StartupError, TransportError
from .logging import core_logger
from .protocol import Command, CommandKind
from .worker import CommandChannel, Handler, PoolFactory, WorkerRuntime

BridgeState = Literal["UNINITIALIZED", "INITIALIZING", "READY", "FAILED"]


class Bridge:
    def __init__(
        self,
        config: ConfigSource = None,
        pool_factory: Optional[PoolFactory] = None,
        handlers: Optional[Mapping[CommandKind, Handler]] = None,
        name: str = "pricetools-worker",
    ):
        if pool_factory is None:
            from .pool import create_pool as pool_factory
        if handlers is None:
            from ..products import HANDLERS as handlers
        self._config_source = config
        self._pool_factory = pool_factory
        self._handlers = dict(handlers)
        self._name = name
        self._lock = threading.Lock()
        self._started = False
        self._startup: Future = Future()
        self._runtime: Optional[WorkerRuntime] = None

    @property
    def state(self) -> BridgeState:
        if not self._started:
            return "UNINITIALIZED"
        if not self._startup.done():
            return "INITIALIZING"
        return "FAILED" if self._startup.exception() is not None else "READY"

    @property
    def runtime(self) -> Optional[WorkerRuntime]:
        return self._runtime

    @property
    def error(self) -> Optional[StartupError]:
        if self.state != "FAILED":
            return None
        return self._startup.exception()  # type: ignore[return-value]

    def ensure_ready(self) -> CommandChannel:
        if not self._startup.done():
            with self._lock:
                first = not self._started
                self._started = True
            if first:
                self._start()
        # all callers, first or not, wait on the same startup signal
        error = self._startup.exception()
        if error is not None:
            # raise a fresh error so the stored one never accumulates frames
            raise StartupError(str(error)) from None
        return self._startup.result()

    def _start(self) -> None:
        core_logger.info("starting worker runtime name=%s", self._name)
        try:
            config = load_config(self._config_source)
            runtime = WorkerRuntime(config, self._pool_factory, self._handlers, self._startup, name=self._name)
            self._runtime = runtime
            runtime.start()
        except Exception as e:  # noqa: BLE001
            core_logger.error("worker startup failed: %s", e)
            if not self._startup.done():
                self._startup.set_exception(StartupError(str(e)))
            return
        self._startup.add_done_callback(self._log_startup)

    def _log_startup(self, fut: Future) -> None:
        if fut.exception() is not None:
            core_logger.error("bridge FAILED: %s", fut.exception())
        else:
            core_logger.info("bridge READY")

    def call_blocking(self, kind: CommandKind | str, payload: Optional[Mapping[str, Any]] = None) -> Any:
        """Run one command on the worker and block this thread for its result."""
        channel = self.ensure_ready()
        runtime = self._runtime
        if runtime is not None and runtime.thread is threading.current_thread():
            raise TransportError("call_blocking cannot be used from the worker thread")
        command = Command.build(kind, payload)
        channel.send(command)
        return command.responder.wait()


__all__ = ["Bridge", "BridgeState"]
