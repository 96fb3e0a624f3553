"""Worker runtime: one daemon thread hosting one asyncio event loop.

The thread opens the resource pool, reports the outcome on a one-shot startup
future, then serves the command channel forever. Each dequeued command runs
as its own task, so dequeue order is FIFO but completion order is not.
"""
from __future__ import annotations

import asyncio
import threading
from concurrent.futures import Future
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Set

from .config_loader import PluginConfig
from .errors import StartupError, ToolError, TransportError
from .logging import core_logger, summarize_for_log
from .protocol import Command, CommandKind

Handler = Callable[[Any, Dict[str, Any]], Awaitable[Any]]
PoolFactory = Callable[[PluginConfig], Awaitable[Any]]


class CommandChannel:
    """Sending half of the unbounded command queue. Safe from any thread."""

    def __init__(self, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue):
        self._loop = loop
        self._queue = queue

    def send(self, command: Command) -> None:
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, command)
        except RuntimeError as e:  # loop closed
            raise TransportError(f"Command channel closed: {e}") from e

    @property
    def pending(self) -> int:
        return self._queue.qsize()


class WorkerRuntime:
    def __init__(
        self,
        config: PluginConfig,
        pool_factory: PoolFactory,
        handlers: Mapping[CommandKind, Handler],
        startup: Future,
        name: str = "pricetools-worker",
    ):
        self._config = config
        self._pool_factory = pool_factory
        self._handlers = dict(handlers)
        self._startup = startup
        self._name = name
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def thread(self) -> Optional[threading.Thread]:
        return self._thread

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        try:
            loop = asyncio.new_event_loop()
            asyncio.set_event_loop(loop)
            self._loop = loop
            loop.run_until_complete(self._serve())
        except Exception as e:  # noqa: BLE001
            core_logger.exception("worker runtime stopped: %s", e)
            if not self._startup.done():
                self._startup.set_exception(StartupError(str(e) or type(e).__name__))
        finally:
            # BaseException from the loop still has to settle startup
            if not self._startup.done():
                self._startup.set_exception(StartupError("worker runtime exited before startup completed"))

    async def _serve(self) -> None:
        queue: asyncio.Queue = asyncio.Queue()
        try:
            pool = await self._pool_factory(self._config)
        except (Exception, asyncio.CancelledError) as e:  # noqa: BLE001
            core_logger.error("pool construction failed: %s", e)
            self._startup.set_exception(StartupError(str(e) or type(e).__name__))
            return
        self._startup.set_result(CommandChannel(asyncio.get_running_loop(), queue))
        core_logger.info("worker ready thread=%s", self._name)

        while True:
            command = await queue.get()
            # one task per command; never await it here
            task = asyncio.create_task(self._execute(pool, command))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _execute(self, pool: Any, command: Command) -> None:
        slot = command.responder
        try:
            handler = self._handlers[command.kind]
            result = await handler(pool, command.payload)
        except ToolError as e:
            core_logger.debug("command failed kind=%s error=%s", command.kind.value, e)
            slot.fail(e)
        except Exception as e:  # noqa: BLE001
            core_logger.exception(
                "command aborted kind=%s payload=%s", command.kind.value, summarize_for_log(command.payload)
            )
            slot.drop(f"{type(e).__name__}: {e}")
        else:
            if not slot.resolve(result):
                core_logger.debug("caller abandoned response kind=%s", command.kind.value)
        finally:
            # cancellation or anything that skipped the branches above
            if not slot.done():
                slot.drop("task cancelled")


__all__ = ["CommandChannel", "WorkerRuntime", "Handler", "PoolFactory"]
