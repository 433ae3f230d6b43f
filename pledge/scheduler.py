from __future__ import annotations

import asyncio
import logging
import queue
import threading
from collections.abc import Callable
from threading import Thread
from typing import TYPE_CHECKING, Any, Literal

from pledge import logging as pledge_logging
from pledge.errors import SchedulerShutdownError
from pledge.options import Options
from pledge.result import Ko, Ok, Result
from pledge.utils import exit_on_exception

if TYPE_CHECKING:
    from collections.abc import Awaitable
    from concurrent.futures import Future

logger = logging.getLogger(__name__)


class Scheduler:
    """Host side of continuation dispatch.

    Worker threads drain a single FIFO submission queue, each entry is a
    function and the callback that receives the function's result. Coroutines
    produced by continuations run on a dedicated event loop thread.
    """

    def __init__(self, opts: Options | None = None) -> None:
        self.opts = opts or Options()

        self.threads = set[Thread]()
        for i in range(self.opts.threads):
            self.threads.add(Thread(target=self._run, name=f"{self.opts.name}-worker-{i}", daemon=True))

        self.sq = queue.Queue[tuple[Callable[[], Any], Callable[[Result[Any]], None]] | None]()

        self._loop = asyncio.new_event_loop()
        self._loop_thread = Thread(target=self._run_loop, name=f"{self.opts.name}-loop", daemon=True)

        self._lock = threading.Lock()
        self._state: Literal["INIT", "RUNNING", "STOPPED"] = "INIT"

    def __repr__(self) -> str:
        return f"Scheduler(name={self.opts.name!r}, workers={len(self.threads)}, state={self._state})"

    @property
    def running(self) -> bool:
        return self._state == "RUNNING"

    @exit_on_exception
    def _run(self) -> None:
        while sqe := self.sq.get():
            func, callback = sqe

            callback(_call(func))

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_forever()
        finally:
            # cancel what is still in flight so the futures handed out by
            # spawn settle instead of dangling
            tasks = asyncio.all_tasks(self._loop)
            for task in tasks:
                task.cancel()
            self._loop.run_until_complete(asyncio.gather(*tasks, return_exceptions=True))
            self._loop.close()

    def enqueue(self, func: Callable[[], Any], callback: Callable[[Result[Any]], None]) -> None:
        with self._lock:
            if self._state == "STOPPED":
                raise SchedulerShutdownError(self.opts.name)
            self.sq.put((func, callback))

    def spawn[T](self, awaitable: Awaitable[T]) -> Future[T]:
        """Run awaitable on the scheduler's event loop."""
        with self._lock:
            if self._state != "RUNNING":
                if asyncio.iscoroutine(awaitable):
                    awaitable.close()
                raise SchedulerShutdownError(self.opts.name)
            return asyncio.run_coroutine_threadsafe(_drive(awaitable), self._loop)

    def start(self) -> None:
        with self._lock:
            if self._state != "INIT":
                return
            self._state = "RUNNING"

        for t in self.threads:
            if not t.is_alive():
                t.start()
        self._loop_thread.start()

        logger.debug("scheduler %s started with %d workers", self.opts.name, len(self.threads))

    def stop(self) -> None:
        with self._lock:
            if self._state == "STOPPED":
                return
            started = self._state == "RUNNING"
            self._state = "STOPPED"

        if not started:
            self._loop.close()
            return

        # sentinels queue up behind pending work, so queued continuations
        # still run before the workers exit
        for _ in self.threads:
            self.sq.put(None)

        for t in self.threads:
            if t is not threading.current_thread():
                t.join()

        self._loop.call_soon_threadsafe(self._loop.stop)
        self._loop_thread.join()

        logger.debug("scheduler %s stopped", self.opts.name)


def _call(func: Callable[[], Any]) -> Result[Any]:
    # a handler raising KeyboardInterrupt or SystemExit still only settles
    # its own promise, the worker keeps draining the queue
    try:
        return Ok(func())
    except BaseException as e:  # noqa: BLE001
        return Ko(e)


async def _drive[T](awaitable: Awaitable[T]) -> T:
    return await awaitable


_default: Scheduler | None = None
_default_lock = threading.Lock()


def default() -> Scheduler:
    """Return the process wide scheduler, creating it on first use."""
    global _default  # noqa: PLW0603

    with _default_lock:
        if _default is None:
            opts = Options.from_env()
            pledge_logging.set_level(opts.log_level)
            _default = Scheduler(opts)
            _default.start()
        return _default


def configure(
    *,
    workers: int | None = None,
    name: str | None = None,
    log_level: int | Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] | None = None,
) -> Scheduler:
    """Replace the process wide scheduler.

    The previous scheduler, if any, finishes the work already queued on it
    and then stops. Continuations that settle afterwards run on the new one.
    """
    global _default  # noqa: PLW0603

    opts = Options.from_env().merge(workers=workers, name=name, log_level=log_level)
    scheduler = Scheduler(opts)
    scheduler.start()
    pledge_logging.set_level(opts.log_level)

    with _default_lock:
        previous, _default = _default, scheduler

    if previous is not None:
        previous.stop()

    logger.info("scheduler %s configured with %d workers", opts.name, len(scheduler.threads))
    return scheduler


def shutdown() -> None:
    global _default  # noqa: PLW0603

    with _default_lock:
        previous, _default = _default, None

    if previous is not None:
        previous.stop()
