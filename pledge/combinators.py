from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from functools import partial
from typing import TYPE_CHECKING, Any

from pledge import result
from pledge.futures import fulfilled, settle
from pledge.result import Ko, Ok, Result

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


class Ticket:
    """Hands out increasing slot numbers to concurrently firing callbacks."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._next = -1

    def take(self) -> int:
        with self._lock:
            self._next += 1
            return self._next


def when_all[T](futures: Sequence[Future[T]]) -> Future[list[T]]:
    """Fulfill with every value in input order once all inputs settled.

    A failure is only reported after every input settled, and it is the
    failure of the first rejected input in input order.
    """
    if not futures:
        return fulfilled([])

    target = Future[list[T]]()

    def on_all_settled(f: Future[list[Result[T]]]) -> None:
        values: list[T] = []
        for r in f.result():
            match r:
                case Ok(value):
                    values.append(value)
                case Ko():
                    settle(target, r)
                    return
        settle(target, Ok(values))

    when_all_settled(futures).add_done_callback(on_all_settled)
    return target


def when_all_settled[T](futures: Sequence[Future[T]]) -> Future[list[Result[T]]]:
    """Fulfill with every outcome in input order once all inputs settled."""
    if not futures:
        return fulfilled([])

    target = Future[list[Result[T]]]()
    outcomes: list[Any] = [None] * len(futures)
    remaining = len(futures)
    lock = threading.Lock()

    def on_done(i: int, f: Future[T]) -> None:
        nonlocal remaining

        with lock:
            outcomes[i] = result.of(f)
            remaining -= 1
            last = remaining == 0
        if last:
            settle(target, Ok(list(outcomes)))

    for i, f in enumerate(futures):
        f.add_done_callback(partial(on_done, i))

    return target


def when_race[T](futures: Sequence[Future[T]]) -> Future[T | None]:
    """Settle with whichever input settles first, in either direction."""
    if not futures:
        return fulfilled(None)

    target = Future[T | None]()

    def on_done(f: Future[T]) -> None:
        if not settle(target, result.of(f)):
            logger.debug("race already decided, discarding outcome of %r", f)

    for f in futures:
        f.add_done_callback(on_done)

    return target


def when_any[T](futures: Sequence[Future[T]]) -> Future[T | None]:
    """Fulfill with the first fulfillment, reject only when every input rejected.

    Each input claims a slot when it settles, so slot order is completion
    order. When every input rejected, the error reported is the one in the
    lowest slot, which is the earliest rejection to claim a slot rather than
    the first input position.
    """
    if not futures:
        return fulfilled(None)

    target = Future[T | None]()
    slots = [Future[T]() for _ in futures]
    ticket = Ticket()

    def on_done(f: Future[T]) -> None:
        i = ticket.take()
        r = result.of(f)
        settle(slots[i], r)

        if isinstance(r, Ok):
            # the target's first write wins, which is the first success latch
            settle(target, r)

    def on_all_settled(f: Future[list[Result[T]]]) -> None:
        outcomes = f.result()
        if any(isinstance(r, Ok) for r in outcomes):
            return

        logger.debug("all %d inputs rejected", len(outcomes))
        settle(target, outcomes[0])

    for f in futures:
        f.add_done_callback(on_done)

    when_all_settled(slots).add_done_callback(on_all_settled)
    return target
