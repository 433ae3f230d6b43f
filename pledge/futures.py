from __future__ import annotations

import logging
from concurrent.futures import Future, InvalidStateError
from typing import Any

from pledge import result
from pledge.errors import AlreadySettledError
from pledge.result import Ko, Ok, Result

logger = logging.getLogger(__name__)


def settle[T](future: Future[T], r: Result[T]) -> bool:
    """Settle future with r unless it already settled, first write wins.

    Returns whether this call settled the future.
    """
    try:
        match r:
            case Ok(value):
                future.set_result(value)
            case Ko(error):
                future.set_exception(error)
    except InvalidStateError:
        logger.debug("ignoring %s for already settled future %r", type(r).__name__, future)
        return False
    return True


def settled[T](r: Result[T]) -> Future[T]:
    future = Future[T]()
    settle(future, r)
    return future


def fulfilled[T](value: T = None) -> Future[T]:
    return settled(Ok(value))


def rejected(error: BaseException) -> Future[Any]:
    if not isinstance(error, BaseException):
        msg = f"error must be `BaseException`, got {type(error).__name__}"
        raise TypeError(msg)
    return settled(Ko(error))


def pending[T]() -> tuple[Future[T], Resolver[T]]:
    future = Future[T]()
    return future, Resolver(future)


def forward[T](source: Future[T], target: Future[T]) -> None:
    """Settle target with the outcome of source once source settles."""
    source.add_done_callback(lambda f: settle(target, result.of(f)))


class Resolver[T]:
    """Settle capability handed out alongside a pending future."""

    def __init__(self, future: Future[T]) -> None:
        self._f = future

    def __repr__(self) -> str:
        return f"Resolver(settled={self.settled})"

    @property
    def settled(self) -> bool:
        return self._f.done()

    def resolve(self, value: T = None, *, strict: bool = False) -> None:
        self._settle(Ok(value), strict)

    def reject(self, error: BaseException, *, strict: bool = False) -> None:
        if not isinstance(error, BaseException):
            msg = f"error must be `BaseException`, got {type(error).__name__}"
            raise TypeError(msg)
        self._settle(Ko(error), strict)

    def _settle(self, r: Result[T], strict: bool) -> None:
        if not settle(self._f, r) and strict:
            match result.of(self._f):
                case Ok():
                    raise AlreadySettledError("FULFILLED")
                case Ko():
                    raise AlreadySettledError("REJECTED")
