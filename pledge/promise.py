from __future__ import annotations

import asyncio
import inspect
from collections.abc import Iterable
from concurrent.futures import Future
from functools import partial
from typing import TYPE_CHECKING, Any, Literal, overload

from pledge import combinators, futures, result, scheduler
from pledge.errors import unwrap
from pledge.futures import Resolver, forward, settle
from pledge.result import Ko, Ok, Result
from pledge.utils import arity

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine, Generator


class Promise[T]:
    """An eventual value backed by a single ``concurrent.futures.Future``.

    A promise owns its backing future from construction on and never
    replaces it. Chaining with ``then``, ``catch`` and ``finally_`` creates a
    new future and a new promise around it, so a chain is linked forward by
    continuations only.
    """

    def __init__(self, executor: Callable[..., Any]) -> None:
        """Create a pending promise driven by executor.

        The executor runs synchronously. When it accepts two positional
        arguments it receives ``(resolve, reject)``, when it accepts one it
        receives ``resolve`` only. If the executor raises before settling the
        promise, the promise rejects with that exception. The first call to
        either capability wins, later calls are ignored.

        Args:
            executor (Callable[..., Any]): Function receiving the settle
                capabilities.

        Raises:
            TypeError: If executor is not callable or accepts no arguments.

        Example:
            Resolving from another thread::

                def executor(resolve, reject):
                    threading.Timer(1, resolve, args=(42,)).start()

                answer = Promise(executor).result()

        """
        if not callable(executor):
            msg = f"executor must be `Callable`, got {type(executor).__name__}"
            raise TypeError(msg)

        n = arity(executor)
        if n == 0:
            msg = "executor must accept at least a resolve argument"
            raise TypeError(msg)

        self._f = Future[T]()
        resolver = Resolver(self._f)

        try:
            if n == 1:
                executor(resolver.resolve)
            else:
                executor(resolver.resolve, resolver.reject)
        except Exception as e:
            resolver.reject(e)

    def __repr__(self) -> str:
        return f"Promise(state={self.state})"

    @classmethod
    def from_future(cls, future: Future[T]) -> Promise[T]:
        if not isinstance(future, Future):
            msg = f"future must be `Future`, got {type(future).__name__}"
            raise TypeError(msg)

        promise = cls.__new__(cls)
        promise._f = future
        return promise

    @classmethod
    def resolve(cls, value: T = None) -> Promise[T]:
        return cls.from_future(futures.fulfilled(value))

    @classmethod
    def reject(cls, error: BaseException) -> Promise[Any]:
        return cls.from_future(futures.rejected(error))

    @property
    def future(self) -> Future[T]:
        return self._f

    @property
    def state(self) -> Literal["PENDING", "FULFILLED", "REJECTED"]:
        if not self._f.done():
            return "PENDING"

        match result.of(self._f):
            case Ok():
                return "FULFILLED"
            case Ko():
                return "REJECTED"

    @property
    def pending(self) -> bool:
        return self.state == "PENDING"

    @property
    def fulfilled(self) -> bool:
        return self.state == "FULFILLED"

    @property
    def rejected(self) -> bool:
        return self.state == "REJECTED"

    def done(self) -> bool:
        return self._f.done()

    def result(self, timeout: float | None = None) -> T:
        """Block until settled, return the value or raise the unwrapped error."""
        try:
            return self._f.result(timeout)
        except BaseExceptionGroup as e:
            error = unwrap(e)
            if error is e:
                raise
            raise error from None

    def __await__(self) -> Generator[Any, None, T]:
        # shield keeps a cancelled awaiter from cancelling the backing future
        try:
            return (yield from asyncio.shield(asyncio.wrap_future(self._f)).__await__())
        except BaseExceptionGroup as e:
            error = unwrap(e)
            if error is e:
                raise
            raise error from None

    @overload
    def then[R](
        self,
        on_fulfilled: Callable[[T], Promise[R]] | Callable[[], Promise[R]],
        on_rejected: Callable[[BaseException], Any] | Callable[[], Any] | None = None,
    ) -> Promise[R]: ...
    @overload
    def then[R](
        self,
        on_fulfilled: Callable[[T], Future[R]] | Callable[[], Future[R]],
        on_rejected: Callable[[BaseException], Any] | Callable[[], Any] | None = None,
    ) -> Promise[R]: ...
    @overload
    def then[R](
        self,
        on_fulfilled: Callable[[T], Coroutine[Any, Any, R]] | Callable[[], Coroutine[Any, Any, R]],
        on_rejected: Callable[[BaseException], Any] | Callable[[], Any] | None = None,
    ) -> Promise[R]: ...
    @overload
    def then[R](
        self,
        on_fulfilled: Callable[[T], R] | Callable[[], R],
        on_rejected: Callable[[BaseException], Any] | Callable[[], Any] | None = None,
    ) -> Promise[R]: ...
    def then(
        self,
        on_fulfilled: Callable[..., Any],
        on_rejected: Callable[[BaseException], Any] | Callable[[], Any] | None = None,
    ) -> Promise[Any]:
        """Chain a continuation onto this promise.

        ``then`` never blocks, it registers the continuation and returns a new
        promise right away. Handlers run on the scheduler's worker threads.

        When this promise fulfills, on_fulfilled is called with the value, or
        without arguments if it accepts none. Its return value decides the
        outcome of the returned promise:

        - a ``Promise`` or ``Future`` is flattened, the returned promise
          settles the way the nested one does;
        - a coroutine or other awaitable runs on the scheduler's event loop
          and is flattened the same way;
        - anything else, ``None`` included, fulfills the returned promise.

        If on_fulfilled raises, the returned promise rejects with that
        exception.

        When this promise rejects and on_rejected is given, it is called with
        the unwrapped error, or without arguments if it accepts none, and the
        returned promise fulfills with ``None``, the error counts as handled.
        If on_rejected raises, the returned promise rejects with the new
        exception. Without on_rejected the error passes through unchanged.

        Args:
            on_fulfilled (Callable[..., Any]): Success handler.
            on_rejected (Callable[..., Any] | None): Optional rejection
                handler.

        Returns:
            Promise[Any]: A promise for the outcome of the continuation.

        Raises:
            TypeError: If on_fulfilled is not callable, or on_rejected is
                neither callable nor None.

        Example:
            Threading a value through a chain::

                Promise.resolve(1).then(lambda n: n + 1).then(print)

        """
        if not callable(on_fulfilled):
            msg = f"on_fulfilled must be `Callable`, got {type(on_fulfilled).__name__}"
            raise TypeError(msg)
        if on_rejected is not None and not callable(on_rejected):
            msg = f"on_rejected must be `Callable | None`, got {type(on_rejected).__name__}"
            raise TypeError(msg)

        if on_rejected is None:
            return self._continue(_bind(on_fulfilled), None)

        return self._continue(_bind(on_fulfilled), _handle(on_rejected))

    def catch(self, on_error: Callable[[BaseException], Any] | Callable[[], Any]) -> Promise[None]:
        """Handle a rejection and end the failure path.

        on_error receives the unwrapped error unless it accepts no arguments.
        The returned promise fulfills with ``None`` on both paths, the prior
        value is discarded. If on_error raises, the returned promise rejects
        with that exception.
        """
        if not callable(on_error):
            msg = f"on_error must be `Callable`, got {type(on_error).__name__}"
            raise TypeError(msg)

        return self._continue(_discard, _handle(on_error))

    def finally_(self, on_final: Callable[[], Any]) -> Promise[T]:
        """Run on_final on both paths and settle exactly like this promise.

        If on_final raises, the returned promise rejects with that exception
        instead.
        """
        if not callable(on_final):
            msg = f"on_final must be `Callable`, got {type(on_final).__name__}"
            raise TypeError(msg)

        def after_fulfilled(value: T) -> Future[T]:
            on_final()
            return futures.fulfilled(value)

        def after_rejected(error: BaseException) -> Future[T]:
            on_final()
            return futures.rejected(error)

        return self._continue(after_fulfilled, after_rejected)

    def _continue(
        self,
        on_ok: Callable[[T], Any] | None,
        on_ko: Callable[[BaseException], Any] | None,
    ) -> Promise[Any]:
        target = Future[Any]()

        def on_done(f: Future[T]) -> None:
            match result.of(f):
                case Ok(value) if on_ok is not None:
                    _dispatch(partial(on_ok, value), target)
                case Ko(error) if on_ko is not None:
                    _dispatch(partial(on_ko, error), target)
                case r:
                    settle(target, r)

        self._f.add_done_callback(on_done)
        return Promise.from_future(target)

    @classmethod
    def all(cls, *promises: Any) -> Promise[list[Any]]:
        """Fulfill with all values in input order once every input settled.

        If any input rejected, the returned promise rejects with the error of
        the first rejected input by position, and only after all inputs
        settled. Accepts promises and futures as separate arguments or as a
        single iterable. No inputs fulfill with an empty list.
        """
        return cls.from_future(combinators.when_all(_units("all", promises)))

    @classmethod
    def any(cls, *promises: Any) -> Promise[Any]:
        """Fulfill with the first fulfillment, reject once every input rejected.

        When every input rejects, the reported error is the earliest
        rejection to settle, not the first input. No inputs fulfill with
        ``None``.
        """
        return cls.from_future(combinators.when_any(_units("any", promises)))

    @classmethod
    def race(cls, *promises: Any) -> Promise[Any]:
        """Settle like the first input to settle. No inputs fulfill with ``None``."""
        return cls.from_future(combinators.when_race(_units("race", promises)))


def _bind(handler: Callable[..., Any]) -> Callable[[Any], Any]:
    if arity(handler) == 0:
        return lambda _: handler()
    return handler


def _handle(handler: Callable[..., Any]) -> Callable[[BaseException], None]:
    bound = _bind(handler)

    def handled(error: BaseException) -> None:
        bound(unwrap(error))

    return handled


def _discard(_: Any) -> None:
    return None


def _dispatch(func: Callable[[], Any], target: Future[Any]) -> None:
    # runs inside a done callback, where concurrent.futures would only log
    # the error and leave target pending
    try:
        scheduler.default().enqueue(func, partial(_adopt, target))
    except Exception as e:  # noqa: BLE001
        settle(target, Ko(e))


def _adopt(target: Future[Any], r: Result[Any]) -> None:
    match r:
        case Ok(Promise() as promise):
            _follow(promise.future, target)
        case Ok(Future() as future):
            _follow(future, target)
        case Ok(value) if inspect.isawaitable(value):
            try:
                forward(scheduler.default().spawn(value), target)
            except Exception as e:  # noqa: BLE001
                settle(target, Ko(e))
        case _:
            settle(target, r)


def _follow(source: Future[Any], target: Future[Any]) -> None:
    if source is target:
        settle(target, Ko(TypeError("a promise cannot be resolved with itself")))
        return
    forward(source, target)


def _units(name: str, items: tuple[Any, ...]) -> list[Future[Any]]:
    if len(items) == 1 and not isinstance(items[0], (Promise, Future)):
        (collection,) = items
        if not isinstance(collection, Iterable) or isinstance(collection, (str, bytes)):
            msg = f"{name} expects promises, futures or an iterable of them, got {type(collection).__name__}"
            raise TypeError(msg)
        items = tuple(collection)

    units: list[Future[Any]] = []
    for item in items:
        match item:
            case Promise():
                units.append(item.future)
            case Future():
                units.append(item)
            case _:
                msg = f"{name} expects `Promise | Future` items, got {type(item).__name__}"
                raise TypeError(msg)
    return units
