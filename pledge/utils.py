from __future__ import annotations

import inspect
import logging
import os
import threading
from functools import wraps
from importlib.metadata import version
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


def exit_on_exception[**P, R](func: Callable[P, R]) -> Callable[P, R]:
    """Exit the process when a scheduler thread fails outside of a handler.

    Handler errors are turned into rejections before they get here, so what
    remains is a broken worker loop whose queued continuations would never
    settle.
    """

    @wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return func(*args, **kwargs)
        except Exception:
            logger.critical(
                "pledge %s: scheduler thread %s failed, continuations queued on it can no longer settle",
                pledge_version(),
                threading.current_thread().name,
                exc_info=True,
            )
            os._exit(1)

    return wrapper


def pledge_version() -> str:
    try:
        return version("pledge")
    except Exception:
        return "unknown"


def arity(func: Callable[..., Any]) -> int | None:
    """Return how many positional arguments func accepts.

    None means unbounded (``*args``) or unknown, which is the case for some
    builtins and extension types whose signature cannot be inspected.
    """
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return None

    count = 0
    for param in sig.parameters.values():
        match param.kind:
            case inspect.Parameter.POSITIONAL_ONLY | inspect.Parameter.POSITIONAL_OR_KEYWORD:
                count += 1
            case inspect.Parameter.VAR_POSITIONAL:
                return None
            case _:
                pass
    return count
