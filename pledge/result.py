from __future__ import annotations

from concurrent.futures import CancelledError
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from concurrent.futures import Future

type Result[T] = Ok[T] | Ko


@dataclass
class Ok[T]:
    value: Final[T]


@dataclass
class Ko:
    value: Final[BaseException]


def of[T](future: Future[T]) -> Result[T]:
    """Read the outcome of a settled future without raising."""
    assert future.done(), "outcome requested before the future settled"

    try:
        error = future.exception()
    except CancelledError as e:
        return Ko(e)

    if error is not None:
        return Ko(error)
    return Ok(future.result())
