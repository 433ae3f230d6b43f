from __future__ import annotations

from typing import Any


class PledgeError(Exception):
    def __init__(self, mesg: str, code: int) -> None:
        super().__init__(mesg)
        self.mesg = mesg
        self.code = code

    def __str__(self) -> str:
        return f"[{self.code:03d}] {self.mesg}"

    def __reduce__(self) -> str | tuple[Any, ...]:
        return (self.__class__, (self.mesg, self.code))


# Error codes 100-199


class AlreadySettledError(PledgeError):
    def __init__(self, state: str) -> None:
        super().__init__(f"Promise already {state.lower()}", 100)
        self.state = state

    def __reduce__(self) -> str | tuple[Any, ...]:
        return (self.__class__, (self.state,))


# Error codes 200-299


class SchedulerShutdownError(PledgeError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Scheduler {name} is shut down", 200)
        self.name = name

    def __reduce__(self) -> str | tuple[Any, ...]:
        return (self.__class__, (self.name,))


def unwrap(error: BaseException) -> BaseException:
    """Descend through single-member exception groups to the concrete error.

    Groups with several members are returned as they are, the caller is
    expected to handle them with ``except*``.
    """
    while isinstance(error, BaseExceptionGroup) and len(error.exceptions) == 1:
        error = error.exceptions[0]
    return error
