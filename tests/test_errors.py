from __future__ import annotations

import pickle

import pytest

from pledge.errors import AlreadySettledError, PledgeError, SchedulerShutdownError, unwrap


def test_unwrap_nested_single_member_groups() -> None:
    error = ValueError("inner")
    group = BaseExceptionGroup("a", [ExceptionGroup("b", [ExceptionGroup("c", [error])])])
    assert unwrap(group) is error


def test_unwrap_stops_at_multi_member_group() -> None:
    multi = ExceptionGroup("multi", [ValueError(), KeyError()])
    assert unwrap(ExceptionGroup("outer", [multi])) is multi
    assert unwrap(multi) is multi


def test_unwrap_plain_error() -> None:
    error = RuntimeError()
    assert unwrap(error) is error


@pytest.mark.parametrize(
    ("error", "text"),
    [
        (AlreadySettledError("FULFILLED"), "[100] Promise already fulfilled"),
        (SchedulerShutdownError("pledge"), "[200] Scheduler pledge is shut down"),
        (PledgeError("generic", 1), "[001] generic"),
    ],
)
def test_error_str_and_pickle(error: PledgeError, text: str) -> None:
    assert str(error) == text

    copy = pickle.loads(pickle.dumps(error))  # noqa: S301
    assert type(copy) is type(error)
    assert str(copy) == text
