from __future__ import annotations

import logging
import random
import sys
from typing import TYPE_CHECKING, Any

import pytest

import pledge
from pledge import futures
from pledge.promise import Promise

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from pledge.futures import Resolver


def pytest_configure() -> None:
    logging.basicConfig(level=logging.ERROR)  # set log levels very high for tests


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption("--seed", action="store")
    parser.addoption("--steps", action="store")


@pytest.fixture
def seed(request: pytest.FixtureRequest) -> str:
    seed = request.config.getoption("--seed")

    if not isinstance(seed, str):
        return str(random.randint(0, sys.maxsize))

    return seed


@pytest.fixture
def steps(request: pytest.FixtureRequest) -> int:
    steps = request.config.getoption("--steps")

    if isinstance(steps, str):
        try:
            return int(steps)
        except ValueError:
            pass

    return 1000


@pytest.fixture
def deferred() -> Callable[[], tuple[Promise[Any], Resolver[Any]]]:
    """Factory for pending promises settled explicitly by the test."""

    def make() -> tuple[Promise[Any], Resolver[Any]]:
        future, resolver = futures.pending()
        return Promise.from_future(future), resolver

    return make


@pytest.fixture
def restore_scheduler() -> Generator[None]:
    yield

    # the next test lazily gets a default scheduler again
    pledge.shutdown()
