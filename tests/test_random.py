from __future__ import annotations

import logging
import random
from typing import Any

from pledge import futures
from pledge.promise import Promise
from pledge.result import Ko, Ok, Result

logger = logging.getLogger(__name__)

TIMEOUT = 5


def test_random_combinators(seed: str, steps: int) -> None:
    logger.info("random combinators(seed=%s, steps=%s)", seed, steps)

    # create seeded random number generator
    r = random.Random(seed)

    for step in range(steps):
        n = r.randint(1, 6)
        pairs = [futures.pending() for _ in range(n)]
        outcomes: list[Result[Any]] = [Ok(i) if r.random() < 0.5 else Ko(ValueError(i)) for i in range(n)]

        p_all = Promise.all([f for f, _ in pairs])
        p_any = Promise.any([f for f, _ in pairs])
        p_race = Promise.race([f for f, _ in pairs])

        order = list(range(n))
        r.shuffle(order)

        for i in order:
            _, resolver = pairs[i]
            match outcomes[i]:
                case Ok(v):
                    resolver.resolve(v)
                case Ko(e):
                    resolver.reject(e)

        settled = [outcomes[i] for i in order]
        failures = [o for o in settled if isinstance(o, Ko)]
        successes = [o for o in settled if isinstance(o, Ok)]
        context = f"seed={seed} step={step} order={order} outcomes={outcomes}"

        # race settles like the first input to settle
        match settled[0]:
            case Ok(v):
                assert p_race.result(TIMEOUT) == v, context
            case Ko(e):
                assert p_race.future.exception(TIMEOUT) is e, context

        # any fulfills with the first success, otherwise the first rejection to settle
        if successes:
            assert p_any.result(TIMEOUT) == successes[0].value, context
        else:
            assert p_any.future.exception(TIMEOUT) is failures[0].value, context

        # all fulfills in input order, otherwise the first rejected input by position
        rejected = [o for o in outcomes if isinstance(o, Ko)]
        if rejected:
            assert p_all.future.exception(TIMEOUT) is rejected[0].value, context
        else:
            assert p_all.result(TIMEOUT) == list(range(n)), context
