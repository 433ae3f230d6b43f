from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Literal

from pledge.logging import LEVELS


@dataclass(frozen=True)
class Options:
    workers: int | None = None
    name: str = "pledge"
    log_level: int | Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = logging.NOTSET

    def __post_init__(self) -> None:
        if self.workers is not None and (not isinstance(self.workers, int) or isinstance(self.workers, bool)):
            msg = f"workers must be `int | None`, got {type(self.workers).__name__}"
            raise TypeError(msg)

        if not isinstance(self.name, str):
            msg = f"name must be `str`, got {type(self.name).__name__}"
            raise TypeError(msg)

        if not isinstance(self.log_level, (int, str)):
            msg = f"log_level must be an int or a str, got {type(self.log_level).__name__}"
            raise TypeError(msg)

        if self.workers is not None and not (self.workers >= 1):
            msg = "workers must be greater than or equal to one"
            raise ValueError(msg)
        if not self.name:
            msg = "name must not be empty"
            raise ValueError(msg)
        if isinstance(self.log_level, str) and self.log_level not in LEVELS:
            msg = f"string log_level must be one of {LEVELS}, got {self.log_level!r}"
            raise ValueError(msg)

    @property
    def threads(self) -> int:
        return min(32, self.workers or (os.cpu_count() or 1))

    def merge(
        self,
        *,
        workers: int | None = None,
        name: str | None = None,
        log_level: int | Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] | None = None,
    ) -> Options:
        return Options(
            workers=workers if workers is not None else self.workers,
            name=name if name is not None else self.name,
            log_level=log_level if log_level is not None else self.log_level,
        )

    @classmethod
    def from_env(cls) -> Options:
        workers = os.getenv("PLEDGE_WORKERS")
        level = os.getenv("PLEDGE_LOG_LEVEL")

        if workers is not None and not workers.isdigit():
            msg = f"PLEDGE_WORKERS must be a positive integer, got {workers!r}"
            raise ValueError(msg)

        return cls(
            workers=int(workers) if workers is not None else None,
            log_level=level.upper() if level else logging.NOTSET,
        )
