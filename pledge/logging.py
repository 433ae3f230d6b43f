from __future__ import annotations

import logging
from typing import Literal

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
FORMAT = "[%(asctime)s] [%(name)s::%(threadName)s] [%(levelname)s]: %(message)s"

logger = logging.getLogger(__package__)


def _handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


if not logger.handlers:
    logger.addHandler(_handler())
    logger.setLevel(logging.INFO)
    logger.propagate = False


def set_level(level: int | Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]) -> None:
    # NOTSET leaves whatever level the application configured
    if level == logging.NOTSET:
        return
    logger.setLevel(level)
