from __future__ import annotations

from .errors import AlreadySettledError, PledgeError, SchedulerShutdownError
from .futures import Resolver
from .options import Options
from .promise import Promise
from .scheduler import Scheduler, configure, shutdown

__all__ = [
    "AlreadySettledError",
    "Options",
    "PledgeError",
    "Promise",
    "Resolver",
    "Scheduler",
    "SchedulerShutdownError",
    "configure",
    "shutdown",
]
