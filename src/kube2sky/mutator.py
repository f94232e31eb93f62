"""Bounded-time retries for record store mutations.

Every mutation either completes before the configured deadline or the process
exits.  There is no silent drop: an external supervisor restarts the bridge,
which then performs a full resync.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Callable, NoReturn

from .store import StoreError

LOG = logging.getLogger(__name__)

DEFAULT_RETRY_DELAY = 0.05


def fatal(message: str, *args: object) -> NoReturn:
    """Log ``message`` and terminate the whole process immediately.

    ``os._exit`` is used so the call behaves the same from the watch thread as
    from the main thread.
    """

    LOG.critical(message, *args)
    logging.shutdown()
    os._exit(1)


class Mutator:
    """Retry an idempotent store operation until it succeeds or time runs out.

    Parameters
    ----------
    timeout:
        Seconds, measured from the first attempt, after which a failing
        mutation is considered hopeless.
    delay:
        Fixed pause between attempts.
    die:
        Called when ``timeout`` expires.  Must not return.
    """

    def __init__(
        self,
        timeout: float,
        delay: float = DEFAULT_RETRY_DELAY,
        die: Callable[..., NoReturn] = fatal,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if timeout <= 0:
            raise ValueError("mutation timeout must be positive")
        self._timeout = timeout
        self._delay = delay
        self._die = die
        self._clock = clock
        self._sleep = sleep

    def mutate(self, operation: Callable[[], None], description: str = "") -> None:
        deadline = self._clock() + self._timeout
        attempt = 0
        while True:
            if self._clock() >= deadline:
                self._die(
                    "failed to mutate record store for %ss (%s, %d attempts)",
                    self._timeout,
                    description or operation,
                    attempt,
                )
                raise AssertionError("die() returned")
            attempt += 1
            try:
                operation()
            except StoreError as exc:
                LOG.warning(
                    "failed to mutate record store (%s): %s; will retry in %ss",
                    description or operation,
                    exc,
                    self._delay,
                )
                self._sleep(self._delay)
            else:
                return
