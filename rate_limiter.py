"""Minimum-interval gate for outbound arXiv requests."""

from __future__ import annotations

import logging
import time
from typing import Callable

LOGGER = logging.getLogger(__name__)


class RateLimiter:
    """Block callers so consecutive requests are at least ``delay_ms`` apart.

    The last-request timestamp is taken after the wait completes, so a slow
    request does not push the next one further out than necessary.
    """

    def __init__(
        self,
        delay_ms: int = 3000,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.delay_ms = delay_ms
        self._clock = clock
        self._sleep = sleep
        self.last_request_time: float | None = None

    def wait(self) -> None:
        now = self._clock()
        if self.last_request_time is not None:
            elapsed_ms = (now - self.last_request_time) * 1000
            if elapsed_ms < self.delay_ms:
                wait_seconds = (self.delay_ms - elapsed_ms) / 1000
                LOGGER.debug("Rate limiter: sleeping %.2fs", wait_seconds)
                self._sleep(wait_seconds)

        self.last_request_time = self._clock()
