"""Inter-call delay policies shared by all upstream requests of a run."""

import time
from abc import ABC, abstractmethod
from typing import Callable

from decliner_advisor.core.logger import logger


class RateLimiter(ABC):
    """Blocks the caller until the next upstream call may be issued."""

    @abstractmethod
    def wait(self) -> None:
        pass


class FixedDelayLimiter(RateLimiter):
    """Sleeps a fixed delay on every wait, regardless of elapsed time.

    Args:
        delay_seconds: Pause before each call. Alpha Vantage's free tier caps
            requests per minute, so 1.5s is the default.
        sleep: Injected sleep function (``time.sleep`` in production).
    """

    def __init__(self, delay_seconds: float = 1.5, sleep: Callable[[float], None] = time.sleep) -> None:
        if delay_seconds < 0:
            raise ValueError(f"delay_seconds must be >= 0, got {delay_seconds}")
        self.delay_seconds = delay_seconds
        self._sleep = sleep
        self.waits = 0

    def wait(self) -> None:
        self.waits += 1
        logger.debug(f"FixedDelayLimiter: sleeping {self.delay_seconds:.2f}s (wait #{self.waits})")
        self._sleep(self.delay_seconds)


class NullRateLimiter(RateLimiter):
    """Never sleeps. Counts waits so tests can assert the sequencing."""

    def __init__(self) -> None:
        self.waits = 0

    def wait(self) -> None:
        self.waits += 1
