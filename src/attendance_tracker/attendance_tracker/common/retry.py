from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def fixed_backoff(delay_seconds: float) -> Callable[[int], float]:
    """Backoff that waits the same delay before every retry."""

    def _delay(attempt: int) -> float:
        return delay_seconds

    return _delay


def _retry_nothing(exc: BaseException) -> bool:
    return False


@dataclass(frozen=True)
class RetryPolicy:
    """Run a callable, retrying it when ``retry_on`` accepts the raised error.

    ``backoff`` receives the 1-based number of the attempt that just failed and
    returns the delay in seconds before the next one. ``sleep`` is injectable
    so tests can run without waiting.
    """

    max_attempts: int = 2
    backoff: Callable[[int], float] = field(default_factory=lambda: fixed_backoff(0.5))
    retry_on: Callable[[BaseException], bool] = _retry_nothing
    sleep: Callable[[float], None] = time.sleep

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def run(self, operation: Callable[[], T], *, description: str = "operation") -> T:
        attempt = 1
        while True:
            try:
                return operation()
            except Exception as exc:
                if attempt >= self.max_attempts or not self.retry_on(exc):
                    raise
                delay = self.backoff(attempt)
                logger.warning(
                    "%s failed (attempt %d/%d): %s; retrying in %.2fs",
                    description,
                    attempt,
                    self.max_attempts,
                    exc,
                    delay,
                )
                self.sleep(delay)
                attempt += 1
