import logging
import time
from typing import Any, Awaitable, Callable

from fastapi import HTTPException

logger = logging.getLogger(__name__)


class CircuitBreaker:
    """Fails fast while the data store keeps erroring.

    Only infrastructure failures count; ``HTTPException`` raised by the
    wrapped call is an answer, not a failure.
    """

    def __init__(
        self,
        failure_threshold: int = 3,
        base_recovery_time: int = 10,
        max_recovery_time: int = 60,
    ):
        self.failure_count = 0
        self.failure_threshold = failure_threshold
        self.base_recovery_time = base_recovery_time
        self.max_recovery_time = max_recovery_time
        self.last_failure_time = 0.0
        self.state = "CLOSED"

    @property
    def current_recovery_time(self):
        return min(
            self.base_recovery_time
            * (2 ** max(self.failure_count - self.failure_threshold, 0)),
            self.max_recovery_time,
        )

    def _open(self):
        self.state = "OPEN"
        self.last_failure_time = time.time()
        logger.warning(f"Circuit opened after {self.failure_count} failures.")

    def _half_open(self):
        self.state = "HALF_OPEN"
        logger.info("Circuit half-open: testing...")

    def _close(self):
        if self.state != "CLOSED":
            logger.info("Circuit closed: stable again.")
        self.state = "CLOSED"
        self.failure_count = 0

    def reset(self):
        self._close()
        self.last_failure_time = 0.0

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        now = time.time()

        if self.state == "OPEN":
            cooldown = self.current_recovery_time
            elapsed = now - self.last_failure_time
            if elapsed < cooldown:
                raise HTTPException(
                    status_code=503,
                    detail=f"Service temporarily unavailable, retry after {cooldown - elapsed:.1f}s",
                )
            self._half_open()

        try:
            result = await func(*args, **kwargs)
        except HTTPException:
            self._close()
            raise
        except Exception as e:
            self.failure_count += 1
            logger.error(f"CircuitBreaker call failed ({self.failure_count}): {e}")

            if self.state == "HALF_OPEN" or self.failure_count >= self.failure_threshold:
                self._open()
            raise

        self._close()
        return result


breaker = CircuitBreaker(
    failure_threshold=3,
    base_recovery_time=10,
    max_recovery_time=60,
)
