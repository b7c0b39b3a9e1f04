"""Reusable async retry policy with exponential backoff and jitter."""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass
class RetryOutcome(Generic[T]):
    """Result of running an operation under a ``RetryPolicy``."""

    succeeded: bool
    value: T | None = None
    error: BaseException | None = None
    attempts: int = 0

    @property
    def exhausted(self) -> bool:
        return not self.succeeded


@dataclass
class RetryPolicy:
    max_attempts: int = 4
    base_delay: float = 1.0
    max_delay: float = 30.0
    backoff_factor: float = 2.0
    jitter: Callable[[], float] = field(default=lambda: random.uniform(0.0, 1.0))
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep

    def delay_for(self, attempt: int) -> float:
        """Backoff before retry number ``attempt`` (1-based)."""
        delay = min(self.base_delay * (self.backoff_factor ** (attempt - 1)), self.max_delay)
        return delay + max(0.0, self.jitter())

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        retryable: tuple[type[BaseException], ...] = (Exception,),
        name: str = "operation",
    ) -> RetryOutcome[T]:
        """Run ``operation`` until it succeeds, raises a non-retryable error, or
        attempts run out. Non-retryable errors end the loop immediately and are
        reported in the outcome rather than raised."""
        last_exc: BaseException | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                value = await operation()
                return RetryOutcome(succeeded=True, value=value, attempts=attempt)
            except retryable as exc:
                last_exc = exc
                if attempt == self.max_attempts:
                    logger.error("%s failed after %d attempts: %s", name, attempt, exc)
                    break
                delay = self.delay_for(attempt)
                logger.warning(
                    "%s attempt %d/%d failed (%s), retrying in %.1fs",
                    name,
                    attempt,
                    self.max_attempts,
                    exc,
                    delay,
                )
                await self.sleep(delay)
            except Exception as exc:
                logger.warning("%s failed with non-retryable error: %s", name, exc)
                return RetryOutcome(succeeded=False, error=exc, attempts=attempt)
        return RetryOutcome(succeeded=False, error=last_exc, attempts=self.max_attempts)
