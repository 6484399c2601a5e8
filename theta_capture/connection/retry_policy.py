"""
Retry Policy - bounded retries with a configurable delay between attempts.

The device state query is retried with a fixed delay; other callers may
opt into exponential backoff. The sleep function is injectable so tests can
drive the policy with a virtual clock.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Generic, List, Optional, TypeVar

from theta_capture.core.logging_utils import get_module_logger

logger = get_module_logger("RetryPolicy")

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


class RetryOutcome(Enum):
    """Outcome of a retry operation."""
    SUCCESS = "success"
    EXHAUSTED = "exhausted"  # every attempt failed
    ABORTED = "aborted"


@dataclass
class RetryAttempt:
    """Record of a single attempt."""
    attempt_number: int
    duration_ms: float
    success: bool
    error: Optional[str] = None


@dataclass
class RetryResult(Generic[T]):
    """Result of a retry operation."""
    outcome: RetryOutcome
    attempts: List[RetryAttempt] = field(default_factory=list)
    value: Optional[T] = None
    final_error: Optional[BaseException] = None

    @property
    def success(self) -> bool:
        return self.outcome is RetryOutcome.SUCCESS

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)


class RetryPolicy:
    """
    Retry an async operation up to ``max_attempts`` times.

    Usage:
        policy = RetryPolicy(max_attempts=3, delay=1.0)
        result = await policy.run(gateway.state)
        if result.success:
            state = result.value

    The delay is applied between attempts only, so a fully failed run of
    three attempts sleeps twice. ``backoff_factor`` above 1.0 grows the delay
    geometrically up to ``max_delay``.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        delay: float = 1.0,
        *,
        backoff_factor: float = 1.0,
        max_delay: Optional[float] = None,
        retry_on: tuple = (Exception,),
        sleep: Optional[SleepFunc] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.delay = delay
        self.backoff_factor = backoff_factor
        self.max_delay = max_delay
        self.retry_on = retry_on
        self._sleep = sleep or asyncio.sleep
        self._aborted = False

    def abort(self) -> None:
        """Stop retrying after the attempt in flight."""
        self._aborted = True

    def get_delay(self, attempt: int) -> float:
        """Delay before ``attempt`` (1-based); the first attempt has none."""
        if attempt <= 1:
            return 0.0
        delay = self.delay * (self.backoff_factor ** (attempt - 2))
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return max(0.0, delay)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        on_retry: Optional[Callable[[int, BaseException], None]] = None,
    ) -> RetryResult[T]:
        """Run ``operation`` until it returns without raising or attempts run out.

        Exceptions outside ``retry_on`` propagate immediately.
        """
        self._aborted = False
        attempts: List[RetryAttempt] = []
        last_error: Optional[BaseException] = None

        for attempt in range(1, self.max_attempts + 1):
            if self._aborted:
                return RetryResult(RetryOutcome.ABORTED, attempts, final_error=last_error)

            if attempt > 1:
                delay = self.get_delay(attempt)
                if on_retry and last_error is not None:
                    on_retry(attempt, last_error)
                logger.debug("Retry attempt %d/%d after %.2fs delay", attempt, self.max_attempts, delay)
                await self._sleep(delay)

            started = time.monotonic()
            try:
                value = await operation()
            except self.retry_on as exc:
                last_error = exc
                attempts.append(RetryAttempt(
                    attempt_number=attempt,
                    duration_ms=(time.monotonic() - started) * 1000,
                    success=False,
                    error=str(exc),
                ))
                logger.debug("Attempt %d failed: %s", attempt, exc)
                continue

            attempts.append(RetryAttempt(
                attempt_number=attempt,
                duration_ms=(time.monotonic() - started) * 1000,
                success=True,
            ))
            return RetryResult(RetryOutcome.SUCCESS, attempts, value=value)

        return RetryResult(RetryOutcome.EXHAUSTED, attempts, final_error=last_error)


def fixed_delay_policy(attempts: int, delay: float, sleep: Optional[SleepFunc] = None) -> RetryPolicy:
    """Policy used for device state polling."""
    return RetryPolicy(max_attempts=attempts, delay=delay, sleep=sleep)


__all__ = [
    "RetryAttempt",
    "RetryOutcome",
    "RetryPolicy",
    "RetryResult",
    "SleepFunc",
    "fixed_delay_policy",
]
