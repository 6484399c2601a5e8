"""
Status Poller - reads the camera's capture status and supervises captures
whose end is not announced by the device.

Some models report ``idle`` for a moment in the middle of an interval
capture, so completion is only concluded after several consecutive idle
observations.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Callable, Optional

from theta_capture.connection.command_gateway import CommandGateway
from theta_capture.connection.retry_policy import RetryPolicy, SleepFunc, fixed_delay_policy
from theta_capture.core.logging_utils import get_module_logger

logger = get_module_logger("StatusPoller")

CHECK_STATE_INTERVAL = 1.0
CHECK_STATE_RETRY = 3
CHECK_SHOOTING_IDLE_COUNT = 2


class CaptureStatus(Enum):
    IDLE = "idle"
    SHOOTING = "shooting"
    DOWNLOADING = "downloading"
    SAVING = "saving"
    BURSTING = "bursting"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, value: object) -> "CaptureStatus":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class SupervisionOutcome(Enum):
    COMPLETED = "completed"          # idle confirmed
    STATUS_UNAVAILABLE = "status_unavailable"
    ABANDONED = "abandoned"          # settled by another path


class StatusPoller:
    """Query ``_captureStatus`` with a bounded retry policy."""

    def __init__(self, gateway: CommandGateway, policy: Optional[RetryPolicy] = None) -> None:
        self.gateway = gateway
        self.policy = policy or fixed_delay_policy(CHECK_STATE_RETRY, CHECK_STATE_INTERVAL)

    async def poll_status(self) -> Optional[CaptureStatus]:
        """Return the current status, or None once the retry budget is spent.

        The retry delay is slept between attempts only: three failed state
        queries sleep twice before giving up, not after the last failure.
        """
        result = await self.policy.run(
            self.gateway.state,
            on_retry=lambda attempt, error: logger.warning(
                "State query failed (%s), retry %d/%d", error, attempt, self.policy.max_attempts
            ),
        )
        if not result.success:
            logger.error(
                "Capture status unavailable after %d attempts: %s",
                result.attempt_count, result.final_error,
            )
            return None
        return CaptureStatus.from_raw(result.value.get("_captureStatus"))


class IdleConfirmation:
    """Counts consecutive idle observations down to zero."""

    def __init__(self, threshold: int = CHECK_SHOOTING_IDLE_COUNT) -> None:
        if threshold < 1:
            raise ValueError("threshold must be at least 1")
        self.threshold = threshold
        self.remaining = threshold

    def observe(self, status: CaptureStatus) -> bool:
        """Record one observation; True once the capture is confirmed finished."""
        if status is CaptureStatus.IDLE:
            self.remaining -= 1
            return self.remaining <= 0
        self.remaining = self.threshold
        return False


async def supervise(
    poller: StatusPoller,
    is_settled: Callable[[], bool],
    *,
    interval: float = CHECK_STATE_INTERVAL,
    idle_threshold: int = CHECK_SHOOTING_IDLE_COUNT,
    sleep: Optional[SleepFunc] = None,
) -> SupervisionOutcome:
    """Poll until idle is confirmed, status is lost, or ``is_settled()`` turns true."""
    sleep = sleep or asyncio.sleep
    confirmation = IdleConfirmation(idle_threshold)

    while not is_settled():
        await sleep(interval)
        if is_settled():
            break
        status = await poller.poll_status()
        if status is None:
            return SupervisionOutcome.STATUS_UNAVAILABLE
        logger.debug("Capture status: %s", status.value)
        if confirmation.observe(status):
            return SupervisionOutcome.COMPLETED

    return SupervisionOutcome.ABANDONED


__all__ = [
    "CHECK_SHOOTING_IDLE_COUNT",
    "CHECK_STATE_INTERVAL",
    "CHECK_STATE_RETRY",
    "CaptureStatus",
    "IdleConfirmation",
    "StatusPoller",
    "SupervisionOutcome",
    "supervise",
]
