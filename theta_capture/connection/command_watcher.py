"""
Command Status Watcher - follows an ``inProgress`` command to its end.

The watcher polls ``/osc/commands/status`` and republishes what it sees as
named notifications:

- ``<PREFIX>-PROGRESS``   ``{"completion": 0.0..1.0}``
- ``<PREFIX>-COMPLETED``  the command's ``results`` (``fileUrls``/``fileUrl``)
- ``<PREFIX>-FAILED``     ``{"code": ..., "message": ...}``

A command cancelled on the device (``canceledShooting``) is reported as
COMPLETED without files.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Optional

from theta_capture.core.errors import ERROR_GET_CAPTURE_STATUS
from theta_capture.core.logging_utils import get_module_logger
from theta_capture.notify.events import COMPLETED, FAILED, PROGRESS, LocalEventChannel, NotifyEvent, event_name

from .retry_policy import RetryPolicy, SleepFunc, fixed_delay_policy

if TYPE_CHECKING:
    from .command_gateway import CommandResponse, HttpCommandGateway

logger = get_module_logger("CommandWatcher")

CANCELED_SHOOTING = "canceledShooting"
STATUS_RETRY = 3


class CommandStatusWatcher:

    def __init__(
        self,
        gateway: "HttpCommandGateway",
        channel: LocalEventChannel,
        *,
        interval: float = 1.0,
        policy: Optional[RetryPolicy] = None,
        sleep: Optional[SleepFunc] = None,
    ) -> None:
        self.gateway = gateway
        self.channel = channel
        self.interval = interval
        self._sleep = sleep or asyncio.sleep
        self.policy = policy or fixed_delay_policy(STATUS_RETRY, interval, sleep=self._sleep)

    async def watch(self, command_id: str, prefix: str) -> Optional["CommandResponse"]:
        """Poll until the command leaves ``inProgress``; returns the final response."""
        logger.debug("Watching command %s (%s)", command_id, prefix)
        last_completion: Optional[float] = None

        while True:
            await self._sleep(self.interval)
            result = await self.policy.run(lambda: self.gateway.command_status(command_id))
            if not result.success:
                logger.error("Status of command %s unavailable: %s", command_id, result.final_error)
                self._publish(prefix, FAILED, message=ERROR_GET_CAPTURE_STATUS)
                return None

            response = result.value
            if response.in_progress:
                if response.completion is not None and response.completion != last_completion:
                    last_completion = response.completion
                    self._publish(prefix, PROGRESS, completion=response.completion)
                continue

            if response.error is not None:
                if response.error.code == CANCELED_SHOOTING:
                    logger.info("Command %s cancelled on device", command_id)
                    self._publish(prefix, COMPLETED)
                else:
                    self._publish(
                        prefix, FAILED,
                        code=response.error.code, message=response.error.message,
                    )
            else:
                self._publish(prefix, COMPLETED, **(response.results or {}))
            return response

    def _publish(self, prefix: str, suffix: str, **params) -> None:
        self.channel.publish(NotifyEvent(name=event_name(prefix, suffix), params=params))


__all__ = ["CANCELED_SHOOTING", "CommandStatusWatcher"]
