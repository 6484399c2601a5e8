"""
ThetaClient - entry point tying gateway, relay and capture builders together.

Usage:
    async with await ThetaClient.from_config_file("theta.txt") as client:
        capture = await (
            client.get_multi_bracket_capture_builder()
            .set_bracket_settings([BracketSetting(iso=100), BracketSetting(iso=400)])
            .build()
        )
        file_urls = await capture.start(on_progress=print)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from .capture.limitless_interval import LimitlessIntervalCaptureBuilder
from .capture.multi_bracket import MultiBracketCaptureBuilder
from .capture.time_shift import TimeShiftCaptureBuilder
from .connection.command_gateway import CommandGateway, HttpCommandGateway
from .connection.retry_policy import SleepFunc
from .core.config import ThetaClientConfig, load_config_async
from .core.logging_config import configure_logging
from .core.logging_utils import get_module_logger
from .notify.events import EventChannel, LocalEventChannel
from .notify.relay import NotifyRelay, get_notify_relay

logger = get_module_logger("ThetaClient")


class ThetaClient:
    """Creates capture builders bound to one camera.

    Without an explicit ``relay`` or ``channel`` the process-wide relay from
    :func:`get_notify_relay` is used.
    """

    def __init__(
        self,
        config: Optional[ThetaClientConfig] = None,
        *,
        gateway: Optional[CommandGateway] = None,
        channel: Optional[EventChannel] = None,
        relay: Optional[NotifyRelay] = None,
        sleep: Optional[SleepFunc] = None,
    ) -> None:
        self.config = config or ThetaClientConfig()
        if relay is None:
            relay = NotifyRelay(channel) if channel is not None else get_notify_relay()
        self.relay = relay
        self._sleep = sleep

        self._owns_gateway = gateway is None
        if gateway is None:
            events = relay.channel if isinstance(relay.channel, LocalEventChannel) else None
            gateway = HttpCommandGateway(
                self.config.endpoint,
                timeout=self.config.request_timeout,
                channel=events,
                status_interval=self.config.check_status_command_interval,
            )
        self.gateway = gateway
        self._initialized = False

    @classmethod
    async def from_config_file(cls, path: Union[str, Path], **kwargs: Any) -> "ThetaClient":
        """Load ``path`` (``key = value`` format), set up logging and build a client."""
        config = await load_config_async(path)
        configure_logging(config.log_level, log_file=config.log_file or None)
        return cls(config, **kwargs)

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        self.relay.init()
        self._initialized = True
        logger.info("Client ready for %s (model=%s)", self.config.endpoint, self.config.camera_model or "auto")

    async def close(self) -> None:
        self.relay.release()
        if self._owns_gateway and isinstance(self.gateway, HttpCommandGateway):
            await self.gateway.close()
        self._initialized = False
        logger.info("Client closed")

    async def __aenter__(self) -> "ThetaClient":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Builders

    def _builder_kwargs(self) -> dict:
        return {"config": self.config, "sleep": self._sleep}

    def get_multi_bracket_capture_builder(self) -> MultiBracketCaptureBuilder:
        return MultiBracketCaptureBuilder(self.gateway, self.relay, **self._builder_kwargs())

    def get_time_shift_capture_builder(self) -> TimeShiftCaptureBuilder:
        return TimeShiftCaptureBuilder(self.gateway, self.relay, **self._builder_kwargs())

    def get_limitless_interval_capture_builder(self) -> LimitlessIntervalCaptureBuilder:
        return LimitlessIntervalCaptureBuilder(self.gateway, self.relay, **self._builder_kwargs())


__all__ = ["ThetaClient"]
