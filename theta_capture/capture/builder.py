"""
Capture Builder - accumulates options and commits them to the camera.

Builders are chained (every ``set_*`` returns the builder) and finish with
``await build()``, which applies the options to the device and returns a
fresh :class:`CaptureSession`. A builder may be built more than once; each
session gets its own copy of the options.

If a multi-step commit fails part way, options already applied on the
device are left in place.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Union

from theta_capture.connection.command_gateway import CommandGateway
from theta_capture.connection.retry_policy import SleepFunc, fixed_delay_policy
from theta_capture.core.config import ThetaClientConfig
from theta_capture.core.errors import CaptureConfigError, NotConnectedError, ThetaRepositoryError, ThetaWebApiError
from theta_capture.core.logging_utils import get_module_logger
from theta_capture.notify.relay import NotifyRelay

from .options import CAPTURE_INTERVAL_KEY, CaptureMode, ThetaModel, device_options
from .session import CaptureKind, CaptureSession
from .status_poller import StatusPoller

logger = get_module_logger("CaptureBuilder")

SET_OPTIONS = "camera.setOptions"


class CaptureBuilder:
    """Base builder; subclasses set ``kind`` and add their own options."""

    kind: CaptureKind
    session_class = CaptureSession

    def __init__(
        self,
        gateway: CommandGateway,
        relay: NotifyRelay,
        *,
        config: Optional[ThetaClientConfig] = None,
        camera_model: Union[ThetaModel, str, None] = None,
        sleep: Optional[SleepFunc] = None,
    ) -> None:
        self._gateway = gateway
        self._relay = relay
        self.config = config or ThetaClientConfig()
        if isinstance(camera_model, ThetaModel):
            self.camera_model: Optional[ThetaModel] = camera_model
        else:
            self.camera_model = ThetaModel.parse(camera_model or self.config.camera_model)
        self._sleep = sleep
        self.options: Dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Common options

    def set_option(self, name: str, value: Any):
        """Set any device option by its OSC name; None removes it."""
        if value is None:
            self.options.pop(name, None)
        else:
            self.options[name] = value
        return self

    def set_exposure_program(self, program: int):
        return self.set_option("exposureProgram", program)

    def set_exposure_compensation(self, value: float):
        return self.set_option("exposureCompensation", value)

    def set_iso(self, iso: int):
        return self.set_option("iso", iso)

    def set_white_balance(self, white_balance: str):
        return self.set_option("whiteBalance", white_balance)

    def set_color_temperature(self, kelvin: int):
        return self.set_option("_colorTemperature", kelvin)

    def set_file_format(self, file_format: Dict[str, Any]):
        return self.set_option("fileFormat", file_format)

    def set_filter(self, image_filter: str):
        return self.set_option("_filter", image_filter)

    def set_check_status_command_interval(self, seconds: float):
        """Interval for following the running command's status."""
        if seconds < 0:
            raise CaptureConfigError("check status command interval must not be negative")
        self.options[CAPTURE_INTERVAL_KEY] = seconds
        return self

    @property
    def interval(self) -> Optional[float]:
        return self.options.get(CAPTURE_INTERVAL_KEY)

    # ------------------------------------------------------------------
    # Build

    async def build(self) -> CaptureSession:
        """Commit the options to the camera and return a new session."""
        options = self._prepare_options()
        logger.info("Building %s capture (%d options)", self.kind.name, len(options))
        await self._commit(options)
        return self._new_session(options)

    def _prepare_options(self) -> Dict[str, Any]:
        """Validate and return the option snapshot for one session."""
        return dict(self.options)

    def _start_params(self) -> Optional[Dict[str, Any]]:
        return None

    async def _commit(self, options: Dict[str, Any]) -> None:
        await self._set_options({"captureMode": CaptureMode.IMAGE.value})
        remaining = device_options(options)
        if remaining:
            await self._set_options(remaining)

    async def _set_options(self, options: Dict[str, Any]) -> None:
        logger.debug("setOptions %s", sorted(options))
        try:
            response = await self._gateway.call(SET_OPTIONS, {"options": options})
        except ThetaRepositoryError:
            raise
        except Exception as exc:
            raise NotConnectedError(str(exc) or exc.__class__.__name__) from exc
        if response is not None and response.error is not None:
            raise ThetaWebApiError(response.error.message, code=response.error.code)

    def _new_session(self, options: Dict[str, Any]) -> CaptureSession:
        config = self.config
        poller = StatusPoller(
            self._gateway,
            fixed_delay_policy(config.check_state_retry, config.check_state_interval, sleep=self._sleep),
        )
        return self.session_class(
            self.kind,
            self._gateway,
            self._relay,
            options=options,
            start_params=self._start_params(),
            poller=poller,
            status_interval=options.get(CAPTURE_INTERVAL_KEY, config.check_status_command_interval),
            check_state_interval=config.check_state_interval,
            idle_threshold=config.idle_confirm_count,
            sleep=self._sleep,
        )


__all__ = ["SET_OPTIONS", "CaptureBuilder"]
