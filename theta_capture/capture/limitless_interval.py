"""
Limitless interval capture: shoots at a fixed interval until stopped.

The camera does not announce the end of an interval run, so sessions of
this kind watch ``_captureStatus`` and finish once the camera has been idle
for several consecutive polls.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from theta_capture.core.errors import CaptureConfigError

from .builder import CaptureBuilder
from .options import ShootingMethod, ThetaModel
from .session import CaptureKind, CompletionStrategy, ResultShape

LIMITLESS_INTERVAL = CaptureKind(
    name="limitless-interval",
    event_prefix="LIMITLESS-INTERVAL",
    strategy=CompletionStrategy.POLL_STATE,
    result_shape=ResultShape.MULTIPLE,
)

UNLIMITED_CAPTURE_NUMBER = 0


class LimitlessIntervalCaptureBuilder(CaptureBuilder):
    kind = LIMITLESS_INTERVAL

    def set_capture_interval(self, seconds: int) -> "LimitlessIntervalCaptureBuilder":
        """Seconds between shots."""
        if seconds < 0:
            raise CaptureConfigError("capture interval must not be negative")
        return self.set_option("captureInterval", seconds)

    @property
    def capture_interval(self) -> Optional[int]:
        return self.options.get("captureInterval")

    def _prepare_options(self) -> Dict[str, Any]:
        options = super()._prepare_options()
        options["captureNumber"] = UNLIMITED_CAPTURE_NUMBER
        if self.camera_model is ThetaModel.THETA_X:
            options["_shootingMethod"] = ShootingMethod.INTERVAL.value
        return options

    def _start_params(self) -> Optional[Dict[str, Any]]:
        if self.camera_model is ThetaModel.THETA_X:
            return None
        return {"_mode": ShootingMethod.INTERVAL.value}


__all__ = ["LIMITLESS_INTERVAL", "LimitlessIntervalCaptureBuilder"]
