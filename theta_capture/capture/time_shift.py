"""Time-shift capture: front and rear lens shot one after the other."""

from __future__ import annotations

from typing import Any, Dict, Optional

from theta_capture.core.errors import CaptureConfigError

from .builder import CaptureBuilder
from .options import ShootingMethod, ThetaModel, TimeShiftSetting
from .session import CaptureKind, CompletionStrategy, ResultShape

TIME_SHIFT = CaptureKind(
    name="time-shift",
    event_prefix="TIME-SHIFT",
    strategy=CompletionStrategy.NOTIFY,
    result_shape=ResultShape.SINGLE,
)

TIME_SHIFT_KEY = "_timeShift"
MAX_INTERVAL = 10


def _check_interval(name: str, seconds: int) -> int:
    if not 0 <= seconds <= MAX_INTERVAL:
        raise CaptureConfigError(f"{name} must be between 0 and {MAX_INTERVAL} seconds, got {seconds}")
    return seconds


class TimeShiftCaptureBuilder(CaptureBuilder):
    kind = TIME_SHIFT

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.time_shift: Optional[TimeShiftSetting] = None

    def _setting(self) -> TimeShiftSetting:
        if self.time_shift is None:
            self.time_shift = TimeShiftSetting()
        return self.time_shift

    def set_is_front_first(self, is_front_first: bool) -> "TimeShiftCaptureBuilder":
        self._setting().is_front_first = is_front_first
        return self

    def set_first_interval(self, seconds: int) -> "TimeShiftCaptureBuilder":
        """Seconds before the first lens shoots."""
        self._setting().first_interval = _check_interval("first interval", seconds)
        return self

    def set_second_interval(self, seconds: int) -> "TimeShiftCaptureBuilder":
        """Seconds between the first and the second lens."""
        self._setting().second_interval = _check_interval("second interval", seconds)
        return self

    def _prepare_options(self) -> Dict[str, Any]:
        options = super()._prepare_options()
        if self.time_shift is not None:
            options[TIME_SHIFT_KEY] = self.time_shift.to_options()
        if self.camera_model is ThetaModel.THETA_X:
            options["_shootingMethod"] = ShootingMethod.TIME_SHIFT.value
        return options

    def _start_params(self) -> Optional[Dict[str, Any]]:
        if self.camera_model is ThetaModel.THETA_X:
            return None
        return {"_mode": ShootingMethod.TIME_SHIFT.value}


__all__ = ["TIME_SHIFT", "TIME_SHIFT_KEY", "TimeShiftCaptureBuilder"]
