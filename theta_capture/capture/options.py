"""Option values understood by the capture builders.

Only the handful of settings the builders need to reason about are typed
here; every other device option is passed through as an opaque value.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

# Kept in the committed option snapshot but never sent to the device.
CAPTURE_INTERVAL_KEY = "_capture_interval"
CLIENT_ONLY_OPTIONS = frozenset({CAPTURE_INTERVAL_KEY})


class CaptureMode(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


class ShootingMethod(str, Enum):
    NORMAL = "normal"
    INTERVAL = "interval"
    MOVE_INTERVAL = "moveInterval"
    FIXED_INTERVAL = "fixedInterval"
    BRACKET = "bracket"
    TIME_SHIFT = "timeShift"


class ThetaModel(str, Enum):
    THETA_S = "THETA_S"
    THETA_SC = "THETA_SC"
    THETA_V = "THETA_V"
    THETA_Z1 = "THETA_Z1"
    THETA_X = "THETA_X"
    THETA_SC2 = "THETA_SC2"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ThetaModel"]:
        if not value:
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


@dataclass
class BracketSetting:
    """Exposure parameters for one shot of a multi-bracket sequence.

    Unset fields are left to the camera.
    """

    aperture: Optional[float] = None
    color_temperature: Optional[int] = None
    exposure_compensation: Optional[float] = None
    exposure_program: Optional[int] = None
    iso: Optional[int] = None
    shutter_speed: Optional[float] = None
    white_balance: Optional[str] = None

    def to_options(self) -> Dict[str, Any]:
        mapping = {
            "aperture": self.aperture,
            "_colorTemperature": self.color_temperature,
            "exposureCompensation": self.exposure_compensation,
            "exposureProgram": self.exposure_program,
            "iso": self.iso,
            "shutterSpeed": self.shutter_speed,
            "whiteBalance": self.white_balance,
        }
        return {key: value for key, value in mapping.items() if value is not None}


@dataclass
class TimeShiftSetting:
    """Dual-lens time-shift timing; intervals are seconds (0-10)."""

    is_front_first: Optional[bool] = None
    first_interval: Optional[int] = None
    second_interval: Optional[int] = None

    def to_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {}
        if self.is_front_first is not None:
            options["firstShooting"] = "front" if self.is_front_first else "rear"
        if self.first_interval is not None:
            options["firstInterval"] = self.first_interval
        if self.second_interval is not None:
            options["secondInterval"] = self.second_interval
        return options


def device_options(options: Dict[str, Any]) -> Dict[str, Any]:
    """Strip client-only keys before sending options to the device."""
    return {key: value for key, value in options.items() if key not in CLIENT_ONLY_OPTIONS}


__all__ = [
    "CAPTURE_INTERVAL_KEY",
    "CLIENT_ONLY_OPTIONS",
    "BracketSetting",
    "CaptureMode",
    "ShootingMethod",
    "ThetaModel",
    "TimeShiftSetting",
    "device_options",
]
