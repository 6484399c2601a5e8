"""Error taxonomy for camera commands and capture sessions."""

from __future__ import annotations

from typing import Optional

ERROR_GET_CAPTURE_STATUS = "Capture status cannot be retrieved."


class ThetaRepositoryError(Exception):
    """Base class for every error raised by theta_capture."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotConnectedError(ThetaRepositoryError):
    """The device could not be reached (connection refused, timeout, DNS...)."""


class ThetaWebApiError(ThetaRepositoryError):
    """The device answered a command with a structured error."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code

    def __str__(self) -> str:
        if self.code:
            return f"{self.code}: {self.message}"
        return self.message


class StatusUnavailableError(ThetaWebApiError):
    """State polling exhausted its retry budget without a usable status."""

    def __init__(self, message: str = ERROR_GET_CAPTURE_STATUS) -> None:
        super().__init__(message)


class StopError(ThetaRepositoryError):
    """A stop command issued during or after a capture failed.

    Reported through the session's ``on_stop_error`` callback; it never
    fails an otherwise successful capture.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class CaptureConfigError(ThetaRepositoryError, ValueError):
    """A builder was asked to commit an invalid configuration."""


__all__ = [
    "ERROR_GET_CAPTURE_STATUS",
    "CaptureConfigError",
    "NotConnectedError",
    "StatusUnavailableError",
    "StopError",
    "ThetaRepositoryError",
    "ThetaWebApiError",
]
