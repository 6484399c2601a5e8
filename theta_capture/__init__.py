"""
theta_capture - capture orchestration and notification relay for RICOH THETA
cameras over the OSC HTTP API.
"""

from importlib.metadata import PackageNotFoundError, version

from .capture import (
    BracketSetting,
    CaptureSession,
    LimitlessIntervalCaptureBuilder,
    MultiBracketCapture,
    MultiBracketCaptureBuilder,
    ThetaModel,
    TimeShiftCaptureBuilder,
    TimeShiftSetting,
)
from .client import ThetaClient
from .connection import CommandResponse, HttpCommandGateway
from .core import (
    NotConnectedError,
    StatusUnavailableError,
    StopError,
    ThetaClientConfig,
    ThetaRepositoryError,
    ThetaWebApiError,
    configure_logging,
)
from .notify import LocalEventChannel, NotifyEvent, NotifyRelay, get_notify_relay

try:
    __version__ = version("theta-capture")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "BracketSetting",
    "CaptureSession",
    "CommandResponse",
    "HttpCommandGateway",
    "LimitlessIntervalCaptureBuilder",
    "LocalEventChannel",
    "MultiBracketCapture",
    "MultiBracketCaptureBuilder",
    "NotConnectedError",
    "NotifyEvent",
    "NotifyRelay",
    "StatusUnavailableError",
    "StopError",
    "ThetaClient",
    "ThetaClientConfig",
    "ThetaModel",
    "ThetaRepositoryError",
    "ThetaWebApiError",
    "TimeShiftCaptureBuilder",
    "TimeShiftSetting",
    "__version__",
]
