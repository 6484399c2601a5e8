"""Shared plumbing: logging, configuration, errors and asyncio helpers."""

from .config import ThetaClientConfig, load_config, load_config_async
from .errors import (
    CaptureConfigError,
    NotConnectedError,
    StatusUnavailableError,
    StopError,
    ThetaRepositoryError,
    ThetaWebApiError,
)
from .logging_config import configure_logging
from .logging_utils import StructuredLogger, get_module_logger

__all__ = [
    "CaptureConfigError",
    "NotConnectedError",
    "StatusUnavailableError",
    "StopError",
    "StructuredLogger",
    "ThetaClientConfig",
    "ThetaRepositoryError",
    "ThetaWebApiError",
    "configure_logging",
    "get_module_logger",
    "load_config",
    "load_config_async",
]
