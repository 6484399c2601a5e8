"""
Capture builders and sessions for multi-bracket, time-shift and limitless
interval shooting.
"""

from .builder import CaptureBuilder
from .limitless_interval import LIMITLESS_INTERVAL, LimitlessIntervalCaptureBuilder
from .multi_bracket import MULTI_BRACKET, MultiBracketCapture, MultiBracketCaptureBuilder
from .options import BracketSetting, CaptureMode, ShootingMethod, ThetaModel, TimeShiftSetting
from .session import (
    CaptureKind,
    CaptureSession,
    CompletionStrategy,
    ResultShape,
    SessionOutcome,
    SessionState,
)
from .status_poller import CaptureStatus, IdleConfirmation, StatusPoller, SupervisionOutcome, supervise
from .time_shift import TIME_SHIFT, TimeShiftCaptureBuilder

__all__ = [
    # Builders
    'CaptureBuilder',
    'LimitlessIntervalCaptureBuilder',
    'MultiBracketCaptureBuilder',
    'TimeShiftCaptureBuilder',
    # Sessions
    'CaptureKind',
    'CaptureSession',
    'CompletionStrategy',
    'MultiBracketCapture',
    'ResultShape',
    'SessionOutcome',
    'SessionState',
    'LIMITLESS_INTERVAL',
    'MULTI_BRACKET',
    'TIME_SHIFT',
    # Options
    'BracketSetting',
    'CaptureMode',
    'ShootingMethod',
    'ThetaModel',
    'TimeShiftSetting',
    # Status polling
    'CaptureStatus',
    'IdleConfirmation',
    'StatusPoller',
    'SupervisionOutcome',
    'supervise',
]
