"""
Device connection: command gateway, command status watcher and retry policy.
"""

from .command_gateway import (
    ApiError,
    CommandGateway,
    CommandResponse,
    CommandState,
    HttpCommandGateway,
)
from .command_watcher import CommandStatusWatcher
from .retry_policy import RetryOutcome, RetryPolicy, RetryResult, fixed_delay_policy

__all__ = [
    # Gateway
    'ApiError',
    'CommandGateway',
    'CommandResponse',
    'CommandState',
    'HttpCommandGateway',
    'CommandStatusWatcher',
    # Retry
    'RetryOutcome',
    'RetryPolicy',
    'RetryResult',
    'fixed_delay_policy',
]
