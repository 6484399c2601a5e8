"""Named device notifications and the relay that routes them to capture sessions."""

from .events import (
    COMPLETED,
    FAILED,
    PROGRESS,
    STOP_ERROR,
    EventChannel,
    LocalEventChannel,
    NotifyEvent,
    Subscription,
    event_name,
)
from .relay import NotifyRelay, get_notify_relay

__all__ = [
    "COMPLETED",
    "FAILED",
    "PROGRESS",
    "STOP_ERROR",
    "EventChannel",
    "LocalEventChannel",
    "NotifyEvent",
    "NotifyRelay",
    "Subscription",
    "event_name",
    "get_notify_relay",
]
