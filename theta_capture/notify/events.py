"""Named notifications and the channel that carries them into the process."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional, Protocol

from theta_capture.core.logging_utils import get_module_logger

logger = get_module_logger("EventChannel")

# Event name suffixes shared by all capture kinds: "<PREFIX>-<SUFFIX>"
PROGRESS = "PROGRESS"
STOP_ERROR = "STOP-ERROR"
COMPLETED = "COMPLETED"
FAILED = "FAILED"


def event_name(prefix: str, suffix: str) -> str:
    return f"{prefix}-{suffix}"


@dataclass(frozen=True)
class NotifyEvent:
    """A named notification; the shape of ``params`` depends on ``name``."""

    name: str
    params: Mapping[str, Any] = field(default_factory=dict)

    @property
    def completion(self) -> Optional[float]:
        value = self.params.get("completion")
        return float(value) if value is not None else None

    @property
    def message(self) -> str:
        return str(self.params.get("message", ""))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NotifyEvent":
        return cls(name=str(data.get("name", "")), params=dict(data.get("params") or {}))


NotifyListener = Callable[[NotifyEvent], None]


class Subscription(Protocol):
    def remove(self) -> None:
        ...


class EventChannel(Protocol):
    """Source of platform notifications."""

    def add_listener(self, listener: NotifyListener) -> Subscription:
        ...


class _ListenerHandle:
    """Removes one listener from a LocalEventChannel; safe to call twice."""

    def __init__(self, channel: "LocalEventChannel", listener: NotifyListener) -> None:
        self._channel = channel
        self._listener: Optional[NotifyListener] = listener

    @property
    def active(self) -> bool:
        return self._listener is not None

    def remove(self) -> None:
        if self._listener is None:
            return
        self._channel._discard(self._listener)
        self._listener = None


class LocalEventChannel:
    """In-process event channel.

    ``publish`` delivers synchronously on the calling (event loop) thread.
    Producers running on foreign threads use ``publish_threadsafe``.
    """

    def __init__(self) -> None:
        self._listeners: List[NotifyListener] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def add_listener(self, listener: NotifyListener) -> _ListenerHandle:
        self._listeners.append(listener)
        return _ListenerHandle(self, listener)

    def _discard(self, listener: NotifyListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def publish(self, event: NotifyEvent) -> None:
        logger.debug("Publishing %s %s", event.name, dict(event.params))
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Listener failed for event %s", event.name)

    def publish_threadsafe(self, loop: asyncio.AbstractEventLoop, event: NotifyEvent) -> None:
        loop.call_soon_threadsafe(self.publish, event)

    def emit(self, name: str, **params: Any) -> None:
        self.publish(NotifyEvent(name=name, params=params))


__all__ = [
    "COMPLETED",
    "FAILED",
    "PROGRESS",
    "STOP_ERROR",
    "EventChannel",
    "LocalEventChannel",
    "NotifyEvent",
    "NotifyListener",
    "Subscription",
    "event_name",
]
