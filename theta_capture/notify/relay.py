"""
Notification Relay - routes named events to the one handler awaiting them.

The relay holds a single subscription to an event channel and a table of
event name -> handler. Capture sessions register their handlers when they
start and release them when they settle, so at most one handler per name is
ever live and a finished session never sees another event.

Usage:
    relay = NotifyRelay(channel)
    relay.init()
    relay.register("MULTI-BRACKET-PROGRESS", on_progress, owner=session)
    ...
    relay.release_for(session)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from theta_capture.core.logging_utils import get_module_logger

from .events import EventChannel, LocalEventChannel, NotifyEvent, NotifyListener, Subscription

logger = get_module_logger("NotifyRelay")


@dataclass
class Registration:
    """One row of the relay table. ``handler`` may be None (tracked no-op)."""
    name: str
    handler: Optional[NotifyListener]
    owner: Any = None


class NotifyRelay:
    """Dispatch channel events to at most one registered handler per name."""

    def __init__(self, channel: EventChannel) -> None:
        self._channel = channel
        self._subscription: Optional[Subscription] = None
        self._registrations: Dict[str, Registration] = {}

    @property
    def channel(self) -> EventChannel:
        return self._channel

    @property
    def is_initialized(self) -> bool:
        return self._subscription is not None

    def __len__(self) -> int:
        return len(self._registrations)

    def __contains__(self, name: object) -> bool:
        return name in self._registrations

    def names(self, owner: Any = None) -> List[str]:
        """Registered names, optionally limited to one owner."""
        if owner is None:
            return list(self._registrations)
        return [name for name, reg in self._registrations.items() if reg.owner is owner]

    # ------------------------------------------------------------------
    # Lifecycle

    def init(self) -> None:
        """Subscribe to the channel. Calling it again is a no-op."""
        if self._subscription is not None:
            return
        self._subscription = self._channel.add_listener(self.dispatch)
        logger.debug("Subscribed to event channel")

    def release(self) -> None:
        """Drop every registration and unsubscribe from the channel.

        Owners still holding registrations are told through
        ``on_relay_released()`` so they can settle; otherwise nothing would
        ever deliver their terminal event.
        """
        owners: List[Any] = []
        for registration in self._registrations.values():
            owner = registration.owner
            if owner is not None and not any(owner is seen for seen in owners):
                owners.append(owner)
        count = len(self._registrations)
        self._registrations.clear()
        if self._subscription is not None:
            self._subscription.remove()
            self._subscription = None
        logger.debug("Released relay (%d registrations dropped)", count)

        for owner in owners:
            hook = getattr(owner, "on_relay_released", None)
            if hook is None:
                continue
            try:
                hook()
            except Exception:
                logger.exception("Owner %r failed to handle relay release", owner)

    # ------------------------------------------------------------------
    # Registration table

    def register(self, name: str, handler: Optional[NotifyListener], owner: Any = None) -> None:
        """Install (or replace) the handler for ``name``."""
        existing = self._registrations.get(name)
        if existing is not None and existing.owner is not owner:
            logger.warning(
                "Event %s still held by a stale owner, clearing it before re-registering",
                name,
            )
            del self._registrations[name]
        self._registrations[name] = Registration(name=name, handler=handler, owner=owner)
        logger.debug("Registered %s (handler=%s)", name, "set" if handler else "none")

    def unregister(self, name: str, owner: Any = None) -> bool:
        """Remove ``name``. With ``owner`` set, only that owner's entry is removed."""
        existing = self._registrations.get(name)
        if existing is None:
            return False
        if owner is not None and existing.owner is not owner:
            return False
        del self._registrations[name]
        logger.debug("Unregistered %s", name)
        return True

    def release_for(self, owner: Any) -> int:
        """Remove every registration held by ``owner``; returns how many."""
        names = self.names(owner) if owner is not None else []
        for name in names:
            del self._registrations[name]
        if names:
            logger.debug("Released %d registrations: %s", len(names), ", ".join(names))
        return len(names)

    # ------------------------------------------------------------------
    # Dispatch

    def dispatch(self, event: NotifyEvent) -> bool:
        """Deliver ``event`` to its handler. Returns True if a handler ran."""
        registration = self._registrations.get(event.name)
        if registration is None or registration.handler is None:
            return False
        try:
            registration.handler(event)
        except Exception:
            logger.exception("Handler for %s raised", event.name)
        return True


_default_relay: Optional[NotifyRelay] = None


def get_notify_relay() -> NotifyRelay:
    """Process-wide relay over an in-process channel, created on first use."""
    global _default_relay
    if _default_relay is None:
        _default_relay = NotifyRelay(LocalEventChannel())
    return _default_relay


__all__ = ["NotifyRelay", "Registration", "get_notify_relay"]
