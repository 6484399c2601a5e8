"""Unit test fixtures for isolated, fast test execution.

This conftest provides fixtures specifically for unit tests that:
- Run in complete isolation (no camera, no network)
- Execute quickly on a virtual clock instead of real sleeps
- Script the camera's command answers through FakeGateway

This file provides:
- FakeGateway / fake_gateway: scripted CommandGateway
- VirtualClock / clock: injectable sleep that records delays
- channel, relay
"""

from __future__ import annotations

import asyncio
import inspect
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pytest

from theta_capture.connection.command_gateway import CommandResponse
from theta_capture.notify.events import LocalEventChannel
from theta_capture.notify.relay import NotifyRelay


# =============================================================================
# Fakes
# =============================================================================

@dataclass
class RecordedCall:
    name: str
    params: Optional[Dict[str, Any]]
    notify: Optional[str]
    interval: Optional[float]


class FakeGateway:
    """CommandGateway whose answers are scripted per command name.

    A scripted item may be a CommandResponse, None, an exception (raised),
    or a callable taking the params and returning any of those (or an
    awaitable of them). Unscripted commands answer ``done`` with no results.

    Example:
        gateway.script("camera.startCapture", CommandResponse.ok("camera.startCapture"))
        gateway.script_states("shooting", "idle", "idle")
    """

    def __init__(self) -> None:
        self.calls: List[RecordedCall] = []
        self.responses: Dict[str, List[Any]] = defaultdict(list)
        self.states: List[Any] = []
        self.state_calls = 0

    def script(self, name: str, *items: Any) -> "FakeGateway":
        self.responses[name].extend(items)
        return self

    def script_states(self, *items: Any) -> "FakeGateway":
        """Queue ``/osc/state`` answers; strings become ``_captureStatus`` values."""
        for item in items:
            self.states.append({"_captureStatus": item} if isinstance(item, str) else item)
        return self

    def calls_named(self, name: str) -> List[RecordedCall]:
        return [call for call in self.calls if call.name == name]

    async def call(
        self,
        name: str,
        params: Optional[Dict[str, Any]] = None,
        *,
        notify: Optional[str] = None,
        interval: Optional[float] = None,
    ) -> Optional[CommandResponse]:
        self.calls.append(RecordedCall(name, params, notify, interval))
        queue = self.responses.get(name)
        item = queue.pop(0) if queue else CommandResponse.ok(name)
        if callable(item):
            item = item(params)
            if inspect.isawaitable(item):
                item = await item
        if isinstance(item, BaseException):
            raise item
        return item

    async def state(self) -> Dict[str, Any]:
        self.state_calls += 1
        item = self.states.pop(0) if self.states else {"_captureStatus": "shooting"}
        if isinstance(item, BaseException):
            raise item
        return item


class VirtualClock:
    """Drop-in for ``asyncio.sleep`` that only advances a counter."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay
        await asyncio.sleep(0)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def channel() -> LocalEventChannel:
    return LocalEventChannel()


@pytest.fixture
def relay(channel: LocalEventChannel) -> NotifyRelay:
    relay = NotifyRelay(channel)
    yield relay
    relay.release()
