"""Pytest fixtures for gateway tests.

Provides a fake OSC camera served by aiohttp's TestServer so the HTTP
gateway can be exercised without a device.
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

import pytest
from aiohttp import web


class FakeOscCamera:
    """Scripted OSC endpoints.

    ``execute`` answers are queued per command name as ``(status, body)``;
    a body that is a str is sent as plain text.
    """

    def __init__(self) -> None:
        self.executed: List[Dict[str, Any]] = []
        self.status_requests: List[Dict[str, Any]] = []
        self.execute_answers: Dict[str, List[Tuple[int, Any]]] = {}
        self.status_answers: List[Tuple[int, Any]] = []
        self.state: Dict[str, Any] = {"_captureStatus": "idle", "batteryLevel": 0.8}

    def answer(self, name: str, body: Any, status: int = 200) -> "FakeOscCamera":
        self.execute_answers.setdefault(name, []).append((status, body))
        return self

    def answer_status(self, body: Any, status: int = 200) -> "FakeOscCamera":
        self.status_answers.append((status, body))
        return self

    @staticmethod
    def _reply(status: int, body: Any) -> web.Response:
        if isinstance(body, str):
            return web.Response(status=status, text=body)
        return web.json_response(body, status=status)

    async def handle_execute(self, request: web.Request) -> web.Response:
        payload = await request.json()
        self.executed.append(payload)
        answers = self.execute_answers.get(payload["name"])
        if answers:
            return self._reply(*answers.pop(0))
        return web.json_response({"name": payload["name"], "state": "done"})

    async def handle_status(self, request: web.Request) -> web.Response:
        payload = await request.json()
        self.status_requests.append(payload)
        if self.status_answers:
            return self._reply(*self.status_answers.pop(0))
        return web.json_response({"id": payload["id"], "state": "inProgress"})

    async def handle_state(self, request: web.Request) -> web.Response:
        return web.json_response({"fingerprint": "FIG_0001", "state": self.state})

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/osc/commands/execute", self.handle_execute)
        app.router.add_post("/osc/commands/status", self.handle_status)
        app.router.add_post("/osc/state", self.handle_state)
        return app


@pytest.fixture
def fake_camera() -> FakeOscCamera:
    return FakeOscCamera()


@pytest.fixture
def osc_app(fake_camera: FakeOscCamera) -> web.Application:
    return fake_camera.make_app()
