"""
Command Gateway - sends named commands to the camera's OSC HTTP API.

Every command is a POST of ``{"name": ..., "parameters": ...}`` to
``/osc/commands/execute``. Long commands answer ``inProgress`` with an id
that can be followed through ``/osc/commands/status``; when the caller
passes a ``notify`` prefix and the gateway has an event channel, a
:class:`CommandStatusWatcher` follows the command and publishes progress and
terminal notifications into that channel.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Protocol, Set

import aiohttp

from theta_capture.core.asyncio_utils import cancel_and_wait, create_logged_task
from theta_capture.core.errors import NotConnectedError, ThetaWebApiError
from theta_capture.core.logging_utils import get_module_logger
from theta_capture.notify.events import LocalEventChannel

from .command_watcher import CommandStatusWatcher

logger = get_module_logger("CommandGateway")

EXECUTE_PATH = "/osc/commands/execute"
STATUS_PATH = "/osc/commands/status"
STATE_PATH = "/osc/state"


class CommandState(Enum):
    DONE = "done"
    IN_PROGRESS = "inProgress"
    ERROR = "error"


@dataclass(frozen=True)
class ApiError:
    """Structured error returned by the device for a command."""
    code: str
    message: str


@dataclass
class CommandResponse:
    """Decoded answer to one command execution or status request."""
    name: str
    state: CommandState
    id: Optional[str] = None
    results: Optional[Dict[str, Any]] = None
    error: Optional[ApiError] = None
    completion: Optional[float] = None

    @property
    def done(self) -> bool:
        return self.state is CommandState.DONE

    @property
    def in_progress(self) -> bool:
        return self.state is CommandState.IN_PROGRESS

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise ThetaWebApiError(self.error.message, code=self.error.code)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "CommandResponse":
        error = None
        raw_error = data.get("error")
        if isinstance(raw_error, dict):
            error = ApiError(
                code=str(raw_error.get("code", "unknown")),
                message=str(raw_error.get("message", "")),
            )

        raw_state = data.get("state")
        try:
            state = CommandState(raw_state)
        except ValueError:
            state = CommandState.ERROR if error else CommandState.DONE

        completion = None
        progress = data.get("progress")
        if isinstance(progress, dict) and progress.get("completion") is not None:
            completion = float(progress["completion"])

        results = data.get("results")
        return cls(
            name=str(data.get("name", "")),
            state=state,
            id=data.get("id"),
            results=results if isinstance(results, dict) else None,
            error=error,
            completion=completion,
        )

    @classmethod
    def ok(cls, name: str, results: Optional[Dict[str, Any]] = None) -> "CommandResponse":
        return cls(name=name, state=CommandState.DONE, results=results)

    @classmethod
    def failed(cls, name: str, code: str, message: str) -> "CommandResponse":
        return cls(name=name, state=CommandState.ERROR, error=ApiError(code, message))


class CommandGateway(Protocol):
    """What capture builders, sessions and the status poller need from a device."""

    async def call(
        self,
        name: str,
        params: Optional[Dict[str, Any]] = None,
        *,
        notify: Optional[str] = None,
        interval: Optional[float] = None,
    ) -> CommandResponse:
        ...

    async def state(self) -> Dict[str, Any]:
        ...


class HttpCommandGateway:
    """CommandGateway over the OSC HTTP API using a shared aiohttp session."""

    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float = 10.0,
        channel: Optional[LocalEventChannel] = None,
        status_interval: float = 1.0,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.channel = channel
        self.status_interval = status_interval
        self._session = session
        self._owns_session = session is None
        self._watchers: Set[asyncio.Task] = set()

    async def __aenter__(self) -> "HttpCommandGateway":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"Content-Type": "application/json;charset=utf-8"},
            )
            self._owns_session = True
        return self._session

    async def _post(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.endpoint}{path}"
        try:
            async with self._get_session().post(url, json=payload) as response:
                try:
                    data = await response.json(content_type=None)
                except ValueError as exc:
                    if response.status >= 400:
                        raise ThetaWebApiError(
                            f"HTTP {response.status} {response.reason}", code=str(response.status)
                        ) from exc
                    raise ThetaWebApiError(f"Invalid response from {path}: {exc}") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NotConnectedError(str(exc) or exc.__class__.__name__) from exc

        if not isinstance(data, dict):
            raise ThetaWebApiError(f"Unexpected response body from {path}: {data!r}")
        if response.status >= 400 and "error" not in data:
            raise ThetaWebApiError(
                f"HTTP {response.status} {response.reason}", code=str(response.status)
            )
        return data

    async def call(
        self,
        name: str,
        params: Optional[Dict[str, Any]] = None,
        *,
        notify: Optional[str] = None,
        interval: Optional[float] = None,
    ) -> CommandResponse:
        payload: Dict[str, Any] = {"name": name}
        if params:
            payload["parameters"] = params
        logger.debug("-> %s %s", name, json.dumps(params or {}))

        response = CommandResponse.from_json(await self._post(EXECUTE_PATH, payload))
        logger.debug("<- %s state=%s id=%s", name, response.state.value, response.id)

        if response.in_progress and notify and self.channel is not None and response.id:
            self._watch(response.id, notify, interval)
        return response

    async def command_status(self, command_id: str) -> CommandResponse:
        return CommandResponse.from_json(await self._post(STATUS_PATH, {"id": command_id}))

    async def state(self) -> Dict[str, Any]:
        data = await self._post(STATE_PATH)
        state = data.get("state")
        if not isinstance(state, dict):
            raise ThetaWebApiError("State response carries no state object")
        return state

    def _watch(self, command_id: str, prefix: str, interval: Optional[float] = None) -> None:
        watcher = CommandStatusWatcher(
            self, self.channel, interval=interval if interval is not None else self.status_interval
        )
        create_logged_task(
            watcher.watch(command_id, prefix),
            logger=logger,
            context=f"watch-{prefix}-{command_id}",
            pending=self._watchers,
        )

    @property
    def active_watchers(self) -> int:
        return len(self._watchers)

    async def close(self) -> None:
        """Cancel command watchers and close the HTTP session if we opened it."""
        for task in list(self._watchers):
            await cancel_and_wait(task)
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None


__all__ = [
    "ApiError",
    "CommandGateway",
    "CommandResponse",
    "CommandState",
    "HttpCommandGateway",
]
