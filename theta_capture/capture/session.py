"""
Capture Session - runs one built capture and settles its result exactly once.

A session is parameterised by its :class:`CaptureKind`: how completion is
detected (polling the device state or waiting for a terminal notification)
and what the result looks like (one file URL, several, or none).

State transitions:
- BUILT -> RUNNING: ``start()`` registers relay handlers, sends the start command
- RUNNING -> SETTLED: first of {terminal event, idle confirmed, stop command
  returning files, command error, relay released}; later triggers are ignored

Every path into SETTLED releases the session's relay registrations, so no
notification reaches a finished session.
"""

from __future__ import annotations

import asyncio
import copy
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from theta_capture.connection.command_gateway import CommandGateway, CommandResponse
from theta_capture.connection.retry_policy import SleepFunc
from theta_capture.core.asyncio_utils import create_logged_task
from theta_capture.core.errors import NotConnectedError, StatusUnavailableError, StopError, ThetaWebApiError
from theta_capture.core.logging_utils import get_module_logger
from theta_capture.notify.events import COMPLETED, FAILED, PROGRESS, STOP_ERROR, NotifyEvent, event_name
from theta_capture.notify.relay import NotifyRelay

from .status_poller import (
    CHECK_SHOOTING_IDLE_COUNT,
    CHECK_STATE_INTERVAL,
    StatusPoller,
    SupervisionOutcome,
    supervise,
)

logger = get_module_logger("CaptureSession")

START_CAPTURE = "camera.startCapture"
STOP_CAPTURE = "camera.stopCapture"

ProgressCallback = Callable[[Optional[float]], None]
StopErrorCallback = Callable[[StopError], None]


class CompletionStrategy(Enum):
    POLL_STATE = "poll_state"  # supervise /osc/state until idle
    NOTIFY = "notify"          # wait for <PREFIX>-COMPLETED / -FAILED


class ResultShape(Enum):
    SINGLE = "single"
    MULTIPLE = "multiple"
    NONE = "none"


class SessionState(Enum):
    BUILT = "built"
    RUNNING = "running"
    SETTLED = "settled"


class SessionOutcome(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class CaptureKind:
    name: str
    event_prefix: str
    strategy: CompletionStrategy
    result_shape: ResultShape
    start_command: str = START_CAPTURE
    stop_command: str = STOP_CAPTURE


def extract_result(shape: ResultShape, results: Optional[Mapping[str, Any]]) -> Any:
    """Pick the file URL(s) out of command results or event params."""
    if shape is ResultShape.NONE or not results:
        return None
    urls = results.get("fileUrls")
    url = results.get("fileUrl")
    if shape is ResultShape.MULTIPLE:
        if urls is not None:
            return list(urls)
        return [url] if url else None
    if url:
        return url
    return urls[0] if urls else None


class CaptureSession:
    """One capture operation, from ``start()`` to its single settlement."""

    def __init__(
        self,
        kind: CaptureKind,
        gateway: CommandGateway,
        relay: NotifyRelay,
        *,
        options: Optional[Dict[str, Any]] = None,
        start_params: Optional[Dict[str, Any]] = None,
        poller: Optional[StatusPoller] = None,
        status_interval: Optional[float] = None,
        check_state_interval: float = CHECK_STATE_INTERVAL,
        idle_threshold: int = CHECK_SHOOTING_IDLE_COUNT,
        sleep: Optional[SleepFunc] = None,
    ) -> None:
        self.kind = kind
        self._gateway = gateway
        self._relay = relay
        self._options = MappingProxyType(copy.deepcopy(dict(options or {})))
        self._start_params = dict(start_params or {})
        self._poller = poller or StatusPoller(gateway)
        self._status_interval = status_interval
        self._check_state_interval = check_state_interval
        self._idle_threshold = idle_threshold
        self._sleep = sleep

        self._state = SessionState.BUILT
        self._outcome: Optional[SessionOutcome] = None
        self._future: Optional[asyncio.Future] = None
        self._runner: Optional[asyncio.Task] = None
        self._on_stop_error: Optional[StopErrorCallback] = None

    # ------------------------------------------------------------------
    # Introspection

    @property
    def options(self) -> Mapping[str, Any]:
        """Options committed to the device when this session was built."""
        return self._options

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def outcome(self) -> Optional[SessionOutcome]:
        return self._outcome

    @property
    def is_settled(self) -> bool:
        return self._state is SessionState.SETTLED

    # ------------------------------------------------------------------
    # Public API

    async def start(
        self,
        on_progress: Optional[ProgressCallback] = None,
        on_stop_error: Optional[StopErrorCallback] = None,
    ) -> Any:
        """Start the capture and wait for its result.

        Returns a file URL, a list of file URLs, or None depending on the
        capture kind. Errors raised by the gateway propagate unchanged; a
        device error response raises ThetaWebApiError.
        """
        if self._state is not SessionState.BUILT:
            raise RuntimeError(f"{self.kind.name} capture session was already started")

        self._future = asyncio.get_running_loop().create_future()
        self._on_stop_error = on_stop_error
        self._state = SessionState.RUNNING
        self._register_handlers(on_progress, on_stop_error)

        logger.info("Starting %s capture", self.kind.name)
        self._runner = create_logged_task(
            self._run(), logger=logger, context=f"{self.kind.name}-capture"
        )
        try:
            return await self._future
        except asyncio.CancelledError:
            if self._outcome is None:
                self._outcome = SessionOutcome.CANCELLED
                logger.info("%s capture abandoned by caller", self.kind.name)
            raise
        finally:
            self._state = SessionState.SETTLED
            self._release()

    async def cancel(self) -> None:
        """Ask the device to stop.

        The running supervision path settles the session; only a stop
        result carrying files settles it directly. Stop failures are
        reported through ``on_stop_error``.
        """
        if self.is_settled:
            logger.debug("%s capture already settled, nothing to cancel", self.kind.name)
            return

        logger.info("Cancelling %s capture", self.kind.name)
        try:
            response = await self._gateway.call(self.kind.stop_command)
        except Exception as exc:
            self._report_stop_error(StopError(str(exc) or exc.__class__.__name__, cause=exc))
            return

        if response is None:
            return
        if response.error is not None:
            self._report_stop_error(StopError(response.error.message))
            return

        files = extract_result(self.kind.result_shape, response.results)
        if files and self._state is SessionState.RUNNING:
            self._settle(SessionOutcome.SUCCESS, result=files)

    # ------------------------------------------------------------------
    # Relay handlers

    def _register_handlers(
        self,
        on_progress: Optional[ProgressCallback],
        on_stop_error: Optional[StopErrorCallback],
    ) -> None:
        prefix = self.kind.event_prefix
        self._relay.init()

        def handle_progress(event: NotifyEvent) -> None:
            if not self.is_settled:
                on_progress(event.completion)

        def handle_stop_error(event: NotifyEvent) -> None:
            if not self.is_settled:
                on_stop_error(StopError(event.message))

        self._relay.register(
            event_name(prefix, PROGRESS), handle_progress if on_progress else None, owner=self
        )
        self._relay.register(
            event_name(prefix, STOP_ERROR), handle_stop_error if on_stop_error else None, owner=self
        )
        if self.kind.strategy is CompletionStrategy.NOTIFY:
            self._relay.register(event_name(prefix, COMPLETED), self._handle_completed, owner=self)
            self._relay.register(event_name(prefix, FAILED), self._handle_failed, owner=self)

    def _handle_completed(self, event: NotifyEvent) -> None:
        self._settle(
            SessionOutcome.SUCCESS,
            result=extract_result(self.kind.result_shape, event.params),
        )

    def _handle_failed(self, event: NotifyEvent) -> None:
        self._settle(
            SessionOutcome.FAILURE,
            error=ThetaWebApiError(event.message or "Capture failed", code=event.params.get("code")),
        )

    def on_relay_released(self) -> None:
        """Settle a running capture whose relay was torn down underneath it."""
        if self._state is SessionState.RUNNING:
            self._settle(
                SessionOutcome.CANCELLED,
                error=NotConnectedError("notification relay released during capture"),
            )

    # ------------------------------------------------------------------
    # Runner

    async def _run(self) -> None:
        try:
            response: Optional[CommandResponse] = await self._gateway.call(
                self.kind.start_command,
                self._start_params or None,
                notify=self.kind.event_prefix,
                interval=self._status_interval,
            )
        except Exception as exc:
            self._settle(SessionOutcome.FAILURE, error=exc)
            return

        if response is not None and response.error is not None:
            self._settle(
                SessionOutcome.FAILURE,
                error=ThetaWebApiError(response.error.message, code=response.error.code),
            )
            return

        if self.kind.strategy is CompletionStrategy.NOTIFY:
            if response is None or not response.in_progress:
                self._settle(
                    SessionOutcome.SUCCESS,
                    result=extract_result(self.kind.result_shape, response.results if response else None),
                )
            return

        outcome = await supervise(
            self._poller,
            lambda: self.is_settled,
            interval=self._check_state_interval,
            idle_threshold=self._idle_threshold,
            sleep=self._sleep,
        )
        if outcome is SupervisionOutcome.COMPLETED:
            self._settle(SessionOutcome.SUCCESS, result=None)
        elif outcome is SupervisionOutcome.STATUS_UNAVAILABLE:
            self._settle(SessionOutcome.FAILURE, error=StatusUnavailableError())

    # ------------------------------------------------------------------
    # Settlement

    def _settle(
        self,
        outcome: SessionOutcome,
        *,
        result: Any = None,
        error: Optional[BaseException] = None,
    ) -> bool:
        if self._future is None or self._future.done() or self.is_settled:
            logger.debug("Ignoring %s for settled %s capture", outcome.value, self.kind.name)
            return False

        if error is not None:
            logger.warning("%s capture failed: %s", self.kind.name, error)
            self._future.set_exception(error)
        else:
            logger.info("%s capture completed: %s", self.kind.name, result)
            self._future.set_result(result)

        self._outcome = outcome
        self._state = SessionState.SETTLED
        self._release()
        return True

    def _release(self) -> None:
        self._relay.release_for(self)
        runner = self._runner
        if runner is not None and not runner.done() and runner is not asyncio.current_task():
            runner.cancel()

    def _report_stop_error(self, error: StopError) -> None:
        if self._on_stop_error is None:
            logger.warning("Stop of %s capture failed: %s", self.kind.name, error)
            return
        self._on_stop_error(error)


__all__ = [
    "START_CAPTURE",
    "STOP_CAPTURE",
    "CaptureKind",
    "CaptureSession",
    "CompletionStrategy",
    "ResultShape",
    "SessionOutcome",
    "SessionState",
    "extract_result",
]
