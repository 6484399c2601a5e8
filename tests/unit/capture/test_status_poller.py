"""Unit tests for StatusPoller, IdleConfirmation and supervise()."""

import pytest

from theta_capture.capture.status_poller import (
    CaptureStatus,
    IdleConfirmation,
    StatusPoller,
    SupervisionOutcome,
    supervise,
)
from theta_capture.connection.retry_policy import fixed_delay_policy
from theta_capture.core.errors import NotConnectedError


@pytest.fixture
def poller(fake_gateway, clock):
    return StatusPoller(fake_gateway, fixed_delay_policy(3, 1.0, sleep=clock.sleep))


class TestCaptureStatus:

    def test_known_values(self):
        assert CaptureStatus.from_raw("shooting") is CaptureStatus.SHOOTING
        assert CaptureStatus.from_raw("idle") is CaptureStatus.IDLE

    def test_unrecognised_value_is_unknown(self):
        assert CaptureStatus.from_raw("selfTimerCountdown") is CaptureStatus.UNKNOWN
        assert CaptureStatus.from_raw(None) is CaptureStatus.UNKNOWN


class TestStatusPoller:

    @pytest.mark.asyncio
    async def test_returns_status(self, fake_gateway, poller):
        fake_gateway.script_states("downloading")

        assert await poller.poll_status() is CaptureStatus.DOWNLOADING

    @pytest.mark.asyncio
    async def test_recovers_within_budget(self, fake_gateway, poller):
        fake_gateway.script_states(NotConnectedError("timeout"), "idle")

        assert await poller.poll_status() is CaptureStatus.IDLE
        assert fake_gateway.state_calls == 2

    @pytest.mark.asyncio
    async def test_none_after_exactly_three_attempts(self, fake_gateway, clock, poller):
        fake_gateway.script_states(*(NotConnectedError("timeout") for _ in range(4)))

        assert await poller.poll_status() is None
        assert fake_gateway.state_calls == 3
        assert clock.sleeps == [1.0, 1.0]

    @pytest.mark.asyncio
    async def test_missing_capture_status_is_unknown(self, fake_gateway, poller):
        fake_gateway.script_states({"batteryLevel": 0.5})

        assert await poller.poll_status() is CaptureStatus.UNKNOWN


class TestIdleConfirmation:

    def test_sequence_completes_on_fifth_observation(self):
        confirmation = IdleConfirmation(2)
        sequence = ["shooting", "idle", "shooting", "idle", "idle"]

        results = [confirmation.observe(CaptureStatus(value)) for value in sequence]

        assert results == [False, False, False, False, True]

    def test_non_idle_resets_counter(self):
        confirmation = IdleConfirmation(2)
        confirmation.observe(CaptureStatus.IDLE)
        confirmation.observe(CaptureStatus.SAVING)

        assert confirmation.remaining == 2

    def test_threshold_must_be_positive(self):
        with pytest.raises(ValueError):
            IdleConfirmation(0)


class TestSupervise:

    @pytest.mark.asyncio
    async def test_completes_after_idle_confirmed(self, fake_gateway, clock, poller):
        fake_gateway.script_states("shooting", "idle", "shooting", "idle", "idle")

        outcome = await supervise(poller, lambda: False, interval=1.0, sleep=clock.sleep)

        assert outcome is SupervisionOutcome.COMPLETED
        assert fake_gateway.state_calls == 5
        assert clock.sleeps == [1.0] * 5

    @pytest.mark.asyncio
    async def test_status_unavailable(self, fake_gateway, clock, poller):
        fake_gateway.script_states("shooting", *(NotConnectedError("timeout") for _ in range(3)))

        outcome = await supervise(poller, lambda: False, sleep=clock.sleep)

        assert outcome is SupervisionOutcome.STATUS_UNAVAILABLE
        assert fake_gateway.state_calls == 4

    @pytest.mark.asyncio
    async def test_abandoned_once_settled_elsewhere(self, fake_gateway, clock, poller):
        fake_gateway.script_states("shooting", "shooting")
        settled = []

        async def sleep(delay):
            await clock.sleep(delay)
            if len(clock.sleeps) == 2:
                settled.append(True)

        outcome = await supervise(poller, lambda: bool(settled), sleep=sleep)

        assert outcome is SupervisionOutcome.ABANDONED
        assert fake_gateway.state_calls == 1
