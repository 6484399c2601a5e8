"""Unit tests for the logged task helpers."""

import asyncio
import logging

import pytest

from theta_capture.core.asyncio_utils import cancel_and_wait, create_logged_task


class TestCreateLoggedTask:

    @pytest.mark.asyncio
    async def test_exception_is_logged(self, caplog):
        async def boom():
            raise RuntimeError("poll loop died")

        with caplog.at_level(logging.ERROR, logger="theta_capture"):
            task = create_logged_task(boom(), context="poll-loop")
            await asyncio.gather(task, return_exceptions=True)
            await asyncio.sleep(0)

        assert any("poll-loop" in message for message in caplog.messages)

    @pytest.mark.asyncio
    async def test_pending_set_tracks_task(self):
        pending = set()
        gate = asyncio.Event()

        task = create_logged_task(gate.wait(), pending=pending)
        assert task in pending

        gate.set()
        await task
        await asyncio.sleep(0)
        assert task not in pending

    @pytest.mark.asyncio
    async def test_cancellation_is_not_logged(self, caplog):
        task = create_logged_task(asyncio.sleep(60), context="sleeper")

        with caplog.at_level(logging.ERROR, logger="theta_capture"):
            await cancel_and_wait(task)
            await asyncio.sleep(0)

        assert task.cancelled()
        assert not caplog.messages


class TestCancelAndWait:

    @pytest.mark.asyncio
    async def test_none_and_done_tasks_are_ignored(self):
        await cancel_and_wait(None)

        done = asyncio.ensure_future(asyncio.sleep(0))
        await done
        await cancel_and_wait(done)

        assert not done.cancelled()
