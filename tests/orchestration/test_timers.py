"""
Tests for the cancellable debounce timer.
"""

import asyncio
import logging

import pytest

from smartchecker.services.timers import CancellableTimer


class Recorder:
    def __init__(self, delay=0.0, error=None):
        self.calls = 0
        self.finished = 0
        self.delay = delay
        self.error = error

    async def __call__(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        self.finished += 1


class TestCancellableTimer:
    @pytest.mark.asyncio
    async def test_reschedule_replaces_pending_fire(self):
        callback = Recorder()
        timer = CancellableTimer(callback)
        timer.schedule(20)
        timer.schedule(20)
        timer.schedule(20)
        assert timer.pending

        await timer.join()

        assert callback.calls == 1
        assert not timer.pending and not timer.running

    @pytest.mark.asyncio
    async def test_cancel_before_fire(self):
        callback = Recorder()
        timer = CancellableTimer(callback)
        timer.schedule(20)
        timer.cancel()
        await asyncio.sleep(0.05)

        assert callback.calls == 0
        assert not timer.pending

    @pytest.mark.asyncio
    async def test_cancel_never_interrupts_running_callback(self):
        callback = Recorder(delay=0.03)
        timer = CancellableTimer(callback)
        timer.schedule(0)
        await asyncio.sleep(0.01)
        assert timer.running

        timer.cancel()
        await timer.join()

        assert callback.finished == 1

    @pytest.mark.asyncio
    async def test_callback_errors_are_logged(self, caplog):
        timer = CancellableTimer(Recorder(error=RuntimeError("kaboom")), name="probe")
        with caplog.at_level(logging.ERROR):
            timer.schedule(0)
            await timer.join()

        assert "probe callback failed: kaboom" in caplog.text

    @pytest.mark.asyncio
    async def test_aclose_cancels_everything(self):
        callback = Recorder(delay=1)
        timer = CancellableTimer(callback)
        timer.schedule(0)
        await asyncio.sleep(0.01)
        timer.schedule(500)

        await timer.aclose()

        assert callback.calls == 1
        assert callback.finished == 0
        assert not timer.pending and not timer.running
