"""Unit tests for AsyncPump."""

import asyncio
import logging
from unittest.mock import MagicMock

from mastermaint.views.async_pump import PUMP_INTERVAL_MS, AsyncPump


def make_root():
    root = MagicMock()
    root.after.return_value = "after#1"
    return root


class TestAsyncPumpStartStop:
    """Tests for scheduling the pump."""

    def test_start_schedules_tick(self):
        """start() activates the pump and schedules the first slice."""
        root = make_root()
        pump = AsyncPump(root)

        pump.start()

        assert pump.is_active
        root.after.assert_called_once_with(PUMP_INTERVAL_MS, pump._tick)
        pump.stop()

    def test_start_twice_schedules_once(self):
        root = make_root()
        pump = AsyncPump(root)
        pump.start()
        pump.start()
        assert root.after.call_count == 1
        pump.stop()

    def test_tick_reschedules(self):
        """Each slice schedules the next one."""
        root = make_root()
        pump = AsyncPump(root)
        pump.start()

        pump._tick()

        assert root.after.call_count == 2
        pump.stop()

    def test_tick_when_stopped_does_nothing(self):
        root = make_root()
        pump = AsyncPump(root)

        pump._tick()

        root.after.assert_not_called()
        pump.stop()

    def test_stop_cancels_after_and_closes_loop(self):
        root = make_root()
        pump = AsyncPump(root)
        pump.start()

        pump.stop()

        assert not pump.is_active
        root.after_cancel.assert_called_once_with("after#1")
        assert pump.loop.is_closed()


class TestAsyncPumpTasks:
    """Tests for running coroutines on the pumped loop."""

    def test_submitted_coroutine_runs_on_tick(self):
        root = make_root()
        pump = AsyncPump(root)
        pump.start()
        results = []

        async def work():
            results.append("done")
            return 42

        task = pump.submit(work())
        assert results == []

        pump._tick()
        pump._tick()

        assert results == ["done"]
        assert task.result() == 42
        assert pump.pending_tasks == 0
        pump.stop()

    def test_failing_task_is_logged(self, caplog):
        """Exceptions from background tasks are logged, not lost."""
        root = make_root()
        pump = AsyncPump(root)
        pump.start()

        async def broken():
            raise RuntimeError("boom")

        with caplog.at_level(logging.ERROR, logger="mastermaint"):
            pump.submit(broken())
            pump._tick()
            pump._tick()

        assert "failed" in caplog.text
        pump.stop()

    def test_stop_cancels_pending_tasks(self):
        root = make_root()
        pump = AsyncPump(root)
        pump.start()

        async def forever():
            await asyncio.sleep(3600)

        task = pump.submit(forever())
        pump._tick()

        pump.stop()

        assert task.cancelled()
        assert pump.loop.is_closed()
