"""Runs an asyncio event loop from tkinter's scheduler.

Tkinter owns the main thread, so the asyncio loop is advanced in short
slices from after() callbacks instead of running forever. Coroutines
submitted here therefore execute on the Tk thread and may touch widgets
and shared state directly.

Usage:
    pump = AsyncPump(root)
    pump.start()
    pump.submit(session.load_all())
    ...
    pump.stop()
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import TYPE_CHECKING, Any

from ..debug_trace import logger

if TYPE_CHECKING:
    import tkinter as tk

# Interval between loop slices in milliseconds
PUMP_INTERVAL_MS = 20


class AsyncPump:
    """Advances an asyncio loop from tkinter's after() scheduler."""

    def __init__(
        self,
        tk_root: tk.Misc,
        loop: asyncio.AbstractEventLoop | None = None,
        interval_ms: int = PUMP_INTERVAL_MS,
    ) -> None:
        """Initialize the pump.

        Args:
            tk_root: Tkinter widget used for after() scheduling
            loop: Event loop to drive (a new one is created when omitted)
            interval_ms: Delay between slices
        """
        self._tk_root = tk_root
        self._loop = loop or asyncio.new_event_loop()
        self._interval_ms = interval_ms
        self._after_id: str | None = None
        self._active = False
        self._tasks: set[asyncio.Task] = set()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    @property
    def is_active(self) -> bool:
        """Whether the pump is currently scheduled."""
        return self._active

    @property
    def pending_tasks(self) -> int:
        """Number of submitted tasks that have not finished."""
        return len(self._tasks)

    def _schedule_tick(self) -> None:
        if not self._active:
            return
        self._after_id = self._tk_root.after(self._interval_ms, self._tick)

    def _tick(self) -> None:
        """Run one slice of the event loop, then reschedule."""
        if not self._active:
            return

        # A modal dialog opened by a running task spins a nested Tk loop that
        # lands here again; the asyncio loop must not be re-entered.
        if not self._loop.is_running():
            self._loop.call_soon(self._loop.stop)
            self._loop.run_forever()

        self._schedule_tick()

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task %s failed", task.get_name(), exc_info=exc)

    def start(self) -> None:
        """Start pumping the loop."""
        if self._active:
            return
        self._active = True
        self._schedule_tick()

    def submit(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        """Schedule a coroutine on the pumped loop.

        Returns:
            The task wrapping the coroutine. Failures are logged.
        """
        task = self._loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def stop(self) -> None:
        """Stop pumping, cancel unfinished tasks and close the loop."""
        self._active = False
        if self._after_id:
            try:
                self._tk_root.after_cancel(self._after_id)
            except Exception:
                logger.debug("after_cancel failed; widget already destroyed")
        self._after_id = None

        if self._loop.is_closed():
            return

        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending and not self._loop.is_running():
            self._loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        if not self._loop.is_running():
            self._loop.close()
