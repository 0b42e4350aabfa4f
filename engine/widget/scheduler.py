"""
Widget Engine — Scheduler

The builder's debounce timer goes through this port so tests can drive
time by hand.

Callbacks are coroutine functions. LoopScheduler runs them on the asyncio
event loop; ManualScheduler runs them when a test advances its clock.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

Callback = Callable[[], Awaitable[None]]


class Timer:
    """Handle for a scheduled callback."""

    def cancel(self) -> None:
        raise NotImplementedError

    @property
    def cancelled(self) -> bool:
        raise NotImplementedError


class Scheduler:
    """Abstract scheduler. Subclass for event-loop or virtual time."""

    def call_later(self, delay: float, callback: Callback) -> Timer:
        """Run `callback` once after `delay` seconds unless cancelled first."""
        raise NotImplementedError


# ---------------------------------------------------------------------------
# asyncio
# ---------------------------------------------------------------------------


class _LoopTimer(Timer):
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        # Only the pending timer; a callback already running is left alone
        self._handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()


class LoopScheduler(Scheduler):
    """Runs callbacks as tasks on the running event loop."""

    def __init__(self) -> None:
        # Strong references so running callbacks aren't garbage collected
        self._tasks: set[asyncio.Task] = set()

    def call_later(self, delay: float, callback: Callback) -> Timer:
        loop = asyncio.get_running_loop()
        handle = loop.call_later(delay, self._spawn, callback)
        return _LoopTimer(handle)

    def _spawn(self, callback: Callback) -> None:
        task = asyncio.ensure_future(callback())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for callbacks that have already started."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


# ---------------------------------------------------------------------------
# Virtual clock (tests)
# ---------------------------------------------------------------------------


class _ManualTimer(Timer):
    def __init__(self, deadline: float, seq: int, callback: Callback):
        self.deadline = deadline
        self.seq = seq
        self.callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(Scheduler):
    """
    Virtual clock. Nothing runs until advance() is awaited; due callbacks
    then run in deadline order (ties in scheduling order) and are awaited.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: list[_ManualTimer] = []
        self._seq = 0

    def call_later(self, delay: float, callback: Callback) -> Timer:
        self._seq += 1
        timer = _ManualTimer(self.now + delay, self._seq, callback)
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> int:
        """Number of timers still waiting to fire."""
        return sum(1 for t in self._timers if not t.cancelled)

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.deadline <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.deadline, t.seq))
            self._timers.remove(timer)
            self.now = timer.deadline
            await timer.callback()
        self._timers = [t for t in self._timers if not t.cancelled]
        self.now = target
