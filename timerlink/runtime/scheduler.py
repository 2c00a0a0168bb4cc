"""Single-actor schedulers for a peer.

Every transport event, tick and timeout of a peer runs through one Scheduler,
so component state never has concurrent writers.

Two implementations:
- AsyncioScheduler: binds to a running asyncio event loop (real time)
- ManualScheduler: virtual clock advanced explicitly (tests, offline simulation)
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable
from typing import Any, Protocol


class Handle(Protocol):
    """Cancellable scheduled callback."""

    def cancel(self) -> None: ...

    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    """Event-loop facade shared by every component of a peer."""

    def now(self) -> float:
        """Current time in seconds on this scheduler's clock."""
        ...

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> Handle:
        """Queue a callback to run on the actor as soon as possible."""
        ...

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> Handle:
        """Run a callback on the actor after `delay` seconds."""
        ...


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop.

    call_soon uses call_soon_threadsafe so transport threads can post events
    into the loop's inbox.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def now(self) -> float:
        return self._loop.time()

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> Handle:
        return self._loop.call_soon_threadsafe(callback, *args)

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> Handle:
        return self._loop.call_later(max(0.0, delay), callback, *args)


class ManualHandle:
    """Handle returned by ManualScheduler."""

    __slots__ = ("_cancelled", "args", "callback", "when")

    def __init__(self, when: float, callback: Callable[..., Any], args: tuple[Any, ...]) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler:
    """Virtual-clock scheduler.

    Time only moves when advance() is called. Callbacks due at the same
    instant run in the order they were scheduled; callbacks scheduled while
    running (including call_soon) run within the same advance() if they fall
    inside the window.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[tuple[float, int, ManualHandle]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> ManualHandle:
        return self._push(self._now, callback, args)

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ManualHandle:
        return self._push(self._now + max(0.0, delay), callback, args)

    def _push(self, when: float, callback: Callable[..., Any], args: tuple[Any, ...]) -> ManualHandle:
        handle = ManualHandle(when, callback, args)
        heapq.heappush(self._queue, (when, next(self._counter), handle))
        return handle

    @property
    def pending(self) -> int:
        """Number of scheduled, non-cancelled callbacks."""
        return sum(1 for _, _, handle in self._queue if not handle.cancelled())

    def run_ready(self) -> int:
        """Run everything due at the current instant without moving the clock."""
        return self.advance(0.0)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running every callback that falls due.

        Args:
            seconds: How far to move the virtual clock

        Returns:
            Number of callbacks executed
        """
        deadline = self._now + max(0.0, seconds)
        executed = 0
        while self._queue and self._queue[0][0] <= deadline:
            when, _, handle = heapq.heappop(self._queue)
            if handle.cancelled():
                continue
            self._now = max(self._now, when)
            handle.callback(*handle.args)
            executed += 1
        self._now = deadline
        return executed

    def advance_to(self, moment: float) -> int:
        """Advance the clock to an absolute time."""
        return self.advance(moment - self._now)

