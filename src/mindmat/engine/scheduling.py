"""Cooperative yield points for deferred materialization work.

The controller never sleeps. It asks a :class:`Scheduler` to run a callback
later and keeps the returned handle so the work can be cancelled. Two
implementations ship:

- :class:`AsyncioScheduler` defers onto the running asyncio event loop.
- :class:`VirtualScheduler` keeps a manual clock; nothing runs until the
  owner advances time. Used by tests and by offline planning.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Clock plus a single-shot delayed call."""

    def time(self) -> float:
        """Monotonic time in seconds."""
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run *callback* after *delay* seconds; the handle cancels it."""
        ...


class AsyncioScheduler:
    """Defer callbacks onto an asyncio event loop.

    When no loop is given, the running loop is looked up at scheduling time,
    so ``call_later`` must be called from inside the loop.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def time(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


@dataclass(order=True)
class _VirtualHandle:
    when: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class VirtualScheduler:
    """Manual clock scheduler.

    Callbacks fire in (due time, scheduling order) while :meth:`advance`
    moves the clock forward. A callback may schedule further callbacks;
    those fire in the same call if they fall due before the target time.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[_VirtualHandle] = []
        self._counter = itertools.count()

    def time(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> _VirtualHandle:
        handle = _VirtualHandle(self._now + max(delay, 0.0), next(self._counter), callback)
        heapq.heappush(self._queue, handle)
        return handle

    @property
    def pending(self) -> int:
        """Number of scheduled callbacks that have not fired or been cancelled."""
        return sum(1 for h in self._queue if not h.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward by *seconds*, firing due callbacks.

        Returns the number of callbacks run.
        """
        target = self._now + seconds
        fired = 0
        while self._queue and self._queue[0].when <= target:
            handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = handle.when
            handle.callback()
            fired += 1
        self._now = target
        return fired

    def run_pending(self) -> int:
        """Advance to the latest due time, firing everything outstanding."""
        fired = 0
        while live := [h for h in self._queue if not h.cancelled]:
            fired += self.advance(max(h.when for h in live) - self._now)
        self._queue.clear()
        return fired
