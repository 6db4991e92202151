"""
LinkView Scheduler - Turn-Based Debouncing
==========================================

Coalesces bursts of recompute requests into one execution per scheduling
turn. The turn primitive is injected; anything with ``call_soon(callback)``
works:

- ``TaskQueue``: explicit run loop, the caller decides when a turn ends
- ``AsyncioScheduler``: defers to ``loop.call_soon`` of an asyncio loop

Usage:
    queue = TaskQueue()
    debouncer = Debouncer(queue, recompute)
    debouncer.trigger()
    debouncer.trigger()      # coalesced
    queue.run_pending()      # recompute runs once
"""

import asyncio
import logging
from collections import deque
from typing import Callable, Deque, Optional


class TaskQueue:
    """Single-threaded deferred call queue drained one turn at a time."""

    def __init__(self):
        self._pending: Deque[Callable[[], None]] = deque()

    def call_soon(self, callback: Callable[[], None]) -> None:
        self._pending.append(callback)

    def run_pending(self) -> int:
        """
        Run the callbacks queued before this call.

        Callbacks queued while the turn runs wait for the next turn.

        Returns:
            Number of callbacks run
        """
        count = len(self._pending)
        for _ in range(count):
            callback = self._pending.popleft()
            callback()
        return count

    def run_until_idle(self, max_turns: int = 1000) -> int:
        """Run turns until the queue is empty; returns the callbacks run."""
        total = 0
        for _ in range(max_turns):
            if not self._pending:
                break
            total += self.run_pending()
        else:
            if self._pending:
                raise RuntimeError(f"Task queue still busy after {max_turns} turns")
        return total

    def __len__(self) -> int:
        return len(self._pending)

    def __repr__(self) -> str:
        return f"TaskQueue(pending={len(self._pending)})"


class AsyncioScheduler:
    """Schedules turns on an asyncio event loop (the running one by default)."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_soon(self, callback: Callable[[], None]) -> None:
        loop = self._loop if self._loop is not None else asyncio.get_running_loop()
        loop.call_soon(callback)


class Debouncer:
    """
    Pending flag plus one scheduled callback.

    Guarantees:
    - N triggers before the scheduled turn run the callback exactly once
    - at least one run follows the last trigger
    - the callback reads its inputs when it runs, not when triggered
    """

    def __init__(self, scheduler, callback: Callable[[], None]):
        self._scheduler = scheduler
        self._callback = callback
        self._pending = False
        self._generation = 0
        self.runs = 0
        self.triggers = 0

    @property
    def pending(self) -> bool:
        return self._pending

    def trigger(self) -> None:
        self.triggers += 1
        if self._pending:
            return
        self._pending = True
        self._generation += 1
        generation = self._generation
        self._scheduler.call_soon(lambda: self._fire(generation))

    def _fire(self, generation: int) -> None:
        # superseded by flush() or cancel()
        if not self._pending or generation != self._generation:
            return
        self._run()

    def _run(self) -> None:
        self._pending = False
        self.runs += 1
        logging.debug(f"Debounced run #{self.runs} after {self.triggers} triggers")
        self._callback()

    def flush(self) -> bool:
        """Run a pending callback now; returns whether one ran."""
        if not self._pending:
            return False
        self._generation += 1
        self._run()
        return True

    def cancel(self) -> bool:
        """Drop a pending run without executing it."""
        if not self._pending:
            return False
        self._pending = False
        self._generation += 1
        return True

    def __repr__(self) -> str:
        return f"Debouncer(pending={self._pending}, runs={self.runs})"


__all__ = ["AsyncioScheduler", "Debouncer", "TaskQueue"]
