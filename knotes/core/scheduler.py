"""
Scheduling
==========

Cancellable one-shot tasks and background work. The controller only
talks to the Scheduler and TaskRunner interfaces; the GUI backs them with
Tk's after() and a worker thread pool, the CLI with a LoopScheduler
polled from its own loop and an InlineRunner.
"""

import heapq
import itertools
import time
from typing import Any, Callable, List, Optional, Tuple


class ScheduledTask:
    """Handle returned by call_later, usable with cancel()."""

    def __init__(self, callback: Callable[[], None], handle=None):
        self.callback = callback
        self.handle = handle
        self.cancelled = False
        self.done = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.done)

    def run(self) -> None:
        if not self.pending:
            return
        self.done = True
        self.callback()


class Scheduler:
    """Interface for running a callback once after a delay."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledTask:
        raise NotImplementedError

    def cancel(self, task: ScheduledTask) -> None:
        task.cancelled = True


class LoopScheduler(Scheduler):
    """
    Single-threaded scheduler for loops that poll it.
    Nothing runs until run_pending() is called, so tasks always execute on
    the caller's thread.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._queue: List[Tuple[float, int, ScheduledTask]] = []
        self._counter = itertools.count()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask(callback)
        due = self.clock() + delay_ms / 1000.0
        heapq.heappush(self._queue, (due, next(self._counter), task))
        return task

    def run_pending(self) -> int:
        """Run every task that is due. Returns how many ran."""
        ran = 0
        now = self.clock()
        while self._queue and self._queue[0][0] <= now:
            _, _, task = heapq.heappop(self._queue)
            if task.pending:
                task.run()
                ran += 1
        return ran

    def next_delay(self) -> Optional[float]:
        """Seconds until the next live task is due, or None if idle."""
        while self._queue and not self._queue[0][2].pending:
            heapq.heappop(self._queue)
        if not self._queue:
            return None
        return max(0.0, self._queue[0][0] - self.clock())


class TaskRunner:
    """
    Interface for running blocking work, typically a store call.

    on_done(result, error) is called on the owning loop's thread once
    func has finished; exactly one of result and error is meaningful.
    """

    def submit(
        self,
        func: Callable[[], Any],
        on_done: Callable[[Any, Optional[BaseException]], None]
    ) -> None:
        raise NotImplementedError

    def shutdown(self) -> None:
        """Wait for submitted work and release resources."""


class InlineRunner(TaskRunner):
    """Runs the work immediately on the caller's thread."""

    def submit(
        self,
        func: Callable[[], Any],
        on_done: Callable[[Any, Optional[BaseException]], None]
    ) -> None:
        try:
            result = func()
        except Exception as e:
            on_done(None, e)
            return
        on_done(result, None)
