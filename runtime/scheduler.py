"""
Cooperative debounce scheduler.

Tasks are keyed (one per editing session). Scheduling a task for a key
that already has one pending cancels the older task, so a burst of calls
collapses into a single run of the latest callback once the delay has
elapsed without another call.

The scheduler owns no thread. The host advances it from its own loop:

    debouncer = Debouncer(delay=0.3)
    debouncer.schedule("session-1", recompute)
    ...
    debouncer.update(dt)   # once per frame / tick
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Hashable

logger = logging.getLogger(__name__)


@dataclass
class ScheduledTask:
    """A pending callback and the clock time it becomes due."""
    key: Hashable
    callback: Callable[[], None]
    due: float
    cancelled: bool = False
    done: bool = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def is_pending(self) -> bool:
        return not (self.cancelled or self.done)


class Debouncer:
    """
    Keyed last-call-wins scheduler driven by update(dt).

    Attributes:
        delay: Default quiescence window in seconds
        clock: Seconds advanced through update() so far
    """

    def __init__(self, delay: float = 0.3):
        if delay < 0:
            raise ValueError(f"Debounce delay must be non-negative, got {delay}")
        self.delay = delay
        self.clock = 0.0
        self._pending: dict[Hashable, ScheduledTask] = {}

    def schedule(
        self,
        key: Hashable,
        callback: Callable[[], None],
        delay: float | None = None,
    ) -> ScheduledTask:
        """
        Schedule callback for key, replacing any task still pending for it.

        Args:
            key: Session key; at most one task per key is pending
            callback: Zero-argument callable
            delay: Override for the default delay

        Returns:
            The new task
        """
        previous = self._pending.get(key)
        if previous is not None:
            previous.cancel()

        wait = self.delay if delay is None else delay
        task = ScheduledTask(key=key, callback=callback, due=self.clock + wait)
        self._pending[key] = task
        return task

    def cancel(self, key: Hashable) -> bool:
        """Cancel the pending task for key. Returns False if none was pending."""
        task = self._pending.pop(key, None)
        if task is None:
            return False
        task.cancel()
        return True

    def is_pending(self, key: Hashable) -> bool:
        return key in self._pending

    def pending_keys(self) -> list[Hashable]:
        return list(self._pending)

    def update(self, dt: float) -> int:
        """
        Advance the clock and run every task that came due.

        Returns:
            Number of callbacks run
        """
        self.clock += dt
        due = [task for task in self._pending.values() if task.due <= self.clock]
        due.sort(key=lambda task: task.due)
        ran = 0
        for task in due:
            # A callback may have rescheduled this key already.
            if self._pending.get(task.key) is task:
                del self._pending[task.key]
                self._run(task)
                ran += 1
        return ran

    def flush(self, key: Hashable | None = None) -> int:
        """Run the pending task for key (or every pending task) right now."""
        if key is not None:
            task = self._pending.pop(key, None)
            if task is None:
                return 0
            self._run(task)
            return 1

        tasks = sorted(self._pending.values(), key=lambda task: task.due)
        self._pending.clear()
        for task in tasks:
            self._run(task)
        return len(tasks)

    def _run(self, task: ScheduledTask) -> None:
        task.done = True
        try:
            task.callback()
        except Exception:
            logger.exception("Debounced task for %r failed", task.key)
