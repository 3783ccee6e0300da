"""
Tick Scheduler
==============

Drives independent periodic tasks from an externally supplied clock.

The scheduler never reads wall-clock time itself: callers feed it elapsed
milliseconds (a frame clock, an environment step, or a test), and it fires
every task that came due, in chronological order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List

logger = logging.getLogger(__name__)


@dataclass
class PeriodicTask:
    """A named callback fired every period_ms while the scheduler runs."""
    name: str
    period_ms: float
    callback: Callable[[], None]
    next_due_ms: float = 0.0
    fired: int = 0


class TickScheduler:
    """
    Cooperative scheduler for fixed-period tasks sharing one state object.

    All tasks start and stop together. Stopping from inside a callback
    prevents any further callback in the same advance() call.
    """

    def __init__(self):
        self._tasks: List[PeriodicTask] = []
        self._now_ms: float = 0.0
        self._running: bool = False

    @property
    def running(self) -> bool:
        """True while tasks are armed."""
        return self._running

    @property
    def now_ms(self) -> float:
        """Scheduler time in milliseconds (only advances while running)."""
        return self._now_ms

    @property
    def tasks(self) -> List[PeriodicTask]:
        return list(self._tasks)

    def add_task(
        self,
        name: str,
        period_ms: float,
        callback: Callable[[], None]
    ) -> PeriodicTask:
        """
        Register a periodic task.

        Args:
            name: Identifier used in logs.
            period_ms: Period in milliseconds. Must be positive.
            callback: Zero-argument function fired on each period.

        Returns:
            The registered task.

        Raises:
            ValueError: If period_ms is not positive.
        """
        if period_ms <= 0:
            raise ValueError(f"Task '{name}' period must be positive, got {period_ms}")

        task = PeriodicTask(
            name=name,
            period_ms=period_ms,
            callback=callback,
            next_due_ms=self._now_ms + period_ms
        )
        self._tasks.append(task)
        return task

    def start(self) -> None:
        """Arm every task one full period from now."""
        for task in self._tasks:
            task.next_due_ms = self._now_ms + task.period_ms
        self._running = True
        logger.debug("Scheduler started at %.1f ms with %d tasks", self._now_ms, len(self._tasks))

    def stop(self) -> None:
        """Disarm all tasks."""
        if self._running:
            logger.debug("Scheduler stopped at %.1f ms", self._now_ms)
        self._running = False

    def reset(self) -> None:
        """Stop all tasks and rewind scheduler time to zero."""
        self.stop()
        self._now_ms = 0.0
        for task in self._tasks:
            task.next_due_ms = task.period_ms
            task.fired = 0

    def advance(self, elapsed_ms: float) -> int:
        """
        Move scheduler time forward and fire every task that came due.

        Args:
            elapsed_ms: Milliseconds since the previous call.

        Returns:
            Number of callbacks fired.

        Raises:
            ValueError: If elapsed_ms is negative.
        """
        if elapsed_ms < 0:
            raise ValueError(f"elapsed_ms must be non-negative, got {elapsed_ms}")

        if not self._running or not self._tasks:
            return 0

        target = self._now_ms + elapsed_ms
        fired = 0

        while self._running:
            # min() keeps the first of equal keys, so ties go to registration order
            task = min(self._tasks, key=lambda t: t.next_due_ms)
            if task.next_due_ms > target:
                break

            self._now_ms = task.next_due_ms
            task.next_due_ms += task.period_ms
            task.fired += 1
            task.callback()
            fired += 1

        if self._running:
            self._now_ms = target

        return fired
