"""Deferred-activation schedulers.

The engine never starts timers itself. Activations that must wait for the
rendering layer (scope restoration, auto-activating a freshly opened scope,
click-advance) go through an injected ``Scheduler``. Tests use
``ImmediateScheduler`` or ``QueuedScheduler``; the Qt binding provides a
paint-deferred one (``focusnav.qt.QtScheduler``).
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Deque, Protocol

__all__ = ["Scheduler", "ImmediateScheduler", "QueuedScheduler"]


class Scheduler(Protocol):  # noqa: D401 - structural
    def schedule(self, callback: Callable[[], None]) -> None: ...  # pragma: no cover


class ImmediateScheduler:
    """Runs callbacks synchronously at schedule time."""

    def schedule(self, callback: Callable[[], None]) -> None:
        callback()


class QueuedScheduler:
    """Holds callbacks until ``run_pending`` is called."""

    def __init__(self) -> None:
        self._queue: Deque[Callable[[], None]] = deque()

    def schedule(self, callback: Callable[[], None]) -> None:
        self._queue.append(callback)

    def run_pending(self) -> int:
        """Run queued callbacks (including ones queued while running); returns count."""
        ran = 0
        while self._queue:
            self._queue.popleft()()
            ran += 1
        return ran

    def pending(self) -> int:
        return len(self._queue)
