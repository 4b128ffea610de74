"""Paint-deferred scheduler backed by the Qt event loop."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from PyQt6.QtCore import QTimer

__all__ = ["QtScheduler"]

logger = logging.getLogger(__name__)

PUMP_INTERVAL_MS = 10


class QtScheduler:
    """Run callbacks on the next event-loop iteration via ``QTimer.singleShot(0, ...)``.

    A zero-delay single shot fires after pending paint and show events, so a
    scope's widgets exist before its first element is activated.

    ``wake`` keeps a parked navigation moving: the engine hands over its
    ``pump`` and a repeating timer calls it until nothing is left waiting.
    """

    def __init__(self, pump_interval_ms: int = PUMP_INTERVAL_MS) -> None:
        self._pending: List[Callable[[], None]] = []
        self._pump_interval_ms = pump_interval_ms
        self._pump: Optional[Callable[[], int]] = None
        self._pump_timer: Optional[QTimer] = None

    def schedule(self, callback: Callable[[], None]) -> None:
        self._pending.append(callback)
        QTimer.singleShot(0, lambda: self._run(callback))

    def _run(self, callback: Callable[[], None]) -> None:
        try:
            self._pending.remove(callback)
        except ValueError:  # cancelled
            return
        try:
            callback()
        except Exception:  # noqa: BLE001 - a timer slot must not raise into Qt
            logger.exception("deferred focus callback failed")

    def wake(self, pump: Callable[[], int]) -> None:
        self._pump = pump
        if self._pump_timer is None:
            self._pump_timer = QTimer()
            self._pump_timer.setInterval(self._pump_interval_ms)
            self._pump_timer.timeout.connect(self._tick)
        if not self._pump_timer.isActive():
            self._pump_timer.start()

    def _tick(self) -> None:
        pump = self._pump
        try:
            remaining = pump() if pump is not None else 0
        except Exception:  # noqa: BLE001 - a timer slot must not raise into Qt
            logger.exception("pumping parked navigation failed")
            remaining = 0
        if remaining == 0 and self._pump_timer is not None:
            self._pump_timer.stop()

    @property
    def pumping(self) -> bool:
        return self._pump_timer is not None and self._pump_timer.isActive()

    def cancel_all(self) -> int:
        count = len(self._pending)
        self._pending.clear()
        if self._pump_timer is not None:
            self._pump_timer.stop()
        return count

    def pending(self) -> int:
        return len(self._pending)
