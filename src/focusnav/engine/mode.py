"""Navigation mode classifier.

Observes input signals and derives the current modality:

 - ``auto`` resolves to ``keyboard`` on the first relevant signal
 - navigation key while ``pointer``               -> ``hybrid``
 - pointer movement past the threshold, or a click
   on a navigable element, while ``keyboard``     -> ``hybrid``
 - ``hybrid`` settles back to a single modality once only one kind of
   input has been seen for ``settle_seconds`` (see ``settle``)
 - callers may set any mode explicitly

The mode is informational; it never gates navigation.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Callable, Deque, List, Optional, Tuple

from config import settings

from .models import NavigationMode

__all__ = ["ModeClassifier"]

logger = logging.getLogger(__name__)

ModeListener = Callable[[NavigationMode, NavigationMode], None]

_TOGGLE_ORDER = {
    NavigationMode.AUTO: NavigationMode.KEYBOARD,
    NavigationMode.KEYBOARD: NavigationMode.POINTER,
    NavigationMode.POINTER: NavigationMode.HYBRID,
    NavigationMode.HYBRID: NavigationMode.KEYBOARD,
}


class ModeClassifier:
    def __init__(
        self,
        *,
        initial_mode: NavigationMode = NavigationMode.AUTO,
        pointer_threshold: float = settings.DEFAULT_POINTER_THRESHOLD,
        settle_seconds: float = settings.DEFAULT_MODE_SETTLE_SECONDS,
        history_length: int = settings.DEFAULT_MODE_HISTORY,
        navigation_keys: frozenset[str] = settings.NAVIGATION_KEYS,
        clock: Callable[[], float] = time.monotonic,
        on_change: Optional[ModeListener] = None,
    ) -> None:
        self._initial = initial_mode
        self._mode = initial_mode
        self._threshold = pointer_threshold
        self._settle_seconds = settle_seconds
        self._keys = navigation_keys
        self._clock = clock
        self._on_change = on_change
        self._history: Deque[NavigationMode] = deque([initial_mode], maxlen=history_length)
        self._last_position: Tuple[float, float] = (0.0, 0.0)
        self._last_keyboard_at: Optional[float] = None
        self._last_pointer_at: Optional[float] = None
        self._last_interaction = "none"

    # Signals ----------------------------------------------------------
    def on_key(self, key: str) -> bool:
        """Feed a key press; returns True if the mode changed."""
        if key not in self._keys:
            return False
        self._last_keyboard_at = self._clock()
        self._last_interaction = "keyboard"
        self._resolve_auto()
        if self._mode is NavigationMode.POINTER:
            return self._transition(NavigationMode.HYBRID, "keyboard navigation")
        return False

    def on_pointer_move(self, x: float, y: float) -> bool:
        lx, ly = self._last_position
        if abs(x - lx) <= self._threshold and abs(y - ly) <= self._threshold:
            return False
        self._last_position = (x, y)
        self._last_pointer_at = self._clock()
        self._last_interaction = "pointer"
        self._resolve_auto()
        if self._mode is NavigationMode.KEYBOARD:
            return self._transition(NavigationMode.HYBRID, "pointer movement")
        return False

    def on_click(self, navigable: bool = True) -> bool:
        if not navigable:
            return False
        self._last_pointer_at = self._clock()
        self._last_interaction = "pointer"
        self._resolve_auto()
        if self._mode is NavigationMode.KEYBOARD:
            return self._transition(NavigationMode.HYBRID, "pointer click")
        return False

    def settle(self, now: Optional[float] = None) -> bool:
        """Collapse ``hybrid`` to the only modality active in the settle window."""
        if self._mode is not NavigationMode.HYBRID:
            return False
        now = self._clock() if now is None else now
        kb, ptr = self._last_keyboard_at, self._last_pointer_at
        kb_idle = kb is None or now - kb >= self._settle_seconds
        ptr_idle = ptr is None or now - ptr >= self._settle_seconds
        if kb_idle and not ptr_idle:
            return self._transition(NavigationMode.POINTER, "pointer-only activity")
        if ptr_idle and not kb_idle:
            return self._transition(NavigationMode.KEYBOARD, "keyboard-only activity")
        return False

    # Explicit control -------------------------------------------------
    def set_mode(self, mode: NavigationMode) -> bool:
        return self._transition(NavigationMode(mode), "explicit")

    def toggle(self) -> NavigationMode:
        self._transition(_TOGGLE_ORDER[self._mode], "toggle")
        return self._mode

    def reset(self) -> None:
        self._transition(NavigationMode.KEYBOARD, "reset")
        self._last_interaction = "none"

    # Introspection ----------------------------------------------------
    @property
    def mode(self) -> NavigationMode:
        return self._mode

    @property
    def last_interaction(self) -> str:
        return self._last_interaction

    @property
    def last_keyboard_at(self) -> Optional[float]:
        return self._last_keyboard_at

    @property
    def last_pointer_at(self) -> Optional[float]:
        return self._last_pointer_at

    def mode_history(self) -> List[NavigationMode]:
        return list(self._history)

    # Internal ---------------------------------------------------------
    def _resolve_auto(self) -> None:
        if self._mode is NavigationMode.AUTO:
            self._transition(NavigationMode.KEYBOARD, "first input signal")

    def _transition(self, new: NavigationMode, why: str) -> bool:
        old = self._mode
        if new is old:
            return False
        self._mode = new
        self._history.append(new)
        logger.debug("navigation mode %s -> %s (%s)", old.value, new.value, why)
        if self._on_change is not None:
            self._on_change(old, new)
        return True
