"""EventBus for engine state-change notifications.

Synchronous publish/subscribe used by the rendering layer to learn when to
re-render (active element, scope stack, navigation mode, step statuses).

Goals:
 - No Qt dependency; handlers run on the publishing thread
 - Error isolation: a failing handler is recorded and never breaks the cycle
 - One-shot subscriptions and cancellable handles
 - ``ALL`` wildcard for observers that re-render on any change
 - Optional trace ring buffer for diagnostics
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from threading import RLock
from time import perf_counter
from typing import Any, Deque, Dict, List, Protocol, Tuple

__all__ = [
    "FocusEvent",
    "ALL",
    "Event",
    "EventBus",
    "EventHandler",
    "Subscription",
]

ALL = "*"


class FocusEvent(str, Enum):
    ELEMENT_REGISTERED = "element_registered"
    ELEMENT_UNREGISTERED = "element_unregistered"
    ELEMENT_UPDATED = "element_updated"
    FOCUS_CHANGED = "focus_changed"
    SCOPE_PUSHED = "scope_pushed"
    SCOPE_POPPED = "scope_popped"
    MODE_CHANGED = "mode_changed"
    HISTORY_CHANGED = "history_changed"
    STEPS_UPDATED = "steps_updated"
    NAVIGATION_DROPPED = "navigation_dropped"
    INVALID_JUMP = "invalid_jump"
    ERROR_OCCURRED = "error_occurred"
    LOG_RECORD_ADDED = "log_record_added"
    ENGINE_DISPOSED = "engine_disposed"


@dataclass
class Event:
    name: str
    payload: Any
    timestamp: float


class EventHandler(Protocol):  # noqa: D401 - protocol signature docs implicit
    def __call__(self, event: Event) -> None: ...  # pragma: no cover - structural


@dataclass
class Subscription:
    event: str
    handler: EventHandler
    once: bool
    active: bool = True

    def cancel(self) -> None:
        self.active = False


def _key(name: str | FocusEvent) -> str:
    return name.value if isinstance(name, FocusEvent) else name


class EventBus:
    """Synchronous dispatcher.

    Subscriber lists are copied under the lock and handlers run without it,
    so a handler may subscribe or unsubscribe from within a callback.
    Wildcard (``ALL``) subscribers run after the named ones.
    """

    DEFAULT_TRACE_CAPACITY = 50

    def __init__(self) -> None:
        self._lock = RLock()
        self._subs: Dict[str, List[Subscription]] = {}
        self._errors: List[Tuple[Event, BaseException]] = []
        self._tracing = False
        self._traces: Deque[Tuple[str, float, str]] = deque(maxlen=self.DEFAULT_TRACE_CAPACITY)

    # Subscription management ------------------------------------------
    def subscribe(self, name: str | FocusEvent, handler: EventHandler, *, once: bool = False) -> Subscription:
        sub = Subscription(event=_key(name), handler=handler, once=once)
        with self._lock:
            self._subs.setdefault(sub.event, []).append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            bucket = self._subs.get(sub.event)
            if bucket and sub in bucket:
                bucket.remove(sub)
                if not bucket:
                    self._subs.pop(sub.event, None)
        sub.active = False

    def clear(self) -> None:
        with self._lock:
            for bucket in self._subs.values():
                for sub in bucket:
                    sub.active = False
            self._subs.clear()
            self._errors.clear()

    # Publishing -------------------------------------------------------
    def publish(self, name: str | FocusEvent, payload: Any = None) -> Event:
        key = _key(name)
        evt = Event(name=key, payload=payload, timestamp=perf_counter())
        with self._lock:
            subs = list(self._subs.get(key, ())) + list(self._subs.get(ALL, ()))
            if self._tracing:
                text = "-" if payload is None else str(payload)
                self._traces.append((key, evt.timestamp, text if len(text) <= 40 else text[:37] + "..."))
        spent: List[Subscription] = []
        for sub in subs:
            if not sub.active:
                continue
            try:
                sub.handler(evt)
            except Exception as exc:  # noqa: BLE001 - isolate subscriber failures
                with self._lock:
                    self._errors.append((evt, exc))
            if sub.once:
                spent.append(sub)
        for sub in spent:
            self.unsubscribe(sub)
        return evt

    # Introspection ----------------------------------------------------
    def subscriber_count(self, name: str | FocusEvent) -> int:
        with self._lock:
            return len(self._subs.get(_key(name), ()))

    @property
    def errors(self) -> List[Tuple[Event, BaseException]]:
        with self._lock:
            return list(self._errors)

    def enable_tracing(self, enabled: bool = True, *, capacity: int | None = None) -> None:
        with self._lock:
            self._tracing = enabled
            if capacity is not None and capacity != self._traces.maxlen:
                self._traces = deque(self._traces, maxlen=capacity)

    def recent_traces(self) -> List[Tuple[str, float, str]]:
        with self._lock:
            return list(self._traces)
