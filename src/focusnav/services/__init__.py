"""Ambient services shared by a composition root (event bus, log capture, settings)."""

from .event_bus import ALL, Event, EventBus, FocusEvent, Subscription  # noqa: F401

__all__ = [
    "ALL",
    "Event",
    "EventBus",
    "FocusEvent",
    "Subscription",
]
