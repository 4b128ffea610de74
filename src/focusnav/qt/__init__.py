"""PyQt6 binding for the focus engine.

``QtScheduler`` defers activations to the next event-loop turn (after the
widgets of a freshly opened scope have been shown); ``QtInputBridge`` feeds
key and pointer events into the engine; ``widget_activator`` turns a widget
into an activation callback.
"""

from .bridge import QtInputBridge, widget_activator  # noqa: F401
from .scheduler import QtScheduler  # noqa: F401

__all__ = ["QtInputBridge", "QtScheduler", "widget_activator"]
