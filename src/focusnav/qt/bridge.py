"""Qt input bridge.

Event filter translating Qt key and mouse events into engine signals:

 - key presses feed ``handle_key`` (Backtab becomes shift+Tab)
 - mouse moves feed the mode classifier through ``handle_pointer_move``
 - presses on (or inside) a bound widget become ``handle_pointer_navigation``

Tab is consumed while the top scope traps focus and Escape while a modal is
open, so Qt's own focus chain does not escape the scope. Everything else is
passed through.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from PyQt6.QtCore import QEvent, QObject, Qt
from PyQt6.QtWidgets import QWidget

from focusnav.engine.engine import FocusEngine

__all__ = ["QtInputBridge", "widget_activator"]

logger = logging.getLogger(__name__)

KEY_NAMES: Dict[int, str] = {
    Qt.Key.Key_Tab.value: "Tab",
    Qt.Key.Key_Backtab.value: "Tab",
    Qt.Key.Key_Return.value: "Enter",
    Qt.Key.Key_Enter.value: "Enter",
    Qt.Key.Key_Space.value: "Space",
    Qt.Key.Key_Up.value: "ArrowUp",
    Qt.Key.Key_Down.value: "ArrowDown",
    Qt.Key.Key_Left.value: "ArrowLeft",
    Qt.Key.Key_Right.value: "ArrowRight",
    Qt.Key.Key_Escape.value: "Escape",
}


def widget_activator(widget: QWidget) -> Callable[[], None]:
    """Activation callback giving ``widget`` keyboard focus."""

    def _activate() -> None:
        widget.setFocus(Qt.FocusReason.OtherFocusReason)

    return _activate


class QtInputBridge(QObject):
    def __init__(self, engine: FocusEngine, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._engine = engine
        self._bound: Dict[QWidget, str] = {}
        self._scope_roots: Dict[str, QWidget] = {}

    # Wiring -----------------------------------------------------------
    def install(self, target: QObject) -> None:
        target.installEventFilter(self)

    def uninstall(self, target: QObject) -> None:
        target.removeEventFilter(self)

    def bind(self, widget: QWidget, element_id: str) -> None:
        self._bound[widget] = element_id
        widget.destroyed.connect(lambda *_: self._bound.pop(widget, None))

    def unbind(self, widget: QWidget) -> None:
        self._bound.pop(widget, None)

    def bind_scope(self, scope_id: str, container: QWidget) -> None:
        """Presses outside ``container`` count as outside clicks while ``scope_id`` is the top modal."""
        self._scope_roots[scope_id] = container

    def unbind_scope(self, scope_id: str) -> None:
        self._scope_roots.pop(scope_id, None)

    def element_for(self, widget: Optional[QObject]) -> Optional[str]:
        """Element id bound to ``widget`` or its nearest bound ancestor."""
        current = widget
        while current is not None:
            if isinstance(current, QWidget) and current in self._bound:
                return self._bound[current]
            current = current.parent()
        return None

    # Filter -----------------------------------------------------------
    def eventFilter(self, obj, event):  # type: ignore[override]
        if not self._engine.is_enabled:
            return False
        et = event.type()
        if et == QEvent.Type.KeyPress:
            return self._on_key(event)
        if et == QEvent.Type.MouseMove:
            pos = event.globalPosition()
            self._engine.handle_pointer_move(pos.x(), pos.y())
        elif et == QEvent.Type.MouseButtonPress:
            self._on_press(obj, event)
        return False

    def _on_key(self, event) -> bool:
        name = KEY_NAMES.get(event.key())
        if name is None:
            return False
        shift = event.key() == Qt.Key.Key_Backtab.value or bool(
            event.modifiers() & Qt.KeyboardModifier.ShiftModifier
        )
        consume = (name == "Tab" and self._engine.current_scope.trap_focus) or (
            name == "Escape" and self._engine.is_modal_open()
        )
        self._engine.submit(self._engine.handle_key(name, shift=shift))
        return consume

    def _on_press(self, obj, event) -> None:
        root = self._scope_roots.get(self._engine.current_scope.id)
        if root is not None and isinstance(obj, QWidget) and not (obj is root or root.isAncestorOf(obj)):
            self._engine.handle_outside_click()
            return
        element_id = self.element_for(obj)
        if element_id is None:
            return
        pos = event.globalPosition()
        logger.debug("pointer press on %s", element_id)
        self._engine.submit(self._engine.handle_pointer_navigation(element_id, pos.x(), pos.y()))
