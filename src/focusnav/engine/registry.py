"""Element registry.

Authoritative table of registered focusable elements plus a per-scope
membership index so scope queries do not scan the whole table.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from typing import Callable, Dict, Iterator, List, Optional, Set

from .errors import RegistrationError
from .models import FocusableElement

__all__ = ["ElementRegistry"]

logger = logging.getLogger(__name__)

_FROZEN_FIELDS = frozenset({"id", "registered_at"})


class ElementRegistry:
    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._elements: Dict[str, FocusableElement] = {}
        self._by_scope: Dict[str, Set[str]] = {}
        self._seq: Dict[str, int] = {}
        self._next_seq = 0

    def register(self, element: FocusableElement) -> FocusableElement:
        """Add ``element``; stamps ``registered_at``.

        Raises ``RegistrationError`` if the id is already present.
        """
        if element.id in self._elements:
            raise RegistrationError(f"Element '{element.id}' already registered")
        stored = dataclasses.replace(element, registered_at=self._clock())
        self._elements[stored.id] = stored
        self._by_scope.setdefault(stored.scope_id, set()).add(stored.id)
        self._seq[stored.id] = self._next_seq
        self._next_seq += 1
        logger.debug("registered %s (scope=%s order=%d)", stored.id, stored.scope_id, stored.order)
        return stored

    def unregister(self, element_id: str) -> bool:
        element = self._elements.pop(element_id, None)
        if element is None:
            return False
        self._drop_from_scope(element.scope_id, element_id)
        self._seq.pop(element_id, None)
        logger.debug("unregistered %s", element_id)
        return True

    def update(self, element_id: str, **changes) -> Optional[FocusableElement]:
        """Merge ``changes`` into an element; returns the new record or None if unknown."""
        frozen = _FROZEN_FIELDS.intersection(changes)
        if frozen:
            raise RegistrationError(f"Cannot change {sorted(frozen)} of '{element_id}'")
        current = self._elements.get(element_id)
        if current is None:
            return None
        updated = dataclasses.replace(current, **changes)
        if updated.scope_id != current.scope_id:
            self._drop_from_scope(current.scope_id, element_id)
            self._by_scope.setdefault(updated.scope_id, set()).add(element_id)
        self._elements[element_id] = updated
        return updated

    def get(self, element_id: str) -> Optional[FocusableElement]:
        return self._elements.get(element_id)

    def get_elements_in_scope(self, scope_id: str) -> List[FocusableElement]:
        ids = self._by_scope.get(scope_id, ())
        return self.sort([self._elements[i] for i in ids])

    def sort(self, elements: List[FocusableElement]) -> List[FocusableElement]:
        """Ascending by ``order``; registration sequence breaks ties."""
        return sorted(elements, key=lambda e: (e.order, self._seq.get(e.id, 0)))

    def scope_ids(self) -> List[str]:
        return list(self._by_scope.keys())

    def clear(self) -> None:
        self._elements.clear()
        self._by_scope.clear()
        self._seq.clear()

    def _drop_from_scope(self, scope_id: str, element_id: str) -> None:
        bucket = self._by_scope.get(scope_id)
        if bucket is None:
            return
        bucket.discard(element_id)
        if not bucket:
            self._by_scope.pop(scope_id, None)

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._elements

    def __iter__(self) -> Iterator[FocusableElement]:
        return iter(list(self._elements.values()))

    def __len__(self) -> int:
        return len(self._elements)
