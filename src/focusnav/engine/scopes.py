"""Scope stack.

Stack of isolation contexts. The bottom entry is always the ``default`` scope
and cannot be popped; every other scope id appears at most once while open.
Each pushed scope is paired with a ``ModalStackEntry`` capturing the element
that was active at push time, which becomes the restoration target on pop
unless the scope names its own ``restore_focus_to``.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from typing import Callable, List, Optional, Tuple

from config import settings

from .errors import ScopeError
from .models import FocusScope, ModalOptions, ModalStackEntry, ScopeKind

__all__ = ["ScopeStack"]

logger = logging.getLogger(__name__)


class ScopeStack:
    def __init__(
        self,
        default_scope_id: str = settings.DEFAULT_SCOPE_ID,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._default_id = default_scope_id
        self._clock = clock
        self._stack: List[Tuple[FocusScope, Optional[ModalStackEntry]]] = []
        self.reset()

    # Mutation ---------------------------------------------------------
    def reset(self) -> None:
        default = FocusScope(id=self._default_id, kind=ScopeKind.DEFAULT, created_at=self._clock())
        self._stack = [(default, None)]

    def clear(self) -> None:
        """Empty the stack entirely (teardown only)."""
        self._stack = []

    def push(
        self,
        scope: FocusScope,
        previous_focus_id: Optional[str],
        options: Optional[ModalOptions] = None,
    ) -> Tuple[FocusScope, ModalStackEntry]:
        if not self._stack:
            raise ScopeError("Scope stack has been torn down")
        if scope.id == self._default_id or self.is_open(scope.id):
            raise ScopeError(f"Scope '{scope.id}' is already open")
        parent = scope.parent_scope_id
        if parent is not None and not self.is_open(parent):
            raise ScopeError(f"Parent scope '{parent}' of '{scope.id}' is not open")
        stored = dataclasses.replace(
            scope,
            parent_scope_id=parent if parent is not None else self.top.id,
            created_at=self._clock(),
        )
        entry = ModalStackEntry(
            scope_id=stored.id,
            previous_focus_id=previous_focus_id,
            options=options or ModalOptions(),
        )
        self._stack.append((stored, entry))
        logger.debug("pushed scope %s (depth=%d)", stored.id, len(self._stack))
        return stored, entry

    def pop(self) -> Tuple[FocusScope, ModalStackEntry]:
        if len(self._stack) <= 1:
            raise ScopeError("Cannot pop the default scope")
        scope, entry = self._stack.pop()
        assert entry is not None  # only the default scope lacks an entry
        logger.debug("popped scope %s (depth=%d)", scope.id, len(self._stack))
        return scope, entry

    # Query ------------------------------------------------------------
    @property
    def top(self) -> FocusScope:
        if not self._stack:
            raise ScopeError("Scope stack has been torn down")
        return self._stack[-1][0]

    @property
    def top_entry(self) -> Optional[ModalStackEntry]:
        return self._stack[-1][1] if self._stack else None

    @property
    def default_id(self) -> str:
        return self._default_id

    def get(self, scope_id: str) -> Optional[FocusScope]:
        for scope, _ in self._stack:
            if scope.id == scope_id:
                return scope
        return None

    def is_open(self, scope_id: str) -> bool:
        return self.get(scope_id) is not None

    def depth(self) -> int:
        return len(self._stack)

    def ids(self) -> List[str]:
        return [s.id for s, _ in self._stack]

    def entries(self) -> List[ModalStackEntry]:
        return [e for _, e in self._stack if e is not None]

    def scopes_above(self, scope_id: str) -> List[FocusScope]:
        """Scopes stacked above ``scope_id``, topmost first."""
        ids = self.ids()
        if scope_id not in ids:
            raise ScopeError(f"Scope '{scope_id}' is not open")
        idx = ids.index(scope_id)
        return [s for s, _ in reversed(self._stack[idx + 1 :])]

    def navigable_chain(self, include_ancestors: bool) -> List[str]:
        """Scope ids whose elements are candidates, topmost first.

        Only the top scope unless ``include_ancestors``; the walk follows
        ``parent_scope_id`` and stops at (and includes) the first trapping scope.
        """
        top = self.top
        chain = [top.id]
        if not include_ancestors or top.trap_focus:
            return chain
        current = top
        while current.parent_scope_id is not None:
            parent = self.get(current.parent_scope_id)
            if parent is None:
                break
            chain.append(parent.id)
            if parent.trap_focus:
                break
            current = parent
        return chain

    def __len__(self) -> int:
        return len(self._stack)
