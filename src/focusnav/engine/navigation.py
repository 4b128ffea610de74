"""Candidate selection for sequential and edge navigation.

The navigator answers "which element should receive focus next" without
committing anything. It walks the ordered candidate list of the navigable
scope chain, skips ``skip_in_navigation`` elements and elements whose
``can_receive_focus`` refuses, and applies the wrap policy. A trapping scope
always wraps within itself.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from .errors import ScopeError
from .models import FocusableElement, NavigationOptions
from .registry import ElementRegistry
from .scopes import ScopeStack
from .validation import ValidationPipeline

__all__ = ["Navigator"]

logger = logging.getLogger(__name__)


class Navigator:
    def __init__(self, registry: ElementRegistry, scopes: ScopeStack, pipeline: ValidationPipeline) -> None:
        self._registry = registry
        self._scopes = scopes
        self._pipeline = pipeline

    # Candidate list ---------------------------------------------------
    def ordered_scope_elements(self, options: NavigationOptions) -> Tuple[List[FocusableElement], bool]:
        """All elements of the navigable chain in order, plus whether the chain traps.

        Raises ``ScopeError`` when ``options.scope_id`` names a scope that is not open.
        """
        if options.scope_id is not None:
            scope = self._scopes.get(options.scope_id)
            if scope is None:
                raise ScopeError(f"Scope '{options.scope_id}' is not open")
            chain = [scope.id]
            trapped = scope.trap_focus
        else:
            chain = self._scopes.navigable_chain(options.include_ancestors)
            trapped = self._scopes.top.trap_focus
        elements: List[FocusableElement] = []
        for scope_id in chain:
            elements.extend(self._registry.get_elements_in_scope(scope_id))
        return self._registry.sort(elements), trapped

    @staticmethod
    def _eligible(element: FocusableElement, options: NavigationOptions) -> bool:
        if element.skip_in_navigation and not options.include_skipped:
            return False
        if options.custom_filter is not None and not options.custom_filter(element):
            return False
        return True

    # Sequential -------------------------------------------------------
    async def step(
        self,
        direction: int,
        source: Optional[FocusableElement],
        options: NavigationOptions,
        default_wrap: bool,
    ) -> Optional[FocusableElement]:
        ordered, trapped = self.ordered_scope_elements(options)
        wrap = True if trapped else (options.wrap if options.wrap is not None else default_wrap)
        ids = [e.id for e in ordered]
        idx = ids.index(source.id) if source is not None and source.id in ids else None

        if idx is None:
            visit: Sequence[FocusableElement] = ordered if direction > 0 else list(reversed(ordered))
        elif direction > 0:
            visit = ordered[idx + 1 :] + (ordered[:idx] if wrap else [])
        else:
            before = list(reversed(ordered[:idx]))
            visit = before + (list(reversed(ordered[idx + 1 :])) if wrap else [])
        return await self._first_accepting(visit, source, options)

    # Edges ------------------------------------------------------------
    async def edge(
        self,
        first: bool,
        source: Optional[FocusableElement],
        options: NavigationOptions,
    ) -> Optional[FocusableElement]:
        ordered, _ = self.ordered_scope_elements(options)
        visit = ordered if first else list(reversed(ordered))
        return await self._first_accepting(visit, source, options)

    async def _first_accepting(
        self,
        visit: Sequence[FocusableElement],
        source: Optional[FocusableElement],
        options: NavigationOptions,
    ) -> Optional[FocusableElement]:
        source_id = source.id if source is not None else None
        for candidate in visit:
            if not self._eligible(candidate, options):
                continue
            if options.skip_validation:
                return candidate
            if await self._pipeline.can_receive(candidate, source_id):
                return candidate
            logger.debug("skipping %s: refused focus from %s", candidate.id, source_id)
        return None
