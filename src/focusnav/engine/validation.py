"""Validation pipeline.

Normalizes the two predicate families (``can_leave_focus`` on the element
being left, ``can_receive_focus`` on the candidate) into a single awaitable
boolean contract. Predicates may answer directly or with an awaitable; a
predicate that raises, or whose awaitable fails, counts as ``False``. The
failure is logged and handed to the error sink but never propagated.
"""

from __future__ import annotations

import inspect
import logging
from typing import Callable, Optional

from .errors import ValidationError
from .models import FocusableElement, Predicate

__all__ = ["ValidationPipeline", "resolve_predicate"]

logger = logging.getLogger(__name__)

ErrorSink = Callable[[ValidationError], None]


async def resolve_predicate(predicate: Predicate, argument: Optional[str]) -> bool:
    """Invoke ``predicate`` and await the result if needed. Exceptions propagate."""
    result = predicate(argument)
    if inspect.isawaitable(result):
        result = await result
    return bool(result)


class ValidationPipeline:
    def __init__(self, on_error: Optional[ErrorSink] = None) -> None:
        self._on_error = on_error

    async def can_leave(self, element: Optional[FocusableElement], target_id: Optional[str]) -> bool:
        if element is None or element.can_leave_focus is None:
            return True
        return await self._run(element.id, "can_leave_focus", element.can_leave_focus, target_id)

    async def can_receive(self, element: FocusableElement, source_id: Optional[str]) -> bool:
        if element.can_receive_focus is None:
            return True
        return await self._run(element.id, "can_receive_focus", element.can_receive_focus, source_id)

    async def check(self, element_id: str, name: str, predicate: Optional[Predicate], argument: Optional[str] = None) -> bool:
        """Run an arbitrary caller-supplied predicate under the same contract."""
        if predicate is None:
            return True
        return await self._run(element_id, name, predicate, argument)

    async def _run(self, element_id: str, name: str, predicate: Predicate, argument: Optional[str]) -> bool:
        try:
            return await resolve_predicate(predicate, argument)
        except Exception as exc:  # noqa: BLE001 - any validator failure is a refusal
            err = ValidationError(element_id, name, exc)
            logger.warning("%s", err)
            if self._on_error is not None:
                self._on_error(err)
            return False
