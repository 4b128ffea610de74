"""Step projector.

Derives the ordered progress view consumed by a step indicator. Inputs are
the registered elements, the active id, and the caller's domain state
(completed and skipped id sets); the engine never decides completion itself.

Status precedence: ``current`` > ``complete`` > ``disabled`` > ``upcoming``.
A step is clickable when it is the first step (order 1), complete, visited
(with jump-to-visited enabled) or when every required, non-skipped
predecessor is complete.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Dict, Iterable, List, Optional

from .flow import FocusFlow
from .models import FocusableElement, StepIndicatorData, StepStatus

__all__ = ["StepProjector", "current_step_index", "progress_percentage"]


@dataclass
class _StepSource:
    id: str
    label: str
    description: Optional[str]
    order: int
    required: bool
    bypassed: bool


class StepProjector:
    def __init__(self, *, allow_jump_to_visited: bool = True, show_skipped: bool = True) -> None:
        self.allow_jump_to_visited = allow_jump_to_visited
        self.show_skipped = show_skipped

    def project(
        self,
        elements: Iterable[FocusableElement],
        active_id: Optional[str],
        completed: AbstractSet[str] = frozenset(),
        skipped: AbstractSet[str] = frozenset(),
        visited: AbstractSet[str] = frozenset(),
        flow: Optional[FocusFlow] = None,
    ) -> List[StepIndicatorData]:
        sources = self._collect(elements, flow)
        steps: List[StepIndicatorData] = []
        for src in sources:
            if src.id == active_id:
                status = StepStatus.CURRENT
            elif src.id in completed:
                status = StepStatus.COMPLETE
            elif src.id in skipped or src.bypassed:
                status = StepStatus.DISABLED
            else:
                status = StepStatus.UPCOMING
            if status is StepStatus.DISABLED and not self.show_skipped:
                continue
            steps.append(
                StepIndicatorData(
                    id=src.id,
                    label=src.label,
                    order=src.order,
                    status=status,
                    is_clickable=self._clickable(src, status, sources, completed, skipped, visited),
                    description=src.description,
                )
            )
        steps.sort(key=lambda s: (s.order, s.id))
        return steps

    def _clickable(
        self,
        src: _StepSource,
        status: StepStatus,
        sources: List[_StepSource],
        completed: AbstractSet[str],
        skipped: AbstractSet[str],
        visited: AbstractSet[str],
    ) -> bool:
        if src.order == 1 or status is StepStatus.COMPLETE:
            return True
        if self.allow_jump_to_visited and src.id in visited:
            return True
        return all(
            p.id in completed
            for p in sources
            if p.order < src.order and p.required and p.id not in skipped and not p.bypassed
        )

    @staticmethod
    def _collect(elements: Iterable[FocusableElement], flow: Optional[FocusFlow]) -> List[_StepSource]:
        registered: Dict[str, FocusableElement] = {e.id: e for e in elements}
        out: Dict[str, _StepSource] = {}
        for el in registered.values():
            meta = el.step_metadata
            if meta is None:
                continue
            out[el.id] = _StepSource(
                id=el.id,
                label=meta.label or el.id,
                description=meta.description,
                order=el.order,
                required=el.required,
                bypassed=bool(meta.skip_if()) if meta.skip_if is not None else False,
            )
        if flow is not None:
            for node in flow.nodes:
                el = registered.get(node.id)
                if el is None:
                    continue
                meta = el.step_metadata
                own_bypass = out[node.id].bypassed if node.id in out else False
                out[node.id] = _StepSource(
                    id=node.id,
                    label=node.label or (meta.label if meta else None) or node.id,
                    description=node.description or (meta.description if meta else None),
                    order=node.order,
                    required=node.required,
                    bypassed=own_bypass or flow.is_bypassed(node),
                )
        return list(out.values())


def current_step_index(steps: List[StepIndicatorData]) -> int:
    for idx, step in enumerate(steps):
        if step.status is StepStatus.CURRENT:
            return idx
    return -1


def progress_percentage(steps: List[StepIndicatorData], *, is_complete: bool = False) -> int:
    """Completed share of the non-disabled steps, 0-100."""
    if not steps:
        return 0
    if is_complete:
        return 100
    total = sum(1 for s in steps if s.status is not StepStatus.DISABLED)
    if total == 0:
        return 0
    done = sum(1 for s in steps if s.status is StepStatus.COMPLETE)
    return round(done / total * 100)
