"""Declarative flow definitions.

A flow is an ordered list of nodes (one per field id) with required flags and
optional skip conditions referencing named validators. Flows let the step
projector include fields that carry no step metadata of their own and let
screens describe their field sequence as data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

__all__ = ["FlowNode", "FocusFlow", "create_flow", "validate_flow"]


@dataclass(frozen=True)
class FlowNode:
    id: str
    order: int
    required: bool = False
    skip_if: Optional[str] = None
    validate_on_leave: Optional[str] = None
    label: Optional[str] = None
    description: Optional[str] = None


@dataclass
class FocusFlow:
    id: str
    name: str
    nodes: List[FlowNode]
    validators: Dict[str, Callable[[], bool]] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def node(self, node_id: str) -> Optional[FlowNode]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def ordered(self) -> List[FlowNode]:
        return sorted(self.nodes, key=lambda n: n.order)

    def is_bypassed(self, node: FlowNode) -> bool:
        """Evaluate the node's skip condition; unknown validator keys never skip."""
        if node.skip_if is None:
            return False
        check = self.validators.get(node.skip_if)
        return bool(check()) if check is not None else False


def create_flow(
    id: str,
    name: str,
    nodes: Sequence[FlowNode],
    *,
    validators: Optional[Dict[str, Callable[[], bool]]] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> FocusFlow:
    return FocusFlow(
        id=id,
        name=name,
        nodes=list(nodes),
        validators=dict(validators or {}),
        metadata=dict(metadata or {}),
    )


def validate_flow(flow: FocusFlow) -> Tuple[bool, List[str]]:
    """Check a flow for structural problems; returns ``(valid, errors)``."""
    errors: List[str] = []
    if not flow.id:
        errors.append("Flow must have an ID")
    if not flow.name:
        errors.append("Flow must have a name")
    if not flow.nodes:
        errors.append("Flow must have at least one node")

    seen_ids: set[str] = set()
    dup_ids: List[str] = []
    seen_orders: set[int] = set()
    dup_orders: List[int] = []
    for node in flow.nodes:
        if node.id in seen_ids and node.id not in dup_ids:
            dup_ids.append(node.id)
        seen_ids.add(node.id)
        if node.order in seen_orders and node.order not in dup_orders:
            dup_orders.append(node.order)
        seen_orders.add(node.order)
    if dup_ids:
        errors.append(f"Duplicate node IDs found: {', '.join(dup_ids)}")
    if dup_orders:
        errors.append(f"Duplicate order values found: {', '.join(str(o) for o in dup_orders)}")

    for node in flow.nodes:
        if node.skip_if and node.skip_if not in flow.validators:
            errors.append(f'Node "{node.id}" references non-existent skip validator: {node.skip_if}')
        if node.validate_on_leave and node.validate_on_leave not in flow.validators:
            errors.append(
                f'Node "{node.id}" references non-existent leave validator: {node.validate_on_leave}'
            )
    return (not errors, errors)
