"""Accumulator for declaration nodes and their reverse-usage edges."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .models import DeclarationNode, UsageOccurrence


class DependencyGraph:
    """Ordered nodes plus an id index.

    Resolver tasks interleave on one event loop; every mutating method here
    runs to completion without awaiting, so no lock is needed.
    """

    def __init__(self, nodes: Optional[Iterable[DeclarationNode]] = None) -> None:
        self.nodes: List[DeclarationNode] = []
        self._by_id: Dict[str, DeclarationNode] = {}
        for node in nodes or []:
            self.add_node(node)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._by_id

    def get(self, node_id: str) -> Optional[DeclarationNode]:
        return self._by_id.get(node_id)

    def add_node(self, node: DeclarationNode) -> bool:
        if node.node_id in self._by_id:
            return False
        self._by_id[node.node_id] = node
        self.nodes.append(node)
        return True

    def record_usage(self, target_id: str, caller_id: str, occurrence: UsageOccurrence) -> bool:
        """Attach *occurrence* to the ``caller_id`` edge of *target_id*.

        Returns False when the target is unknown or the occurrence is a
        duplicate.
        """
        target = self._by_id.get(target_id)
        if target is None:
            return False
        return target.edge_for(caller_id).add(occurrence)

    def edge_count(self) -> int:
        return sum(len(n.used_by) for n in self.nodes)

    def to_dict(self) -> Dict[str, Any]:
        return {"graph_nodes": [n.to_dict() for n in self.nodes]}
