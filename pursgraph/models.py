"""Core data models shared by the analyzer client, resolver and graph layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


def declaration_id(module: str, identifier: str) -> str:
    return f"{module}.{identifier}"


@dataclass(frozen=True)
class UsageOccurrence:
    """One place where a caller declaration references a target."""

    file: str
    module_name: str
    declaration_name: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "moduleName": self.module_name,
            "declarationName": self.declaration_name,
            "startLine": self.start_line,
            "startCol": self.start_col,
            "endLine": self.end_line,
            "endCol": self.end_col,
        }


@dataclass
class UsageEdge:
    caller_id: str
    usages_at: List[UsageOccurrence] = field(default_factory=list)

    def add(self, occurrence: UsageOccurrence) -> bool:
        """Append *occurrence* unless an identical one is already recorded."""
        if occurrence in self.usages_at:
            return False
        self.usages_at.append(occurrence)
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.caller_id,
            "usagesAt": [u.to_dict() for u in self.usages_at],
        }


@dataclass
class DeclarationNode:
    node_id: str
    module: str
    identifier: str
    declaration_type: str
    defined_at: Dict[str, Any]
    file_path: str
    type_info: str = ""
    used_by: List[UsageEdge] = field(default_factory=list)

    def find_edge(self, caller_id: str) -> Optional[UsageEdge]:
        for edge in self.used_by:
            if edge.caller_id == caller_id:
                return edge
        return None

    def edge_for(self, caller_id: str) -> UsageEdge:
        """The edge from *caller_id*, created on first use."""
        edge = self.find_edge(caller_id)
        if edge is None:
            edge = UsageEdge(caller_id=caller_id)
            self.used_by.append(edge)
        return edge

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.node_id,
            "module": self.module,
            "identifier": self.identifier,
            "type": self.type_info,
            "declarationType": self.declaration_type,
            "definedAt": self.defined_at,
            "filePath": self.file_path,
            "usedBy": [e.to_dict() for e in self.used_by],
        }


# ---------------------------------------------------------------------------
# Analyzer responses
# ---------------------------------------------------------------------------

@dataclass
class IdeSuccess:
    result: Any
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class IdeFailure:
    reason: Any
    raw: Dict[str, Any] = field(default_factory=dict)


IdeResponse = Union[IdeSuccess, IdeFailure]
