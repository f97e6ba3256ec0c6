"""Error types raised across the analyzer, syntax and graph layers."""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class PursGraphError(Exception):
    """Base class for every error raised by pursgraph."""

    code = "pursgraph_error"

    def to_dict(self) -> Dict[str, Any]:
        return {"error": str(self), "type": self.code}


class PreconditionError(PursGraphError):
    """Invalid input to a public operation (bad module list, bad bound...)."""

    code = "precondition"


class UnknownToolError(PreconditionError):
    code = "unknown_tool"

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Tool '{tool_name}' not found.")


class IdeError(PursGraphError):
    """Anything that went wrong talking to ``purs ide server``.

    ``logs`` holds the analyzer output buffered when the error surfaced.
    """

    code = "ide"

    def __init__(self, message: str = "", logs: Optional[List[str]] = None) -> None:
        self.logs = list(logs or [])
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        if self.logs:
            payload["logs"] = self.logs
        return payload


class NotReadyError(IdeError):
    code = "not_ready"

    def __init__(self, message: str = "purs ide server is not running or not ready.") -> None:
        super().__init__(message)


class TransportError(IdeError):
    code = "transport"


class ProtocolError(IdeError):
    code = "protocol"


class SpawnError(IdeError):
    """The analyzer could not be launched or its initial ``load`` failed."""

    code = "spawn"

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["logs"] = self.logs
        return payload


class FileAccessError(PursGraphError):
    code = "file_access"


class QueryError(PursGraphError):
    """A tree-sitter pattern failed to compile or run."""

    code = "query"


class GrammarError(PursGraphError):
    code = "grammar"
