"""Phase 2: find who uses each declaration.

The analyzer's ``usages`` command gives raw source locations. Each location
is attributed to a caller by parsing the file and picking the innermost
top-level declaration whose span contains it. This is a structural
approximation: local bindings and lambdas are never callers.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from .attribution import innermost_enclosing, usage_span
from .errors import FileAccessError, QueryError
from .graph import DependencyGraph
from .ide_client import send_command
from .models import DeclarationNode, IdeSuccess, UsageOccurrence
from .session import AnalyzerSession
from .syntax import SyntaxEngine

logger = logging.getLogger(__name__)

NAMESPACES: Dict[str, str] = {
    "value": "value",
    "valueoperator": "value",
    "dataconstructor": "value",
    "type": "type",
    "typeoperator": "type",
    "synonym": "type",
    "typeclass": "type",
    "kind": "kind",
}


def namespace_for(declaration_type: str) -> Optional[str]:
    return NAMESPACES.get(declaration_type)


def _is_location(loc: Any) -> bool:
    if not isinstance(loc, dict) or not loc.get("name"):
        return False
    start, end = loc.get("start"), loc.get("end")
    return (
        isinstance(start, list) and len(start) >= 2
        and isinstance(end, list) and len(end) >= 2
    )


def group_by_file(locations: List[Any]) -> Dict[str, List[Dict[str, Any]]]:
    """Well-formed usage locations keyed by file, in first-seen order."""
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for loc in locations:
        if _is_location(loc):
            grouped.setdefault(loc["name"], []).append(loc)
    return grouped


async def read_source(path: Path) -> str:
    try:
        return await asyncio.to_thread(path.read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FileAccessError(f"Cannot read {path}: {exc}") from exc


class UsageResolver:
    """Fills ``used_by`` edges of the nodes held by *graph*."""

    def __init__(
        self,
        session: AnalyzerSession,
        engine: SyntaxEngine,
        graph: DependencyGraph,
    ) -> None:
        self.session = session
        self.engine = engine
        self.graph = graph

    @property
    def project_path(self) -> Path:
        return self.session.project_path

    async def resolve(self, node: DeclarationNode) -> None:
        """Resolve usages of *node*; any failure only skips this declaration."""
        try:
            await self._resolve(node)
        except Exception as exc:
            logger.error("Error processing usages for %s: %s", node.node_id, exc)

    async def _resolve(self, node: DeclarationNode) -> None:
        namespace = namespace_for(node.declaration_type)
        if namespace is None:
            logger.debug("Skipping %s: no namespace for kind '%s'", node.node_id, node.declaration_type)
            return

        response = await send_command(
            self.session,
            "usages",
            {"module": node.module, "identifier": node.identifier, "namespace": namespace},
        )
        if not isinstance(response, IdeSuccess):
            logger.debug("Could not get usages for %s: %s", node.node_id, response.reason)
            return
        if not isinstance(response.result, list):
            logger.warning("Unexpected usages payload for %s: %r", node.node_id, response.result)
            return

        for file_name, locations in group_by_file(response.result).items():
            try:
                await self._resolve_file(node, file_name, locations)
            except (FileAccessError, QueryError) as exc:
                logger.error("Error reading/parsing file %s: %s", file_name, exc)

    def _absolute(self, file_name: str) -> Path:
        path = Path(file_name)
        return path if path.is_absolute() else (self.project_path / path).resolve()

    async def _resolve_file(
        self,
        node: DeclarationNode,
        file_name: str,
        locations: List[Dict[str, Any]],
    ) -> None:
        path = self._absolute(file_name)
        source = await read_source(path)
        tree = self.engine.parse(source)
        rel_path = os.path.relpath(path, self.project_path)
        candidates = self.engine.enclosing_declarations(tree)

        module_name: Optional[str] = None
        module_looked_up = False
        for loc in locations:
            winner = innermost_enclosing(candidates, usage_span(loc["start"], loc["end"]))
            if winner is None:
                continue
            if not module_looked_up:
                module_name = self.engine.module_name(tree)
                module_looked_up = True
            if not module_name or not winner.name:
                logger.warning(
                    "Could not extract caller module/id for usage in %s at L%s. "
                    "CallerName: %s, CallerModule: %s",
                    rel_path, loc["start"][0], winner.name, module_name,
                )
                continue

            occurrence = UsageOccurrence(
                file=rel_path,
                module_name=module_name,
                declaration_name=winner.name,
                start_line=loc["start"][0],
                start_col=loc["start"][1],
                end_line=loc["end"][0],
                end_col=loc["end"][1],
            )
            self.graph.record_usage(node.node_id, f"{module_name}.{winner.name}", occurrence)
