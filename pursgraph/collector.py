"""Phase 1: enumerate the declarations of each target module."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from . import config
from .errors import IdeError
from .ide_client import send_command
from .models import DeclarationNode, IdeSuccess, declaration_id
from .session import AnalyzerSession

logger = logging.getLogger(__name__)


def completion_params(module_name: str, max_results: Optional[int] = None) -> Dict[str, Any]:
    """``complete`` parameters listing every declaration of *module_name*."""
    return {
        "filters": [{"filter": "modules", "params": {"modules": [module_name]}}],
        "matcher": {},
        "options": {
            "maxResults": max_results or config.MAX_COMPLETION_RESULTS,
            "groupReexports": False,
        },
    }


def relative_to_project(file_name: str, project_path: Path) -> str:
    path = Path(file_name)
    if not path.is_absolute():
        path = project_path / path
    return os.path.relpath(path, project_path)


def node_from_completion(decl: Dict[str, Any], project_path: Path) -> Optional[DeclarationNode]:
    """Build a node from one completion entry, or None without a source location."""
    defined_at = decl.get("definedAt")
    if not isinstance(defined_at, dict) or not defined_at.get("name"):
        return None
    module = decl.get("module")
    identifier = decl.get("identifier")
    if not module or not identifier:
        return None
    return DeclarationNode(
        node_id=declaration_id(module, identifier),
        module=module,
        identifier=identifier,
        declaration_type=decl.get("declarationType") or "",
        defined_at=defined_at,
        file_path=relative_to_project(defined_at["name"], project_path),
        type_info=decl.get("type") or "",
    )


async def collect_module(
    session: AnalyzerSession,
    module_name: str,
    max_results: Optional[int] = None,
) -> List[DeclarationNode]:
    """Declarations of one module; failures are logged and yield ``[]``."""
    try:
        response = await send_command(session, "complete", completion_params(module_name, max_results))
    except IdeError as exc:
        logger.error("Error fetching completions for module %s: %s", module_name, exc)
        return []

    if not isinstance(response, IdeSuccess) or not isinstance(response.result, list):
        reason = response.result if isinstance(response, IdeSuccess) else response.reason
        logger.warning("Could not get completions for module %s: %s", module_name, reason)
        return []

    nodes: List[DeclarationNode] = []
    for decl in response.result:
        if not isinstance(decl, dict):
            continue
        node = node_from_completion(decl, session.project_path)
        if node is not None:
            nodes.append(node)
    return nodes


async def collect_declarations(
    session: AnalyzerSession,
    target_modules: Sequence[str],
    max_results: Optional[int] = None,
) -> List[DeclarationNode]:
    """Collect unique declarations module by module, in the order given.

    Each module's response is fully consumed before the next request goes
    out. Duplicate ids (re-exports seen twice) keep their first occurrence.
    """
    logger.info("Phase 1: identifying all declarations in [%s]...", ", ".join(target_modules))
    seen: set = set()
    collected: List[DeclarationNode] = []
    for module_name in target_modules:
        for node in await collect_module(session, module_name, max_results):
            if node.node_id in seen:
                continue
            seen.add(node.node_id)
            collected.append(node)
    logger.info("Identified %d declarations with source locations.", len(collected))
    return collected
