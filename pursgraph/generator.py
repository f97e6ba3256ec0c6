"""Reverse-usage dependency graph generation over ``purs ide`` + tree-sitter."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from . import config
from .collector import collect_declarations
from .errors import NotReadyError, PreconditionError
from .graph import DependencyGraph
from .resolver import UsageResolver
from .scheduler import BoundedScheduler
from .session import AnalyzerSession
from .syntax import SyntaxEngine

logger = logging.getLogger(__name__)


def validate_target_modules(target_modules: Any) -> List[str]:
    if not isinstance(target_modules, list) or any(not isinstance(m, str) for m in target_modules):
        raise PreconditionError("Invalid input: 'target_modules' (array of strings) is required.")
    return target_modules


async def generate_dependency_graph(
    session: Optional[AnalyzerSession],
    engine: SyntaxEngine,
    target_modules: List[str],
    max_concurrent_requests: Optional[int] = None,
    scheduler: Optional[BoundedScheduler] = None,
) -> DependencyGraph:
    """Build the reverse-usage graph for *target_modules*.

    Declarations are collected one module at a time, then usages are
    resolved concurrently, at most ``max_concurrent_requests`` at once.
    Per-module, per-declaration and per-file failures only make the graph
    less complete; they are logged, never raised.

    Raises:
        PreconditionError: bad ``target_modules`` or concurrency bound.
        NotReadyError: no ready analyzer session.
    """
    modules = validate_target_modules(target_modules)
    if scheduler is None:
        limit = config.MAX_CONCURRENT_REQUESTS if max_concurrent_requests is None else max_concurrent_requests
        scheduler = BoundedScheduler(limit)
    if session is None:
        raise NotReadyError(
            "purs ide server is not running or not ready. "
            "Please start it first using 'start_purs_ide_server'."
        )
    session.require_ready()

    graph = DependencyGraph(await collect_declarations(session, modules))

    logger.info("Phase 2: identifying dependencies...")
    resolver = UsageResolver(session, engine, graph)
    await scheduler.run(
        [lambda node=node: resolver.resolve(node) for node in graph.nodes],
        label="declarations for usages",
    )
    logger.info(
        "Dependency graph generation complete: %d nodes, %d edges (peak concurrency %d).",
        len(graph), graph.edge_count(), scheduler.peak,
    )
    return graph
