"""Named tools over the analyzer and the tree-sitter engine.

``PursGraphService.invoke(tool_name, arguments)`` is the single entry point a
transport (stdio, HTTP, CLI) calls; it validates arguments and returns a
JSON-serialisable dict, or raises a :class:`~pursgraph.errors.PursGraphError`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from . import config
from .errors import IdeError, NotReadyError, PreconditionError, UnknownToolError
from .generator import generate_dependency_graph, validate_target_modules
from .ide_client import PASSTHROUGH_COMMANDS, send_raw
from .ide_server import IdeServerManager
from .session import AnalyzerSession
from .syntax import SyntaxEngine, TreeSitterEngine, query_ast

logger = logging.getLogger(__name__)


TOOL_MANIFEST: List[Dict[str, Any]] = [
    {
        "name": "query_purescript_ast",
        "description": "Parses PureScript code and executes a Tree-sitter query against its AST.",
        "input_schema": {
            "type": "object",
            "properties": {
                "purescript_code": {"type": "string"},
                "tree_sitter_query": {"type": "string"},
            },
            "required": ["purescript_code", "tree_sitter_query"],
        },
    },
    {
        "name": "start_purs_ide_server",
        "description": (
            "Starts a purs ide server process for a given PureScript project. "
            "Manages one server instance at a time."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "project_path": {"type": "string"},
                "port": {"type": "integer", "default": config.IDE_PORT},
                "output_directory": {"type": "string", "default": config.IDE_OUTPUT_DIRECTORY},
                "source_globs": {
                    "type": "array",
                    "items": {"type": "string"},
                    "default": config.IDE_SOURCE_GLOBS,
                },
                "log_level": {
                    "type": "string",
                    "enum": list(config.IDE_LOG_LEVELS),
                    "default": config.IDE_LOG_LEVEL,
                },
            },
        },
    },
    {
        "name": "stop_purs_ide_server",
        "description": "Stops the currently managed purs ide server process.",
        "input_schema": {"type": "object", "properties": {}},
    },
    {
        "name": "query_purs_ide",
        "description": "Sends a command to the running purs ide server.",
        "input_schema": {
            "type": "object",
            "properties": {
                "purs_ide_command": {"type": "string", "enum": sorted(PASSTHROUGH_COMMANDS)},
                "purs_ide_params": {"type": "object"},
            },
            "required": ["purs_ide_command"],
        },
    },
    {
        "name": "generate_dependency_graph",
        "description": (
            "Generates a dependency graph for specified PureScript modules "
            "using purs ide and Tree-sitter."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "target_modules": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Module names to analyze (e.g. ['Main', 'My.Module']).",
                },
                "max_concurrent_requests": {
                    "type": "integer",
                    "description": "Maximum number of concurrent 'usages' requests to purs ide.",
                    "default": config.MAX_CONCURRENT_REQUESTS,
                },
            },
            "required": ["target_modules"],
        },
    },
]


def _require_str(args: Dict[str, Any], key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str):
        raise PreconditionError(f"Invalid input: '{key}' (string) is required.")
    return value


class PursGraphService:
    """Holds the analyzer manager and a lazily loaded syntax engine."""

    def __init__(
        self,
        manager: Optional[IdeServerManager] = None,
        engine_factory: Callable[[], SyntaxEngine] = TreeSitterEngine,
    ) -> None:
        self.manager = manager or IdeServerManager()
        self._engine_factory = engine_factory
        self._engine: Optional[SyntaxEngine] = None

    @property
    def engine(self) -> SyntaxEngine:
        if self._engine is None:
            self._engine = self._engine_factory()
        return self._engine

    @staticmethod
    def manifest() -> List[Dict[str, Any]]:
        return TOOL_MANIFEST

    async def invoke(self, tool_name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        args = arguments or {}
        if not isinstance(args, dict):
            raise PreconditionError("Tool arguments must be a JSON object.")
        handler = getattr(self, f"_tool_{tool_name}", None)
        if handler is None:
            logger.warning("Attempted to execute unknown tool: %s", tool_name)
            raise UnknownToolError(tool_name)
        logger.info("Executing tool '%s'", tool_name)
        return await handler(args)

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    async def _tool_query_purescript_ast(self, args: Dict[str, Any]) -> Dict[str, Any]:
        code = _require_str(args, "purescript_code")
        pattern = _require_str(args, "tree_sitter_query")
        return {"results": query_ast(self.engine, code, pattern)}

    async def _tool_start_purs_ide_server(self, args: Dict[str, Any]) -> Dict[str, Any]:
        port = args.get("port")
        if port is not None and (isinstance(port, bool) or not isinstance(port, int)):
            raise PreconditionError("Invalid input: 'port' must be an integer.")
        globs = args.get("source_globs")
        if globs is not None and (
            not isinstance(globs, list) or any(not isinstance(g, str) for g in globs)
        ):
            raise PreconditionError("Invalid input: 'source_globs' must be an array of strings.")
        project_path = args.get("project_path")
        result = await self.manager.start(
            project_path=Path(project_path) if project_path else None,
            port=port,
            output_directory=args.get("output_directory"),
            source_globs=globs,
            log_level=args.get("log_level"),
        )
        return result.to_dict()

    async def _tool_stop_purs_ide_server(self, args: Dict[str, Any]) -> Dict[str, Any]:
        return await self.manager.stop()

    async def _tool_query_purs_ide(self, args: Dict[str, Any]) -> Dict[str, Any]:
        command = _require_str(args, "purs_ide_command")
        params = args.get("purs_ide_params") or {}
        if not isinstance(params, dict):
            raise PreconditionError("Invalid input: 'purs_ide_params' must be an object.")
        try:
            result = await send_raw(self._session(), command, params)
        except IdeError as exc:
            logger.error("Error querying purs ide: %s", exc)
            exc.logs = self.manager.logs()
            raise
        return {"status": "success", "result": result}

    async def _tool_generate_dependency_graph(self, args: Dict[str, Any]) -> Dict[str, Any]:
        modules = validate_target_modules(args.get("target_modules"))
        graph = await generate_dependency_graph(
            self.manager.session,
            self.engine,
            modules,
            args.get("max_concurrent_requests"),
        )
        return graph.to_dict()

    def _session(self) -> AnalyzerSession:
        session = self.manager.session
        if session is None:
            raise NotReadyError("purs ide server is not running or not ready. Please start it first.")
        return session
