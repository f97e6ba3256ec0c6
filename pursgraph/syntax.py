"""Tree-sitter adapter for parsing and querying PureScript sources.

The dependency-graph engine only relies on the :class:`SyntaxEngine`
interface: ``parse`` a source string and ``run_query`` a pattern against
the resulting tree. :class:`TreeSitterEngine` is the production backend,
built on ``tree-sitter`` with the grammar from ``tree-sitter-language-pack``.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from . import config
from .attribution import Candidate, Point, Span
from .errors import GrammarError, QueryError

logger = logging.getLogger(__name__)

# Top-level bindings and functions, paired with their name node.
ENCLOSING_DECL_QUERY = "(function name: (_) @name) @decl"
MODULE_NAME_QUERY = "(purescript name: (qualified_module) @qmodule.name_node)"

_WHITESPACE = re.compile(r"\s+")


@dataclass
class Capture:
    name: str
    text: str
    start: Point
    end: Point
    node_type: str = ""

    @property
    def span(self) -> Span:
        return Span(self.start, self.end)


@dataclass
class QueryMatch:
    captures: List[Capture] = field(default_factory=list)

    def capture(self, name: str) -> Optional[Capture]:
        for cap in self.captures:
            if cap.name == name:
                return cap
        return None


# ===================================================================
# Abstract engine interface
# ===================================================================

class SyntaxEngine(ABC):
    """Parse source text and run structural pattern queries."""

    @abstractmethod
    def parse(self, source: str) -> Any:
        """Parse *source* and return an engine-specific tree."""
        ...

    @abstractmethod
    def run_query(self, pattern: str, tree: Any) -> List[QueryMatch]:
        """Run *pattern* against *tree*.

        Raises:
            QueryError: the pattern is malformed.
        """
        ...

    def captures(self, pattern: str, tree: Any) -> List[Capture]:
        """Every capture of *pattern*, in source order.

        Captures starting at the same point keep the outer node first.
        """
        flat = [cap for match in self.run_query(pattern, tree) for cap in match.captures]
        return sorted(
            flat,
            key=lambda c: (c.start.row, c.start.column, -c.end.row, -c.end.column),
        )

    def enclosing_declarations(self, tree: Any) -> List[Candidate]:
        """Every declaration span in *tree* with the declaration's name."""
        candidates: List[Candidate] = []
        for match in self.run_query(ENCLOSING_DECL_QUERY, tree):
            decl = match.capture("decl")
            name = match.capture("name")
            if decl is None or name is None:
                continue
            candidates.append(Candidate(name=name.text, span=decl.span))
        return candidates

    def module_name(self, tree: Any) -> Optional[str]:
        """The ``module X.Y where`` header name, whitespace removed."""
        for match in self.run_query(MODULE_NAME_QUERY, tree):
            cap = match.capture("qmodule.name_node")
            if cap is not None:
                return _WHITESPACE.sub("", cap.text)
        return None


# ===================================================================
# Tree-sitter engine
# ===================================================================

class TreeSitterEngine(SyntaxEngine):
    """Tree-sitter backed engine; compiled queries are cached per pattern."""

    def __init__(self, language: Optional[str] = None) -> None:
        self.language_name = language or config.GRAMMAR_NAME
        self._queries: Dict[str, Any] = {}

        try:
            from tree_sitter import Parser as TSParser
            from tree_sitter_language_pack import get_language
        except ImportError as exc:
            raise GrammarError(
                f"tree-sitter is not installed: {exc}. "
                "Install with: pip install tree-sitter tree-sitter-language-pack"
            ) from exc

        try:
            self._language = get_language(self.language_name)
            self._parser = TSParser(self._language)
        except Exception as exc:
            raise GrammarError(
                f"Failed to load tree-sitter grammar '{self.language_name}': {exc}"
            ) from exc
        logger.debug("Loaded tree-sitter parser for %s", self.language_name)

    def parse(self, source: str) -> Any:
        return self._parser.parse(source.encode("utf-8"))

    def _compile(self, pattern: str) -> Any:
        query = self._queries.get(pattern)
        if query is None:
            from tree_sitter import Query

            try:
                query = Query(self._language, pattern)
            except Exception as exc:
                raise QueryError(f"Failed to compile tree-sitter query: {exc}") from exc
            self._queries[pattern] = query
        return query

    def run_query(self, pattern: str, tree: Any) -> List[QueryMatch]:
        from tree_sitter import QueryCursor

        cursor = QueryCursor(self._compile(pattern))
        results: List[QueryMatch] = []
        for _pattern_index, captures_dict in cursor.matches(tree.root_node):
            match = QueryMatch()
            for cap_name, nodes in captures_dict.items():
                for node in nodes:
                    match.captures.append(_to_capture(cap_name, node))
            results.append(match)
        return results


def _to_capture(name: str, node: Any) -> Capture:
    return Capture(
        name=name,
        text=node.text.decode("utf-8") if node.text is not None else "",
        start=Point(*node.start_point),
        end=Point(*node.end_point),
        node_type=node.type,
    )


def query_ast(engine: SyntaxEngine, source: str, pattern: str) -> List[Dict[str, str]]:
    """Parse *source*, run *pattern*, and flatten captures to ``{name, text}``."""
    tree = engine.parse(source)
    return [{"name": cap.name, "text": cap.text} for cap in engine.captures(pattern, tree)]
