"""Graph export helpers for JSON and Graphviz DOT outputs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Set

from .graph import DependencyGraph


def export_json(graph: DependencyGraph, output_file: Path) -> None:
    output_file.write_text(json.dumps(graph.to_dict(), indent=2), encoding="utf-8")


def render_dot(graph: DependencyGraph, focus: str = "") -> str:
    """Render caller -> callee edges, labelled with occurrence counts."""
    edges = _edges(graph)
    selected = _focused_ids(graph, edges, focus)

    lines = ["digraph PursGraph {"]
    lines.append("  rankdir=LR;")

    for node in graph.nodes:
        if node.node_id not in selected:
            continue
        label = f"{node.declaration_type}\\n{node.node_id}"
        lines.append(f'  "{_esc(node.node_id)}" [label="{_esc(label)}"];')

    for edge in edges:
        if edge["src"] not in selected and edge["dst"] not in selected:
            continue
        lines.append(
            f'  "{_esc(edge["src"])}" -> "{_esc(edge["dst"])}" [label="{edge["count"]}"];'
        )

    lines.append("}")
    return "\n".join(lines)


def export_dot(graph: DependencyGraph, output_file: Path, focus: str = "") -> None:
    output_file.write_text(render_dot(graph, focus), encoding="utf-8")


def _edges(graph: DependencyGraph) -> List[Dict[str, object]]:
    return [
        {"src": edge.caller_id, "dst": node.node_id, "count": len(edge.usages_at)}
        for node in graph.nodes
        for edge in node.used_by
    ]


def _focused_ids(graph: DependencyGraph, edges: List[Dict[str, object]], focus: str) -> Set[str]:
    all_ids = {n.node_id for n in graph.nodes}
    if not focus:
        return all_ids

    focus_ids = {node_id for node_id in all_ids if focus in node_id}
    if not focus_ids:
        return all_ids

    selected = set(focus_ids)
    for e in edges:
        if e["src"] in focus_ids or e["dst"] in focus_ids:
            selected.add(e["src"])
            selected.add(e["dst"])
    return selected


def _esc(text: str) -> str:
    return text.replace('"', '\\"')
