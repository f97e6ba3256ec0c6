"""Typer-based CLI for pursgraph PureScript code intelligence."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__, config, config_manager
from .errors import PursGraphError
from .generator import generate_dependency_graph
from .graph import DependencyGraph
from .graph_export import export_dot, export_json, render_dot
from .tools import PursGraphService

console = Console()

app = typer.Typer(
    help="🧠 pursgraph — PureScript dependency graphs from purs ide + Tree-sitter.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(
    help="⚙️  Configuration — purs ide and graph defaults.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(config_app, name="config")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"pursgraph v{__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress and purs ide output."),
):
    """pursgraph: who-uses-what graphs for PureScript projects."""
    _setup_logging(verbose)


def _fail(exc: PursGraphError) -> NoReturn:
    typer.echo(f"❌ {exc}", err=True)
    raise typer.Exit(code=1)


async def _with_server(
    service: PursGraphService,
    project: Path,
    port: Optional[int],
    tool_name: str,
    arguments: Dict[str, Any],
) -> Dict[str, Any]:
    """Start purs ide, run one tool, and always stop the server afterwards."""
    try:
        await service.invoke("start_purs_ide_server", {"project_path": str(project), "port": port})
        return await service.invoke(tool_name, arguments)
    finally:
        await service.manager.stop()


async def _generate(
    service: PursGraphService,
    project: Path,
    port: Optional[int],
    modules: List[str],
    max_concurrent: int,
) -> DependencyGraph:
    try:
        await service.manager.start(project_path=project, port=port)
        return await generate_dependency_graph(
            service.manager.session, service.engine, modules, max_concurrent
        )
    finally:
        await service.manager.stop()


@app.command("graph")
def graph(
    modules: List[str] = typer.Argument(..., help="Modules to analyze, e.g. Main Data.Foo."),
    project: Path = typer.Option(Path("."), "--project", "-p", exists=True, file_okay=False, help="PureScript project root."),
    port: Optional[int] = typer.Option(None, help="Port for purs ide server."),
    max_concurrent: int = typer.Option(
        config.MAX_CONCURRENT_REQUESTS, "--max-concurrent", "-c", min=1, help="Concurrent 'usages' requests."
    ),
    fmt: str = typer.Option("json", "--format", "-f", help="Output format: json or dot."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to file instead of stdout."),
    focus: str = typer.Option("", help="DOT only: restrict to edges touching this symbol."),
):
    """Generate the reverse-usage dependency graph for MODULES."""
    fmt = fmt.lower()
    if fmt not in {"json", "dot"}:
        raise typer.BadParameter("Format must be one of: json, dot")

    service = PursGraphService()
    try:
        result_graph = asyncio.run(_generate(service, project, port, list(modules), max_concurrent))
    except PursGraphError as exc:
        _fail(exc)

    if output is None:
        if fmt == "json":
            typer.echo(json.dumps(result_graph.to_dict(), indent=2))
        else:
            typer.echo(render_dot(result_graph, focus=focus))
        return

    if fmt == "json":
        export_json(result_graph, output)
    else:
        export_dot(result_graph, output, focus=focus)
    typer.echo(f"Exported {len(result_graph)} nodes to {output}")


@app.command("query")
def query(
    command: str = typer.Argument(..., help="purs ide command: type, complete, usages, list, ..."),
    params: str = typer.Option("{}", "--params", help="Command parameters as a JSON object."),
    project: Path = typer.Option(Path("."), "--project", "-p", exists=True, file_okay=False, help="PureScript project root."),
    port: Optional[int] = typer.Option(None, help="Port for purs ide server."),
):
    """Start purs ide, send one COMMAND, print the raw response."""
    try:
        parsed = json.loads(params)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"--params is not valid JSON: {exc.msg}")

    service = PursGraphService()
    try:
        payload = asyncio.run(
            _with_server(
                service, project, port, "query_purs_ide",
                {"purs_ide_command": command, "purs_ide_params": parsed},
            )
        )
    except PursGraphError as exc:
        _fail(exc)
    typer.echo(json.dumps(payload["result"], indent=2))


@app.command("ast")
def ast_query(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="PureScript source file."),
    tree_sitter_query: str = typer.Argument(..., help="Tree-sitter query, e.g. '(function name: (variable) @name)'."),
):
    """Run a Tree-sitter query against FILE and list the captures."""
    service = PursGraphService()
    try:
        payload = asyncio.run(
            service.invoke(
                "query_purescript_ast",
                {"purescript_code": file.read_text(encoding="utf-8"), "tree_sitter_query": tree_sitter_query},
            )
        )
    except PursGraphError as exc:
        _fail(exc)

    results = payload["results"]
    if not results:
        typer.echo("No captures.")
        return
    for item in results:
        typer.echo(f"@{item['name']}\t{item['text']}")


@app.command("tools")
def list_tools():
    """List the tools exposed by the pursgraph service."""
    table = Table(title="pursgraph tools")
    table.add_column("Tool", style="cyan")
    table.add_column("Description")
    table.add_column("Arguments", style="dim")
    for tool in PursGraphService.manifest():
        props = tool["input_schema"].get("properties", {})
        table.add_row(tool["name"], tool["description"], ", ".join(props) or "-")
    console.print(table)


# ── config group ─────────────────────────────────────────────


@config_app.command("show")
def config_show():
    """Show effective settings."""
    table = Table(title=f"Settings ({config_manager.CONFIG_FILE})")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for section in config_manager.DEFAULT_CONFIG:
        for key, value in config_manager.load_section(section).items():
            table.add_row(f"{section}.{key}", json.dumps(value))
    console.print(table)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Setting as SECTION.KEY, e.g. ide.port."),
    value: str = typer.Argument(..., help="New value; lists are comma-separated."),
):
    """Persist one setting to config.toml."""
    section, _, name = key.partition(".")
    try:
        coerced = config_manager.coerce_value(section, name, value)
    except KeyError:
        raise typer.BadParameter(f"Unknown setting '{key}'.")
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid value for '{key}': {exc}")
    config_manager.save_setting(section, name, coerced)
    typer.echo(f"✅ {key} = {json.dumps(coerced)}")


@config_app.command("reset")
def config_reset():
    """Delete config.toml and return to defaults."""
    if config_manager.reset_config():
        typer.echo("✅ Configuration reset to defaults.")
    else:
        typer.echo("No configuration file to reset.")


if __name__ == "__main__":
    app()
