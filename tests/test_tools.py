"""Tests for the named tool surface."""

import pytest

from fakes import FakeSyntaxEngine
from pursgraph.errors import NotReadyError, PreconditionError, ProtocolError, UnknownToolError
from pursgraph.ide_server import IdeServerManager
from pursgraph.tools import TOOL_MANIFEST, PursGraphService


@pytest.fixture
def service(fake_purs_command) -> PursGraphService:
    manager = IdeServerManager(purs_command=fake_purs_command, warmup_seconds=1.0)
    return PursGraphService(manager=manager, engine_factory=FakeSyntaxEngine)


def test_manifest_lists_all_tools():
    names = [tool["name"] for tool in TOOL_MANIFEST]
    assert names == [
        "query_purescript_ast",
        "start_purs_ide_server",
        "stop_purs_ide_server",
        "query_purs_ide",
        "generate_dependency_graph",
    ]


async def test_unknown_tool(service):
    with pytest.raises(UnknownToolError, match="Tool 'frobnicate' not found."):
        await service.invoke("frobnicate", {})


async def test_arguments_must_be_object(service):
    with pytest.raises(PreconditionError):
        await service.invoke("stop_purs_ide_server", ["nope"])


async def test_query_ast_uses_engine(service):
    payload = await service.invoke(
        "query_purescript_ast",
        {"purescript_code": "module Main where\n\nmain = 1\n", "tree_sitter_query": "(function name: (_) @name) @decl"},
    )
    assert {"name": "name", "text": "main"} in payload["results"]


async def test_query_ast_requires_code(service):
    with pytest.raises(PreconditionError, match="purescript_code"):
        await service.invoke("query_purescript_ast", {"tree_sitter_query": "(x)"})


async def test_query_purs_ide_before_start(service):
    with pytest.raises(NotReadyError):
        await service.invoke("query_purs_ide", {"purs_ide_command": "cwd"})


async def test_generate_before_start(service):
    with pytest.raises(NotReadyError):
        await service.invoke("generate_dependency_graph", {"target_modules": ["Main"]})


async def test_generate_validates_modules_first(service):
    with pytest.raises(PreconditionError):
        await service.invoke("generate_dependency_graph", {"target_modules": "Main"})


async def test_start_rejects_bad_port(service):
    with pytest.raises(PreconditionError, match="port"):
        await service.invoke("start_purs_ide_server", {"port": "4242"})


async def test_stop_when_idle(service):
    payload = await service.invoke("stop_purs_ide_server", {})
    assert payload["message"] == "No purs ide server was running."


async def test_full_session(service, sample_project_path, free_port):
    started = await service.invoke(
        "start_purs_ide_server",
        {"project_path": str(sample_project_path), "port": free_port},
    )
    try:
        assert started["status"] == "success"

        raw = await service.invoke("query_purs_ide", {"purs_ide_command": "load", "purs_ide_params": {}})
        assert raw == {"status": "success", "result": {"resultType": "success", "result": "Loaded 2 modules"}}

        graph = await service.invoke("generate_dependency_graph", {"target_modules": ["Main"]})
        assert [n["id"] for n in graph["graph_nodes"]] == ["Main.main"]
    finally:
        stopped = await service.invoke("stop_purs_ide_server", {})
    assert stopped["message"] == "purs ide server stopped."


async def test_query_purs_ide_error_carries_server_logs(fake_ide, session):
    fake_ide.raw_reply = b"garbage\n"
    session.log("Loaded 2 modules", "stdout")
    manager = IdeServerManager()
    manager.session = session
    service = PursGraphService(manager=manager, engine_factory=FakeSyntaxEngine)

    with pytest.raises(ProtocolError) as excinfo:
        await service.invoke("query_purs_ide", {"purs_ide_command": "cwd"})

    assert excinfo.value.logs == ["[stdout] Loaded 2 modules"]
    assert excinfo.value.to_dict()["logs"] == ["[stdout] Loaded 2 modules"]
