"""Tests for declaration collection via the analyzer ``complete`` command."""

from pathlib import Path

from fakes import completion
from pursgraph.collector import (
    collect_declarations,
    collect_module,
    completion_params,
    node_from_completion,
    relative_to_project,
)
from pursgraph.session import SessionState


def test_completion_params_shape():
    params = completion_params("Data.Foo", max_results=50)
    assert params["filters"] == [{"filter": "modules", "params": {"modules": ["Data.Foo"]}}]
    assert params["matcher"] == {}
    assert params["options"] == {"maxResults": 50, "groupReexports": False}


def test_relative_to_project_accepts_both_forms(temp_dir: Path):
    absolute = str(temp_dir / "src" / "Main.purs")
    assert relative_to_project(absolute, temp_dir) == str(Path("src") / "Main.purs")
    assert relative_to_project("src/Main.purs", temp_dir) == str(Path("src") / "Main.purs")


def test_node_from_completion_without_location(temp_dir: Path):
    assert node_from_completion(completion("Prim", "Int", None), temp_dir) is None


def test_node_from_completion_fields(temp_dir: Path):
    node = node_from_completion(
        completion("Utils", "helper", "src/Utils.purs", type_info="Int -> Int"), temp_dir
    )
    assert node.node_id == "Utils.helper"
    assert node.declaration_type == "value"
    assert node.type_info == "Int -> Int"
    assert node.used_by == []


class TestCollectDeclarations:
    """Phase 1 against the analyzer double."""

    async def test_modules_in_order(self, sample_ide, session):
        nodes = await collect_declarations(session, ["Utils", "Main"])
        assert [n.node_id for n in nodes] == ["Utils.helper", "Utils.twice", "Main.main"]
        modules = [r["params"]["filters"][0]["params"]["modules"] for r in sample_ide.commands("complete")]
        assert modules == [["Utils"], ["Main"]]

    async def test_entries_without_location_skipped(self, fake_ide, session):
        fake_ide.completions["Main"] = [
            completion("Main", "main", "src/Main.purs"),
            completion("Main", "Foreign", None, declaration_type="type"),
        ]
        nodes = await collect_declarations(session, ["Main"])
        assert [n.node_id for n in nodes] == ["Main.main"]

    async def test_duplicates_keep_first(self, fake_ide, session):
        fake_ide.completions["A"] = [completion("Utils", "helper", "src/Utils.purs", type_info="first")]
        fake_ide.completions["B"] = [completion("Utils", "helper", "src/Utils.purs", type_info="second")]
        nodes = await collect_declarations(session, ["A", "B"])
        assert len(nodes) == 1
        assert nodes[0].type_info == "first"

    async def test_failing_module_contributes_nothing(self, sample_ide, session):
        sample_ide.failing_modules.add("Broken")
        nodes = await collect_declarations(session, ["Broken", "Main"])
        assert [n.node_id for n in nodes] == ["Main.main"]

    async def test_unknown_module_is_empty(self, fake_ide, session):
        assert await collect_declarations(session, ["Mian"]) == []

    async def test_empty_module_list(self, fake_ide, session):
        assert await collect_declarations(session, []) == []
        assert fake_ide.requests == []

    async def test_transport_failure_logged_not_raised(self, fake_ide, session):
        await fake_ide.close()
        session.state = SessionState.READY
        assert await collect_module(session, "Main") == []
