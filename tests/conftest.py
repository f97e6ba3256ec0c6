"""Pytest configuration and fixtures for pursgraph tests."""

import shutil
import socket
import sys
import tempfile
from pathlib import Path
from typing import AsyncGenerator, Generator, List

import pytest

from fakes import FakeIde, FakeSyntaxEngine, completion, location
from pursgraph.session import AnalyzerSession, SessionState

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path(temp_dir: Path) -> Path:
    """A copy of the two-module PureScript sample project."""
    target = temp_dir / "sample_project"
    shutil.copytree(FIXTURES / "sample_project", target)
    return target.resolve()


@pytest.fixture
def fake_purs_command() -> List[str]:
    """Command prefix that launches the scripted ``purs`` stand-in."""
    return [sys.executable, str(FIXTURES / "fake_purs.py")]


@pytest.fixture
def free_port() -> int:
    """A TCP port nothing is listening on right now."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def engine() -> FakeSyntaxEngine:
    return FakeSyntaxEngine()


@pytest.fixture
async def fake_ide() -> AsyncGenerator[FakeIde, None]:
    """A started in-process analyzer double."""
    server = await FakeIde().start()
    yield server
    await server.close()


@pytest.fixture
def session(fake_ide: FakeIde, sample_project_path: Path) -> AnalyzerSession:
    """A ready session pointed at the analyzer double and the sample project."""
    sess = AnalyzerSession(project_path=sample_project_path, port=fake_ide.port)
    sess.state = SessionState.READY
    return sess


@pytest.fixture
def sample_ide(fake_ide: FakeIde) -> FakeIde:
    """Analyzer double primed with the sample project's declarations and usages."""
    fake_ide.completions["Main"] = [completion("Main", "main", "src/Main.purs")]
    fake_ide.completions["Utils"] = [
        completion("Utils", "helper", "src/Utils.purs", type_info="Int -> Int"),
        completion("Utils", "twice", "src/Utils.purs", type_info="Int -> Int"),
    ]
    fake_ide.usages["Utils.helper"] = [
        location("src/Main.purs", [4, 15], [4, 21]),
        location("src/Main.purs", [8, 3], [8, 9]),
        location("src/Main.purs", [9, 3], [9, 9]),
        location("src/Utils.purs", [9, 11], [9, 17]),
        location("src/Utils.purs", [9, 19], [9, 25]),
        location("src/Utils.purs", [11, 14], [11, 20]),
    ]
    return fake_ide
