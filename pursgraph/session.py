"""The live binding to one ``purs ide server`` subprocess."""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Deque, List, Optional

from . import config
from .errors import NotReadyError


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    STARTING = "starting"
    READY = "ready"
    STOPPED = "stopped"
    ERROR = "error"


@dataclass
class AnalyzerSession:
    """Process handle, port, project root and recent output of one analyzer.

    Owned by exactly one :class:`~pursgraph.ide_server.IdeServerManager`;
    the collector and resolver receive it explicitly.
    """

    project_path: Path
    port: int
    host: str = config.IDE_HOST
    process: Optional[asyncio.subprocess.Process] = None
    state: SessionState = SessionState.NOT_STARTED
    log_capacity: int = config.IDE_LOG_BUFFER_SIZE
    logs: Deque[str] = field(init=False)

    def __post_init__(self) -> None:
        self.logs = deque(maxlen=self.log_capacity)

    @property
    def ready(self) -> bool:
        return self.state is SessionState.READY

    def log(self, message: str, stream: str = "stdout") -> None:
        self.logs.append(f"[{stream}] {message}")

    def log_snapshot(self) -> List[str]:
        return list(self.logs)

    def require_ready(self) -> None:
        if not self.ready:
            raise NotReadyError()
