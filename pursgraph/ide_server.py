"""Lifecycle management for the ``purs ide server`` subprocess."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from . import config
from .errors import IdeError, PreconditionError, SpawnError
from .ide_client import send_raw
from .session import AnalyzerSession, SessionState

logger = logging.getLogger(__name__)


@dataclass
class StartResult:
    status: str
    message: str
    port: int
    project_path: str
    initial_load_result: Dict[str, Any]
    logs: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "message": self.message,
            "port": self.port,
            "project_path": self.project_path,
            "initial_load_result": self.initial_load_result,
            "logs": self.logs,
        }


def build_command(
    port: int,
    output_directory: str,
    log_level: str,
    source_globs: Sequence[str],
    purs_command: Optional[Sequence[str]] = None,
) -> List[str]:
    """Return the argv used to launch ``purs ide server``."""
    prefix = list(purs_command if purs_command is not None else config.PURS_COMMAND)
    return [
        *prefix,
        "ide", "server",
        "--port", str(port),
        "--output-directory", output_directory,
        "--log-level", log_level,
        *source_globs,
    ]


class IdeServerManager:
    """Owns at most one :class:`AnalyzerSession` at a time.

    ``start`` always tears down the previous session first, so a caller can
    restart against a different project or port without leaking processes.
    """

    def __init__(
        self,
        purs_command: Optional[Sequence[str]] = None,
        warmup_seconds: Optional[float] = None,
        log_capacity: Optional[int] = None,
    ) -> None:
        self.purs_command = list(purs_command) if purs_command is not None else None
        self.warmup_seconds = warmup_seconds
        self.log_capacity = log_capacity
        self.session: Optional[AnalyzerSession] = None
        self._watchers: List[asyncio.Task] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        if self.session is None:
            return SessionState.NOT_STARTED
        return self.session.state

    @property
    def ready(self) -> bool:
        return self.session is not None and self.session.ready

    def logs(self) -> List[str]:
        return self.session.log_snapshot() if self.session else []

    # ------------------------------------------------------------------
    # Start / stop
    # ------------------------------------------------------------------

    async def start(
        self,
        project_path: Optional[Path] = None,
        port: Optional[int] = None,
        output_directory: Optional[str] = None,
        source_globs: Optional[Sequence[str]] = None,
        log_level: Optional[str] = None,
    ) -> StartResult:
        """Spawn the analyzer, wait for it to warm up, then issue ``load``.

        Raises:
            PreconditionError: unknown *log_level*.
            SpawnError: the process could not be started or ``load`` failed.
        """
        log_level = log_level or config.IDE_LOG_LEVEL
        if log_level not in config.IDE_LOG_LEVELS:
            raise PreconditionError(
                f"Invalid log_level '{log_level}'. Expected one of: {', '.join(config.IDE_LOG_LEVELS)}"
            )

        if self.session is not None and self.session.process is not None:
            logger.info("Stopping existing purs ide server before starting a new one.")
            self.session.log("Stopping existing purs ide server before starting a new one.", "internal")
        await self.stop()

        resolved = Path(project_path or Path.cwd()).resolve()
        port = port or config.IDE_PORT
        session = AnalyzerSession(
            project_path=resolved,
            port=port,
            log_capacity=self.log_capacity or config.IDE_LOG_BUFFER_SIZE,
        )
        session.state = SessionState.STARTING
        self.session = session

        argv = build_command(
            port,
            output_directory or config.IDE_OUTPUT_DIRECTORY,
            log_level,
            list(source_globs) if source_globs is not None else config.IDE_SOURCE_GLOBS,
            self.purs_command,
        )
        logger.info("Spawning '%s' in %s", " ".join(argv), resolved)
        try:
            session.process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(resolved),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as exc:
            session.state = SessionState.ERROR
            session.log(f"Failed to start purs ide server: {exc}", "error")
            raise SpawnError(
                f"Failed to start purs ide server: {exc}", session.log_snapshot()
            ) from exc

        self._watch(session)
        proc = session.process

        warmup = self.warmup_seconds if self.warmup_seconds is not None else config.IDE_WARMUP_SECONDS
        await asyncio.sleep(warmup)

        if proc.returncode is not None:
            code = proc.returncode
            await self._kill(session, proc)
            session.state = SessionState.ERROR
            raise SpawnError(
                f"purs ide server exited during startup with code {code}",
                session.log_snapshot(),
            )

        # Assume ready for the first call; load tells us whether it really is.
        session.state = SessionState.READY
        logger.info("Attempting initial 'load' command to purs ide server...")
        try:
            load_result = await send_raw(session, "load", {})
        except IdeError as exc:
            logger.error("Error during initial 'load' to purs ide server: %s", exc)
            await self._kill(session)
            session.state = SessionState.ERROR
            raise SpawnError(
                f"purs ide server started but initial load command failed: {exc}",
                session.log_snapshot(),
            ) from exc

        logger.info("Initial 'load' command to purs ide server successful.")
        return StartResult(
            status="success",
            message="purs ide server started and initial load attempted.",
            port=port,
            project_path=str(resolved),
            initial_load_result=load_result,
            logs=session.log_snapshot(),
        )

    async def stop(self) -> Dict[str, str]:
        """Kill the analyzer if one is running. Safe to call at any time."""
        session = self.session
        if session is None or session.process is None:
            return {"status": "success", "message": "No purs ide server was running."}

        await self._kill(session)
        session.state = SessionState.STOPPED
        session.log("purs ide server stopped.", "internal")
        logger.info("purs ide server stopped.")
        return {"status": "success", "message": "purs ide server stopped."}

    async def quit(self) -> Dict[str, str]:
        """Ask the analyzer to exit via its ``quit`` command, then stop it."""
        if self.ready:
            try:
                await send_raw(self.session, "quit", {})
            except IdeError as exc:
                logger.warning("purs ide did not accept 'quit': %s", exc)
        return await self.stop()

    # ------------------------------------------------------------------
    # Process plumbing
    # ------------------------------------------------------------------

    def _watch(self, session: AnalyzerSession) -> None:
        proc = session.process
        assert proc is not None
        self._watchers = [
            asyncio.create_task(self._pump(session, proc.stdout, "stdout")),
            asyncio.create_task(self._pump(session, proc.stderr, "stderr")),
            asyncio.create_task(self._wait_exit(session, proc)),
        ]

    @staticmethod
    async def _pump(
        session: AnalyzerSession,
        stream: Optional[asyncio.StreamReader],
        name: str,
    ) -> None:
        if stream is None:
            return
        while True:
            line = await stream.readline()
            if not line:
                return
            message = line.decode("utf-8", errors="replace").rstrip()
            if not message:
                continue
            session.log(message, name)
            if name == "stderr":
                logger.warning("[purs ide stderr]: %s", message)
            else:
                logger.debug("[purs ide stdout]: %s", message)

    async def _wait_exit(self, session: AnalyzerSession, proc: asyncio.subprocess.Process) -> None:
        code = await proc.wait()
        if session.process is not proc:
            return
        session.log(f"purs ide server process exited with code {code}", "internal" if code == 0 else "error")
        logger.info("purs ide server process exited with code %s", code)
        session.process = None
        if session.state in (SessionState.READY, SessionState.STARTING):
            session.state = SessionState.STOPPED if code == 0 else SessionState.ERROR

    async def _kill(
        self,
        session: AnalyzerSession,
        proc: Optional[asyncio.subprocess.Process] = None,
    ) -> None:
        proc = proc or session.process
        session.process = None
        if proc is not None:
            _kill_process_group(proc)
            await proc.wait()
        watchers, self._watchers = self._watchers, []
        for task in watchers:
            task.cancel()
        if watchers:
            await asyncio.gather(*watchers, return_exceptions=True)


def _kill_process_group(proc: asyncio.subprocess.Process) -> None:
    """SIGKILL the analyzer's whole process group.

    The launcher (``npx`` or a shell wrapper) may run ``purs`` as a child
    that holds the output pipes and the port.
    """
    if not hasattr(os, "killpg"):
        if proc.returncode is None:
            proc.kill()
        return
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        logger.debug("purs ide process group %s already gone", proc.pid)
    except PermissionError as exc:
        logger.warning("Could not kill purs ide process group %s: %s", proc.pid, exc)
        if proc.returncode is None:
            proc.kill()
