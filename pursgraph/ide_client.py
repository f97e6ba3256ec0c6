"""Newline-delimited JSON client for ``purs ide server``.

Every command opens its own TCP connection: write one JSON object and a
newline, read one newline-terminated JSON object back, close.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from .errors import ProtocolError, TransportError
from .models import IdeFailure, IdeResponse, IdeSuccess
from .session import AnalyzerSession

logger = logging.getLogger(__name__)

# Commands forwarded verbatim by ``query_purs_ide``.
PASSTHROUGH_COMMANDS = frozenset(
    {"load", "complete", "usages", "type", "cwd", "reset", "quit", "rebuild", "list"}
)

READ_CHUNK_SIZE = 64 * 1024


def parse_response(payload: Any) -> IdeResponse:
    """Validate a decoded analyzer answer into a tagged result."""
    if not isinstance(payload, dict):
        raise ProtocolError(f"Expected a JSON object from purs ide, got {type(payload).__name__}")
    if payload.get("resultType") == "success":
        return IdeSuccess(result=payload.get("result"), raw=payload)
    return IdeFailure(reason=payload.get("result", payload.get("error")), raw=payload)


async def read_reply(reader: asyncio.StreamReader) -> bytes:
    """Bytes up to the first newline, or up to EOF when none arrives.

    Replies are read in chunks so a single line is not bound by the
    stream's line-length limit.
    """
    buf = bytearray()
    while True:
        chunk = await reader.read(READ_CHUNK_SIZE)
        if not chunk:
            return bytes(buf)
        newline = chunk.find(b"\n")
        if newline >= 0:
            buf += chunk[:newline]
            return bytes(buf)
        buf += chunk


async def send_raw(
    session: AnalyzerSession,
    command: str,
    params: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Send one command and return the decoded JSON object, unvalidated."""
    session.require_ready()
    payload = {"command": command, "params": params or {}}
    encoded = json.dumps(payload)
    logger.debug("-> purs ide: %s", encoded[:100])

    try:
        reader, writer = await asyncio.open_connection(session.host, session.port)
    except OSError as exc:
        raise TransportError(f"TCP connection error with purs ide server: {exc}") from exc

    try:
        writer.write(encoded.encode("utf-8") + b"\n")
        await writer.drain()
        line = await read_reply(reader)
    except OSError as exc:
        raise TransportError(f"TCP connection error with purs ide server: {exc}") from exc
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            logger.debug("Connection to purs ide already closed")

    text = line.decode("utf-8", errors="replace").strip()
    logger.debug("<- purs ide: %s", text[:100])
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ProtocolError(
            f"Failed to parse JSON response from purs ide: {exc.msg}. Raw: {text[:200]}"
        ) from exc
    if not isinstance(decoded, dict):
        raise ProtocolError(f"Expected a JSON object from purs ide. Raw: {text[:200]}")
    return decoded


async def send_command(
    session: AnalyzerSession,
    command: str,
    params: Optional[Dict[str, Any]] = None,
) -> IdeResponse:
    """Send *command* and return :class:`IdeSuccess` or :class:`IdeFailure`.

    Raises:
        NotReadyError: the session is not ready.
        TransportError: connect/write/read failed.
        ProtocolError: the answer was not a single JSON object.
    """
    return parse_response(await send_raw(session, command, params))
