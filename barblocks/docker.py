"""Container and image counts from the local Docker daemon."""

from __future__ import annotations

import asyncio
import contextlib
import json
import os
from dataclasses import dataclass
from typing import Any

from barblocks.api import BlockError

DEFAULT_SOCKET_PATH = "/var/run/docker.sock"

_FIELDS = {
    "total": "Containers",
    "running": "ContainersRunning",
    "stopped": "ContainersStopped",
    "paused": "ContainersPaused",
    "images": "Images",
}


@dataclass(frozen=True)
class DockerStatus:
    """Counts reported by the daemon's ``/info`` endpoint."""

    total: int
    running: int
    stopped: int
    paused: int
    images: int


def parse_status(data: bytes | str | dict[str, Any]) -> DockerStatus:
    """Build a status from the ``/info`` JSON (raw or already decoded)."""
    if isinstance(data, (bytes, str)):
        try:
            data = json.loads(data)
        except (ValueError, UnicodeDecodeError) as exc:
            raise BlockError("Failed to deserialize JSON") from exc
    if not isinstance(data, dict):
        raise BlockError("Failed to deserialize JSON")
    values = {}
    for attr, key in _FIELDS.items():
        value = data.get(key)
        if not isinstance(value, int) or isinstance(value, bool):
            raise BlockError("Failed to deserialize JSON")
        values[attr] = value
    return DockerStatus(**values)


async def _read_body(reader: asyncio.StreamReader) -> bytes:
    status_line = await reader.readline()
    if not status_line.startswith(b"HTTP/"):
        raise ValueError("malformed status line")
    headers = {}
    while True:
        line = await reader.readline()
        if line in (b"\r\n", b"\n", b""):
            break
        name, _, value = line.decode("latin-1").partition(":")
        headers[name.strip().lower()] = value.strip()

    if "chunked" in headers.get("transfer-encoding", "").lower():
        chunks = []
        while True:
            size_line = await reader.readline()
            size = int(size_line.split(b";", 1)[0].strip(), 16)
            if size == 0:
                while (await reader.readline()) not in (b"\r\n", b"\n", b""):
                    pass
                break
            chunks.append(await reader.readexactly(size))
            await reader.readline()
        return b"".join(chunks)
    if "content-length" in headers:
        return await reader.readexactly(int(headers["content-length"]))
    return await reader.read()


async def fetch_status(socket_path: str | os.PathLike = DEFAULT_SOCKET_PATH) -> DockerStatus:
    """Query the daemon over its Unix socket (``~`` and variables are expanded)."""
    path = os.path.expandvars(os.path.expanduser(os.fspath(socket_path)))
    try:
        reader, writer = await asyncio.open_unix_connection(path)
    except OSError as exc:
        raise BlockError("Failed to connect to socket") from exc
    try:
        writer.write(
            b"GET /info HTTP/1.1\r\nHost: localhost\r\nConnection: close\r\n\r\n"
        )
        await writer.drain()
        body = await _read_body(reader)
    except (OSError, ValueError, asyncio.IncompleteReadError) as exc:
        raise BlockError("Failed to get response") from exc
    finally:
        writer.close()
        with contextlib.suppress(OSError):
            await writer.wait_closed()
    return parse_status(body)