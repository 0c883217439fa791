"""Shared fixtures: config fixtures and a minimal HTTP/1.1 stub server."""

from __future__ import annotations

import asyncio
import shutil
import ssl
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

import pytest
import structlog

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@dataclass
class RecordedRequest:
    method: str
    target: str
    headers: dict[str, str]
    body: bytes


@dataclass
class StubServer:
    """Answers every request with the JSON body routed by path.

    Paths listed in ``delays`` sleep before answering. Connections are
    closed after each response.
    """

    routes: dict[str, bytes] = field(default_factory=dict)
    delays: dict[str, float] = field(default_factory=dict)
    requests: list[RecordedRequest] = field(default_factory=list)
    endpoint: str = ""
    server_names: list[str | None] = field(default_factory=list)
    _server: asyncio.base_events.Server | None = None
    _handlers: set[asyncio.Task] = field(default_factory=set)

    async def start_tcp(self, tls: ssl.SSLContext | None = None) -> str:
        self._server = await asyncio.start_server(
            self._handle, "127.0.0.1", 0, ssl=self._with_sni(tls)
        )
        port = self._server.sockets[0].getsockname()[1]
        self.endpoint = f"tcp://127.0.0.1:{port}"
        return self.endpoint

    async def start_unix(self, path: Path, tls: ssl.SSLContext | None = None) -> str:
        self._server = await asyncio.start_unix_server(
            self._handle, path=str(path), ssl=self._with_sni(tls)
        )
        self.endpoint = f"unix://{path}"
        return self.endpoint

    def _with_sni(self, tls: ssl.SSLContext | None) -> ssl.SSLContext | None:
        if tls is not None:
            tls.sni_callback = lambda sock, name, ctx: self.server_names.append(name)
        return tls

    async def stop(self) -> None:
        for task in list(self._handlers):
            task.cancel()
        if self._handlers:
            await asyncio.gather(*self._handlers, return_exceptions=True)
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        task = asyncio.current_task()
        self._handlers.add(task)
        try:
            head = await reader.readuntil(b"\r\n\r\n")
            lines = head.decode("latin-1").split("\r\n")
            method, target, _ = lines[0].split(" ", 2)
            headers: dict[str, str] = {}
            for line in lines[1:]:
                if line:
                    key, _, value = line.partition(":")
                    headers[key.strip().lower()] = value.strip()
            length = int(headers.get("content-length", "0"))
            body = await reader.readexactly(length) if length else b""
            self.requests.append(RecordedRequest(method, target, headers, body))

            delay = self.delays.get(target)
            if delay:
                await asyncio.sleep(delay)

            payload = self.routes.get(target, b"null")
            writer.write(
                b"HTTP/1.1 200 OK\r\n"
                b"Content-Type: application/json\r\n"
                + f"Content-Length: {len(payload)}\r\n".encode()
                + b"Connection: close\r\n\r\n"
                + payload
            )
            await writer.drain()
        except (asyncio.IncompleteReadError, ConnectionError, ssl.SSLError):
            pass
        finally:
            self._handlers.discard(task)
            writer.close()


@pytest.fixture
async def tcp_server():
    server = StubServer()
    await server.start_tcp()
    yield server
    await server.stop()


@pytest.fixture
def short_tmp():
    # AF_UNIX paths are limited to ~100 bytes; pytest's tmp_path can exceed that.
    path = Path(tempfile.mkdtemp(prefix="lsc"))
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
async def unix_server(short_tmp: Path):
    server = StubServer()
    await server.start_unix(short_tmp / "ls.sock")
    yield server
    await server.stop()


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    # CLI tests configure structlog against CliRunner's temporary stderr.
    structlog.reset_defaults()


@pytest.fixture
def server_tls() -> ssl.SSLContext:
    tls = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    tls.load_cert_chain(FIXTURES_DIR / "server.crt", FIXTURES_DIR / "server.key")
    return tls


@pytest.fixture
async def tls_tcp_server(server_tls: ssl.SSLContext):
    server = StubServer()
    await server.start_tcp(tls=server_tls)
    yield server
    await server.stop()


@pytest.fixture
async def tls_unix_server(short_tmp: Path, server_tls: ssl.SSLContext):
    server = StubServer()
    await server.start_unix(short_tmp / "ls.sock", tls=server_tls)
    yield server
    await server.stop()
