"""Pinned dialer and the httpx transport built on it.

httpx and httpcore assume TCP ``host:port`` destinations taken from the
request URL. The libStorage URL carries a virtual host instead (a routing
label for the server), so the network backend here ignores whatever
destination the connection pool asks for and always dials the endpoint
resolved at construction time, optionally wrapping it in TLS.
"""

from __future__ import annotations

import typing

import httpcore
import httpx
import structlog

from libstorage_client.transport.address import TransportKind, split_host_port
from libstorage_client.transport.tls import TLSSettings

log = structlog.get_logger()

# Host sent in the URL, and used for TLS SNI, when talking over a Unix socket.
UNIX_SOCKET_HOST = "libstorage-server"


class PinnedDialer(httpcore.AsyncNetworkBackend):
    """Network backend that always connects to one pre-resolved endpoint."""

    def __init__(
        self,
        kind: TransportKind,
        address: str,
        tls: TLSSettings | None = None,
        backend: httpcore.AsyncNetworkBackend | None = None,
    ) -> None:
        self.kind = kind
        self.address = address
        self.tls = tls
        self._backend = backend or httpcore.AnyIOBackend()
        if kind == TransportKind.TCP:
            self._host, self._port = split_host_port(address)
        else:
            self._host, self._port = None, None

    @property
    def server_hostname(self) -> str | None:
        """Hostname presented for TLS verification and SNI."""
        if self.tls is not None and self.tls.server_name:
            return self.tls.server_name
        if self.kind == TransportKind.TCP:
            return self._host
        return UNIX_SOCKET_HOST

    async def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: float | None = None,
        local_address: str | None = None,
        socket_options: typing.Iterable[httpcore.SOCKET_OPTION] | None = None,
    ) -> httpcore.AsyncNetworkStream:
        return await self.dial(timeout=timeout, socket_options=socket_options)

    async def connect_unix_socket(
        self,
        path: str,
        timeout: float | None = None,
        socket_options: typing.Iterable[httpcore.SOCKET_OPTION] | None = None,
    ) -> httpcore.AsyncNetworkStream:
        return await self.dial(timeout=timeout, socket_options=socket_options)

    async def dial(
        self,
        timeout: float | None = None,
        socket_options: typing.Iterable[httpcore.SOCKET_OPTION] | None = None,
    ) -> httpcore.AsyncNetworkStream:
        """Open a connection to the resolved endpoint, upgrading to TLS when configured."""
        if self.kind == TransportKind.UNIX:
            stream = await self._backend.connect_unix_socket(
                self.address, timeout=timeout, socket_options=socket_options
            )
        else:
            stream = await self._backend.connect_tcp(
                self._host, self._port, timeout=timeout, socket_options=socket_options
            )
        log.debug("dialed endpoint", transport=str(self.kind), address=self.address)

        if self.tls is None:
            return stream
        try:
            return await stream.start_tls(
                self.tls.ssl_context,
                server_hostname=self.server_hostname,
                timeout=timeout,
            )
        except BaseException:
            await stream.aclose()
            raise

    async def sleep(self, seconds: float) -> None:
        await self._backend.sleep(seconds)


_EXCEPTION_MAP: list[tuple[type[Exception], type[httpx.TransportError]]] = [
    (httpcore.ConnectTimeout, httpx.ConnectTimeout),
    (httpcore.ReadTimeout, httpx.ReadTimeout),
    (httpcore.WriteTimeout, httpx.WriteTimeout),
    (httpcore.PoolTimeout, httpx.PoolTimeout),
    (httpcore.TimeoutException, httpx.TimeoutException),
    (httpcore.ConnectError, httpx.ConnectError),
    (httpcore.ReadError, httpx.ReadError),
    (httpcore.WriteError, httpx.WriteError),
    (httpcore.NetworkError, httpx.NetworkError),
    (httpcore.RemoteProtocolError, httpx.RemoteProtocolError),
    (httpcore.LocalProtocolError, httpx.LocalProtocolError),
    (httpcore.UnsupportedProtocol, httpx.UnsupportedProtocol),
]


def _map_exception(exc: Exception, request: httpx.Request | None = None) -> Exception:
    for core_type, httpx_type in _EXCEPTION_MAP:
        if isinstance(exc, core_type):
            return httpx_type(str(exc), request=request)
    return exc


class _ResponseStream(httpx.AsyncByteStream):
    def __init__(self, stream: typing.AsyncIterable[bytes], request: httpx.Request) -> None:
        self._stream = stream
        self._request = request

    async def __aiter__(self) -> typing.AsyncIterator[bytes]:
        try:
            async for part in self._stream:
                yield part
        except Exception as e:
            mapped = _map_exception(e, self._request)
            if mapped is e:
                raise
            raise mapped from e

    async def aclose(self) -> None:
        if hasattr(self._stream, "aclose"):
            await self._stream.aclose()


class PinnedTransport(httpx.AsyncBaseTransport):
    """httpx transport whose connection pool dials through a :class:`PinnedDialer`."""

    def __init__(self, dialer: PinnedDialer) -> None:
        self.dialer = dialer
        self._pool = httpcore.AsyncConnectionPool(network_backend=dialer)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        core_request = httpcore.Request(
            method=request.method,
            url=httpcore.URL(
                scheme=request.url.raw_scheme,
                host=request.url.raw_host,
                port=request.url.port,
                target=request.url.raw_path,
            ),
            headers=request.headers.raw,
            content=request.stream,
            extensions=request.extensions,
        )
        try:
            core_response = await self._pool.handle_async_request(core_request)
        except Exception as e:
            mapped = _map_exception(e, request)
            if mapped is e:
                raise
            raise mapped from e

        return httpx.Response(
            status_code=core_response.status,
            headers=core_response.headers,
            stream=_ResponseStream(core_response.stream, request),
            extensions=core_response.extensions,
        )

    async def aclose(self) -> None:
        await self._pool.aclose()


def build_transport(
    kind: TransportKind, address: str, tls: TLSSettings | None = None
) -> PinnedTransport:
    """Return an httpx transport bound to the resolved endpoint."""
    return PinnedTransport(PinnedDialer(kind, address, tls))
