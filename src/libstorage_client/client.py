"""libStorage HTTP client: connection setup and request dispatch."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

import httpx

from libstorage_client.codec import decode_body, encode_payload
from libstorage_client.config.schema import ClientConfig
from libstorage_client.context import Context
from libstorage_client.devices import list_local_devices
from libstorage_client.errors import (
    ConfigurationError,
    DecodeError,
    ExchangeCancelledError,
    TransportError,
)
from libstorage_client.models.volume import RootResponse, ServiceVolumeMap
from libstorage_client.transport.address import TransportKind, parse_address
from libstorage_client.transport.dialer import UNIX_SOCKET_HOST, build_transport
from libstorage_client.transport.tls import TLSSettings, parse_tls_config
from libstorage_client.wirelog import WireLogger, WireSink

T = TypeVar("T")

METHODS = frozenset({"GET", "POST", "DELETE"})


class Client:
    """Client for a remote libStorage service.

    Use :func:`dial` to build one from configuration. A client is immutable
    once constructed and safe to share between tasks. Every operation takes
    an optional :class:`Context`; when omitted the client's own context is
    used, so cancelling ``client.context`` aborts all in-flight exchanges.
    """

    def __init__(
        self,
        config: ClientConfig,
        kind: TransportKind,
        address: str,
        ctx: Context,
        tls: TLSSettings | None = None,
        wire: WireLogger | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._kind = kind
        self._address = address
        self._tls = tls
        self._ctx = ctx
        self._wire = wire or WireLogger()
        self._http = httpx.AsyncClient(
            transport=transport or build_transport(kind, address, tls),
            timeout=None,
        )

    @property
    def kind(self) -> TransportKind:
        return self._kind

    @property
    def address(self) -> str:
        return self._address

    @property
    def tls(self) -> TLSSettings | None:
        return self._tls

    @property
    def context(self) -> Context:
        return self._ctx

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def root(self, ctx: Context | None = None) -> RootResponse:
        """Return the list of root resources."""
        return await self.get("/", RootResponse, ctx=ctx)

    async def volumes(self, ctx: Context | None = None) -> ServiceVolumeMap:
        """Return all volumes for all services, keyed by service name."""
        return await self.get("/volumes", ServiceVolumeMap, ctx=ctx)

    def list_local_devices(self, prefix: str) -> list[str]:
        """Scan the configured local devices file for devices named ``prefix*``."""
        return list_local_devices(self._config.client.localdevicesfile, prefix)

    async def get(self, path: str, reply_type: type[T] = Any, ctx: Context | None = None) -> T:
        return await self.exchange("GET", path, None, reply_type, ctx=ctx)

    async def post(
        self,
        path: str,
        payload: Any,
        reply_type: type[T] = Any,
        ctx: Context | None = None,
    ) -> T:
        return await self.exchange("POST", path, payload, reply_type, ctx=ctx)

    async def delete(self, path: str, reply_type: type[T] = Any, ctx: Context | None = None) -> T:
        return await self.exchange("DELETE", path, None, reply_type, ctx=ctx)

    @property
    def request_host(self) -> str:
        """Virtual host placed in request URLs.

        A TLS server-name override wins, then the fixed Unix socket host,
        then the resolved TCP address.
        """
        if self._tls is not None and self._tls.server_name:
            return self._tls.server_name
        if self._kind == TransportKind.UNIX:
            return UNIX_SOCKET_HOST
        return self._address

    def request_url(self, path: str) -> str:
        return f"http://{self.request_host}{path}"

    async def exchange(
        self,
        method: str,
        path: str,
        payload: Any = None,
        reply_type: type[T] = Any,
        ctx: Context | None = None,
    ) -> T:
        """Send one request and decode the JSON response into ``reply_type``.

        Raises:
            ExchangeCancelledError: ``ctx`` was cancelled before the response arrived.
            TransportError: the connection or round trip failed.
            DecodeError: the body could not be read or decoded.
            EncodeError: ``payload`` is not JSON-serializable.
        """
        method = method.upper()
        if method not in METHODS:
            raise ValueError(f"unsupported method {method!r}")
        ctx = ctx or self._ctx

        body = encode_payload(payload)
        headers = {"Content-Type": "application/json"} if body is not None else None

        url = self.request_url(path)
        ctx.log().debug("built request url", url=url)
        request = self._http.build_request(method, url, content=body, headers=headers)
        self._wire.log_request(request)

        response = await _run_in_context(ctx, self._roundtrip(request))
        self._wire.log_response(response)
        ctx.log().debug(
            "exchange complete", method=method, url=url, status=response.status_code
        )
        return decode_body(response.content, reply_type)

    async def _roundtrip(self, request: httpx.Request) -> httpx.Response:
        try:
            response = await self._http.send(request, stream=True)
        except httpx.HTTPError as e:
            raise TransportError(f"{request.method} {request.url} failed: {e}") from e
        try:
            await response.aread()
        except httpx.HTTPError as e:
            raise DecodeError(f"reading response body failed: {e}") from e
        finally:
            await response.aclose()
        return response


async def _run_in_context(ctx: Context, coro: Coroutine[Any, Any, T]) -> T:
    """Await ``coro`` unless ``ctx`` is cancelled first."""
    if ctx.cancelled:
        coro.close()
        raise ExchangeCancelledError(ctx.reason)

    task = asyncio.ensure_future(coro)
    waiter = asyncio.ensure_future(ctx.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not task.done():
            task.cancel()

    if task in done:
        return task.result()
    # Let the request unwind before reporting why it stopped.
    await asyncio.gather(task, return_exceptions=True)
    if not ctx.cancelled:
        # The wait itself failed, e.g. the context is bound to another event loop.
        raise waiter.exception()
    raise ExchangeCancelledError(ctx.reason)


def dial(
    config: ClientConfig,
    ctx: Context | None = None,
    *,
    wire_sink: WireSink | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Client:
    """Build a client for the service named by ``libstorage.host``.

    The endpoint and TLS material are resolved once here. No connection is
    opened until the first exchange.
    """
    http_logging = config.client.http.logging
    wire = WireLogger(http_logging.logrequest, http_logging.logresponse, sink=wire_sink)

    host = config.host
    if not host:
        raise ConfigurationError("libstorage.host is required")

    tls, log_fields = parse_tls_config(config.client.tls)
    kind, address = parse_address(host)

    if ctx is None:
        ctx = Context.background()
        ctx.log().debug("created empty context for client")
    ctx = ctx.with_value("host", host)

    client = Client(
        config,
        kind,
        address,
        ctx,
        tls=tls,
        wire=wire,
        transport=transport,
    )
    ctx.log().info("configured client", **log_fields)
    return client
