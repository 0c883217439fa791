"""Best-effort wire-level dumps of client HTTP traffic."""

from __future__ import annotations

import textwrap
from collections.abc import Callable

import httpx
import structlog

log = structlog.get_logger("libstorage_client.wire")

WireSink = Callable[[str], object]

_INDENT = "    "
REQUEST_BANNER = f"{_INDENT}-------------------------- HTTP REQUEST (CLIENT) -------------------------"
RESPONSE_BANNER = f"{_INDENT}-------------------------- HTTP RESPONSE (CLIENT) -------------------------"


def dump_request(request: httpx.Request) -> str:
    target = request.url.raw_path.decode("ascii", errors="replace")
    lines = [f"{request.method} {target} HTTP/1.1"]
    lines.extend(_header_lines(request.headers))
    return _join(lines, request.content)


def dump_response(response: httpx.Response) -> str:
    lines = [f"{response.http_version} {response.status_code} {response.reason_phrase}".rstrip()]
    lines.extend(_header_lines(response.headers))
    return _join(lines, response.content)


def _header_lines(headers: httpx.Headers) -> list[str]:
    return [f"{k.decode('latin-1')}: {v.decode('latin-1')}" for k, v in headers.raw]


def _join(head: list[str], body: bytes) -> str:
    text = "\n".join(head) + "\n\n"
    if body:
        text += body.decode("utf-8", errors="replace")
    return text


class WireLogger:
    """Writes indented request/response dumps to an injected sink.

    Each direction has its own switch. Dumping never raises: a failure to
    build or write a dump is logged at debug level and otherwise ignored.
    """

    def __init__(
        self,
        log_requests: bool = False,
        log_responses: bool = False,
        sink: WireSink | None = None,
    ) -> None:
        self.log_requests = log_requests
        self.log_responses = log_responses
        self._sink = sink or log.info

    def log_request(self, request: httpx.Request) -> None:
        if self.log_requests:
            self._emit(REQUEST_BANNER, dump_request, request)

    def log_response(self, response: httpx.Response) -> None:
        if self.log_responses:
            self._emit(RESPONSE_BANNER, dump_response, response)

    def _emit(self, banner: str, dump: Callable[[object], str], message: object) -> None:
        try:
            body = textwrap.indent(dump(message), _INDENT, lambda line: True)
            self._sink(f"\n{banner}\n{body}")
        except Exception as e:
            log.debug("wire dump failed", error=str(e))
