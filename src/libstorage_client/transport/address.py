"""Endpoint address parsing."""

from __future__ import annotations

import re
from enum import StrEnum

from libstorage_client.errors import ConfigurationError


class TransportKind(StrEnum):
    TCP = "tcp"
    UNIX = "unix"


_ADDRESS_RX = re.compile(r"^([a-z][a-z0-9]*)://(.*)$", re.IGNORECASE)

_SCHEMES = {
    "tcp": TransportKind.TCP,
    "tcp4": TransportKind.TCP,
    "tcp6": TransportKind.TCP,
    "unix": TransportKind.UNIX,
}


def parse_address(endpoint: str) -> tuple[TransportKind, str]:
    """Split ``tcp://host:port`` or ``unix:///path`` into a transport kind and address."""
    if not endpoint or not endpoint.strip():
        raise ConfigurationError("endpoint address is empty")

    m = _ADDRESS_RX.match(endpoint.strip())
    if not m:
        raise ConfigurationError(f"invalid endpoint address: {endpoint!r}")

    scheme, address = m.group(1).lower(), m.group(2)
    kind = _SCHEMES.get(scheme)
    if kind is None:
        raise ConfigurationError(f"unsupported transport {scheme!r} in {endpoint!r}")
    if not address:
        raise ConfigurationError(f"missing address in {endpoint!r}")

    if kind == TransportKind.TCP:
        split_host_port(address)
    return kind, address


def split_host_port(address: str) -> tuple[str, int]:
    """Split ``host:port`` (or ``[v6]:port``) into its parts."""
    host, sep, port_text = address.rpartition(":")
    if not sep or not host:
        raise ConfigurationError(f"missing port in address {address!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        raise ConfigurationError(f"IPv6 host must be bracketed in {address!r}")
    try:
        port = int(port_text)
    except ValueError as e:
        raise ConfigurationError(f"invalid port in address {address!r}") from e
    if not 0 < port < 65536:
        raise ConfigurationError(f"port out of range in address {address!r}")
    return host, port
