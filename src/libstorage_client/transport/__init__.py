from libstorage_client.transport.address import TransportKind, parse_address, split_host_port
from libstorage_client.transport.dialer import (
    UNIX_SOCKET_HOST,
    PinnedDialer,
    PinnedTransport,
    build_transport,
)
from libstorage_client.transport.tls import TLSSettings, parse_tls_config

__all__ = [
    "UNIX_SOCKET_HOST",
    "PinnedDialer",
    "PinnedTransport",
    "TLSSettings",
    "TransportKind",
    "build_transport",
    "parse_address",
    "parse_tls_config",
    "split_host_port",
]
