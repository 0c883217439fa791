"""TLS configuration for the client's dial layer."""

from __future__ import annotations

import ssl
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from libstorage_client.config.schema import TLSConfig
from libstorage_client.errors import ConfigurationError


@dataclass(frozen=True)
class TLSSettings:
    """Immutable TLS settings applied when a connection is dialed."""

    ssl_context: ssl.SSLContext
    server_name: str | None = None


def parse_tls_config(scope: TLSConfig) -> tuple[TLSSettings | None, dict[str, Any]]:
    """Build TLS settings from the ``libstorage.client.tls`` scope.

    Returns ``(None, {})`` when TLS is not requested. The second element maps
    diagnostic field names to the values that were used, for logging.
    """
    if not scope.requested:
        return None, {}

    fields: dict[str, Any] = {"tls": True}

    if bool(scope.certfile) != bool(scope.keyfile):
        raise ConfigurationError("tls certfile and keyfile must be set together")

    try:
        ctx = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    except ssl.SSLError as e:
        raise ConfigurationError(f"cannot create TLS context: {e}") from e

    if scope.trustedcertsfile:
        path = _require_file(scope.trustedcertsfile, "trusted certs")
        try:
            ctx.load_verify_locations(cafile=str(path))
        except (OSError, ssl.SSLError) as e:
            raise ConfigurationError(f"{path}: invalid trusted certs file: {e}") from e
        fields["tls.trustedCertsFile"] = str(path)

    if scope.certfile and scope.keyfile:
        cert_path = _require_file(scope.certfile, "cert")
        key_path = _require_file(scope.keyfile, "key")
        try:
            ctx.load_cert_chain(certfile=str(cert_path), keyfile=str(key_path))
        except (OSError, ssl.SSLError) as e:
            raise ConfigurationError(
                f"{cert_path}: invalid cert/key pair ({key_path}): {e}"
            ) from e
        fields["tls.certFile"] = str(cert_path)
        fields["tls.keyFile"] = str(key_path)

    if scope.insecure:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        fields["tls.insecure"] = True

    if scope.servername:
        fields["tls.serverName"] = scope.servername

    return TLSSettings(ssl_context=ctx, server_name=scope.servername or None), fields


def _require_file(value: str, what: str) -> Path:
    path = Path(value).expanduser()
    if not path.is_file():
        raise ConfigurationError(f"{path}: invalid {what} file")
    return path
