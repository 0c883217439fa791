from __future__ import annotations

from typing import Any

from pydantic import BaseModel, model_validator

DEFAULT_LOCAL_DEVICES_FILE = "/proc/partitions"


class HTTPLoggingConfig(BaseModel):
    """Wire-level dump switches for client HTTP traffic."""

    logrequest: bool = False
    logresponse: bool = False


class HTTPConfig(BaseModel):
    logging: HTTPLoggingConfig = HTTPLoggingConfig()


class TLSConfig(BaseModel):
    """TLS settings under ``libstorage.client.tls``. All optional."""

    enabled: bool = False
    disabled: bool = False
    certfile: str | None = None
    keyfile: str | None = None
    trustedcertsfile: str | None = None
    servername: str | None = None
    insecure: bool = False

    @property
    def requested(self) -> bool:
        """TLS is on when enabled or when any TLS material is named, unless disabled."""
        if self.disabled:
            return False
        return self.enabled or any(
            (self.certfile, self.keyfile, self.trustedcertsfile, self.servername)
        )


class ClientSection(BaseModel):
    localdevicesfile: str = DEFAULT_LOCAL_DEVICES_FILE
    http: HTTPConfig = HTTPConfig()
    tls: TLSConfig = TLSConfig()


class LibStorageSection(BaseModel):
    host: str | None = None
    client: ClientSection = ClientSection()


class ClientConfig(BaseModel):
    """Top-level client configuration, normally loaded from a YAML file.

    Keys are matched case-insensitively so ``logRequest`` and ``logrequest``
    are equivalent.
    """

    libstorage: LibStorageSection = LibStorageSection()

    @model_validator(mode="before")
    @classmethod
    def normalize_keys(cls, data: Any) -> Any:
        return lower_keys(data)

    @property
    def host(self) -> str | None:
        return self.libstorage.host

    @property
    def client(self) -> ClientSection:
        return self.libstorage.client


def lower_keys(data: Any) -> Any:
    """Recursively lower-case the string keys of nested mappings."""
    if isinstance(data, dict):
        return {
            (k.lower() if isinstance(k, str) else k): lower_keys(v) for k, v in data.items()
        }
    return data
