from libstorage_client.config.loader import ConfigLoader, load_config
from libstorage_client.config.schema import (
    ClientConfig,
    ClientSection,
    HTTPConfig,
    HTTPLoggingConfig,
    LibStorageSection,
    TLSConfig,
)

__all__ = [
    "ClientConfig",
    "ClientSection",
    "ConfigLoader",
    "HTTPConfig",
    "HTTPLoggingConfig",
    "LibStorageSection",
    "TLSConfig",
    "load_config",
]
