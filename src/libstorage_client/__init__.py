"""Python client for the libStorage storage-orchestration service."""

__version__ = "0.1.0"

from libstorage_client.client import Client, dial  # noqa: E402
from libstorage_client.config import ClientConfig, load_config  # noqa: E402
from libstorage_client.context import Context  # noqa: E402
from libstorage_client.errors import (  # noqa: E402
    ConfigurationError,
    DecodeError,
    EncodeError,
    ExchangeCancelledError,
    LibStorageError,
    TransportError,
)
from libstorage_client.models import ServiceVolumeMap, Volume, VolumeAttachment  # noqa: E402

__all__ = [
    "Client",
    "ClientConfig",
    "ConfigurationError",
    "Context",
    "DecodeError",
    "EncodeError",
    "ExchangeCancelledError",
    "LibStorageError",
    "ServiceVolumeMap",
    "TransportError",
    "Volume",
    "VolumeAttachment",
    "__version__",
    "dial",
    "load_config",
]
