"""Error taxonomy for the libStorage client."""


class LibStorageError(Exception):
    """Base class for all client errors."""


class ConfigurationError(LibStorageError):
    """Raised when the endpoint, TLS material or config file is missing or malformed."""


class TransportError(LibStorageError):
    """Raised when dialing the service or the network round trip fails."""


class ExchangeCancelledError(TransportError):
    """Raised when the context governing an exchange is cancelled."""


class EncodeError(LibStorageError):
    """Raised when a request payload cannot be serialized to JSON."""


class DecodeError(LibStorageError):
    """Raised when a response body cannot be read or does not decode into the reply type."""
