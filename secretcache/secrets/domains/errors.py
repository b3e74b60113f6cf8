"""Error types raised by the secret cache and its backends."""


class SecretCacheError(Exception):
    """Base class for secretcache errors."""
    pass


class NotFoundError(SecretCacheError):
    """The secret, stage or version does not exist."""

    code = "ResourceNotFoundException"

    def __init__(self, message: str = "can't find the specified secret"):
        super().__init__(message)


class BackendError(SecretCacheError):
    """Transport, auth or service-side failure from a backend call."""
    pass


class MalformedPayloadError(SecretCacheError):
    """A fetched version carries neither a text nor a binary payload."""
    pass
