"""Convenience client: cached secrets as str, bytes or parsed JSON."""
import base64
import json
import logging
import threading
from typing import Any, Dict, Optional

from ..domains.backend import SecretBackend
from ..domains.config_loader import load_cache_config, load_config
from ..domains.errors import MalformedPayloadError, NotFoundError
from ..domains.models import CacheConfig, SecretPayload
from .cache_store import SecretCacheStore

logger = logging.getLogger(__name__)

# Process-wide client built from the config file on first use.
# This is a per-process cache, NOT shared across CLI invocations.
_default_client: Optional["SecretsClient"] = None
_default_client_lock = threading.Lock()


def build_backend(config: Dict[str, Any]) -> SecretBackend:
    """Create the backend named by config['backend']['type']."""
    backend_type = config["backend"]["type"]
    if backend_type == "gcp":
        from ..domains.gcp_client import GCPSecretBackend
        return GCPSecretBackend(config=config)
    if backend_type == "aws":
        from ..domains.aws_client import AWSSecretsManagerBackend
        return AWSSecretsManagerBackend.from_config(config)
    raise ValueError(f"Unsupported backend type: {backend_type}")


class SecretsClient:
    """
    Reads secrets through a SecretCacheStore, hiding whether the store
    holds the value as text or as base64 binary.

    Getting started:

        >>> client = SecretsClient(AWSSecretsManagerBackend(region="eu-west-1"))
        >>> credentials = client.fetch_json("my/secret/name")
        >>> api_key = client.fetch_string("my/api/key", version_stage="AWSPENDING")
    """

    def __init__(
        self,
        backend: Optional[SecretBackend] = None,
        store: Optional[SecretCacheStore] = None,
        config: Optional[CacheConfig] = None,
    ):
        if store is None:
            if backend is None:
                raise ValueError("SecretsClient needs either a backend or a store")
            store = SecretCacheStore(backend, config)
        self._store = store

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "SecretsClient":
        return cls(backend=build_backend(config), config=load_cache_config(config))

    @property
    def store(self) -> SecretCacheStore:
        return self._store

    def fetch_string(
        self, secret_name: str, version_id: Optional[str] = None, version_stage: Optional[str] = None
    ) -> str:
        """
        Return the secret as text; binary payloads are base64-decoded as UTF-8.

        Raises:
            NotFoundError: If the secret, stage or version does not exist
            MalformedPayloadError: If the payload holds neither form, or is
                binary that does not decode as UTF-8
        """
        secret = self._get_secret(secret_name, version_id, version_stage)

        if secret.secret_string is not None:
            return secret.secret_string

        if secret.secret_binary is not None:
            try:
                return base64.b64decode(secret.secret_binary).decode("UTF-8")
            except UnicodeDecodeError as e:
                raise MalformedPayloadError(
                    f"secret {secret_name} is binary and not valid UTF-8; use fetch_bytes"
                ) from e

        raise MalformedPayloadError("expected SecretString or SecretBinary to be present")

    def fetch_bytes(
        self, secret_name: str, version_id: Optional[str] = None, version_stage: Optional[str] = None
    ) -> bytes:
        """Return the secret as bytes, whichever form the store holds it in."""
        secret = self._get_secret(secret_name, version_id, version_stage)

        if secret.secret_binary is not None:
            return base64.b64decode(secret.secret_binary)

        if secret.secret_string is not None:
            return secret.secret_string.encode("UTF-8")

        raise MalformedPayloadError("expected SecretString or SecretBinary to be present")

    def fetch_json(
        self, secret_name: str, version_id: Optional[str] = None, version_stage: Optional[str] = None
    ) -> Any:
        """
        Fetch the secret and parse it as JSON.

        Raises:
            json.JSONDecodeError: If the secret is not valid JSON
        """
        return json.loads(self.fetch_string(secret_name, version_id, version_stage))

    def _get_secret(
        self, secret_name: str, version_id: Optional[str], version_stage: Optional[str]
    ) -> SecretPayload:
        secret = self._store.get(secret_name, version_id=version_id, version_stage=version_stage)
        if secret is None:
            raise NotFoundError("can't find the specified secret")
        return secret


def get_default_client() -> SecretsClient:
    """
    Lazy-build the process-wide client on first use.

    The config file is loaded only when a secret is actually requested,
    so importing this module never requires one.

    Raises:
        ConfigError: If the config file is invalid
        FileNotFoundError: If no config file exists
    """
    global _default_client

    if _default_client is None:
        with _default_client_lock:
            if _default_client is None:
                _default_client = SecretsClient.from_config(load_config())
    return _default_client


def reset_default_client() -> None:
    """Forget the process-wide client (and its cache)."""
    global _default_client
    with _default_client_lock:
        _default_client = None


def get_secret(
    secret_name: str, version_id: Optional[str] = None, version_stage: Optional[str] = None
) -> Optional[str]:
    """
    Fetch a secret as text through the process-wide cache.

    Args:
        secret_name: Name of the secret to fetch
        version_id: Immutable version to fetch
        version_stage: Stage label to fetch (default: the configured stage)

    Returns:
        Secret value as string, or None if not found

    Raises:
        BackendError: If the secret store call fails
    """
    try:
        return get_default_client().fetch_string(secret_name, version_id, version_stage)
    except NotFoundError:
        logger.debug(f"Secret {secret_name} not found")
        return None
