"""Top-level read-through cache, keyed by secret name."""
import logging
import random
import time
from typing import Callable, Optional

from ..domains.backend import SecretBackend
from ..domains.bounded_cache import BoundedCache
from ..domains.models import CacheConfig, SecretPayload
from .secret_entry import SecretEntry
from .version_entry import Clock

logger = logging.getLogger(__name__)


class SecretCacheStore:
    """
    Read-only cache in front of a secret store backend.

    Basic usage:

        >>> store = SecretCacheStore(AWSSecretsManagerBackend(region="eu-west-1"))
        >>> store.get("db-password")  # backend's current stage
        SecretPayload(secret_name='db-password', version_id='...', ...)
        >>> store.get("db-password", version_stage="AWSPREVIOUS")
        >>> store.get("db-password", version_id="f6c2...")

    Returns None for anything that does not exist. Backend errors are
    raised unchanged from the call that triggered the refresh.
    """

    def __init__(
        self,
        backend: SecretBackend,
        config: Optional[CacheConfig] = None,
        clock: Clock = time.monotonic,
        rand: Callable[[], float] = random.random,
    ):
        self._backend = backend
        self._config = config or CacheConfig()
        self._clock = clock
        self._rand = rand
        self._entries: BoundedCache[str, SecretEntry] = BoundedCache(
            self._config.max_cache_size, label="secret"
        )

    @property
    def config(self) -> CacheConfig:
        return self._config

    def get(
        self,
        secret_name: str,
        version_id: Optional[str] = None,
        version_stage: Optional[str] = None,
    ) -> Optional[SecretPayload]:
        """
        Return the cached payload for a secret, fetching through on a miss.

        Args:
            secret_name: Name of the secret
            version_id: Immutable version id to fetch
            version_stage: Stage label to fetch (ignored if version_id is set)

        Returns:
            A copy of the payload, or None if not found

        Raises:
            BackendError: If a backend call made for this lookup fails
        """
        entry = self._entries.get_or_create(secret_name, lambda: self._new_entry(secret_name))
        return entry.resolve(version_id=version_id, version_stage=version_stage)

    def clear(self) -> None:
        """Drop every cached secret."""
        self._entries.clear()

    def _new_entry(self, secret_name: str) -> SecretEntry:
        logger.debug(f"Caching new secret entry: {secret_name}")
        return SecretEntry(
            self._backend,
            self._config,
            secret_name,
            clock=self._clock,
            rand=self._rand,
        )

    def __contains__(self, secret_name: object) -> bool:
        return secret_name in self._entries

    def __len__(self) -> int:
        return len(self._entries)
