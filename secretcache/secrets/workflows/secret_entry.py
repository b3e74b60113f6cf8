"""Per-secret cache: stage mapping plus a small LRU of versions."""
import logging
import random
import time
from typing import Callable, Dict, Optional

from ..domains.backend import SecretBackend
from ..domains.bounded_cache import BoundedCache
from ..domains.models import VERSION_CACHE_SIZE, CacheConfig, SecretPayload
from .version_entry import Clock, VersionEntry, next_refresh_time

logger = logging.getLogger(__name__)


class SecretEntry:
    """
    A SecretEntry represents a single secret name in the remote store.

    Rules:
        - A secret has many versions and many stage labels
        - A stage label points at exactly one version
        - A version can carry several stage labels

    The stage mapping is refreshed lazily, only when a stage lookup finds
    it stale. Lookups by version id never touch the mapping. Up to ten
    versions are held so that current, previous and pending resolve
    without evicting each other.

    Example:
        >>> entry = SecretEntry(backend, CacheConfig(), "db-password")
        >>> entry.resolve(version_stage="AWSPREVIOUS").secret_string
        'hunter2'
    """

    def __init__(
        self,
        backend: SecretBackend,
        config: CacheConfig,
        secret_name: str,
        clock: Clock = time.monotonic,
        rand: Callable[[], float] = random.random,
    ):
        self._backend = backend
        self._config = config
        self._clock = clock
        self._rand = rand

        self.secret_name = secret_name
        self.stage_to_version: Dict[str, str] = {}
        self.next_mapping_refresh_at: Optional[float] = None
        self.versions: BoundedCache[str, VersionEntry] = BoundedCache(
            VERSION_CACHE_SIZE, label=f"version of {secret_name}"
        )

    def resolve(
        self, version_id: Optional[str] = None, version_stage: Optional[str] = None
    ) -> Optional[SecretPayload]:
        """
        Fetch the payload for a version id, or for a stage label.

        Args:
            version_id: Immutable version to fetch; takes precedence
            version_stage: Stage label to resolve; defaults to the
                configured stage, then to the backend's current label

        Returns:
            The payload, or None if the stage or version does not exist
        """
        if version_id:
            return self.get_or_create_version(version_id).resolve()

        stage = version_stage or self._config.default_version_stage or self._backend.default_stage
        version_id = self.get_version_id_for_stage(stage)
        if version_id is None:
            return None

        return self.get_or_create_version(version_id).resolve()

    def get_version_id_for_stage(self, version_stage: str) -> Optional[str]:
        if self.is_stale():
            self._refresh_stages()

        return self.stage_to_version.get(version_stage)

    def get_or_create_version(self, version_id: str) -> VersionEntry:
        return self.versions.get_or_create(
            version_id,
            lambda: VersionEntry(
                self._backend,
                self._config,
                self.secret_name,
                version_id,
                clock=self._clock,
                rand=self._rand,
            ),
        )

    def is_stale(self) -> bool:
        return self.next_mapping_refresh_at is None or self._clock() > self.next_mapping_refresh_at

    def _refresh_stages(self) -> None:
        logger.debug(f"Refreshing stage mapping for secret {self.secret_name}")
        stages = self._backend.describe_stages(self.secret_name)

        if stages is None:
            # Secret is missing or mid-creation; wait a full interval anyway
            logger.debug(f"Secret {self.secret_name} has no stage mapping")
            self.stage_to_version = {}
        else:
            self.stage_to_version = dict(stages)

        self.next_mapping_refresh_at = next_refresh_time(
            self._clock(), self._config.secret_refresh_interval, self._rand
        )
