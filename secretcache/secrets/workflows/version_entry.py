"""Cache slot for a single immutable secret version."""
import copy
import logging
import random
import time
from typing import Callable, Optional

from ..domains.backend import SecretBackend
from ..domains.errors import MalformedPayloadError, NotFoundError
from ..domains.models import CacheConfig, SecretPayload

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def next_refresh_time(now: float, ttl: float, rand: Callable[[], float] = random.random) -> float:
    """Pick a refresh deadline uniformly in the back half of the TTL window."""
    half = ttl / 2
    return now + half + rand() * half


class VersionEntry:
    """
    Cached payload for one version id of one secret.

    The payload is re-fetched once next_value_refresh_at has passed.
    Versions never change server-side, so the refresh only bounds how
    long a failed or corrected fetch result is held.
    """

    def __init__(
        self,
        backend: SecretBackend,
        config: CacheConfig,
        secret_name: str,
        version_id: str,
        clock: Clock = time.monotonic,
        rand: Callable[[], float] = random.random,
    ):
        self._backend = backend
        self._config = config
        self._clock = clock
        self._rand = rand

        self.secret_name = secret_name
        self.version_id = version_id

        self._payload: Optional[SecretPayload] = None
        self.next_value_refresh_at: Optional[float] = None

    def is_stale(self) -> bool:
        return self.next_value_refresh_at is None or self._clock() > self.next_value_refresh_at

    def resolve(self) -> Optional[SecretPayload]:
        """
        Return a copy of the cached payload, fetching it first if stale.

        Returns:
            The payload, or None if the version does not exist

        Raises:
            BackendError: If the refresh fails; the previous payload is
                kept but not returned
            MalformedPayloadError: If the fetched version is empty
        """
        if self.is_stale():
            self._refresh()

        if self._payload is None:
            return None
        return copy.deepcopy(self._payload)

    def _refresh(self) -> None:
        # TODO: retry with backoff on BackendError
        logger.debug(f"Fetching version {self.version_id} of secret {self.secret_name}")
        try:
            payload = self._backend.fetch_version(self.secret_name, self.version_id)
        except NotFoundError:
            logger.debug(f"Version {self.version_id} of secret {self.secret_name} not found")
            self._payload = None
            self._reset_refresh_time()
            return

        if not payload.has_value():
            raise MalformedPayloadError(
                f"expected SecretString or SecretBinary to be present "
                f"for version {self.version_id} of secret {self.secret_name}"
            )

        self._payload = payload
        self._reset_refresh_time()

    def _reset_refresh_time(self) -> None:
        self.next_value_refresh_at = next_refresh_time(
            self._clock(), self._config.secret_refresh_interval, self._rand
        )
