"""Thread-safe LRU used for both cache levels (names and versions)."""
import logging
import threading
from typing import Callable, Generic, Hashable, Optional, TypeVar

from cachetools import LRUCache

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class _EvictionLoggingLRUCache(LRUCache):
    """LRUCache that logs the keys it drops to make room."""

    def __init__(self, maxsize: int, label: str):
        super().__init__(maxsize=maxsize)
        self._label = label

    def popitem(self):
        key, value = super().popitem()
        logger.debug(f"Evicted least-recently-used {self._label} entry: {key}")
        return key, value


class BoundedCache(Generic[K, V]):
    """
    Fixed-capacity LRU mapping guarded by a single lock.

    Lookups mark the key most-recently-used; inserting past capacity
    evicts the least-recently-used key.

    Args:
        maxsize: Maximum number of entries
        label: Name used in debug logs
    """

    def __init__(self, maxsize: int, label: str = "cache"):
        if maxsize < 1:
            raise ValueError(f"maxsize must be a positive integer, got {maxsize}")
        self._label = label
        self._cache: LRUCache = _EvictionLoggingLRUCache(maxsize, label)
        self._lock = threading.Lock()

    @property
    def maxsize(self) -> int:
        return int(self._cache.maxsize)

    def get(self, key: K) -> Optional[V]:
        """Return the value for key (marking it most-recently-used), or None."""
        with self._lock:
            return self._cache.get(key)

    def get_or_create(self, key: K, factory: Callable[[], V]) -> V:
        """
        Return the value for key, inserting factory() first if it is missing.

        Lookup and insert happen under one lock, so concurrent callers for
        the same key always receive the same value object. factory must be
        cheap and must not call back into this cache.
        """
        with self._lock:
            value = self._cache.get(key)
            if value is None:
                value = factory()
                self._cache[key] = value
            return value

    def clear(self) -> None:
        # MutableMapping.clear() goes through popitem(), which would log
        # every entry as an eviction.
        with self._lock:
            self._cache = _EvictionLoggingLRUCache(self.maxsize, self._label)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
