"""Domain models for cached secrets."""
from dataclasses import dataclass, field
from typing import List, Optional

DEFAULT_MAX_CACHE_SIZE = 128
DEFAULT_REFRESH_INTERVAL = 3600.0
VERSION_CACHE_SIZE = 10


@dataclass
class SecretPayload:
    """One fetched secret version, as returned by a backend."""
    secret_name: str
    version_id: str
    secret_string: Optional[str] = None
    secret_binary: Optional[str] = None  # standard base64
    version_stages: List[str] = field(default_factory=list)

    def has_value(self) -> bool:
        return self.secret_string is not None or self.secret_binary is not None


@dataclass
class CacheConfig:
    """Tuning knobs for the cache store."""
    max_cache_size: int = DEFAULT_MAX_CACHE_SIZE
    secret_refresh_interval: float = DEFAULT_REFRESH_INTERVAL  # seconds
    default_version_stage: Optional[str] = None
