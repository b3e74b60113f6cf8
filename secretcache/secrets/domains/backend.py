"""Contract between the cache and a remote secret store."""
from typing import Dict, Optional, Protocol

from .models import SecretPayload


class SecretBackend(Protocol):
    """
    The two read operations the cache needs from a secret store.

    Implementations translate their SDK's errors: a missing version
    raises NotFoundError, anything else raises BackendError.
    """

    default_stage: str

    def describe_stages(self, secret_name: str) -> Optional[Dict[str, str]]:
        """Return the stage label -> version id mapping, or None if the secret has none."""
        ...

    def fetch_version(self, secret_name: str, version_id: str) -> SecretPayload:
        """Return the payload of one immutable version."""
        ...
