"""In-memory stand-in for SecretsClient, for use in application tests."""
import json
from typing import Any, Dict, Optional

from ..domains.errors import NotFoundError


class MockSecretsClient:
    """
    Serves fixed string responses by secret name.

    Version options are accepted for signature compatibility and ignored.

        >>> client = MockSecretsClient({"db": '{"user": "kitty"}'})
        >>> client.fetch_json("db")
        {'user': 'kitty'}
    """

    def __init__(self, responses: Optional[Dict[str, str]] = None):
        self._responses = dict(responses or {})

    def fetch_string(
        self, secret_name: str, version_id: Optional[str] = None, version_stage: Optional[str] = None
    ) -> str:
        return self._get_secret(secret_name)

    def fetch_bytes(
        self, secret_name: str, version_id: Optional[str] = None, version_stage: Optional[str] = None
    ) -> bytes:
        return self._get_secret(secret_name).encode("UTF-8")

    def fetch_json(
        self, secret_name: str, version_id: Optional[str] = None, version_stage: Optional[str] = None
    ) -> Any:
        return json.loads(self._get_secret(secret_name))

    def _get_secret(self, secret_name: str) -> str:
        secret = self._responses.get(secret_name)
        if secret is None:
            raise NotFoundError("can't find the specified secret")
        return secret
