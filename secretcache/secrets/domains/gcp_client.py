"""GCP Secret Manager backend."""
import base64
import os
import logging
from typing import Optional, Dict, Any

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import secretmanager

from .errors import BackendError, NotFoundError
from .models import SecretPayload

logger = logging.getLogger(__name__)

# GCP resolves this alias server-side to the newest enabled version
LATEST_ALIAS = "latest"

_TRANSPORT_ERRORS = (google_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError)


class GCPSecretBackend:
    """
    Wrapper around GCP Secret Manager client.

    Version aliases play the role of stage labels; version numbers are
    used as version ids.
    """

    default_stage = LATEST_ALIAS

    def __init__(
        self,
        project_id: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
        client: Optional[secretmanager.SecretManagerServiceClient] = None,
    ):
        self._client = client
        self._config = config or {}
        self._project_id = project_id

    @property
    def client(self) -> secretmanager.SecretManagerServiceClient:
        """Lazy-initialize client."""
        if self._client is None:
            service_account_path = (self._config.get("authentication") or {}).get("service_account_path")
            try:
                if service_account_path:
                    logger.info(f"Using service account credentials from: {service_account_path}")
                    self._client = secretmanager.SecretManagerServiceClient.from_service_account_file(
                        service_account_path
                    )
                else:
                    self._client = secretmanager.SecretManagerServiceClient()
            except _TRANSPORT_ERRORS + (OSError, ValueError) as e:
                # Missing or malformed service account key files land here too
                raise BackendError(f"Failed to create GCP Secret Manager client: {e}") from e
        return self._client

    @property
    def project_id(self) -> str:
        if self._project_id is None:
            self._project_id = self.get_project_id()
        return self._project_id

    def get_project_id(self) -> str:
        """
        Get GCP project ID from environment variable or config.

        Priority order:
        1. GCP_PROJECT environment variable (allows override)
        2. Config file (gcp.project_id)

        Returns:
            Project ID string

        Raises:
            BackendError: If project_id is not found in config or environment
        """
        gcp_project_env = os.getenv("GCP_PROJECT")
        if gcp_project_env:
            logger.debug(f"Using GCP_PROJECT from environment: {gcp_project_env}")
            return gcp_project_env

        project_id = (self._config.get("gcp") or {}).get("project_id")
        if project_id:
            logger.debug(f"Using project_id from config: {project_id}")
            return project_id

        raise BackendError(
            "Project ID not found. Please set GCP_PROJECT environment variable "
            "or configure gcp.project_id in config file"
        )

    def _secret_path(self, secret_name: str) -> str:
        return f"projects/{self.project_id}/secrets/{secret_name}"

    def describe_stages(self, secret_name: str) -> Optional[Dict[str, str]]:
        """
        Map every alias of a secret to its version number.

        The server-side "latest" alias is included, pointing at the newest
        enabled version.

        Args:
            secret_name: Name of the secret

        Returns:
            Alias -> version id mapping, or None if the secret does not
            exist or has neither aliases nor enabled versions

        Raises:
            BackendError: On any other GCP failure
        """
        name = self._secret_path(secret_name)
        try:
            secret = self.client.get_secret(request={"name": name})
            stages = {alias: str(number) for alias, number in secret.version_aliases.items()}

            versions = self.client.list_secret_versions(
                request={"parent": name, "filter": "state:ENABLED"}
            )
            for version in versions:
                # Listed newest first
                stages[LATEST_ALIAS] = version.name.rsplit("/", 1)[-1]
                break
        except google_exceptions.NotFound:
            logger.debug(f"Secret {secret_name} not found in project {self.project_id}")
            return None
        except _TRANSPORT_ERRORS as e:
            logger.warning(f"GCP describe failed for {secret_name}: {e}")
            raise BackendError(f"Failed to describe secret {secret_name}: {e}") from e

        return stages or None

    def fetch_version(self, secret_name: str, version_id: str) -> SecretPayload:
        """
        Fetch one secret version from GCP Secret Manager.

        Args:
            secret_name: Name of the secret
            version_id: Version number

        Returns:
            Payload as text when it decodes as UTF-8, otherwise as base64

        Raises:
            NotFoundError: If the version does not exist or is disabled/destroyed
            BackendError: On any other GCP failure
        """
        name = f"{self._secret_path(secret_name)}/versions/{version_id}"
        try:
            response = self.client.access_secret_version(request={"name": name})
        except (google_exceptions.NotFound, google_exceptions.FailedPrecondition) as e:
            raise NotFoundError(f"Version {version_id} of secret {secret_name} not found") from e
        except _TRANSPORT_ERRORS as e:
            logger.warning(f"GCP fetch failed for {secret_name}: {e}")
            raise BackendError(f"Failed to fetch secret {secret_name}: {e}") from e

        data = response.payload.data
        try:
            return SecretPayload(
                secret_name=secret_name,
                version_id=version_id,
                secret_string=data.decode("UTF-8"),
            )
        except UnicodeDecodeError:
            return SecretPayload(
                secret_name=secret_name,
                version_id=version_id,
                secret_binary=base64.b64encode(data).decode("ascii"),
            )
