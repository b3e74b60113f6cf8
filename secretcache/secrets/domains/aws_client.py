"""AWS Secrets Manager backend."""
import base64
import logging
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import BackendError, NotFoundError
from .models import SecretPayload

logger = logging.getLogger(__name__)

CURRENT_STAGE = "AWSCURRENT"


class AWSSecretsManagerBackend:
    """Wrapper around the boto3 secretsmanager client."""

    default_stage = CURRENT_STAGE

    def __init__(
        self,
        region: Optional[str] = None,
        profile_name: Optional[str] = None,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        aws_session_token: Optional[str] = None,
        client: Any = None,
    ):
        """Initialize.

        Args:
            region: AWS region name
            profile_name: AWS profile name
            aws_access_key_id: AWS access key id
            aws_secret_access_key: AWS secret access key
            aws_session_token: AWS session token
            client: Pre-built secretsmanager client (skips session setup)
        """
        self.region = region
        self.profile_name = profile_name
        self.aws_access_key_id = aws_access_key_id
        self.aws_secret_access_key = aws_secret_access_key
        self.aws_session_token = aws_session_token
        self._client = client

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "AWSSecretsManagerBackend":
        aws = config.get("aws") or {}
        return cls(
            region=aws.get("region"),
            profile_name=aws.get("profile_name"),
        )

    @property
    def client(self) -> Any:
        """Lazy-initialize client."""
        if self._client is None:
            try:
                if self.profile_name is not None:
                    session = boto3.session.Session(profile_name=self.profile_name)
                elif self.aws_access_key_id is not None and self.aws_secret_access_key is not None:
                    session = boto3.session.Session(
                        aws_access_key_id=self.aws_access_key_id,
                        aws_secret_access_key=self.aws_secret_access_key,
                        aws_session_token=self.aws_session_token,
                    )
                else:
                    session = boto3.session.Session()
                self._client = session.client(service_name="secretsmanager", region_name=self.region)
            except BotoCoreError as e:
                raise BackendError(f"Failed to create secretsmanager client: {e}") from e
        return self._client

    def describe_stages(self, secret_name: str) -> Optional[Dict[str, str]]:
        """
        Invert DescribeSecret's VersionIdsToStages into stage -> version id.

        Returns None when the secret does not exist or has no versions.
        """
        client = self.client
        try:
            response = client.describe_secret(SecretId=secret_name)
        except client.exceptions.ResourceNotFoundException:
            logger.debug(f"Secret {secret_name} not found")
            return None
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"AWS describe failed for {secret_name}: {e}")
            raise BackendError(f"Failed to describe secret {secret_name}: {e}") from e

        versions_to_stages = response.get("VersionIdsToStages")
        if not versions_to_stages:
            return None

        stages: Dict[str, str] = {}
        for version_id, version_stages in versions_to_stages.items():
            for stage in version_stages or []:
                stages[stage] = version_id
        return stages

    def fetch_version(self, secret_name: str, version_id: str) -> SecretPayload:
        """
        Fetch one version with GetSecretValue.

        Raises:
            NotFoundError: If the secret or version does not exist, or the
                secret is scheduled for deletion
            BackendError: On any other AWS failure
        """
        client = self.client
        ex = client.exceptions
        try:
            response = client.get_secret_value(SecretId=secret_name, VersionId=version_id)
        except (ex.ResourceNotFoundException, ex.InvalidRequestException) as e:
            raise NotFoundError(f"Version {version_id} of secret {secret_name} not found") from e
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"AWS fetch failed for {secret_name}: {e}")
            raise BackendError(f"Failed to fetch secret {secret_name}: {e}") from e

        secret_binary = response.get("SecretBinary")
        if secret_binary is not None:
            # boto3 hands back the decoded blob
            secret_binary = base64.b64encode(secret_binary).decode("ascii")

        return SecretPayload(
            secret_name=secret_name,
            version_id=response.get("VersionId", version_id),
            secret_string=response.get("SecretString"),
            secret_binary=secret_binary,
            version_stages=list(response.get("VersionStages", [])),
        )
