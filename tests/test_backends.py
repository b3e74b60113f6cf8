"""Tests for the GCP and AWS backend adapters."""
import base64
from types import SimpleNamespace
from unittest import mock

import boto3
import pytest
from botocore.stub import Stubber
from google.api_core import exceptions as google_exceptions

from secretcache.secrets.domains import gcp_client
from secretcache.secrets.domains.aws_client import AWSSecretsManagerBackend
from secretcache.secrets.domains.errors import BackendError, NotFoundError
from secretcache.secrets.domains.gcp_client import GCPSecretBackend

V1 = "11111111-1111-1111-1111-111111111111"
V2 = "22222222-2222-2222-2222-222222222222"


@pytest.fixture
def aws_client():
    return boto3.client(
        "secretsmanager",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def stubber(aws_client):
    with Stubber(aws_client) as stub:
        yield stub
        stub.assert_no_pending_responses()


@pytest.fixture
def aws_backend(aws_client):
    return AWSSecretsManagerBackend(client=aws_client)


class TestAWSDescribeStages:

    def test_inverts_versions_to_stages(self, stubber, aws_backend):
        stubber.add_response(
            "describe_secret",
            {
                "Name": "db",
                "VersionIdsToStages": {V1: ["AWSPREVIOUS"], V2: ["AWSCURRENT", "blue"]},
            },
            {"SecretId": "db"},
        )

        assert aws_backend.describe_stages("db") == {
            "AWSPREVIOUS": V1,
            "AWSCURRENT": V2,
            "blue": V2,
        }

    def test_no_versions_returns_none(self, stubber, aws_backend):
        stubber.add_response("describe_secret", {"Name": "db"}, {"SecretId": "db"})

        assert aws_backend.describe_stages("db") is None

    def test_missing_secret_returns_none(self, stubber, aws_backend):
        stubber.add_client_error("describe_secret", service_error_code="ResourceNotFoundException")

        assert aws_backend.describe_stages("db") is None

    def test_other_errors_raise_backend_error(self, stubber, aws_backend):
        stubber.add_client_error("describe_secret", service_error_code="AccessDeniedException")

        with pytest.raises(BackendError) as exc_info:
            aws_backend.describe_stages("db")

        assert exc_info.value.__cause__ is not None


class TestAWSFetchVersion:

    def test_secret_string(self, stubber, aws_backend):
        stubber.add_response(
            "get_secret_value",
            {"Name": "db", "VersionId": V1, "SecretString": "s3cret", "VersionStages": ["AWSCURRENT"]},
            {"SecretId": "db", "VersionId": V1},
        )

        payload = aws_backend.fetch_version("db", V1)

        assert payload.secret_string == "s3cret"
        assert payload.secret_binary is None
        assert payload.version_stages == ["AWSCURRENT"]

    def test_secret_binary_is_base64_encoded(self, stubber, aws_backend):
        stubber.add_response(
            "get_secret_value",
            {"Name": "db", "VersionId": V1, "SecretBinary": b"\x00\xffkey"},
            {"SecretId": "db", "VersionId": V1},
        )

        payload = aws_backend.fetch_version("db", V1)

        assert payload.secret_string is None
        assert base64.b64decode(payload.secret_binary) == b"\x00\xffkey"

    @pytest.mark.parametrize("code", ["ResourceNotFoundException", "InvalidRequestException"])
    def test_missing_version_raises_not_found(self, stubber, aws_backend, code):
        stubber.add_client_error("get_secret_value", service_error_code=code)

        with pytest.raises(NotFoundError):
            aws_backend.fetch_version("db", V1)

    def test_other_errors_raise_backend_error(self, stubber, aws_backend):
        stubber.add_client_error("get_secret_value", service_error_code="AccessDeniedException")

        with pytest.raises(BackendError):
            aws_backend.fetch_version("db", V1)

    def test_from_config(self):
        backend = AWSSecretsManagerBackend.from_config(
            {"aws": {"region": "eu-west-1", "profile_name": "ops"}}
        )

        assert backend.region == "eu-west-1"
        assert backend.profile_name == "ops"


class TestAWSClientSetup:

    @pytest.fixture(autouse=True)
    def empty_aws_config(self, tmp_path, monkeypatch):
        """Point botocore at empty config files so no real profile exists."""
        config_file = tmp_path / "config"
        config_file.write_text("")
        monkeypatch.setenv("AWS_CONFIG_FILE", str(config_file))
        monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(config_file))

    def test_unknown_profile_on_describe_raises_backend_error(self):
        backend = AWSSecretsManagerBackend(region="us-east-1", profile_name="does-not-exist")

        with pytest.raises(BackendError, match="does-not-exist"):
            backend.describe_stages("db")

    def test_unknown_profile_on_fetch_raises_backend_error(self):
        backend = AWSSecretsManagerBackend(region="us-east-1", profile_name="does-not-exist")

        with pytest.raises(BackendError):
            backend.fetch_version("db", V1)


@pytest.fixture
def gcp_mock():
    return mock.MagicMock()


@pytest.fixture
def gcp_backend(gcp_mock, monkeypatch):
    monkeypatch.delenv("GCP_PROJECT", raising=False)
    return GCPSecretBackend(project_id="proj", client=gcp_mock)


class TestGCPDescribeStages:

    def test_aliases_and_latest(self, gcp_mock, gcp_backend):
        gcp_mock.get_secret.return_value = SimpleNamespace(version_aliases={"prod": 3, "canary": 5})
        gcp_mock.list_secret_versions.return_value = [
            SimpleNamespace(name="projects/proj/secrets/db/versions/5"),
            SimpleNamespace(name="projects/proj/secrets/db/versions/4"),
        ]

        assert gcp_backend.describe_stages("db") == {"prod": "3", "canary": "5", "latest": "5"}
        gcp_mock.get_secret.assert_called_once_with(request={"name": "projects/proj/secrets/db"})
        gcp_mock.list_secret_versions.assert_called_once_with(
            request={"parent": "projects/proj/secrets/db", "filter": "state:ENABLED"}
        )

    def test_no_aliases_and_no_enabled_versions_returns_none(self, gcp_mock, gcp_backend):
        gcp_mock.get_secret.return_value = SimpleNamespace(version_aliases={})
        gcp_mock.list_secret_versions.return_value = []

        assert gcp_backend.describe_stages("db") is None

    def test_missing_secret_returns_none(self, gcp_mock, gcp_backend):
        gcp_mock.get_secret.side_effect = google_exceptions.NotFound("no such secret")

        assert gcp_backend.describe_stages("db") is None

    def test_other_errors_raise_backend_error(self, gcp_mock, gcp_backend):
        gcp_mock.get_secret.side_effect = google_exceptions.ServiceUnavailable("down")

        with pytest.raises(BackendError):
            gcp_backend.describe_stages("db")


class TestGCPFetchVersion:

    def test_utf8_payload_is_text(self, gcp_mock, gcp_backend):
        gcp_mock.access_secret_version.return_value = SimpleNamespace(
            payload=SimpleNamespace(data=b"s3cret")
        )

        payload = gcp_backend.fetch_version("db", "3")

        assert payload.secret_string == "s3cret"
        assert payload.version_id == "3"
        gcp_mock.access_secret_version.assert_called_once_with(
            request={"name": "projects/proj/secrets/db/versions/3"}
        )

    def test_binary_payload_is_base64(self, gcp_mock, gcp_backend):
        gcp_mock.access_secret_version.return_value = SimpleNamespace(
            payload=SimpleNamespace(data=b"\xff\xfe")
        )

        payload = gcp_backend.fetch_version("db", "3")

        assert payload.secret_string is None
        assert base64.b64decode(payload.secret_binary) == b"\xff\xfe"

    @pytest.mark.parametrize(
        "error", [google_exceptions.NotFound("gone"), google_exceptions.FailedPrecondition("disabled")]
    )
    def test_missing_or_disabled_version_raises_not_found(self, gcp_mock, gcp_backend, error):
        gcp_mock.access_secret_version.side_effect = error

        with pytest.raises(NotFoundError):
            gcp_backend.fetch_version("db", "3")

    def test_other_errors_raise_backend_error(self, gcp_mock, gcp_backend):
        gcp_mock.access_secret_version.side_effect = google_exceptions.PermissionDenied("nope")

        with pytest.raises(BackendError):
            gcp_backend.fetch_version("db", "3")


class TestGCPProjectAndClient:

    def test_env_var_overrides_config(self, monkeypatch):
        monkeypatch.setenv("GCP_PROJECT", "from-env")
        backend = GCPSecretBackend(config={"gcp": {"project_id": "from-config"}})

        assert backend.project_id == "from-env"

    def test_project_from_config(self, monkeypatch):
        monkeypatch.delenv("GCP_PROJECT", raising=False)
        backend = GCPSecretBackend(config={"gcp": {"project_id": "from-config"}})

        assert backend.project_id == "from-config"

    def test_missing_project_raises(self, monkeypatch):
        monkeypatch.delenv("GCP_PROJECT", raising=False)

        with pytest.raises(BackendError):
            GCPSecretBackend().get_project_id()

    def test_client_uses_service_account_file(self):
        backend = GCPSecretBackend(
            project_id="proj",
            config={"authentication": {"type": "service_account", "service_account_path": "/tmp/sa.json"}},
        )
        with mock.patch.object(gcp_client.secretmanager, "SecretManagerServiceClient") as client_cls:
            client = backend.client

        client_cls.from_service_account_file.assert_called_once_with("/tmp/sa.json")
        assert client is client_cls.from_service_account_file.return_value

    def test_missing_service_account_file_raises_backend_error(self, tmp_path):
        backend = GCPSecretBackend(
            project_id="proj",
            config={"authentication": {"service_account_path": str(tmp_path / "missing.json")}},
        )

        with pytest.raises(BackendError, match="missing.json"):
            backend.fetch_version("db", "1")

    def test_malformed_service_account_file_raises_backend_error(self, tmp_path):
        key_file = tmp_path / "sa.json"
        key_file.write_text('{"type": "service_account"}')
        backend = GCPSecretBackend(
            project_id="proj",
            config={"authentication": {"service_account_path": str(key_file)}},
        )

        with pytest.raises(BackendError):
            backend.describe_stages("db")
