"""Shared fixtures: an in-memory backend and a controllable clock."""
import copy

import pytest

from secretcache.secrets.domains.errors import NotFoundError
from secretcache.secrets.domains.models import CacheConfig, SecretPayload

TTL = 60.0


class FakeClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeBackend:
    """Records every call; serves stage mappings and payloads from dicts."""

    default_stage = "AWSCURRENT"

    def __init__(self):
        self.stages = {}    # secret name -> {stage: version id} or None
        self.payloads = {}  # (secret name, version id) -> SecretPayload
        self.describe_calls = []
        self.fetch_calls = []
        self.describe_error = None
        self.fetch_error = None

    def add_version(self, secret_name, version_id, secret_string=None, secret_binary=None, stages=()):
        self.payloads[(secret_name, version_id)] = SecretPayload(
            secret_name=secret_name,
            version_id=version_id,
            secret_string=secret_string,
            secret_binary=secret_binary,
            version_stages=list(stages),
        )
        mapping = self.stages.setdefault(secret_name, {})
        for stage in stages:
            mapping[stage] = version_id

    def describe_stages(self, secret_name):
        self.describe_calls.append(secret_name)
        if self.describe_error is not None:
            raise self.describe_error
        stages = self.stages.get(secret_name)
        return dict(stages) if stages else None

    def fetch_version(self, secret_name, version_id):
        self.fetch_calls.append((secret_name, version_id))
        if self.fetch_error is not None:
            raise self.fetch_error
        payload = self.payloads.get((secret_name, version_id))
        if payload is None:
            raise NotFoundError(f"no version {version_id}")
        return copy.deepcopy(payload)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def cache_config():
    return CacheConfig(max_cache_size=3, secret_refresh_interval=TTL)
