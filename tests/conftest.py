"""
Pytest configuration and shared fixtures for pipeline tests.

This module provides in-memory fakes for every collaborator interface so the
workflow can be exercised without AWS, plus moto-backed fixtures for the
S3 and SSM connectors.
"""

from typing import Dict, Iterator, List, Optional

import boto3
import pytest
from moto import mock_aws

from brewflow.src.errors import InfrastructureError
from brewflow.src.interfaces import (
    DatasetDefinitionService,
    ObjectStore,
    ParameterService,
    TransformJobService,
)


# =============================================================================
# Test Helpers
# =============================================================================

class FakeClock:
    """
    Monotonic clock advanced by the fake sleep.

    Usage:
        clock = FakeClock()
        runner = JobRunner(service, sleep=clock.sleep)
        deadline = Deadline(60, clock=clock)
    """

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeJobService(TransformJobService):
    """
    Scripted DataBrew job.

    Each describe_job_run call returns the next scripted state. An Exception
    instance in the script is raised instead.
    """

    def __init__(self, states: List, run_id: str = "db_run_001"):
        self.states = list(states)
        self.run_id = run_id
        self.started = 0
        self.describe_calls = 0
        self.stopped: List[str] = []

    def start_job_run(self) -> str:
        self.started += 1
        return self.run_id

    def describe_job_run(self, run_id: str) -> str:
        self.describe_calls += 1
        state = self.states.pop(0) if len(self.states) > 1 else self.states[0]
        if isinstance(state, Exception):
            raise state
        return state

    def stop_job_run(self, run_id: str) -> None:
        self.stopped.append(run_id)


class FakeDatasetService(DatasetDefinitionService):
    """Records every window it is scoped to."""

    def __init__(self):
        self.windows = []

    def update_window(self, window) -> None:
        self.windows.append(window)


class InMemoryParameterService(ParameterService):
    """Dict-backed parameter store; can be told to fail reads or writes."""

    def __init__(self, values: Optional[Dict[str, str]] = None):
        self.values = dict(values or {})
        self.fail_reads = False
        self.fail_writes = False
        self.writes: List[tuple] = []

    def get_parameter(self, name: str) -> Optional[str]:
        if self.fail_reads:
            raise InfrastructureError(f"Failed to read parameter {name}: unreachable")
        return self.values.get(name)

    def put_parameter(self, name: str, value: str) -> None:
        if self.fail_writes:
            raise InfrastructureError(f"Failed to write parameter {name}: unreachable")
        self.writes.append((name, value))
        self.values[name] = value


class InMemoryObjectStore(ObjectStore):
    """
    Dict-backed object store keyed by (bucket, key).

    Keys listed in fail_copy / fail_delete raise InfrastructureError.
    """

    def __init__(self):
        self.objects: Dict[tuple, bytes] = {}
        self.fail_copy = set()
        self.fail_delete = set()
        self.fail_list = False
        self.calls: List[tuple] = []

    def put(self, bucket: str, key: str, body: bytes = b"a,b\n1,2\n") -> None:
        self.objects[(bucket, key)] = body

    def keys(self, bucket: str) -> List[str]:
        return sorted(k for b, k in self.objects if b == bucket)

    def list_keys(self, bucket: str, prefix: str) -> Iterator[str]:
        if self.fail_list:
            raise InfrastructureError(f"Failed to list s3://{bucket}/{prefix}")
        for key in self.keys(bucket):
            if key.startswith(prefix):
                yield key

    def copy(self, bucket: str, source_key: str, destination_key: str) -> None:
        self.calls.append(("copy", source_key, destination_key))
        if source_key in self.fail_copy:
            raise InfrastructureError(f"Failed to copy {source_key}")
        self.objects[(bucket, destination_key)] = self.objects[(bucket, source_key)]

    def delete(self, bucket: str, key: str) -> None:
        self.calls.append(("delete", key))
        if key in self.fail_delete:
            raise InfrastructureError(f"Failed to delete {key}")
        self.objects.pop((bucket, key), None)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def parameters() -> InMemoryParameterService:
    return InMemoryParameterService()


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def dataset_service() -> FakeDatasetService:
    return FakeDatasetService()


@pytest.fixture
def make_job_service():
    """Factory for scripted FakeJobService instances."""
    return FakeJobService


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mocked AWS credentials so boto3 never reaches a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("AWS_REGION", "us-east-1")


@pytest.fixture
def s3_bucket(aws_credentials):
    """Moto S3 with an empty output bucket named out-bucket."""
    with mock_aws():
        s3 = boto3.client("s3", region_name="us-east-1")
        s3.create_bucket(Bucket="out-bucket")
        yield s3


@pytest.fixture
def ssm_client(aws_credentials):
    """Moto SSM client."""
    with mock_aws():
        yield boto3.client("ssm", region_name="us-east-1")
