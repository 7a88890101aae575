"""
Pytest configuration and shared fixtures for testing.
"""

import threading
import time
from typing import Callable, Dict, Iterable, List, Optional

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from s3hub.core.aws_client import AWSClient
from s3hub.core.models import Bucket, ObjectIdentifier, ObjectIdentifierSet, Region
from s3hub.core.object_store import (
    BatchDeleteResult,
    KeyDeleteError,
    ObjectPage,
    ObjectStore,
)
from s3hub.core.retry import RetryPolicy
from s3hub.stores.s3_store import S3ObjectStore


def client_error(code: str, status: int = 400, operation: str = "DeleteObjects") -> ClientError:
    """Build the ClientError boto3 raises for an S3 error code."""
    return ClientError(
        {
            "Error": {"Code": code, "Message": f"{code} (test)"},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


def make_keys(count: int, prefix: str = "obj") -> List[ObjectIdentifier]:
    return [ObjectIdentifier(f"{prefix}-{i:06d}") for i in range(count)]


class FakeObjectStore(ObjectStore):
    """
    In-memory object store.

    Thread-safe; records every call, the peak number of concurrent
    batch deletes, and supports scripted failures.
    """

    def __init__(
        self,
        objects: Optional[Dict[str, Iterable[ObjectIdentifier]]] = None,
        region: Region = Region.AP_NORTHEAST_1,
        page_size: int = 1000,
        delete_delay: float = 0.0,
    ) -> None:
        self.region = region
        self.page_size = page_size
        self.delete_delay = delete_delay
        self.buckets: Dict[str, List[ObjectIdentifier]] = {
            name: list(items) for name, items in (objects or {}).items()
        }

        # Recording
        self.calls: List[str] = []
        self.delete_calls: List[List[ObjectIdentifier]] = []
        self.deleted_buckets: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

        # Scripted behaviour
        self.region_error: Optional[BaseException] = None
        self.list_error: Optional[BaseException] = None
        self.batch_errors: Dict[ObjectIdentifier, List[BaseException]] = {}
        self.permanent_batch_errors: Dict[ObjectIdentifier, BaseException] = {}
        self.key_errors: Dict[ObjectIdentifier, List[str]] = {}
        self.on_delete: Optional[Callable[[List[ObjectIdentifier]], None]] = None
        self.on_list: Optional[Callable[[int], None]] = None

        self._lock = threading.Lock()

    def fail_batch(self, identifier: ObjectIdentifier, *errors: BaseException) -> None:
        """Make the next ``len(errors)`` batches containing ``identifier`` raise."""
        self.batch_errors.setdefault(identifier, []).extend(errors)

    def remaining(self, bucket: str) -> List[ObjectIdentifier]:
        with self._lock:
            return list(self.buckets.get(bucket, []))

    # ObjectStore ------------------------------------------------------------

    def get_bucket_region(self, bucket: Bucket) -> Region:
        with self._lock:
            self.calls.append("get_bucket_region")
        if self.region_error:
            raise self.region_error
        return self.region

    def list_objects(self, bucket, continuation_token=None, prefix=None) -> ObjectPage:
        return self._list("list_objects", bucket, continuation_token, prefix)

    def list_object_versions(self, bucket, continuation_token=None, prefix=None) -> ObjectPage:
        return self._list("list_object_versions", bucket, continuation_token, prefix)

    def _list(self, name, bucket, continuation_token, prefix) -> ObjectPage:
        with self._lock:
            self.calls.append(name)
            page_number = sum(1 for c in self.calls if c == name)
        if self.list_error:
            raise self.list_error
        if self.on_list:
            self.on_list(page_number)

        items = [
            i for i in self.remaining(bucket.name)
            if prefix is None or i.key.startswith(prefix)
        ]
        start = int(continuation_token or 0)
        end = start + self.page_size
        next_token = str(end) if end < len(items) else None
        return ObjectPage(identifiers=items[start:end], next_token=next_token)

    def delete_object_batch(
        self,
        bucket: Bucket,
        region: Region,
        identifiers: ObjectIdentifierSet,
    ) -> BatchDeleteResult:
        batch = list(identifiers)
        with self._lock:
            self.calls.append("delete_object_batch")
            self.delete_calls.append(batch)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)

        try:
            if self.on_delete:
                self.on_delete(batch)
            if self.delete_delay:
                time.sleep(self.delete_delay)

            with self._lock:
                for identifier in batch:
                    if identifier in self.permanent_batch_errors:
                        raise self.permanent_batch_errors[identifier]
                    pending = self.batch_errors.get(identifier)
                    if pending:
                        raise pending.pop(0)

                errors = []
                for identifier in batch:
                    codes = self.key_errors.get(identifier)
                    if codes:
                        errors.append(KeyDeleteError(identifier, codes.pop(0), "rejected"))
                deleted = set(batch) - {e.identifier for e in errors}
                self.buckets[bucket.name] = [
                    i for i in self.buckets.get(bucket.name, []) if i not in deleted
                ]
            return BatchDeleteResult(requested=len(batch), errors=errors)
        finally:
            with self._lock:
                self.in_flight -= 1

    def delete_bucket(self, bucket: Bucket, region: Region) -> None:
        with self._lock:
            self.calls.append("delete_bucket")
            self.deleted_buckets.append(bucket.name)
            self.buckets.pop(bucket.name, None)


@pytest.fixture
def fake_store():
    """An empty in-memory object store."""
    return FakeObjectStore()


@pytest.fixture
def no_wait_policy():
    """Retry policy with a fixed 1 second delay, for use with a recording sleep."""
    return RetryPolicy(max_attempts=5, delay_ceiling_sec=5, random_below=lambda n: 0)


@pytest.fixture
def sleeps():
    """Recording replacement for time.sleep."""
    recorded: List[float] = []
    return recorded


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mock AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def mock_aws_environment(aws_credentials):
    """Create a mocked AWS environment."""
    with mock_aws():
        yield


@pytest.fixture
def aws_client(mock_aws_environment):
    """Create an AWSClient instance for testing."""
    return AWSClient(region="us-east-1")


@pytest.fixture
def s3_client(mock_aws_environment):
    """Create a boto3 S3 client for setting up test resources."""
    return boto3.client("s3", region_name="us-east-1")


@pytest.fixture
def s3_store(aws_client):
    """S3ObjectStore backed by moto."""
    return S3ObjectStore(aws_client)


@pytest.fixture
def bucket(s3_client):
    """Create an empty bucket in us-east-1."""
    s3_client.create_bucket(Bucket="test-bucket")
    return "test-bucket"


@pytest.fixture
def versioned_bucket(s3_client):
    """Create a bucket with versioning enabled."""
    s3_client.create_bucket(Bucket="versioned-bucket")
    s3_client.put_bucket_versioning(
        Bucket="versioned-bucket",
        VersioningConfiguration={"Status": "Enabled"},
    )
    return "versioned-bucket"
