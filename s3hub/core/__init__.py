"""
Core Components
===============

This module provides the foundational components for s3hub:

- :mod:`~s3hub.core.models` - Regions, buckets, object identifiers and delete outcomes
- :mod:`~s3hub.core.validation` - Bucket name, region and key validation
- :mod:`~s3hub.core.retry` - Jittered retry policy for batch deletes
- :class:`ObjectStore` - Capability the bulk deleter talks to
- :class:`AWSClient` - Manages AWS sessions and per-region clients
- Exception hierarchy for error handling

Exceptions
----------
S3HubError
    Base exception for all s3hub errors.
ValidationError
    Malformed bucket names, regions or keys.
AWSClientError
    Session, client and credential failures.
DeleteError
    Base exception for the bulk delete pipeline.

Example
-------
>>> from s3hub.core import ObjectIdentifierSet, RetryPolicy
>>>
>>> objects = ObjectIdentifierSet.from_keys(["a.txt", "b.txt"])
>>> policy = RetryPolicy(max_attempts=5)

See Also
--------
s3hub.stores : Object store implementations.
s3hub.cleaners : Bulk deleter and bucket cleaner.
s3hub.reporters : Output formatters.
"""

from s3hub.core.aws_client import AWSClient
from s3hub.core.config import Config, load_config
from s3hub.core.exceptions import (
    AWSClientError,
    BucketNotEmptyError,
    BulkDeleteError,
    ConfigError,
    CredentialsError,
    DeleteCancelledError,
    DeleteError,
    EmptyKeyError,
    EmptyRegionError,
    FatalPreconditionError,
    InvalidBucketNameError,
    InvalidRegionError,
    PermanentChunkError,
    RetryDelayError,
    S3HubError,
    ServiceError,
    TransientStoreError,
    ValidationError,
)
from s3hub.core.models import (
    Bucket,
    ChunkFailure,
    DeleteOutcome,
    DeleteProgress,
    ObjectIdentifier,
    ObjectIdentifierSet,
    OutcomeStatus,
    Region,
    S3Address,
)
from s3hub.core.object_store import BatchDeleteResult, ObjectPage, ObjectStore
from s3hub.core.retry import RetryPolicy

__all__ = [
    # Client
    "AWSClient",
    # Configuration
    "Config",
    "load_config",
    # Models
    "Bucket",
    "ChunkFailure",
    "DeleteOutcome",
    "DeleteProgress",
    "ObjectIdentifier",
    "ObjectIdentifierSet",
    "OutcomeStatus",
    "Region",
    "S3Address",
    # Object store
    "BatchDeleteResult",
    "ObjectPage",
    "ObjectStore",
    "RetryPolicy",
    # Exceptions - Base
    "S3HubError",
    "ConfigError",
    # Exceptions - Validation
    "ValidationError",
    "InvalidBucketNameError",
    "InvalidRegionError",
    "EmptyRegionError",
    "EmptyKeyError",
    # Exceptions - AWS Client
    "AWSClientError",
    "CredentialsError",
    "ServiceError",
    # Exceptions - Delete
    "DeleteError",
    "FatalPreconditionError",
    "TransientStoreError",
    "PermanentChunkError",
    "RetryDelayError",
    "DeleteCancelledError",
    "BulkDeleteError",
    "BucketNotEmptyError",
]
