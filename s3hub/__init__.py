"""
s3hub: AWS S3 Management Tools
==============================

Tools for managing S3 buckets at scale, centred on a concurrent bulk
delete pipeline that empties buckets with millions of objects or
object versions.

Modules
-------
core
    Domain models, validation, retry policy, AWS client and configuration
stores
    Object store adapters (boto3-backed S3)
cleaners
    Bulk object deleter and bucket cleaner
reporters
    Output formatters (CLI, CSV, JSON)

Example
-------
>>> from s3hub import AWSClient, BulkObjectDeleter, S3ObjectStore
>>>
>>> store = S3ObjectStore(AWSClient(region="us-east-1"))
>>> outcome = BulkObjectDeleter(store).delete_all("my-bucket")
>>> print(f"Deleted {outcome.deleted_count} objects")

Notes
-----
Requires AWS credentials configured via:
- Environment variables (AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY)
- AWS credentials file (~/.aws/credentials)
- IAM role (when running on AWS infrastructure)

See Also
--------
boto3 : AWS SDK for Python
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Public API
from s3hub.cleaners.bucket_cleaner import BucketCleaner
from s3hub.cleaners.bulk_deleter import BulkObjectDeleter
from s3hub.core.aws_client import AWSClient
from s3hub.core.exceptions import BulkDeleteError, DeleteCancelledError, S3HubError
from s3hub.core.models import DeleteOutcome, ObjectIdentifier, ObjectIdentifierSet
from s3hub.core.retry import RetryPolicy
from s3hub.stores.s3_store import S3ObjectStore

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Pipeline
    "AWSClient",
    "BucketCleaner",
    "BulkObjectDeleter",
    "RetryPolicy",
    "S3ObjectStore",
    # Data
    "DeleteOutcome",
    "ObjectIdentifier",
    "ObjectIdentifierSet",
    # Errors
    "BulkDeleteError",
    "DeleteCancelledError",
    "S3HubError",
]
