"""
Bulk Deleters and Cleaners
==========================

This module provides the bulk object delete pipeline and the bucket
cleaner built on top of it.

Each cleaner implements safety features including:
- Dry-run mode for previewing deletions
- Interactive confirmation prompts
- Bounded parallelism with jittered retries
- Progress tracking and cooperative cancellation

Available Cleaners
------------------
BulkObjectDeleter
    Deletes large sets of objects or object versions in parallel chunks.
BucketCleaner
    Empties buckets and deletes them.

Data Classes
------------
DeleteState
    Stages a bulk delete goes through.
BucketDeleteStatus
    Enum representing the status of a bucket delete.
BucketDeleteResult
    Result of deleting one bucket.
BucketDeleteSummary
    Summary of deleting several buckets.

Example
-------
>>> from s3hub.cleaners import BucketCleaner, BulkObjectDeleter
>>> from s3hub.stores import S3ObjectStore
>>>
>>> store = S3ObjectStore(AWSClient(region="us-east-1"))
>>> deleter = BulkObjectDeleter(store, max_workers=5)
>>>
>>> # Delete everything under a prefix
>>> outcome = deleter.delete_all("my-bucket", prefix="logs/")
>>>
>>> # Delete the bucket itself once it is empty
>>> BucketCleaner(store, deleter).delete_bucket_and_contents("my-bucket")

Safety Features
---------------
1. **Validation first**: Bad bucket names and regions fail before any request
2. **Partial failures**: One failed chunk never aborts its siblings
3. **Bucket protection**: A bucket is only deleted after it was fully emptied
4. **Cancellation**: In-flight chunks finish, nothing new is sent

See Also
--------
s3hub.reporters : For displaying delete outcomes.
"""

from s3hub.cleaners.bucket_cleaner import (
    BucketCleaner,
    BucketDeleteResult,
    BucketDeleteStatus,
    BucketDeleteSummary,
)
from s3hub.cleaners.bulk_deleter import BulkObjectDeleter, DeleteState

__all__ = [
    "BucketCleaner",
    "BucketDeleteResult",
    "BucketDeleteStatus",
    "BucketDeleteSummary",
    "BulkObjectDeleter",
    "DeleteState",
]
