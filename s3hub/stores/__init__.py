"""
Object Store Adapters
=====================

Concrete implementations of :class:`s3hub.core.object_store.ObjectStore`.

Available Stores
----------------
S3ObjectStore
    Amazon S3 through boto3.
"""

from s3hub.stores.s3_store import BucketInfo, S3ObjectStore

__all__ = [
    "BucketInfo",
    "S3ObjectStore",
]
