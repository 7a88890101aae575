"""
S3 Object Store
===============

boto3-backed implementation of :class:`~s3hub.core.object_store.ObjectStore`.

Classes
-------
BucketInfo
    A bucket returned by ListBuckets.
S3ObjectStore
    Adapter translating ObjectStore calls into S3 API calls.

Example
-------
>>> from s3hub.core.aws_client import AWSClient
>>> from s3hub.stores.s3_store import S3ObjectStore
>>>
>>> store = S3ObjectStore(AWSClient(region="us-east-1"))
>>> region = store.get_bucket_region(Bucket("my-bucket"))
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from s3hub.core.aws_client import AWSClient
from s3hub.core.exceptions import InvalidRegionError
from s3hub.core.models import (
    MAX_DELETE_OBJECTS_BATCH_SIZE,
    MAX_S3_KEYS,
    Bucket,
    ObjectIdentifier,
    ObjectIdentifierSet,
    Region,
)
from s3hub.core.object_store import (
    BatchDeleteResult,
    KeyDeleteError,
    ObjectPage,
    ObjectStore,
)

# Module logger
logger = logging.getLogger(__name__)


@dataclass
class BucketInfo:
    """A bucket as returned by ListBuckets, with its region once resolved."""

    bucket: Bucket
    creation_date: Optional[datetime] = None
    region: Optional[Region] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bucket": self.bucket.name,
            "creation_date": self.creation_date.isoformat() if self.creation_date else None,
            "region": self.region.value if self.region else None,
        }


def _encode_version_token(key_marker: str, version_id_marker: Optional[str]) -> str:
    return json.dumps([key_marker, version_id_marker])


def _decode_version_token(token: str) -> Dict[str, str]:
    key_marker, version_id_marker = json.loads(token)
    markers = {"KeyMarker": key_marker}
    if version_id_marker:
        markers["VersionIdMarker"] = version_id_marker
    return markers


class S3ObjectStore(ObjectStore):
    """
    Object store backed by Amazon S3.

    Parameters
    ----------
    aws_client : AWSClient
        Client factory. Batch deletes and bucket deletes go through the
        S3 client of the bucket's region.

    Notes
    -----
    boto3 ``ClientError`` exceptions are not translated here; the bulk
    deleter classifies them with its retry policy.
    """

    def __init__(self, aws_client: AWSClient) -> None:
        self.aws_client = aws_client

    @property
    def s3_client(self) -> Any:
        return self.aws_client.get_s3_client()

    def get_bucket_region(self, bucket: Bucket) -> Region:
        response = self.s3_client.get_bucket_location(Bucket=bucket.name)
        constraint = response.get("LocationConstraint")
        try:
            return Region.from_location_constraint(constraint)
        except ValueError:
            raise InvalidRegionError(
                "bucket is in an unsupported region",
                details={"bucket": bucket.name, "region": constraint},
            )

    def list_objects(
        self,
        bucket: Bucket,
        continuation_token: Optional[str] = None,
        prefix: Optional[str] = None,
    ) -> ObjectPage:
        kwargs: Dict[str, Any] = {"Bucket": bucket.name, "MaxKeys": MAX_S3_KEYS}
        if continuation_token:
            kwargs["ContinuationToken"] = continuation_token
        if prefix:
            kwargs["Prefix"] = prefix

        response = self.s3_client.list_objects_v2(**kwargs)
        identifiers = [
            ObjectIdentifier(obj["Key"]) for obj in response.get("Contents", [])
        ]
        next_token = None
        if response.get("IsTruncated"):
            next_token = response.get("NextContinuationToken")
        return ObjectPage(identifiers=identifiers, next_token=next_token)

    def list_object_versions(
        self,
        bucket: Bucket,
        continuation_token: Optional[str] = None,
        prefix: Optional[str] = None,
    ) -> ObjectPage:
        kwargs: Dict[str, Any] = {"Bucket": bucket.name, "MaxKeys": MAX_S3_KEYS}
        if continuation_token:
            kwargs.update(_decode_version_token(continuation_token))
        if prefix:
            kwargs["Prefix"] = prefix

        response = self.s3_client.list_object_versions(**kwargs)
        identifiers = [
            ObjectIdentifier(v["Key"], version_id=v.get("VersionId"))
            for v in response.get("Versions", [])
        ]
        identifiers += [
            ObjectIdentifier(m["Key"], version_id=m.get("VersionId"))
            for m in response.get("DeleteMarkers", [])
        ]

        next_token = None
        if response.get("IsTruncated"):
            next_token = _encode_version_token(
                response.get("NextKeyMarker", ""),
                response.get("NextVersionIdMarker"),
            )
        return ObjectPage(identifiers=identifiers, next_token=next_token)

    def delete_object_batch(
        self,
        bucket: Bucket,
        region: Region,
        identifiers: ObjectIdentifierSet,
    ) -> BatchDeleteResult:
        if len(identifiers) > MAX_DELETE_OBJECTS_BATCH_SIZE:
            raise ValueError(
                f"DeleteObjects accepts at most {MAX_DELETE_OBJECTS_BATCH_SIZE} "
                f"objects, got {len(identifiers)}"
            )

        s3 = self.aws_client.get_s3_client(region.value)
        response = s3.delete_objects(
            Bucket=bucket.name,
            Delete={"Objects": identifiers.to_s3_objects(), "Quiet": True},
        )

        errors = [
            KeyDeleteError(
                identifier=ObjectIdentifier(e["Key"], version_id=e.get("VersionId")),
                code=e.get("Code", "Unknown"),
                message=e.get("Message", ""),
            )
            for e in response.get("Errors", [])
        ]
        if errors:
            logger.debug(
                f"DeleteObjects on {bucket} rejected {len(errors)} of "
                f"{len(identifiers)} keys"
            )
        return BatchDeleteResult(requested=len(identifiers), errors=errors)

    def delete_bucket(self, bucket: Bucket, region: Region) -> None:
        s3 = self.aws_client.get_s3_client(region.value)
        s3.delete_bucket(Bucket=bucket.name)
        logger.info(f"Deleted bucket {bucket} in {region}")

    # =========================================================================
    # Bucket Operations
    # =========================================================================

    def list_buckets(self, with_region: bool = False) -> List[BucketInfo]:
        """
        List the buckets owned by the caller.

        Parameters
        ----------
        with_region : bool, default=False
            Also resolve each bucket's region (one extra call per bucket).
            A bucket whose region cannot be resolved is listed without one.
        """
        response = self.s3_client.list_buckets()
        buckets = [
            BucketInfo(bucket=Bucket(b["Name"]), creation_date=b.get("CreationDate"))
            for b in response.get("Buckets", [])
        ]
        if with_region:
            for info in buckets:
                try:
                    info.region = self.get_bucket_region(info.bucket)
                except (InvalidRegionError, ClientError, BotoCoreError) as e:
                    logger.warning(f"Could not resolve region of {info.bucket}: {e}")
        return buckets

    def create_bucket(self, bucket: Bucket, region: Region) -> None:
        """Create a bucket in ``region``."""
        s3 = self.aws_client.get_s3_client(region.value)
        kwargs: Dict[str, Any] = {"Bucket": bucket.name}
        # us-east-1 rejects an explicit location constraint.
        if region != Region.US_EAST_1:
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region.value}
        s3.create_bucket(**kwargs)
        logger.info(f"Created bucket {bucket} in {region}")

    def __repr__(self) -> str:
        return f"S3ObjectStore(aws_client={self.aws_client!r})"
