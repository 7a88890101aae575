"""
Object Store Interface
======================

Abstract capability the bulk deleter consumes.

The deleter never talks to boto3 directly. It is handed an
:class:`ObjectStore`, which in production is
:class:`~s3hub.stores.s3_store.S3ObjectStore` and in tests is an
in-memory fake.

Classes
-------
ObjectStore
    Abstract base class for object stores.
ObjectPage
    One page of a paginated listing.
KeyDeleteError
    Per-key failure reported inside a batch delete response.
BatchDeleteResult
    Result of a single batch delete call.

Notes
-----
Implementations must be safe to call from several threads at once.
The deleter shares one store instance across all chunk workers and
never mutates it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from s3hub.core.models import (
    Bucket,
    ObjectIdentifier,
    ObjectIdentifierSet,
    Region,
)


@dataclass
class ObjectPage:
    """
    One page of a listing.

    Attributes:
        identifiers: Objects (or object versions and delete markers) on this page
        next_token: Token for the following page, None on the last page
    """

    identifiers: List[ObjectIdentifier] = field(default_factory=list)
    next_token: Optional[str] = None

    @property
    def is_last(self) -> bool:
        return not self.next_token


@dataclass
class KeyDeleteError:
    """
    A key S3 refused to delete inside an otherwise successful batch call.

    Attributes:
        identifier: The object (version) that was not deleted
        code: S3 error code, e.g. ``AccessDenied``
        message: S3 error message
    """

    identifier: ObjectIdentifier
    code: str
    message: str = ""


@dataclass
class BatchDeleteResult:
    """
    Result of one DeleteObjects call.

    Attributes:
        requested: Number of identifiers sent
        errors: Per-key failures; empty when the whole batch succeeded
    """

    requested: int
    errors: List[KeyDeleteError] = field(default_factory=list)

    @property
    def deleted_count(self) -> int:
        return self.requested - len(self.errors)


class ObjectStore(ABC):
    """
    Abstract base class for object stores.

    Implementations raise their own exceptions (for S3,
    ``botocore.exceptions.ClientError``); the bulk deleter hands them to
    its retry policy for classification.
    """

    @abstractmethod
    def get_bucket_region(self, bucket: Bucket) -> Region:
        """Return the region the bucket lives in."""
        pass

    @abstractmethod
    def list_objects(
        self,
        bucket: Bucket,
        continuation_token: Optional[str] = None,
        prefix: Optional[str] = None,
    ) -> ObjectPage:
        """Return one page of current objects, without version ids."""
        pass

    @abstractmethod
    def list_object_versions(
        self,
        bucket: Bucket,
        continuation_token: Optional[str] = None,
        prefix: Optional[str] = None,
    ) -> ObjectPage:
        """
        Return one page of object versions and delete markers.

        Parameters
        ----------
        bucket : Bucket
            Bucket to list.
        continuation_token : str, optional
            ``next_token`` of the previous page.
        prefix : str, optional
            Only list keys starting with this prefix.
        """
        pass

    @abstractmethod
    def delete_object_batch(
        self,
        bucket: Bucket,
        region: Region,
        identifiers: ObjectIdentifierSet,
    ) -> BatchDeleteResult:
        """
        Delete up to ``MAX_DELETE_OBJECTS_BATCH_SIZE`` identifiers in one call.

        Raises on whole-batch failure. Keys S3 rejected individually are
        returned in :attr:`BatchDeleteResult.errors`.
        """
        pass

    @abstractmethod
    def delete_bucket(self, bucket: Bucket, region: Region) -> None:
        """Delete an empty bucket."""
        pass
