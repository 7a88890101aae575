"""
Cleaner for deleting S3 buckets together with their contents.

Empties a bucket with the bulk deleter and only deletes the bucket
itself once every object and version is gone.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from botocore.exceptions import BotoCoreError, ClientError

from s3hub.cleaners.bulk_deleter import BulkObjectDeleter, ProgressCallback
from s3hub.core.exceptions import (
    BucketNotEmptyError,
    BulkDeleteError,
    DeleteCancelledError,
    DeleteError,
    S3HubError,
)
from s3hub.core.models import Bucket, DeleteOutcome, Region
from s3hub.core.object_store import ObjectStore

# Module logger
logger = logging.getLogger(__name__)


class BucketDeleteStatus(Enum):
    """Status of a bucket delete."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"
    DRY_RUN = "dry_run"
    CANCELLED = "cancelled"


@dataclass
class BucketDeleteResult:
    """
    Result of deleting one bucket.

    Attributes:
        bucket: Bucket name
        status: Result status
        region: Region of the bucket, when it was resolved
        object_count: Objects found (dry run) or scheduled for deletion
        outcome: Outcome of emptying the bucket
        error_message: Error message if failed
        timestamp: When the operation was attempted
    """

    bucket: str
    status: BucketDeleteStatus
    region: Optional[str] = None
    object_count: int = 0
    outcome: Optional[DeleteOutcome] = None
    error_message: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "bucket": self.bucket,
            "status": self.status.value,
            "region": self.region,
            "object_count": self.object_count,
            "outcome": self.outcome.to_dict() if self.outcome else None,
            "error_message": self.error_message,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class BucketDeleteSummary:
    """
    Summary of deleting several buckets.

    Attributes:
        total: Buckets processed
        deleted: Buckets deleted
        failed: Buckets that could not be emptied or deleted
        skipped: Buckets skipped by the user
        dry_run: Buckets processed in dry-run mode
        cancelled: Buckets whose delete was cancelled
        results: Individual results for each bucket
        start_time: When the operation started
        end_time: When the operation completed
    """

    total: int = 0
    deleted: int = 0
    failed: int = 0
    skipped: int = 0
    dry_run: int = 0
    cancelled: int = 0
    results: List[BucketDeleteResult] = field(default_factory=list)
    start_time: datetime = field(default_factory=datetime.utcnow)
    end_time: Optional[datetime] = None

    def add_result(self, result: BucketDeleteResult) -> None:
        """Add a result and update counts."""
        self.results.append(result)
        self.total += 1

        if result.status == BucketDeleteStatus.SUCCESS:
            self.deleted += 1
        elif result.status == BucketDeleteStatus.FAILED:
            self.failed += 1
        elif result.status == BucketDeleteStatus.SKIPPED:
            self.skipped += 1
        elif result.status == BucketDeleteStatus.DRY_RUN:
            self.dry_run += 1
        elif result.status == BucketDeleteStatus.CANCELLED:
            self.cancelled += 1

    def complete(self) -> None:
        """Mark the operation as complete."""
        self.end_time = datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total": self.total,
            "deleted": self.deleted,
            "failed": self.failed,
            "skipped": self.skipped,
            "dry_run": self.dry_run,
            "cancelled": self.cancelled,
            "results": [r.to_dict() for r in self.results],
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
        }


class BucketCleaner:
    """
    Cleaner for deleting buckets and everything in them.

    Provides safe deletion with:
    - Dry-run mode (count objects without deleting)
    - Interactive confirmation
    - No bucket delete unless emptying it fully succeeded
    """

    # Common error codes and user-friendly messages
    ERROR_MESSAGES = {
        "BucketNotEmpty": "Bucket still contains objects",
        "NoSuchBucket": "Bucket no longer exists",
        "AccessDenied": "Insufficient permissions to delete bucket",
    }

    def __init__(
        self,
        store: ObjectStore,
        deleter: Optional[BulkObjectDeleter] = None,
    ):
        """
        Initialize the cleaner.

        Args:
            store: Object store used for the bucket delete
            deleter: Bulk deleter used to empty buckets; built on ``store``
                with default settings when omitted
        """
        self.store = store
        self.deleter = deleter or BulkObjectDeleter(store)

    def delete_bucket_and_contents(
        self,
        bucket: Union[str, Bucket],
        versions: bool = True,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> DeleteOutcome:
        """
        Empty a bucket and delete it.

        Args:
            bucket: Bucket to delete
            versions: Delete every object version too (required for
                versioned buckets)
            cancel_event: Set it to stop emptying the bucket
            progress_callback: Called after every deleted chunk

        Returns:
            The outcome of emptying the bucket

        Raises:
            BulkDeleteError: Some objects could not be deleted; the bucket is kept
            DeleteCancelledError: Cancelled before the bucket was empty; the
                bucket is kept
            BucketNotEmptyError: S3 refused the bucket delete because
                objects are still present
            DeleteError: The bucket delete failed for another reason
        """
        bucket = Bucket.parse(bucket)
        try:
            outcome = self.deleter.delete_all(
                bucket,
                versions=versions,
                cancel_event=cancel_event,
                progress_callback=progress_callback,
            )
        except (BulkDeleteError, DeleteCancelledError) as e:
            logger.warning(
                f"Keeping bucket {bucket}: {e.outcome.failed_count} objects "
                f"not deleted ({e.outcome.status.value})"
            )
            raise

        region = Region(outcome.region) if outcome.region else Region.US_EAST_1
        try:
            self.store.delete_bucket(bucket, region)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            error_message = self.ERROR_MESSAGES.get(
                error_code, e.response.get("Error", {}).get("Message", str(e))
            )
            if error_code == "BucketNotEmpty":
                raise BucketNotEmptyError(
                    error_message,
                    bucket=bucket.name,
                    details={"region": region.value},
                ) from e
            raise DeleteError(
                f"Failed to delete bucket {bucket}: {error_message}",
                bucket=bucket.name,
                details={"error_code": error_code},
            ) from e
        except BotoCoreError as e:
            raise DeleteError(
                f"Failed to delete bucket {bucket}: {e}",
                bucket=bucket.name,
                details={"region": region.value},
            ) from e

        logger.info(f"Deleted bucket {bucket} ({outcome.deleted_count} objects)")
        return outcome

    def delete_buckets(
        self,
        buckets: Iterable[Union[str, Bucket]],
        dry_run: bool = True,
        versions: bool = True,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
        result_callback: Optional[Callable[[BucketDeleteResult], None]] = None,
    ) -> BucketDeleteSummary:
        """
        Delete several buckets one after another.

        Args:
            buckets: Buckets to delete
            dry_run: If True, only count the objects that would be deleted
            versions: Delete every object version too
            cancel_event: Set it to stop; remaining buckets are not touched
            progress_callback: Called after every deleted chunk
            result_callback: Called after each bucket

        Returns:
            BucketDeleteSummary with results
        """
        return self.delete_with_confirmation(
            buckets,
            confirm_callback=lambda _: True,
            dry_run=dry_run,
            versions=versions,
            cancel_event=cancel_event,
            progress_callback=progress_callback,
            result_callback=result_callback,
        )

    def delete_with_confirmation(
        self,
        buckets: Iterable[Union[str, Bucket]],
        confirm_callback: Callable[[Bucket], bool],
        dry_run: bool = False,
        versions: bool = True,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
        result_callback: Optional[Callable[[BucketDeleteResult], None]] = None,
    ) -> BucketDeleteSummary:
        """
        Delete buckets with individual confirmation.

        Args:
            buckets: Buckets to delete
            confirm_callback: Returns True to delete, False to skip
            dry_run: If True, only count the objects that would be deleted
            versions: Delete every object version too
            cancel_event: Set it to stop; remaining buckets are not touched
            progress_callback: Called after every deleted chunk
            result_callback: Called after each bucket

        Returns:
            BucketDeleteSummary with results
        """
        summary = BucketDeleteSummary()

        for name in buckets:
            bucket = Bucket.parse(name)

            if not confirm_callback(bucket):
                result = BucketDeleteResult(
                    bucket=bucket.name, status=BucketDeleteStatus.SKIPPED
                )
            elif dry_run:
                result = self._dry_run(bucket, versions)
            else:
                result = self._delete_one(
                    bucket, versions, cancel_event, progress_callback
                )

            summary.add_result(result)
            if result_callback:
                result_callback(result)
            if result.status == BucketDeleteStatus.CANCELLED:
                break

        summary.complete()
        return summary

    # =========================================================================
    # Private Methods
    # =========================================================================

    def _dry_run(self, bucket: Bucket, versions: bool) -> BucketDeleteResult:
        try:
            inventory = self.deleter.list_inventory(bucket, versions=versions)
        except (ClientError, S3HubError) as e:
            return BucketDeleteResult(
                bucket=bucket.name,
                status=BucketDeleteStatus.FAILED,
                error_message=str(e),
            )
        return BucketDeleteResult(
            bucket=bucket.name,
            status=BucketDeleteStatus.DRY_RUN,
            object_count=len(inventory),
        )

    def _delete_one(
        self,
        bucket: Bucket,
        versions: bool,
        cancel_event: Optional[threading.Event],
        progress_callback: Optional[ProgressCallback],
    ) -> BucketDeleteResult:
        try:
            outcome = self.delete_bucket_and_contents(
                bucket,
                versions=versions,
                cancel_event=cancel_event,
                progress_callback=progress_callback,
            )
        except DeleteCancelledError as e:
            return BucketDeleteResult(
                bucket=bucket.name,
                status=BucketDeleteStatus.CANCELLED,
                region=e.outcome.region,
                object_count=e.outcome.total,
                outcome=e.outcome,
                error_message=e.message,
            )
        except BulkDeleteError as e:
            return BucketDeleteResult(
                bucket=bucket.name,
                status=BucketDeleteStatus.FAILED,
                region=e.outcome.region,
                object_count=e.outcome.total,
                outcome=e.outcome,
                error_message=e.message,
            )
        except S3HubError as e:
            logger.error(f"Failed to delete bucket {bucket}: {e}")
            return BucketDeleteResult(
                bucket=bucket.name,
                status=BucketDeleteStatus.FAILED,
                error_message=e.message,
            )

        return BucketDeleteResult(
            bucket=bucket.name,
            status=BucketDeleteStatus.SUCCESS,
            region=outcome.region,
            object_count=outcome.total,
            outcome=outcome,
        )

    def __repr__(self) -> str:
        return f"BucketCleaner(deleter={self.deleter!r})"


__all__ = [
    "BucketCleaner",
    "BucketDeleteResult",
    "BucketDeleteStatus",
    "BucketDeleteSummary",
]
