"""
Bulk Delete Module
==================

Deletes large numbers of S3 objects (or object versions) by splitting
them into DeleteObjects-sized chunks and sending the chunks in parallel.

This module handles:
- Resolving the bucket's region before any delete is sent
- Listing the full inventory of a bucket, page by page
- Dispatching chunks to a bounded pool of worker threads
- Jittered retries of throttled chunks
- Collecting partial failures without aborting sibling chunks
- Progress callbacks and cooperative cancellation

Classes
-------
DeleteState
    Stages a bulk delete goes through.
BulkObjectDeleter
    Orchestrates bulk deletes against an ObjectStore.

Example
-------
>>> from s3hub.cleaners import BulkObjectDeleter
>>> from s3hub.stores import S3ObjectStore
>>>
>>> deleter = BulkObjectDeleter(S3ObjectStore(client), max_workers=5)
>>> try:
...     outcome = deleter.delete_all("my-bucket")
... except BulkDeleteError as e:
...     outcome = e.outcome
>>> print(f"Deleted {outcome.deleted_count}, failed {outcome.failed_count}")

Notes
-----
At most ``max_workers`` DeleteObjects calls are in flight at any time.
The dispatching thread blocks on a semaphore until a slot frees up, so
chunks are never queued faster than they can be sent.

Cancellation is cooperative. Setting the ``cancel_event`` stops listing
and dispatching; chunks already sent run to completion and their
results are included in the outcome carried by
:class:`~s3hub.core.exceptions.DeleteCancelledError`.

See Also
--------
RetryPolicy : Decides which failures are retried.
ObjectStore : Capability the deleter sends requests through.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Callable, Iterable, List, Optional, Union

from botocore.exceptions import ClientError

from s3hub.core.exceptions import (
    BulkDeleteError,
    DeleteCancelledError,
    DeleteError,
    FatalPreconditionError,
    PermanentChunkError,
    RetryDelayError,
    ValidationError,
)
from s3hub.core.models import (
    DEFAULT_MAX_WORKERS,
    MAX_DELETE_OBJECTS_BATCH_SIZE,
    Bucket,
    ChunkFailure,
    DeleteOutcome,
    DeleteProgress,
    ObjectIdentifier,
    ObjectIdentifierSet,
    OutcomeStatus,
    Region,
)
from s3hub.core.object_store import KeyDeleteError, ObjectStore
from s3hub.core.retry import RetryPolicy
from s3hub.core.validation import validate_region

# Module logger
logger = logging.getLogger(__name__)

# How often a dispatcher blocked on a full pool checks for cancellation.
SLOT_POLL_INTERVAL_SEC = 0.1

ProgressCallback = Callable[[DeleteProgress], None]


class DeleteState(Enum):
    """Stages of a bulk delete."""

    IDLE = "idle"
    RESOLVING_REGION = "resolving_region"
    LISTING = "listing"
    CHUNKING = "chunking"
    DISPATCHING = "dispatching"
    AGGREGATING = "aggregating"
    DONE = "done"


class _DeleteRun:
    """
    Mutable state of one bulk delete call.

    Worker threads report finished chunks through :meth:`record`, which
    updates the outcome and emits progress under a single lock.
    """

    def __init__(
        self,
        bucket: Bucket,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        self.bucket = bucket
        self.outcome = DeleteOutcome(bucket=bucket.name)
        self.state = DeleteState.IDLE
        self.causes: List[PermanentChunkError] = []
        self.aborted = False
        self._processed = 0
        self._lock = threading.Lock()
        self._progress_callback = progress_callback

    def transition(self, state: DeleteState) -> None:
        logger.debug(f"{self.bucket}: {self.state.value} -> {state.value}")
        self.state = state

    def record(
        self,
        chunk_index: int,
        chunk_size: int,
        deleted: int,
        failures: List[ChunkFailure],
        cause: Optional[PermanentChunkError] = None,
        abort_on_failure: bool = False,
    ) -> None:
        with self._lock:
            self._processed += chunk_size
            self.outcome.deleted_count += deleted
            self.outcome.failures.extend(failures)
            if cause is not None:
                self.causes.append(cause)
            if failures and abort_on_failure:
                self.aborted = True

            progress = DeleteProgress(
                bucket=self.bucket.name,
                total=self.outcome.total,
                processed=self._processed,
                deleted=self.outcome.deleted_count,
                failed=self.outcome.failed_count,
                chunk_index=chunk_index,
            )
            if self._progress_callback:
                try:
                    self._progress_callback(progress)
                except Exception:
                    logger.exception("Progress callback failed")

    def is_aborted(self) -> bool:
        with self._lock:
            return self.aborted


class BulkObjectDeleter:
    """
    Deletes objects from a bucket in parallel chunks.

    Parameters
    ----------
    store : ObjectStore
        Object store the requests are sent through. Shared by all
        worker threads.
    retry_policy : RetryPolicy, optional
        Retry strategy for failed chunks. Defaults to ``RetryPolicy()``.
    max_workers : int, default=5
        Maximum number of DeleteObjects calls in flight at once.
    batch_size : int, default=1000
        Identifiers per DeleteObjects call; at most 1000.
    abort_on_failure : bool, default=False
        Stop dispatching new chunks after the first permanent chunk
        failure. In-flight chunks still finish.
    sleep : callable, default=time.sleep
        Function used to wait between retries.

    Attributes
    ----------
    store : ObjectStore
        The configured object store.
    retry_policy : RetryPolicy
        The configured retry policy.
    max_workers : int
        Worker ceiling.
    batch_size : int
        Chunk size.

    Examples
    --------
    Delete specific objects:

    >>> objects = ObjectIdentifierSet.from_keys(["a.txt", "b.txt"])
    >>> outcome = deleter.delete_set("my-bucket", objects)

    Empty a versioned bucket with a progress bar:

    >>> def on_progress(p):
    ...     print(f"{p.processed}/{p.total}")
    >>> outcome = deleter.delete_all("my-bucket", progress_callback=on_progress)

    Raises
    ------
    ValueError
        If ``max_workers`` or ``batch_size`` is out of range.
    """

    def __init__(
        self,
        store: ObjectStore,
        retry_policy: Optional[RetryPolicy] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        batch_size: int = MAX_DELETE_OBJECTS_BATCH_SIZE,
        abort_on_failure: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the deleter with the specified configuration."""
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        if not 1 <= batch_size <= MAX_DELETE_OBJECTS_BATCH_SIZE:
            raise ValueError(
                f"batch_size must be between 1 and {MAX_DELETE_OBJECTS_BATCH_SIZE}, "
                f"got {batch_size}"
            )
        self.store = store
        self.retry_policy = retry_policy or RetryPolicy()
        self.max_workers = max_workers
        self.batch_size = batch_size
        self.abort_on_failure = abort_on_failure
        self._sleep = sleep

        logger.debug(
            f"Initialized BulkObjectDeleter with max_workers={max_workers}, "
            f"batch_size={batch_size}"
        )

    # =========================================================================
    # Public API
    # =========================================================================

    def delete_set(
        self,
        bucket: Union[str, Bucket],
        identifiers: Iterable[ObjectIdentifier],
        region: Optional[Union[str, Region]] = None,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> DeleteOutcome:
        """
        Delete the given objects from a bucket.

        Parameters
        ----------
        bucket : str or Bucket
            Bucket to delete from.
        identifiers : iterable of ObjectIdentifier
            Objects (or object versions) to delete. Duplicates are dropped.
        region : str or Region, optional
            Region of the bucket. Looked up with the store when omitted.
        cancel_event : threading.Event, optional
            Set it to stop dispatching new chunks.
        progress_callback : callable, optional
            Called with a :class:`DeleteProgress` after every chunk.

        Returns
        -------
        DeleteOutcome
            Outcome with status SUCCESS.

        Raises
        ------
        ValidationError
            If the bucket name or region is invalid. Nothing is sent to S3.
        FatalPreconditionError
            If the bucket's region cannot be resolved.
        BulkDeleteError
            If any identifier could not be deleted. ``e.outcome`` holds
            the partial outcome.
        DeleteCancelledError
            If ``cancel_event`` was set before all chunks were sent.
        """
        bucket = Bucket.parse(bucket)
        resolved_region = validate_region(region) if region is not None else None

        if not isinstance(identifiers, ObjectIdentifierSet):
            identifiers = ObjectIdentifierSet(identifiers)
        unique = identifiers.dedupe()
        if len(unique) != len(identifiers):
            logger.debug(
                f"Dropped {len(identifiers) - len(unique)} duplicate identifiers"
            )

        run = _DeleteRun(bucket, progress_callback)
        if unique.empty:
            logger.info(f"Nothing to delete in {bucket}")
            run.outcome.complete(OutcomeStatus.SUCCESS)
            return run.outcome

        if resolved_region is None:
            resolved_region = self._resolve_region(run)
        run.outcome.region = resolved_region.value

        return self._delete_chunks(run, resolved_region, unique, cancel_event)

    def delete_all(
        self,
        bucket: Union[str, Bucket],
        prefix: Optional[str] = None,
        versions: bool = True,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> DeleteOutcome:
        """
        Delete every object in a bucket.

        Parameters
        ----------
        bucket : str or Bucket
            Bucket to empty.
        prefix : str, optional
            Only delete keys starting with this prefix.
        versions : bool, default=True
            Delete every object version and delete marker. With False,
            only current objects are deleted (a versioned bucket keeps
            their history).
        cancel_event : threading.Event, optional
            Set it to stop listing or dispatching.
        progress_callback : callable, optional
            Called with a :class:`DeleteProgress` after every chunk.

        Returns
        -------
        DeleteOutcome
            Outcome with status SUCCESS.

        Raises
        ------
        ValidationError
            If the bucket name is invalid.
        FatalPreconditionError
            If the region lookup or the listing fails.
        BulkDeleteError
            If any object could not be deleted.
        DeleteCancelledError
            If ``cancel_event`` was set before all chunks were sent.
        """
        bucket = Bucket.parse(bucket)
        run = _DeleteRun(bucket, progress_callback)

        region = self._resolve_region(run)
        run.outcome.region = region.value

        run.transition(DeleteState.LISTING)
        try:
            inventory = self.list_inventory(
                bucket, prefix=prefix, versions=versions, cancel_event=cancel_event
            )
        except DeleteCancelledError as e:
            e.outcome.region = region.value
            raise
        except ValidationError:
            raise
        except Exception as e:
            logger.error(f"Failed to list objects in {bucket}: {e}")
            raise FatalPreconditionError(
                f"Failed to list objects in {bucket}: {e}",
                bucket=bucket.name,
            ) from e

        if inventory.empty:
            logger.info(f"Bucket {bucket} is already empty")
            run.transition(DeleteState.DONE)
            run.outcome.complete(OutcomeStatus.SUCCESS)
            return run.outcome

        return self._delete_chunks(run, region, inventory, cancel_event)

    def list_inventory(
        self,
        bucket: Union[str, Bucket],
        prefix: Optional[str] = None,
        versions: bool = True,
        cancel_event: Optional[threading.Event] = None,
    ) -> ObjectIdentifierSet:
        """
        Collect every object (or object version) in a bucket.

        Follows continuation tokens until the last page and checks
        ``cancel_event`` before each page.

        Raises
        ------
        DeleteCancelledError
            If ``cancel_event`` is set mid-listing. Nothing has been
            deleted at that point.
        """
        bucket = Bucket.parse(bucket)
        list_page = (
            self.store.list_object_versions if versions else self.store.list_objects
        )

        inventory = ObjectIdentifierSet()
        token: Optional[str] = None
        pages = 0
        while True:
            if self._is_cancelled(cancel_event):
                logger.warning(f"Listing of {bucket} cancelled after {pages} pages")
                outcome = DeleteOutcome(bucket=bucket.name)
                outcome.complete(OutcomeStatus.CANCELLED)
                raise DeleteCancelledError(
                    "listing cancelled", outcome=outcome, bucket=bucket.name
                )

            page = list_page(bucket, continuation_token=token, prefix=prefix)
            inventory.extend(page.identifiers)
            pages += 1
            if page.is_last:
                break
            token = page.next_token

        logger.info(
            f"Listed {len(inventory)} {'versions' if versions else 'objects'} "
            f"in {bucket} ({pages} pages)"
        )
        return inventory

    # =========================================================================
    # Private Methods: Pipeline Stages
    # =========================================================================

    def _resolve_region(self, run: _DeleteRun) -> Region:
        run.transition(DeleteState.RESOLVING_REGION)
        try:
            return self.store.get_bucket_region(run.bucket)
        except ValidationError:
            raise
        except Exception as e:
            logger.error(f"Failed to resolve region of {run.bucket}: {e}")
            raise FatalPreconditionError(
                f"Failed to resolve region of bucket {run.bucket}: {e}",
                bucket=run.bucket.name,
            ) from e

    def _delete_chunks(
        self,
        run: _DeleteRun,
        region: Region,
        identifiers: ObjectIdentifierSet,
        cancel_event: Optional[threading.Event],
    ) -> DeleteOutcome:
        run.transition(DeleteState.CHUNKING)
        chunks = identifiers.chunk(self.batch_size)
        outcome = run.outcome
        outcome.total = len(identifiers)
        outcome.chunks_total = len(chunks)

        logger.info(
            f"Deleting {outcome.total} objects from {run.bucket} ({region}) "
            f"in {outcome.chunks_total} chunks, max_workers={self.max_workers}"
        )

        run.transition(DeleteState.DISPATCHING)
        slots = threading.BoundedSemaphore(self.max_workers)
        futures: List[Future] = []
        cancelled = False
        skipped_from: Optional[int] = None

        with ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="s3hub-delete",
        ) as executor:
            for index, chunk in enumerate(chunks):
                if not self._acquire_slot(slots, cancel_event):
                    cancelled = True
                    break
                if self._is_cancelled(cancel_event):
                    slots.release()
                    cancelled = True
                    break
                if run.is_aborted():
                    slots.release()
                    logger.warning(
                        f"Stopped dispatching after a failed chunk "
                        f"({index} of {outcome.chunks_total} sent)"
                    )
                    skipped_from = index
                    break

                logger.debug(f"Dispatching chunk {index} ({len(chunk)} objects)")
                future = executor.submit(
                    self._delete_chunk, run, region, index, chunk, cancel_event
                )
                future.add_done_callback(lambda _: slots.release())
                futures.append(future)
                outcome.chunks_dispatched += 1

        run.transition(DeleteState.AGGREGATING)
        for future in futures:
            # Surfaces programming errors; store errors are recorded per chunk.
            future.result()

        # Cancelled after the last dispatch: chunks that gave up a retry.
        if not cancelled and self._is_cancelled(cancel_event):
            cancelled = any(
                isinstance(f.error, DeleteCancelledError) for f in outcome.failures
            )

        if skipped_from is not None:
            skipped = DeleteError(
                "not sent after an earlier chunk failed", bucket=run.bucket.name
            )
            for index in range(skipped_from, len(chunks)):
                run.record(
                    chunk_index=index,
                    chunk_size=len(chunks[index]),
                    deleted=0,
                    failures=[
                        ChunkFailure(identifier=i, error=skipped)
                        for i in chunks[index]
                    ],
                )

        run.transition(DeleteState.DONE)
        if cancelled:
            outcome.complete(OutcomeStatus.CANCELLED)
            logger.warning(
                f"Bulk delete of {run.bucket} cancelled: "
                f"{outcome.chunks_dispatched}/{outcome.chunks_total} chunks sent, "
                f"{outcome.deleted_count} objects deleted"
            )
            raise DeleteCancelledError(
                "bulk delete cancelled", outcome=outcome, bucket=run.bucket.name
            )

        outcome.complete()
        if outcome.failures:
            logger.warning(
                f"Bulk delete of {run.bucket} finished with "
                f"{outcome.failed_count} failures "
                f"({outcome.deleted_count}/{outcome.total} deleted)"
            )
            raise BulkDeleteError(
                f"failed to delete {outcome.failed_count} of {outcome.total} objects",
                outcome=outcome,
                causes=list(run.causes),
                bucket=run.bucket.name,
            )

        logger.info(f"Deleted {outcome.deleted_count} objects from {run.bucket}")
        return outcome

    def _delete_chunk(
        self,
        run: _DeleteRun,
        region: Region,
        index: int,
        chunk: ObjectIdentifierSet,
        cancel_event: Optional[threading.Event],
    ) -> None:
        """
        Send one chunk, retrying it until it succeeds or the policy gives up.

        Keys S3 rejected individually are retried on their own when their
        error code is retryable; the rest are recorded as failures.
        """
        pending = chunk
        deleted = 0
        failures: List[ChunkFailure] = []
        attempt = 0

        while True:
            attempt += 1
            try:
                result = self.store.delete_object_batch(run.bucket, region, pending)
            except Exception as e:
                delay = self._retry_delay(run, e, attempt, cancel_event)
                if isinstance(delay, float):
                    logger.warning(
                        f"Chunk {index} of {run.bucket} failed "
                        f"(attempt {attempt}/{self.retry_policy.max_attempts}): {e}; "
                        f"retrying in {delay:.0f}s"
                    )
                    self._sleep(delay)
                    continue
                failures.extend(
                    ChunkFailure(identifier=i, error=delay, code=_error_code(delay))
                    for i in pending
                )
                break

            deleted += result.deleted_count
            if not result.errors:
                break

            retryable, permanent = self._split_key_errors(result.errors)
            failures.extend(
                ChunkFailure(identifier=ke.identifier, error=_key_error(ke), code=ke.code)
                for ke in permanent
            )
            if not retryable:
                break

            throttled = _key_error(retryable[0])
            delay = self._retry_delay(run, throttled, attempt, cancel_event)
            if isinstance(delay, float):
                logger.warning(
                    f"{len(retryable)} keys in chunk {index} of {run.bucket} were "
                    f"throttled; retrying them in {delay:.0f}s"
                )
                self._sleep(delay)
                pending = ObjectIdentifierSet(ke.identifier for ke in retryable)
                continue
            failures.extend(
                ChunkFailure(identifier=ke.identifier, error=_key_error(ke), code=ke.code)
                for ke in retryable
            )
            break

        cause = None
        if failures:
            cause = PermanentChunkError(
                f"chunk {index}: {len(failures)} of {len(chunk)} objects not deleted",
                chunk_index=index,
                attempts=attempt,
                cause=failures[0].error,
                bucket=run.bucket.name,
            )
            logger.warning(cause.message)
        else:
            logger.debug(f"Chunk {index} done ({deleted} objects, {attempt} attempt(s))")

        run.record(
            chunk_index=index,
            chunk_size=len(chunk),
            deleted=deleted,
            failures=failures,
            cause=cause,
            abort_on_failure=self.abort_on_failure,
        )

    def _retry_delay(
        self,
        run: _DeleteRun,
        error: BaseException,
        attempt: int,
        cancel_event: Optional[threading.Event],
    ) -> Union[float, BaseException]:
        """
        Return the delay before the next attempt, or the error to record.

        The returned exception is ``error`` itself when the policy gives
        up, a :class:`RetryDelayError` if computing the delay failed, or a
        :class:`DeleteCancelledError` when a retry was due but the bulk
        delete has been cancelled.
        """
        try:
            decision = self.retry_policy.decide(error, attempt)
        except RetryDelayError as e:
            logger.error(f"Could not compute retry delay: {e}")
            return e
        if not decision.should_retry:
            return error
        if self._is_cancelled(cancel_event):
            logger.debug(f"Not retrying after {error}: bulk delete was cancelled")
            cancelled = DeleteCancelledError(
                "not retried: bulk delete cancelled",
                outcome=run.outcome,
                bucket=run.bucket.name,
            )
            cancelled.__cause__ = error
            return cancelled
        return float(decision.delay)

    def _split_key_errors(self, errors: List[KeyDeleteError]):
        retryable: List[KeyDeleteError] = []
        permanent: List[KeyDeleteError] = []
        for key_error in errors:
            if self.retry_policy.is_retryable(_key_error(key_error)):
                retryable.append(key_error)
            else:
                permanent.append(key_error)
        return retryable, permanent

    @staticmethod
    def _acquire_slot(
        slots: threading.BoundedSemaphore,
        cancel_event: Optional[threading.Event],
    ) -> bool:
        """Block until a worker slot is free; False if cancelled while waiting."""
        if cancel_event is None:
            slots.acquire()
            return True
        while not slots.acquire(timeout=SLOT_POLL_INTERVAL_SEC):
            if cancel_event.is_set():
                return False
        return True

    @staticmethod
    def _is_cancelled(cancel_event: Optional[threading.Event]) -> bool:
        return cancel_event is not None and cancel_event.is_set()

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"BulkObjectDeleter(max_workers={self.max_workers}, "
            f"batch_size={self.batch_size}, retry_policy={self.retry_policy!r})"
        )


def _key_error(key_error: KeyDeleteError) -> ClientError:
    """Express a per-key DeleteObjects error as the ClientError S3 would raise."""
    return ClientError(
        {"Error": {"Code": key_error.code, "Message": key_error.message}},
        "DeleteObjects",
    )


def _error_code(error: BaseException) -> Optional[str]:
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code")
    return None
