"""
Custom Exceptions for s3hub
===========================

This module defines the exception hierarchy used throughout s3hub for
consistent error handling and reporting.

Exception Hierarchy
-------------------
::

    S3HubError (base)
    ├── ValidationError
    │   ├── InvalidBucketNameError
    │   ├── InvalidRegionError
    │   ├── EmptyRegionError
    │   └── EmptyKeyError
    ├── AWSClientError
    │   ├── CredentialsError
    │   └── ServiceError
    ├── ConfigError
    └── DeleteError
        ├── FatalPreconditionError
        ├── TransientStoreError
        ├── PermanentChunkError
        ├── RetryDelayError
        ├── DeleteCancelledError
        ├── BulkDeleteError
        └── BucketNotEmptyError

Example
-------
>>> from s3hub.core.exceptions import BulkDeleteError, ValidationError
>>>
>>> try:
...     outcome = deleter.delete_all("my-bucket")
... except ValidationError as e:
...     print(f"Bad input: {e}")
... except BulkDeleteError as e:
...     print(f"{e.outcome.failed_count} objects could not be deleted")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from s3hub.core.models import DeleteOutcome


class S3HubError(Exception):
    """
    Base exception for all s3hub errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    details : dict, optional
        Additional context about the error.

    Attributes
    ----------
    message : str
        The error message.
    details : dict
        Additional error details.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for serialization.

        Returns
        -------
        dict
            Dictionary representation of the error.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# Validation Exceptions
# =============================================================================


class ValidationError(S3HubError):
    """
    Raised when user-supplied input is malformed.

    Validation errors are never retried and are always raised before
    any request is sent to S3.
    """

    pass


class InvalidBucketNameError(ValidationError):
    """
    Raised when a bucket name breaks the S3 naming rules.

    Example
    -------
    >>> raise InvalidBucketNameError(
    ...     "bucket name is invalid",
    ...     details={"bucket": "ab", "reason": "too short"},
    ... )
    """

    pass


class InvalidRegionError(ValidationError):
    """Raised when a region is not one of the supported region codes."""

    pass


class EmptyRegionError(ValidationError):
    """Raised when a region is required but empty."""

    pass


class EmptyKeyError(ValidationError):
    """Raised when an object identifier is created with an empty key."""

    pass


# =============================================================================
# AWS Client Exceptions
# =============================================================================


class AWSClientError(S3HubError):
    """
    Base exception for AWS client-related errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    service : str, optional
        The AWS service that caused the error.
    region : str, optional
        The AWS region where the error occurred.
    details : dict, optional
        Additional context about the error.
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        region: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.service = service
        self.region = region
        full_details = details or {}
        if service:
            full_details["service"] = service
        if region:
            full_details["region"] = region
        super().__init__(message, full_details)


class CredentialsError(AWSClientError):
    """
    Raised when AWS credentials are invalid, missing, or expired.

    Example
    -------
    >>> raise CredentialsError(
    ...     "AWS credentials not found",
    ...     details={"hint": "Run 'aws configure' to set up credentials"}
    ... )
    """

    pass


class ServiceError(AWSClientError):
    """Raised when a call to an AWS service fails outside the delete pipeline."""

    pass


class ConfigError(S3HubError):
    """Raised when the configuration file is missing or malformed."""

    pass


# =============================================================================
# Delete Pipeline Exceptions
# =============================================================================


class DeleteError(S3HubError):
    """
    Base exception for the bulk delete pipeline.

    Parameters
    ----------
    message : str
        Human-readable error message.
    bucket : str, optional
        The bucket being operated on.
    details : dict, optional
        Additional context about the error.
    """

    def __init__(
        self,
        message: str,
        bucket: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.bucket = bucket
        full_details = details or {}
        if bucket:
            full_details["bucket"] = bucket
        super().__init__(message, full_details)


class FatalPreconditionError(DeleteError):
    """
    Raised when the delete cannot start at all.

    Region lookup and inventory listing failures end up here. No chunk
    has been dispatched when this is raised.
    """

    pass


class TransientStoreError(DeleteError):
    """
    Raised by object stores for failures that are worth retrying.

    Example
    -------
    >>> raise TransientStoreError("SlowDown", bucket="my-bucket")
    """

    pass


class PermanentChunkError(DeleteError):
    """
    A chunk that could not be deleted.

    Either the store reported a non-retryable error or the retry
    policy ran out of attempts. These are collected in the outcome,
    not raised on their own.

    Parameters
    ----------
    message : str
        Human-readable error message.
    chunk_index : int
        Position of the chunk in dispatch order.
    attempts : int
        How many times the chunk was sent.
    cause : Exception, optional
        The last error returned by the store.
    bucket : str, optional
        The bucket being operated on.
    """

    def __init__(
        self,
        message: str,
        chunk_index: int,
        attempts: int,
        cause: Optional[BaseException] = None,
        bucket: Optional[str] = None,
    ) -> None:
        self.chunk_index = chunk_index
        self.attempts = attempts
        self.cause = cause
        super().__init__(
            message,
            bucket=bucket,
            details={"chunk_index": chunk_index, "attempts": attempts},
        )


class RetryDelayError(DeleteError):
    """Raised when the random source behind the retry jitter fails."""

    pass


class DeleteCancelledError(DeleteError):
    """
    Raised when a bulk delete is cancelled.

    Attributes
    ----------
    outcome : DeleteOutcome
        Whatever had completed before the cancellation took effect.
    """

    def __init__(
        self,
        message: str,
        outcome: "DeleteOutcome",
        bucket: Optional[str] = None,
    ) -> None:
        self.outcome = outcome
        super().__init__(
            message,
            bucket=bucket,
            details={"deleted": outcome.deleted_count},
        )


class BulkDeleteError(DeleteError):
    """
    Raised when one or more chunks failed permanently.

    Sibling chunks are not aborted, so ``outcome`` holds the successes
    as well as every failed identifier.

    Attributes
    ----------
    outcome : DeleteOutcome
        The aggregated result of the whole call.
    causes : list of Exception
        One entry per failed chunk, in completion order.
    """

    def __init__(
        self,
        message: str,
        outcome: "DeleteOutcome",
        causes: Optional[List[BaseException]] = None,
        bucket: Optional[str] = None,
    ) -> None:
        self.outcome = outcome
        self.causes = causes or []
        super().__init__(
            message,
            bucket=bucket,
            details={
                "deleted": outcome.deleted_count,
                "failed": outcome.failed_count,
            },
        )


class BucketNotEmptyError(DeleteError):
    """Raised when a bucket is not deleted because emptying it did not finish."""

    pass
