"""
Retry Policy Module
===================

Decides whether a failed batch delete is worth retrying and how long
to wait before the next attempt.

The delay is uniform random jitter in ``[1, N]`` seconds with no
exponential growth. Chunks that fail together on a throttling event
retry at different moments within the window.

Classes
-------
RetryPolicy
    Pluggable retry strategy used by the bulk deleter.

Functions
---------
is_throttling_error
    Default classifier for transient S3 failures.

Example
-------
>>> from s3hub.core.retry import RetryPolicy
>>>
>>> policy = RetryPolicy(max_attempts=5, delay_ceiling_sec=3)
>>> decision = policy.decide(error, attempt=1)
>>> if decision.should_retry:
...     time.sleep(decision.delay)
"""

from __future__ import annotations

import logging
import secrets
from typing import Callable, Optional

from botocore.exceptions import (
    ClientError,
    ConnectionClosedError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from s3hub.core.exceptions import RetryDelayError, TransientStoreError
from s3hub.core.models import DELETE_OBJECTS_DELAY_TIME_SEC, RetryDecision

# Module logger
logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3

RETRYABLE_ERROR_CODES = frozenset(
    {
        "SlowDown",
        "Throttling",
        "ThrottlingException",
        "RequestLimitExceeded",
        "TooManyRequestsException",
        "InternalError",
        "ServiceUnavailable",
        "RequestTimeout",
    }
)


def is_throttling_error(error: BaseException) -> bool:
    """
    Classify an error as transient.

    Parameters
    ----------
    error : Exception
        Error raised by an object store call.

    Returns
    -------
    bool
        True for throttling, S3 5xx responses and dropped connections.
        Access denied, missing buckets and other 4xx errors are permanent.
    """
    if isinstance(error, TransientStoreError):
        return True
    if isinstance(error, (EndpointConnectionError, ConnectionClosedError, ReadTimeoutError)):
        return True
    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code", "")
        if code in RETRYABLE_ERROR_CODES:
            return True
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
        return status >= 500
    return False


class RetryPolicy:
    """
    Jittered retry strategy for batch deletes.

    Parameters
    ----------
    is_retryable : callable, optional
        Predicate classifying errors as transient. Defaults to
        :func:`is_throttling_error`.
    max_attempts : int, default=3
        Total number of attempts per chunk, including the first one.
    delay_ceiling_sec : int, default=5
        Upper bound ``N`` of the ``[1, N]`` second delay.
    random_below : callable, optional
        ``f(n) -> int`` returning a uniform integer in ``[0, n)``.
        Defaults to :func:`secrets.randbelow`, which is backed by the
        OS random source and safe to call from many worker threads.

    Raises
    ------
    ValueError
        If ``max_attempts`` or ``delay_ceiling_sec`` is less than 1.
    """

    def __init__(
        self,
        is_retryable: Optional[Callable[[BaseException], bool]] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        delay_ceiling_sec: int = DELETE_OBJECTS_DELAY_TIME_SEC,
        random_below: Optional[Callable[[int], int]] = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        if delay_ceiling_sec < 1:
            raise ValueError(
                f"delay_ceiling_sec must be at least 1, got {delay_ceiling_sec}"
            )
        self._is_retryable = is_retryable or is_throttling_error
        self._max_attempts = max_attempts
        self.delay_ceiling_sec = delay_ceiling_sec
        self._random_below = random_below or secrets.randbelow

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def is_retryable(self, error: BaseException) -> bool:
        return self._is_retryable(error)

    def next_delay(self, attempt_index: int) -> float:
        """
        Return a uniformly random delay in ``[1, delay_ceiling_sec]`` seconds.

        Parameters
        ----------
        attempt_index : int
            1-based number of the attempt that just failed. The delay
            does not grow with it.

        Raises
        ------
        RetryDelayError
            If the random source fails. The attempt is then treated
            as fatal instead of retrying without a delay.
        """
        try:
            offset = self._random_below(self.delay_ceiling_sec)
        except Exception as e:
            raise RetryDelayError(
                f"failed to compute retry delay: {e}",
                details={"attempt": attempt_index},
            ) from e
        return float(1 + offset)

    def decide(self, error: BaseException, attempt: int) -> RetryDecision:
        """
        Decide what to do after ``attempt`` failed with ``error``.

        Returns
        -------
        RetryDecision
            ``should_retry`` is False for permanent errors and once
            ``attempt`` has reached ``max_attempts``.
        """
        if not self.is_retryable(error):
            return RetryDecision(should_retry=False)
        if attempt >= self._max_attempts:
            logger.debug(f"Giving up after {attempt} attempts: {error}")
            return RetryDecision(should_retry=False)
        return RetryDecision(should_retry=True, delay=self.next_delay(attempt))

    def __repr__(self) -> str:
        return (
            f"RetryPolicy(max_attempts={self._max_attempts}, "
            f"delay_ceiling_sec={self.delay_ceiling_sec})"
        )
