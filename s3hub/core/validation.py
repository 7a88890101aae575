"""
Validation Module
=================

Pure validation functions for user-supplied S3 names and AWS regions.

Every bulk delete entry point runs these checks before talking to S3,
so invalid input never costs a network round trip.

Functions
---------
validate_bucket_name
    Run every bucket naming rule, raising on the first violation.
validate_region
    Convert a string into a :class:`~s3hub.core.models.Region`.
validate_key
    Reject empty object keys.

Example
-------
>>> from s3hub.core.validation import validate_bucket_name
>>> validate_bucket_name("my-bucket")
>>> validate_bucket_name("ab")
Traceback (most recent call last):
    ...
InvalidBucketNameError: bucket name is invalid (Details: ...)

Notes
-----
The naming rules follow the general purpose bucket rules published by
AWS: 3 to 63 characters, lowercase letters, digits, dots and hyphens,
starting and ending with a letter or digit.
"""

from __future__ import annotations

import re
from typing import Optional

from s3hub.core.exceptions import (
    EmptyKeyError,
    EmptyRegionError,
    InvalidBucketNameError,
    InvalidRegionError,
)
from s3hub.core.models import Region

MIN_BUCKET_NAME_LENGTH = 3
MAX_BUCKET_NAME_LENGTH = 63

BUCKET_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9.-]*[a-z0-9]$")

FORBIDDEN_BUCKET_PREFIXES = ("xn--", "sthree-", "sthree-configurator")
FORBIDDEN_BUCKET_SUFFIXES = ("-s3alias", "--ol-s3")
FORBIDDEN_BUCKET_SEQUENCES = ("..", "--")


def _invalid(name: str, reason: str) -> InvalidBucketNameError:
    return InvalidBucketNameError(
        "bucket name is invalid",
        details={"bucket": name, "reason": reason},
    )


def validate_bucket_length(name: str) -> None:
    """Check the bucket name is between 3 and 63 characters long."""
    if not MIN_BUCKET_NAME_LENGTH <= len(name) <= MAX_BUCKET_NAME_LENGTH:
        raise _invalid(
            name,
            f"length must be between {MIN_BUCKET_NAME_LENGTH} and "
            f"{MAX_BUCKET_NAME_LENGTH} characters",
        )


def validate_bucket_pattern(name: str) -> None:
    """Check the bucket name only uses lowercase alphanumerics, dots and hyphens."""
    if not BUCKET_NAME_PATTERN.match(name):
        raise _invalid(
            name,
            "only lowercase letters, numbers, dots and hyphens are allowed, "
            "and the name must start and end with a letter or number",
        )


def validate_bucket_prefix(name: str) -> None:
    """Check the bucket name does not start with a reserved prefix."""
    for prefix in FORBIDDEN_BUCKET_PREFIXES:
        if name.startswith(prefix):
            raise _invalid(name, f"must not start with '{prefix}'")


def validate_bucket_suffix(name: str) -> None:
    """Check the bucket name does not end with a reserved suffix."""
    for suffix in FORBIDDEN_BUCKET_SUFFIXES:
        if name.endswith(suffix):
            raise _invalid(name, f"must not end with '{suffix}'")


def validate_bucket_char_sequence(name: str) -> None:
    """Check the bucket name has no consecutive dots or hyphens."""
    for sequence in FORBIDDEN_BUCKET_SEQUENCES:
        if sequence in name:
            raise _invalid(name, f"must not contain '{sequence}'")


def validate_bucket_name(name: str) -> None:
    """
    Validate a bucket name against all S3 naming rules.

    Parameters
    ----------
    name : str
        Bucket name to check.

    Raises
    ------
    InvalidBucketNameError
        On the first rule the name breaks. ``details["reason"]`` says which.

    Example
    -------
    >>> validate_bucket_name("logs.example-com")
    >>> validate_bucket_name("Logs")
    Traceback (most recent call last):
        ...
    InvalidBucketNameError: bucket name is invalid (Details: ...)
    """
    if not name:
        raise _invalid(name, "bucket name is empty")

    validate_bucket_length(name)
    validate_bucket_pattern(name)
    validate_bucket_prefix(name)
    validate_bucket_suffix(name)
    validate_bucket_char_sequence(name)


def is_valid_bucket_name(name: str) -> bool:
    """Return True if ``name`` passes :func:`validate_bucket_name`."""
    try:
        validate_bucket_name(name)
    except InvalidBucketNameError:
        return False
    return True


def validate_region(value: Optional[str]) -> Region:
    """
    Validate a region code and return it as a :class:`Region`.

    Parameters
    ----------
    value : str or None
        Region code such as ``"us-east-1"``.

    Returns
    -------
    Region
        The matching region.

    Raises
    ------
    EmptyRegionError
        If ``value`` is empty or None.
    InvalidRegionError
        If ``value`` is not a supported region.
    """
    if isinstance(value, Region):
        return value
    if not value:
        raise EmptyRegionError("region is empty")
    try:
        return Region(value)
    except ValueError:
        raise InvalidRegionError("invalid region", details={"region": value})


def validate_key(key: Optional[str]) -> None:
    """Raise :class:`EmptyKeyError` if ``key`` is empty."""
    if not key:
        raise EmptyKeyError("object key is empty")
