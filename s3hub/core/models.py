"""
Domain Models
=============

Value types shared by every layer of s3hub.

Classes
-------
Region
    Supported AWS region codes.
Bucket
    A bucket name.
S3Address
    A bucket with an optional key, parsed once from ``s3://bucket/key``.
ObjectIdentifier
    A (key, version) pair addressing one object or object version.
ObjectIdentifierSet
    Ordered collection of identifiers that can be split into chunks.
ChunkFailure
    One identifier that could not be deleted, with its cause.
DeleteOutcome
    Aggregated result of a bulk delete.
DeleteProgress
    Incremental progress event emitted while a bulk delete runs.
RetryDecision
    Whether to retry a failed attempt and how long to wait first.

Example
-------
>>> from s3hub.core.models import ObjectIdentifier, ObjectIdentifierSet
>>>
>>> objects = ObjectIdentifierSet()
>>> objects.add(ObjectIdentifier("logs/a.txt"))
>>> objects.add(ObjectIdentifier("logs/b.txt", version_id="3HL4kqtJ"))
>>> [len(c) for c in objects.chunk(1)]
[1, 1]
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from s3hub.core.exceptions import EmptyKeyError

# Hard ceiling of the S3 DeleteObjects API.
MAX_DELETE_OBJECTS_BATCH_SIZE = 1000
# Page size used when listing objects.
MAX_S3_KEYS = 1000
DEFAULT_MAX_WORKERS = 5
MAX_DELETE_OBJECTS_RETRY_COUNT = 6
DELETE_OBJECTS_DELAY_TIME_SEC = 5

S3_PROTOCOL = "s3://"
ALL_KEYS = "*"


class Region(str, Enum):
    """AWS region codes s3hub can operate in."""

    US_EAST_1 = "us-east-1"
    US_EAST_2 = "us-east-2"
    US_WEST_1 = "us-west-1"
    US_WEST_2 = "us-west-2"
    AF_SOUTH_1 = "af-south-1"
    AP_EAST_1 = "ap-east-1"
    AP_SOUTH_1 = "ap-south-1"
    AP_SOUTH_2 = "ap-south-2"
    AP_NORTHEAST_1 = "ap-northeast-1"
    AP_NORTHEAST_2 = "ap-northeast-2"
    AP_NORTHEAST_3 = "ap-northeast-3"
    AP_SOUTHEAST_1 = "ap-southeast-1"
    AP_SOUTHEAST_2 = "ap-southeast-2"
    AP_SOUTHEAST_3 = "ap-southeast-3"
    AP_SOUTHEAST_4 = "ap-southeast-4"
    AP_SOUTHEAST_5 = "ap-southeast-5"
    AP_SOUTHEAST_7 = "ap-southeast-7"
    CA_CENTRAL_1 = "ca-central-1"
    CA_WEST_1 = "ca-west-1"
    CN_NORTH_1 = "cn-north-1"
    CN_NORTHWEST_1 = "cn-northwest-1"
    EU_CENTRAL_1 = "eu-central-1"
    EU_CENTRAL_2 = "eu-central-2"
    EU_NORTH_1 = "eu-north-1"
    EU_SOUTH_1 = "eu-south-1"
    EU_SOUTH_2 = "eu-south-2"
    EU_WEST_1 = "eu-west-1"
    EU_WEST_2 = "eu-west-2"
    EU_WEST_3 = "eu-west-3"
    IL_CENTRAL_1 = "il-central-1"
    ME_CENTRAL_1 = "me-central-1"
    ME_SOUTH_1 = "me-south-1"
    MX_CENTRAL_1 = "mx-central-1"
    SA_EAST_1 = "sa-east-1"
    US_GOV_EAST_1 = "us-gov-east-1"
    US_GOV_WEST_1 = "us-gov-west-1"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_location_constraint(cls, constraint: Optional[str]) -> "Region":
        """
        Convert a GetBucketLocation ``LocationConstraint`` to a Region.

        S3 reports buckets in us-east-1 with an empty constraint and
        very old eu-west-1 buckets as ``"EU"``.
        """
        if not constraint:
            return cls.US_EAST_1
        if constraint == "EU":
            return cls.EU_WEST_1
        return cls(constraint)

    def next(self) -> "Region":
        """Return the following region, wrapping around at the end."""
        regions = list(Region)
        return regions[(regions.index(self) + 1) % len(regions)]

    def prev(self) -> "Region":
        """Return the preceding region, wrapping around at the start."""
        regions = list(Region)
        return regions[(regions.index(self) - 1) % len(regions)]


@dataclass(frozen=True)
class Bucket:
    """
    Name of an S3 bucket.

    The name is not validated on construction so that listing results
    from S3 can always be represented. Call :meth:`validate` (or use
    :meth:`parse`) at user-facing boundaries.
    """

    name: str

    def __str__(self) -> str:
        return self.name

    @classmethod
    def parse(cls, name: Union[str, "Bucket"]) -> "Bucket":
        """Build a Bucket and validate it, raising InvalidBucketNameError."""
        bucket = name if isinstance(name, Bucket) else cls(name)
        bucket.validate()
        return bucket

    def validate(self) -> None:
        from s3hub.core.validation import validate_bucket_name

        validate_bucket_name(self.name)

    def domain(self) -> str:
        """Return the virtual-hosted style domain of the bucket."""
        return f"{self.name}.s3.amazonaws.com"

    def with_protocol(self) -> str:
        """Return the bucket as an ``s3://`` URL."""
        return f"{S3_PROTOCOL}{self.name}"


@dataclass(frozen=True)
class S3Address:
    """
    A bucket and an optional key inside it.

    Build it with :meth:`parse` at the CLI boundary; everything below
    works with the two fields separately.

    Example
    -------
    >>> S3Address.parse("s3://my-bucket/logs/2024/")
    S3Address(bucket=Bucket(name='my-bucket'), key='logs/2024/')
    """

    bucket: Bucket
    key: Optional[str] = None

    @classmethod
    def parse(cls, value: str) -> "S3Address":
        """Split ``[s3://]bucket[/key]`` into bucket and key."""
        raw = value[len(S3_PROTOCOL):] if value.startswith(S3_PROTOCOL) else value
        bucket, _, key = raw.partition("/")
        return cls(bucket=Bucket(bucket), key=key or None)

    @property
    def has_key(self) -> bool:
        return self.key is not None

    def is_all(self) -> bool:
        """True when the key is the ``*`` wildcard meaning every object."""
        return self.key == ALL_KEYS

    def __str__(self) -> str:
        if self.key:
            return f"{self.bucket.with_protocol()}/{self.key}"
        return self.bucket.with_protocol()


@dataclass(frozen=True)
class ObjectIdentifier:
    """
    One object, or one version of an object, in a bucket.

    Equality is by ``(key, version_id)``.
    """

    key: str
    version_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.key:
            raise EmptyKeyError("object key is empty")

    def to_s3_object(self) -> Dict[str, str]:
        """Return the entry used in a DeleteObjects ``Objects`` list."""
        entry = {"Key": self.key}
        if self.version_id:
            entry["VersionId"] = self.version_id
        return entry

    def __str__(self) -> str:
        if self.version_id:
            return f"{self.key} (version {self.version_id})"
        return self.key


class IdentifierChunks(Sequence):
    """
    The chunks of an identifier set.

    Chunks are sliced on demand from a snapshot taken when the set was
    split, so the sequence can be iterated any number of times.
    """

    def __init__(
        self,
        identifiers: Tuple[ObjectIdentifier, ...],
        size: int,
    ) -> None:
        self._identifiers = identifiers
        self._size = size

    def __len__(self) -> int:
        return -(-len(self._identifiers) // self._size)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(len(self)))]
        if index < 0:
            index += len(self)
        if not 0 <= index < len(self):
            raise IndexError("chunk index out of range")
        start = index * self._size
        return ObjectIdentifierSet(self._identifiers[start:start + self._size])

    def __iter__(self) -> Iterator["ObjectIdentifierSet"]:
        for start in range(0, len(self._identifiers), self._size):
            yield ObjectIdentifierSet(self._identifiers[start:start + self._size])


class ObjectIdentifierSet:
    """
    Ordered collection of :class:`ObjectIdentifier`.

    Insertion order is kept so progress reporting and tests are
    deterministic; deletion itself does not depend on it.

    Parameters
    ----------
    identifiers : iterable of ObjectIdentifier, optional
        Initial contents.

    Examples
    --------
    >>> objects = ObjectIdentifierSet([ObjectIdentifier("a"), ObjectIdentifier("b")])
    >>> len(objects)
    2
    >>> chunks = objects.chunk(1000)
    >>> len(chunks)
    1
    """

    def __init__(self, identifiers: Optional[Iterable[ObjectIdentifier]] = None) -> None:
        self._items: List[ObjectIdentifier] = []
        for identifier in identifiers or ():
            self.add(identifier)

    @classmethod
    def from_keys(cls, keys: Iterable[str]) -> "ObjectIdentifierSet":
        """Build a set of unversioned identifiers from plain keys."""
        return cls(ObjectIdentifier(key) for key in keys)

    def add(self, identifier: ObjectIdentifier) -> None:
        """
        Append an identifier.

        Raises
        ------
        EmptyKeyError
            If the identifier has an empty key.
        """
        if not identifier.key:
            raise EmptyKeyError("object key is empty")
        self._items.append(identifier)

    def extend(self, identifiers: Iterable[ObjectIdentifier]) -> None:
        for identifier in identifiers:
            self.add(identifier)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ObjectIdentifier]:
        return iter(self._items)

    def __getitem__(self, index: int) -> ObjectIdentifier:
        return self._items[index]

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._items

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectIdentifierSet):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        return f"ObjectIdentifierSet(len={len(self._items)})"

    @property
    def empty(self) -> bool:
        return not self._items

    def chunk(self, max_size: int = MAX_DELETE_OBJECTS_BATCH_SIZE) -> IdentifierChunks:
        """
        Split the set into consecutive chunks of at most ``max_size``.

        Parameters
        ----------
        max_size : int, default=1000
            Maximum number of identifiers per chunk.

        Returns
        -------
        IdentifierChunks
            ``ceil(len / max_size)`` chunks in original order. All but
            the last have exactly ``max_size`` identifiers.

        Raises
        ------
        ValueError
            If ``max_size`` is less than 1.
        """
        if max_size < 1:
            raise ValueError(f"chunk size must be positive, got {max_size}")
        return IdentifierChunks(tuple(self._items), max_size)

    def dedupe(self) -> "ObjectIdentifierSet":
        """Return a copy without repeated (key, version) pairs, keeping first occurrences."""
        return ObjectIdentifierSet(dict.fromkeys(self._items))

    def sorted(self) -> "ObjectIdentifierSet":
        """Return a copy ordered by key, then version."""
        return ObjectIdentifierSet(
            sorted(self._items, key=lambda i: (i.key, i.version_id or ""))
        )

    def to_s3_objects(self) -> List[Dict[str, str]]:
        """Return the ``Delete.Objects`` payload for a DeleteObjects call."""
        return [identifier.to_s3_object() for identifier in self._items]


def new_delete_retry_count(count: int) -> int:
    """Clamp a requested retry count into ``[0, MAX_DELETE_OBJECTS_RETRY_COUNT]``."""
    return max(0, min(count, MAX_DELETE_OBJECTS_RETRY_COUNT))


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of consulting the retry policy after a failed attempt."""

    should_retry: bool
    delay: float = 0.0


class OutcomeStatus(Enum):
    """Terminal state of a bulk delete."""

    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    FATAL_FAILURE = "fatal_failure"
    CANCELLED = "cancelled"


@dataclass
class ChunkFailure:
    """
    An identifier that could not be deleted.

    Attributes:
        identifier: The object (version) that is still in the bucket
        error: The exception recorded against it
        code: S3 error code, when the store reported one
    """

    identifier: ObjectIdentifier
    error: BaseException
    code: Optional[str] = None

    @property
    def message(self) -> str:
        return str(self.error)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.identifier.key,
            "version_id": self.identifier.version_id,
            "code": self.code,
            "error": self.message,
        }


@dataclass
class DeleteProgress:
    """
    Snapshot of a running bulk delete, emitted once per finished chunk.

    Attributes:
        bucket: Bucket being emptied
        total: Number of identifiers scheduled for deletion
        processed: Identifiers whose chunk has finished, successfully or not
        deleted: Identifiers confirmed deleted so far
        failed: Identifiers that failed so far
        chunk_index: Index of the chunk that just finished
    """

    bucket: str
    total: int
    processed: int
    deleted: int
    failed: int
    chunk_index: int


@dataclass
class DeleteOutcome:
    """
    Aggregated result of one bulk delete call.

    Attributes:
        bucket: Bucket that was operated on
        region: Region the deletes were routed to
        total: Number of identifiers scheduled for deletion
        deleted_count: Number of identifiers confirmed deleted
        failures: Identifiers that could not be deleted, in completion order
        status: Terminal state
        chunks_total: Number of chunks the identifiers were split into
        chunks_dispatched: Number of chunks actually sent
        start_time: When the call started
        end_time: When the call finished
    """

    bucket: str
    region: Optional[str] = None
    total: int = 0
    deleted_count: int = 0
    failures: List[ChunkFailure] = field(default_factory=list)
    status: OutcomeStatus = OutcomeStatus.SUCCESS
    chunks_total: int = 0
    chunks_dispatched: int = 0
    start_time: datetime = field(default_factory=datetime.utcnow)
    end_time: Optional[datetime] = None

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    @property
    def succeeded(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS

    @property
    def failed_identifiers(self) -> List[ObjectIdentifier]:
        return [failure.identifier for failure in self.failures]

    def complete(self, status: Optional[OutcomeStatus] = None) -> None:
        """Mark the outcome as finished, deriving the status unless given."""
        if status is None:
            if not self.failures:
                status = OutcomeStatus.SUCCESS
            elif self.deleted_count == 0:
                status = OutcomeStatus.FATAL_FAILURE
            else:
                status = OutcomeStatus.PARTIAL_FAILURE
        self.status = status
        self.end_time = datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "bucket": self.bucket,
            "region": self.region,
            "status": self.status.value,
            "total": self.total,
            "deleted": self.deleted_count,
            "failed": self.failed_count,
            "chunks_total": self.chunks_total,
            "chunks_dispatched": self.chunks_dispatched,
            "failures": [f.to_dict() for f in self.failures],
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
        }
