"""
Tests for domain models.
"""

import pytest

from s3hub.core.exceptions import EmptyKeyError, InvalidBucketNameError
from s3hub.core.models import (
    MAX_DELETE_OBJECTS_RETRY_COUNT,
    Bucket,
    ChunkFailure,
    DeleteOutcome,
    ObjectIdentifier,
    ObjectIdentifierSet,
    OutcomeStatus,
    Region,
    S3Address,
    new_delete_retry_count,
)


def identifiers(count):
    return ObjectIdentifierSet.from_keys(f"key-{i}" for i in range(count))


class TestRegion:
    """Tests for the Region enum."""

    def test_str_is_code(self):
        """Test that regions print as their code."""
        assert str(Region.AP_NORTHEAST_1) == "ap-northeast-1"

    @pytest.mark.parametrize(
        "constraint,expected",
        [
            (None, Region.US_EAST_1),
            ("", Region.US_EAST_1),
            ("EU", Region.EU_WEST_1),
            ("ap-northeast-1", Region.AP_NORTHEAST_1),
        ],
    )
    def test_from_location_constraint(self, constraint, expected):
        """Test mapping of GetBucketLocation responses."""
        assert Region.from_location_constraint(constraint) == expected

    def test_next_and_prev(self):
        """Test stepping through regions."""
        assert Region.US_EAST_1.next() == Region.US_EAST_2
        assert Region.US_EAST_2.prev() == Region.US_EAST_1

    def test_next_wraps_around(self):
        """Test that the last region is followed by the first."""
        regions = list(Region)
        assert regions[-1].next() == regions[0]
        assert regions[0].prev() == regions[-1]


class TestBucket:
    """Tests for Bucket."""

    def test_parse_validates(self):
        """Test that parse rejects invalid names."""
        with pytest.raises(InvalidBucketNameError):
            Bucket.parse("ab")

    def test_parse_accepts_bucket(self):
        """Test that parse passes an existing Bucket through."""
        bucket = Bucket("my-bucket")
        assert Bucket.parse(bucket) == bucket

    def test_urls(self):
        """Test domain and protocol helpers."""
        bucket = Bucket("my-bucket")
        assert bucket.domain() == "my-bucket.s3.amazonaws.com"
        assert bucket.with_protocol() == "s3://my-bucket"
        assert str(bucket) == "my-bucket"


class TestS3Address:
    """Tests for S3Address parsing."""

    @pytest.mark.parametrize(
        "value,bucket,key",
        [
            ("my-bucket", "my-bucket", None),
            ("s3://my-bucket", "my-bucket", None),
            ("s3://my-bucket/", "my-bucket", None),
            ("s3://my-bucket/logs/a.txt", "my-bucket", "logs/a.txt"),
            ("my-bucket/logs/", "my-bucket", "logs/"),
        ],
    )
    def test_parse(self, value, bucket, key):
        """Test splitting bucket and key."""
        address = S3Address.parse(value)
        assert address.bucket == Bucket(bucket)
        assert address.key == key
        assert address.has_key == (key is not None)

    def test_wildcard(self):
        """Test the all-objects wildcard."""
        assert S3Address.parse("s3://my-bucket/*").is_all()
        assert not S3Address.parse("s3://my-bucket/a").is_all()

    def test_str(self):
        """Test round trip to a URL."""
        assert str(S3Address.parse("my-bucket/a/b")) == "s3://my-bucket/a/b"


class TestObjectIdentifier:
    """Tests for ObjectIdentifier."""

    def test_empty_key_rejected(self):
        """Test that an empty key cannot be built."""
        with pytest.raises(EmptyKeyError):
            ObjectIdentifier("")

    def test_equality_includes_version(self):
        """Test that versions of the same key are distinct."""
        assert ObjectIdentifier("a") == ObjectIdentifier("a")
        assert ObjectIdentifier("a", "v1") != ObjectIdentifier("a", "v2")
        assert ObjectIdentifier("a", "v1") != ObjectIdentifier("a")

    def test_to_s3_object(self):
        """Test the DeleteObjects payload entry."""
        assert ObjectIdentifier("a").to_s3_object() == {"Key": "a"}
        assert ObjectIdentifier("a", "v1").to_s3_object() == {
            "Key": "a",
            "VersionId": "v1",
        }


class TestObjectIdentifierSet:
    """Tests for ObjectIdentifierSet."""

    @pytest.mark.parametrize("count", [0, 1, 999, 1000, 1001, 2500, 10_000])
    @pytest.mark.parametrize("size", [1, 3, 1000])
    def test_chunk_properties(self, count, size):
        """Test chunk count, chunk sizes and order preservation."""
        objects = identifiers(count)
        chunks = objects.chunk(size)

        assert len(chunks) == -(-count // size)
        assert all(len(c) == size for c in chunks[:-1])
        if count:
            assert 1 <= len(chunks[-1]) <= size
        flattened = [i for c in chunks for i in c]
        assert flattened == list(objects)

    def test_chunks_can_be_iterated_twice(self):
        """Test that a chunk sequence is restartable."""
        chunks = identifiers(25).chunk(10)
        assert [len(c) for c in chunks] == [10, 10, 5]
        assert [len(c) for c in chunks] == [10, 10, 5]

    def test_chunks_are_a_snapshot(self):
        """Test that adding to the set does not change existing chunks."""
        objects = identifiers(5)
        chunks = objects.chunk(10)
        objects.add(ObjectIdentifier("late"))
        assert len(chunks[0]) == 5

    def test_chunk_index_out_of_range(self):
        """Test indexing past the last chunk."""
        chunks = identifiers(5).chunk(2)
        assert chunks[-1] == ObjectIdentifierSet.from_keys(["key-4"])
        with pytest.raises(IndexError):
            chunks[3]

    @pytest.mark.parametrize("size", [0, -1])
    def test_chunk_rejects_invalid_size(self, size):
        """Test that the chunk size must be positive."""
        with pytest.raises(ValueError):
            identifiers(3).chunk(size)

    def test_add_and_contains(self):
        """Test basic collection behaviour."""
        objects = ObjectIdentifierSet()
        assert objects.empty
        objects.add(ObjectIdentifier("a"))
        objects.extend([ObjectIdentifier("b"), ObjectIdentifier("c")])
        assert len(objects) == 3
        assert ObjectIdentifier("b") in objects
        assert objects[0] == ObjectIdentifier("a")
        assert not objects.empty

    def test_dedupe_keeps_first_occurrence(self):
        """Test duplicate removal."""
        objects = ObjectIdentifierSet.from_keys(["b", "a", "b", "c", "a"])
        assert [i.key for i in objects.dedupe()] == ["b", "a", "c"]

    def test_sorted(self):
        """Test ordering by key then version."""
        objects = ObjectIdentifierSet(
            [
                ObjectIdentifier("b"),
                ObjectIdentifier("a", "v2"),
                ObjectIdentifier("a", "v1"),
            ]
        )
        assert [str(i) for i in objects.sorted()] == [
            "a (version v1)",
            "a (version v2)",
            "b",
        ]

    def test_to_s3_objects(self):
        """Test the DeleteObjects payload."""
        objects = ObjectIdentifierSet([ObjectIdentifier("a"), ObjectIdentifier("b", "v")])
        assert objects.to_s3_objects() == [
            {"Key": "a"},
            {"Key": "b", "VersionId": "v"},
        ]


class TestNewDeleteRetryCount:
    """Tests for retry count clamping."""

    @pytest.mark.parametrize(
        "requested,expected",
        [(-3, 0), (0, 0), (3, 3), (6, 6), (100, MAX_DELETE_OBJECTS_RETRY_COUNT)],
    )
    def test_clamps(self, requested, expected):
        """Test clamping into the allowed range."""
        assert new_delete_retry_count(requested) == expected


class TestDeleteOutcome:
    """Tests for DeleteOutcome."""

    def _failure(self, key="a"):
        return ChunkFailure(ObjectIdentifier(key), RuntimeError("boom"), code="AccessDenied")

    def test_complete_without_failures(self):
        """Test that a clean run is a success."""
        outcome = DeleteOutcome(bucket="b", total=3, deleted_count=3)
        outcome.complete()
        assert outcome.status == OutcomeStatus.SUCCESS
        assert outcome.succeeded
        assert outcome.end_time is not None

    def test_complete_with_some_failures(self):
        """Test the partial failure status."""
        outcome = DeleteOutcome(bucket="b", total=2, deleted_count=1)
        outcome.failures.append(self._failure())
        outcome.complete()
        assert outcome.status == OutcomeStatus.PARTIAL_FAILURE

    def test_complete_with_only_failures(self):
        """Test the fatal status when nothing was deleted."""
        outcome = DeleteOutcome(bucket="b", total=1)
        outcome.failures.append(self._failure())
        outcome.complete()
        assert outcome.status == OutcomeStatus.FATAL_FAILURE

    def test_explicit_status_wins(self):
        """Test that a given status is kept."""
        outcome = DeleteOutcome(bucket="b")
        outcome.complete(OutcomeStatus.CANCELLED)
        assert outcome.status == OutcomeStatus.CANCELLED

    def test_to_dict(self):
        """Test serialization."""
        outcome = DeleteOutcome(bucket="b", region="us-east-1", total=2, deleted_count=1)
        outcome.failures.append(self._failure("x"))
        outcome.complete()

        data = outcome.to_dict()

        assert data["bucket"] == "b"
        assert data["status"] == "partial_failure"
        assert data["deleted"] == 1
        assert data["failed"] == 1
        assert data["failures"] == [
            {"key": "x", "version_id": None, "code": "AccessDenied", "error": "boom"}
        ]
        assert data["end_time"] is not None
        assert outcome.failed_identifiers == [ObjectIdentifier("x")]
