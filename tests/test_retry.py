"""
Tests for the retry policy.
"""

import pytest
from botocore.exceptions import EndpointConnectionError

from conftest import client_error
from s3hub.core.exceptions import RetryDelayError, TransientStoreError
from s3hub.core.retry import RetryPolicy, is_throttling_error


class TestIsThrottlingError:
    """Tests for the default error classifier."""

    @pytest.mark.parametrize(
        "code,status",
        [
            ("SlowDown", 503),
            ("Throttling", 400),
            ("RequestLimitExceeded", 400),
            ("InternalError", 500),
            ("SomethingNew", 502),
        ],
    )
    def test_transient_client_errors(self, code, status):
        """Test throttling codes and 5xx responses."""
        assert is_throttling_error(client_error(code, status))

    @pytest.mark.parametrize(
        "code,status",
        [("AccessDenied", 403), ("NoSuchBucket", 404), ("InvalidRequest", 400)],
    )
    def test_permanent_client_errors(self, code, status):
        """Test that other 4xx errors are not retried."""
        assert not is_throttling_error(client_error(code, status))

    def test_connection_errors(self):
        """Test dropped connections."""
        error = EndpointConnectionError(endpoint_url="https://s3.amazonaws.com")
        assert is_throttling_error(error)

    def test_transient_store_error(self):
        """Test the store-level transient marker."""
        assert is_throttling_error(TransientStoreError("SlowDown"))

    def test_unrelated_errors(self):
        """Test that arbitrary exceptions are permanent."""
        assert not is_throttling_error(ValueError("bad"))


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    def test_defaults(self):
        """Test default attempts and delay ceiling."""
        policy = RetryPolicy()
        assert policy.max_attempts == 3
        assert policy.delay_ceiling_sec == 5

    @pytest.mark.parametrize("kwargs", [{"max_attempts": 0}, {"delay_ceiling_sec": 0}])
    def test_rejects_invalid_limits(self, kwargs):
        """Test constructor validation."""
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)

    def test_delay_is_within_window(self):
        """Test that every possible jitter value maps into [1, N]."""
        for offset in range(5):
            policy = RetryPolicy(delay_ceiling_sec=5, random_below=lambda n, o=offset: o)
            assert policy.next_delay(1) == float(offset + 1)

    def test_delay_with_real_random_source(self):
        """Test the default random source stays in range."""
        policy = RetryPolicy(delay_ceiling_sec=3)
        delays = {policy.next_delay(1) for _ in range(200)}
        assert delays <= {1.0, 2.0, 3.0}

    def test_delay_does_not_grow(self):
        """Test that the delay is independent of the attempt number."""
        policy = RetryPolicy(random_below=lambda n: 1)
        assert policy.next_delay(1) == policy.next_delay(5) == 2.0

    def test_random_ceiling_passed_through(self):
        """Test that the random source is asked for [0, N)."""
        seen = []

        def random_below(n):
            seen.append(n)
            return 0

        RetryPolicy(delay_ceiling_sec=7, random_below=random_below).next_delay(1)
        assert seen == [7]

    def test_random_failure_raises(self):
        """Test that a failing random source is surfaced."""

        def broken(n):
            raise OSError("no entropy")

        with pytest.raises(RetryDelayError) as exc_info:
            RetryPolicy(random_below=broken).next_delay(2)
        assert exc_info.value.details["attempt"] == 2

    def test_decide_retries_transient_errors(self):
        """Test a retry decision for a throttled attempt."""
        policy = RetryPolicy(max_attempts=3, random_below=lambda n: 0)
        decision = policy.decide(client_error("SlowDown", 503), attempt=1)
        assert decision.should_retry
        assert decision.delay == 1.0

    def test_decide_stops_at_max_attempts(self):
        """Test that the last attempt is not retried."""
        policy = RetryPolicy(max_attempts=3, random_below=lambda n: 0)
        assert policy.decide(client_error("SlowDown", 503), attempt=2).should_retry
        assert not policy.decide(client_error("SlowDown", 503), attempt=3).should_retry

    def test_decide_never_retries_permanent_errors(self):
        """Test that permanent errors are not retried."""
        policy = RetryPolicy(max_attempts=6)
        assert not policy.decide(client_error("AccessDenied", 403), attempt=1).should_retry

    def test_custom_classifier(self):
        """Test a pluggable classifier."""
        policy = RetryPolicy(is_retryable=lambda e: isinstance(e, KeyError))
        assert policy.is_retryable(KeyError("x"))
        assert not policy.is_retryable(client_error("SlowDown", 503))
