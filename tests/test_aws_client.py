"""
Tests for the AWS Client module.
"""

import pytest

from s3hub.core.aws_client import DEBUG_LOCALSTACK_ENDPOINT, AWSClient
from s3hub.core.exceptions import CredentialsError


class TestAWSClient:
    """Tests for AWSClient class."""

    def test_client_initialization(self, mock_aws_environment):
        """Test basic client initialization."""
        client = AWSClient(region="us-east-1")
        assert client.region == "us-east-1"
        assert client.profile is None
        assert client.endpoint_url is None

    def test_get_s3_client(self, mock_aws_environment):
        """Test getting the default S3 client."""
        client = AWSClient(region="us-east-1")
        s3 = client.get_s3_client()
        assert s3.meta.region_name == "us-east-1"

    def test_s3_clients_cached_per_region(self, mock_aws_environment):
        """Test that each region gets its own cached client."""
        client = AWSClient(region="us-east-1")

        tokyo = client.get_s3_client("ap-northeast-1")

        assert tokyo.meta.region_name == "ap-northeast-1"
        assert client.get_s3_client("ap-northeast-1") is tokyo
        assert client.get_s3_client() is not tokyo

    def test_endpoint_url(self, mock_aws_environment):
        """Test that a custom endpoint is used for S3."""
        client = AWSClient(endpoint_url=DEBUG_LOCALSTACK_ENDPOINT)
        s3 = client.get_s3_client()
        assert s3.meta.endpoint_url == DEBUG_LOCALSTACK_ENDPOINT

    def test_validate_credentials(self, mock_aws_environment):
        """Test credential validation."""
        client = AWSClient(region="us-east-1")
        # Should not raise an exception with mocked credentials
        assert client.validate_credentials() is True

    def test_get_account_id(self, mock_aws_environment):
        """Test getting account ID."""
        client = AWSClient(region="us-east-1")
        account_id = client.get_account_id()
        assert len(account_id) == 12  # AWS account IDs are 12 digits

    def test_with_region(self, mock_aws_environment):
        """Test creating client for different region."""
        client = AWSClient(region="us-east-1", profile="test", endpoint_url="http://s3.local")
        new_client = client.with_region("eu-west-1")

        assert new_client.region == "eu-west-1"
        assert new_client.profile == "test"
        assert new_client.endpoint_url == "http://s3.local"
        assert client.region == "us-east-1"  # Original unchanged

    def test_retry_config(self, mock_aws_environment):
        """Test that retry configuration is applied."""
        client = AWSClient(region="us-east-1", max_retries=5, timeout=60)
        assert client.max_retries == 5
        assert client.timeout == 60

    def test_context_manager_clears_clients(self, mock_aws_environment):
        """Test that leaving the context drops cached clients."""
        with AWSClient(region="us-east-1") as client:
            first = client.get_s3_client()
        assert client.get_s3_client() is not first


class TestAWSClientErrors:
    """Tests for AWSClient error handling."""

    def test_invalid_profile_error(self, aws_credentials, monkeypatch, tmp_path):
        """Test that an unknown profile raises CredentialsError."""
        config_file = tmp_path / "config"
        config_file.write_text("[default]\nregion = us-east-1\n")
        monkeypatch.setenv("AWS_CONFIG_FILE", str(config_file))
        monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(tmp_path / "credentials"))

        client = AWSClient(region="us-east-1", profile="nonexistent-profile-xyz")
        with pytest.raises(CredentialsError) as exc_info:
            client.get_s3_client()
        assert exc_info.value.details["profile"] == "nonexistent-profile-xyz"
